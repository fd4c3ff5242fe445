"""Module with a data class object which represents a propagated track state."""

from dataclasses import dataclass

import numpy as np

from muskim.math import eta_from_tgl, p_from_pt_tgl
from muskim.utils.enums import PropagationPointEnum

__all__ = ["PropagatedState"]


@dataclass(eq=False)
class PropagatedState:
    """Track parameters and covariance at a reference surface.

    Attributes
    ----------
    point : PropagationPointEnum
        Reference surface the track was propagated to
    x : float
        Transverse x position (cm)
    y : float
        Transverse y position (cm)
    z : float
        Position along the beam axis (cm)
    phi : float
        Azimuthal angle of the momentum (not wrapped)
    tgl : float
        Tangent of the dip angle
    signed_1pt : float
        Charge over transverse momentum (c/GeV)
    covariance : np.ndarray
        (5, 5) Parameter covariance matrix
    """

    point: PropagationPointEnum
    x: float
    y: float
    z: float
    phi: float
    tgl: float
    signed_1pt: float
    covariance: np.ndarray

    @property
    def pt(self):
        """Transverse momentum (GeV/c)."""
        if self.signed_1pt == 0.0:
            return np.inf

        return 1.0 / abs(self.signed_1pt)

    @property
    def p(self):
        """Total momentum (GeV/c)."""
        return p_from_pt_tgl(self.pt, self.tgl)

    @property
    def eta(self):
        """Pseudorapidity."""
        return eta_from_tgl(self.tgl)

    @property
    def sigma2_x(self):
        return self.covariance[0, 0]

    @property
    def sigma2_y(self):
        return self.covariance[1, 1]

    @property
    def sigma_xy(self):
        return self.covariance[0, 1]
