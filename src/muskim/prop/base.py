"""Interface of the track propagation engines."""

from abc import ABC, abstractmethod

import numpy as np

from muskim.data import PropagatedState
from muskim.utils.enums import PropagationPointEnum

__all__ = ["PropagatorBase", "PropagationError"]


class PropagationError(Exception):
    """Raised when a track cannot be propagated to the requested surface."""


class PropagatorBase(ABC):
    """Base class of all track propagation engines.

    An engine transports the track parameters and their covariance from the
    reference plane of the track to another plane at fixed z. This class
    resolves the target surface and applies the vertex constraint, the
    engine only implements :meth:`extrapolate`.

    Attributes
    ----------
    name : str
        Name of the engine, used to instantiate it from configuration
    """

    name = None

    def __call__(self, track, collision, point, conditions):
        return self.propagate(track, collision, point, conditions)

    def propagate(self, track, collision, point, conditions):
        """Propagates a forward track to a reference surface.

        Parameters
        ----------
        track : FwdTrack
            Track to propagate
        collision : Collision
            Collision which defines the vertex
        point : PropagationPointEnum
            Reference surface to propagate to
        conditions : RunConditions
            Field and geometry of the current run

        Returns
        -------
        PropagatedState
            Track state at the reference surface

        Raises
        ------
        PropagationError
            If the engine cannot propagate the track
        """
        if conditions is None:
            raise RuntimeError("Cannot propagate a track without run conditions.")

        point = PropagationPointEnum(point)
        if point == PropagationPointEnum.TO_ABSORBER_END:
            z_end = conditions.z_absorber_end
        else:
            z_end = collision.pos_z

        params, covariance = self.extrapolate(
            track.params, track.covariance, track.z, z_end, conditions.bz
        )
        if not np.all(np.isfinite(params)):
            raise PropagationError(
                f"Propagation of track {track.id} to {point.name} produced "
                "non-finite parameters."
            )

        x, y, phi, tgl, signed_1pt = params
        if point == PropagationPointEnum.TO_VERTEX:
            x, y = collision.pos_x, collision.pos_y

        return PropagatedState(
            point=point,
            x=float(x),
            y=float(y),
            z=float(z_end),
            phi=float(phi),
            tgl=float(tgl),
            signed_1pt=float(signed_1pt),
            covariance=covariance,
        )

    @abstractmethod
    def extrapolate(self, params, covariance, z_start, z_end, bz):
        """Transports track parameters and covariance between two z planes.

        Parameters
        ----------
        params : np.ndarray
            (5) Track parameters (x, y, phi, tgl, q/pt) at `z_start`
        covariance : np.ndarray
            (5, 5) Covariance of the track parameters at `z_start`
        z_start : float
            Initial plane position (cm)
        z_end : float
            Final plane position (cm)
        bz : float
            Field along the beam axis (kG)

        Returns
        -------
        np.ndarray
            (5) Track parameters at `z_end`
        np.ndarray
            (5, 5) Covariance of the track parameters at `z_end`
        """
        raise NotImplementedError
