"""Quadratic helix approximation of the forward track propagation.

The track is transported in a uniform field along the beam axis. The
transverse displacement is expanded to second order in the bending angle,
which is accurate as long as the bending over the propagation length stays
small, and the covariance is transported with the Jacobian of that map.
"""

import numba as nb
import numpy as np

from muskim.utils.globals import B2C

from .base import PropagationError, PropagatorBase

__all__ = ["QuadraticPropagator"]


class QuadraticPropagator(PropagatorBase):
    """Propagates forward tracks with a quadratic expansion in z."""

    name = "quadratic"

    def extrapolate(self, params, covariance, z_start, z_end, bz):
        if params[3] == 0.0:
            raise PropagationError(
                "Cannot propagate a track with a null dip angle along z."
            )

        new_params, jacobian = quadratic_step(
            np.asarray(params, dtype=np.float64), z_end - z_start, bz
        )

        return new_params, jacobian @ covariance @ jacobian.T


@nb.njit(cache=True)
def quadratic_step(params: nb.float64[:], dz: nb.float64, bz: nb.float64) -> tuple:
    """Propagates track parameters over a z distance and returns the Jacobian
    of the transformation.

    Parameters
    ----------
    params : np.ndarray
        (5) Track parameters (x, y, phi, tgl, q/pt)
    dz : float
        Signed distance to travel along z (cm)
    bz : float
        Field along the beam axis (kG)

    Returns
    -------
    np.ndarray
        (5) Propagated track parameters
    np.ndarray
        (5, 5) Jacobian of the propagation
    """
    x0, y0, phi0, tgl, invqpt = params[0], params[1], params[2], params[3], params[4]
    cosf0, sinf0 = np.cos(phi0), np.sin(phi0)
    invtgl = 1.0 / tgl

    hz = 1.0 if bz >= 0.0 else -1.0
    k = np.abs(B2C * bz)
    n = dz * invtgl
    m = n * invtgl
    theta = -invqpt * dz * k * invtgl

    out = params.copy()
    out[0] = x0 + n * cosf0 - 0.5 * n * theta * hz * sinf0
    out[1] = y0 + n * sinf0 + 0.5 * n * theta * hz * cosf0
    out[2] = phi0 + hz * theta

    jac = np.eye(5)
    jac[0, 2] = -n * theta * 0.5 * hz * cosf0 - n * sinf0
    jac[0, 3] = hz * m * theta * sinf0 - m * cosf0
    jac[0, 4] = k * m * 0.5 * hz * dz * sinf0
    jac[1, 2] = -n * theta * 0.5 * hz * sinf0 + n * cosf0
    jac[1, 3] = -hz * m * theta * cosf0 - m * sinf0
    jac[1, 4] = -k * m * 0.5 * hz * dz * cosf0
    jac[2, 3] = -hz * theta * invtgl
    jac[2, 4] = -hz * k * n

    return out, jac
