"""Numba JIT compiled forward-track kinematics routines.

Forward tracks are parameterized by the tangent of their dip angle
`tgl = pz / pt` and their signed inverse transverse momentum `q / pt`.
"""

import numba as nb
import numpy as np

__all__ = [
    "eta_from_tgl",
    "p_from_pt_tgl",
    "pt_from_p_eta",
    "wrap_to_2pi",
    "wrap_to_pm_pi",
]

TWO_PI = 2.0 * np.pi


@nb.njit(cache=True)
def eta_from_tgl(tgl: nb.float64) -> nb.float64:
    """Compute the pseudorapidity of a track from its dip angle tangent.

    Parameters
    ----------
    tgl : float
        Tangent of the dip angle (pz / pt)

    Returns
    -------
    float
        Pseudorapidity
    """
    theta = 0.5 * np.pi - np.arctan(tgl)
    return -np.log(np.tan(0.5 * theta))


@nb.njit(cache=True)
def p_from_pt_tgl(pt: nb.float64, tgl: nb.float64) -> nb.float64:
    """Compute the total momentum of a track.

    Parameters
    ----------
    pt : float
        Transverse momentum
    tgl : float
        Tangent of the dip angle (pz / pt)

    Returns
    -------
    float
        Total momentum
    """
    return pt * np.sqrt(1.0 + tgl * tgl)


@nb.njit(cache=True)
def pt_from_p_eta(p: nb.float64, eta: nb.float64) -> nb.float64:
    """Compute the transverse momentum from the total momentum and the
    pseudorapidity, i.e. `p * sin(theta)` with `theta = 2 atan(exp(-eta))`.

    Parameters
    ----------
    p : float
        Total momentum
    eta : float
        Pseudorapidity

    Returns
    -------
    float
        Transverse momentum
    """
    return p * np.sin(2.0 * np.arctan(np.exp(-eta)))


@nb.njit(cache=True)
def wrap_to_2pi(phi: nb.float64) -> nb.float64:
    """Bring an angle into [0, 2pi).

    Parameters
    ----------
    phi : float
        Angle in radians

    Returns
    -------
    float
        Wrapped angle
    """
    phi = phi % TWO_PI
    if phi >= TWO_PI:
        phi -= TWO_PI

    return phi


@nb.njit(cache=True)
def wrap_to_pm_pi(phi: nb.float64) -> nb.float64:
    """Bring an angle into (-pi, pi].

    Parameters
    ----------
    phi : float
        Angle in radians

    Returns
    -------
    float
        Wrapped angle
    """
    phi = wrap_to_2pi(phi)
    if phi > np.pi:
        phi -= TWO_PI

    return phi
