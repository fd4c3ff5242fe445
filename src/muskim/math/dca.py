"""Numba JIT compiled distance of closest approach routines.

All quantities are evaluated in the transverse (x, y) plane at the z
position of the reference vertex.
"""

import numba as nb
import numpy as np

from muskim.utils.globals import DCA_SIGMA_SENTINEL

__all__ = ["dca_xy", "dca_xy_in_sigma", "dca_xy_resolution"]


@nb.njit(cache=True)
def dca_xy(dca_x: nb.float64, dca_y: nb.float64) -> nb.float64:
    """Transverse distance of closest approach.

    Parameters
    ----------
    dca_x : float
        Track x minus vertex x at the DCA plane
    dca_y : float
        Track y minus vertex y at the DCA plane

    Returns
    -------
    float
        Transverse DCA
    """
    return np.sqrt(dca_x * dca_x + dca_y * dca_y)


@nb.njit(cache=True)
def dca_xy_in_sigma(
    dca_x: nb.float64,
    dca_y: nb.float64,
    c_xx: nb.float64,
    c_yy: nb.float64,
    c_xy: nb.float64,
) -> nb.float64:
    """Transverse DCA normalized by the position covariance of the track.

    If the determinant of the (x, y) covariance block is not positive, the
    significance is undefined and the sentinel value is returned.

    Parameters
    ----------
    dca_x : float
        Track x minus vertex x at the DCA plane
    dca_y : float
        Track y minus vertex y at the DCA plane
    c_xx : float
        Variance of x at the DCA plane
    c_yy : float
        Variance of y at the DCA plane
    c_xy : float
        Covariance of x and y at the DCA plane

    Returns
    -------
    float
        DCA significance
    """
    det = c_xx * c_yy - c_xy * c_xy
    if det <= 0.0:
        return DCA_SIGMA_SENTINEL

    chi2 = dca_x * dca_x * c_yy + dca_y * dca_y * c_xx - 2.0 * dca_x * dca_y * c_xy
    return np.sqrt(np.abs(chi2) / det / 2.0)


@nb.njit(cache=True)
def dca_xy_resolution(dca: nb.float64, dca_in_sigma: nb.float64) -> nb.float64:
    """Resolution proxy of the transverse DCA, in distance units.

    Parameters
    ----------
    dca : float
        Transverse DCA
    dca_in_sigma : float
        Transverse DCA significance

    Returns
    -------
    float
        DCA divided by its significance (0 when both vanish)
    """
    if dca_in_sigma == 0.0:
        return 0.0

    return dca / dca_in_sigma
