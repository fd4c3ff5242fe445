"""Quality metrics of a track with respect to a collision vertex."""

from dataclasses import dataclass

from muskim.math import dca_xy, dca_xy_in_sigma, dca_xy_resolution

__all__ = ["DCAMetrics", "compute_dca", "compute_p_dca", "global_ndf"]


@dataclass(frozen=True)
class DCAMetrics:
    """Distance of closest approach of a track to a vertex.

    Attributes
    ----------
    dca_x : float
        Track x minus vertex x at the vertex plane (cm)
    dca_y : float
        Track y minus vertex y at the vertex plane (cm)
    dca_xy : float
        Transverse distance of closest approach (cm)
    c_xx : float
        Variance of x at the vertex plane
    c_yy : float
        Variance of y at the vertex plane
    c_xy : float
        Covariance of x and y at the vertex plane
    dca_xy_in_sigma : float
        DCA significance (999 when the covariance is degenerate)
    sigma_dca_xy : float
        DCA resolution (cm)
    """

    dca_x: float
    dca_y: float
    dca_xy: float
    c_xx: float
    c_yy: float
    c_xy: float
    dca_xy_in_sigma: float
    sigma_dca_xy: float


def compute_dca(state, collision):
    """Computes the DCA metrics of a track state propagated to the DCA plane.

    Parameters
    ----------
    state : PropagatedState
        Track state at the z position of the vertex, without constraint
    collision : Collision
        Collision which defines the vertex

    Returns
    -------
    DCAMetrics
        DCA metrics
    """
    dca_x = state.x - collision.pos_x
    dca_y = state.y - collision.pos_y
    c_xx, c_yy, c_xy = state.sigma2_x, state.sigma2_y, state.sigma_xy

    dca = dca_xy(dca_x, dca_y)
    dca_in_sigma = dca_xy_in_sigma(dca_x, dca_y, c_xx, c_yy, c_xy)

    return DCAMetrics(
        dca_x=dca_x,
        dca_y=dca_y,
        dca_xy=dca,
        c_xx=c_xx,
        c_yy=c_yy,
        c_xy=c_xy,
        dca_xy_in_sigma=dca_in_sigma,
        sigma_dca_xy=dca_xy_resolution(dca, dca_in_sigma),
    )


def compute_p_dca(p, dca):
    """Momentum times transverse DCA."""
    return p * dca


def global_ndf(n_clusters_mch, n_clusters_mft):
    """Number of degrees of freedom of a global muon track fit.

    Each cluster provides two measurements, five parameters are fitted.

    Parameters
    ----------
    n_clusters_mch : int
        Number of muon chamber clusters
    n_clusters_mft : int
        Number of MFT clusters

    Returns
    -------
    int
        Number of degrees of freedom
    """
    return 2 * (n_clusters_mch + n_clusters_mft) - 5
