"""Module with the data classes which represent reconstructed forward tracks.

Forward tracks are parameterized at a reference plane `z` by their transverse
position `(x, y)`, the azimuthal angle of their momentum `phi`, the tangent
of their dip angle `tgl` and their signed inverse transverse momentum.
"""

from dataclasses import dataclass

import numpy as np

from muskim.math import eta_from_tgl, p_from_pt_tgl
from muskim.utils.enums import TrackTypeEnum
from muskim.utils.globals import TRIL_COLS, TRIL_ROWS

from .base import DataBase

__all__ = ["FwdTrack", "MFTTrack"]


@dataclass(eq=False)
class TrackParBase(DataBase):
    """Track parameters shared by all forward tracks.

    Attributes
    ----------
    id : int
        Index of the track in its table
    collision_id : int
        Index of the collision the track was reconstructed with (-1 if none)
    x : float
        Transverse x position at the reference plane (cm)
    y : float
        Transverse y position at the reference plane (cm)
    z : float
        Position of the reference plane along the beam axis (cm)
    phi : float
        Azimuthal angle of the momentum
    tgl : float
        Tangent of the dip angle (pz / pt)
    signed_1pt : float
        Charge over transverse momentum (c/GeV)
    n_clusters : int
        Number of clusters attached to the track
    chi2 : float
        Track fit chi2
    mc_particle_id : int
        Index of the matched simulated particle (-1 if none)
    """

    id: int = -1
    collision_id: int = -1
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    phi: float = 0.0
    tgl: float = 0.0
    signed_1pt: float = 0.0
    n_clusters: int = 0
    chi2: float = 0.0
    mc_particle_id: int = -1

    # Index attributes
    _index_attrs = ("id", "collision_id", "mc_particle_id")

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
    def sign(self):
        """Charge sign (+1 or -1)."""
        return -1 if self.signed_1pt < 0.0 else 1

    @property
    def params(self):
        """Track parameter vector (x, y, phi, tgl, q/pt)."""
        return np.array(
            [self.x, self.y, self.phi, self.tgl, self.signed_1pt], dtype=np.float64
        )


@dataclass(eq=False)
class FwdTrack(TrackParBase):
    """Forward muon track (standalone, or matched with an MFT segment).

    Attributes
    ----------
    track_type : TrackTypeEnum
        Category of the track
    cov : np.ndarray
        (15) Lower triangle of the parameter covariance matrix, in the order
        xx, xy, yy, phix, phiy, phiphi, tglx, tgly, tglphi, tgltgl, 1ptx,
        1pty, 1ptphi, 1pttgl, 1pt1pt
    chi2_match_mchmid : float
        Matching chi2 between the muon chamber and muon identifier tracks
    chi2_match_mchmft : float
        Matching chi2 between the muon chamber and MFT tracks
    r_at_absorber_end : float
        Transverse radius of the track at the end of the front absorber (cm)
    mch_bitmap : int
        Bitmap of the muon chambers with clusters
    mid_bitmap : int
        Bitmap of the muon identifier planes with clusters
    mid_boards : int
        Muon identifier local boards crossed by the track
    match_mft_track_id : int
        Index of the matched MFT track (-1 if none)
    match_mch_track_id : int
        Index of the matched MCH-MID forward track (-1 if none)
    """

    track_type: TrackTypeEnum = TrackTypeEnum.MUON_STANDALONE
    cov: np.ndarray = None
    chi2_match_mchmid: float = -1.0
    chi2_match_mchmft: float = -1.0
    r_at_absorber_end: float = 0.0
    mch_bitmap: int = 0
    mid_bitmap: int = 0
    mid_boards: int = 0
    match_mft_track_id: int = -1
    match_mch_track_id: int = -1

    # Enumerated attributes
    _enum_attrs = (("track_type", TrackTypeEnum),)

    # Fixed-length attributes
    _fixed_length_attrs = (("cov", (15, np.float64)),)

    # Index attributes
    _index_attrs = (
        *TrackParBase._index_attrs,
        "match_mft_track_id",
        "match_mch_track_id",
    )

    @property
    def is_global(self):
        """Whether the track carries a muon chamber to MFT match."""
        return self.track_type == TrackTypeEnum.GLOBAL_MUON

    @property
    def covariance(self):
        """Full (5, 5) symmetric parameter covariance matrix."""
        covariance = np.zeros((5, 5), dtype=np.float64)
        covariance[TRIL_ROWS, TRIL_COLS] = self.cov
        covariance[TRIL_COLS, TRIL_ROWS] = self.cov

        return covariance


@dataclass(eq=False)
class MFTTrack(TrackParBase):
    """Muon forward tracker segment.

    Attributes
    ----------
    mft_cluster_sizes_and_track_flags : int
        Packed cluster sizes per layer and track flags
    """

    mft_cluster_sizes_and_track_flags: int = 0
