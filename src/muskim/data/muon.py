"""Module with the data classes which represent selected primary muons.

A primary muon is stored as one of two variants:
- :class:`GlobalMuon`, a muon chamber track matched to an MFT segment
- :class:`StandaloneMuon`, a muon chamber track matched to the muon identifier

Each stored muon is paired with a :class:`MuonCov` record holding the
covariance of its parameters at the primary vertex.
"""

from dataclasses import dataclass

import numpy as np

from muskim.utils.docstring import inherit_docstring
from muskim.utils.enums import TrackTypeEnum
from muskim.utils.globals import TRIL_COLS, TRIL_ROWS

from .base import DataBase

__all__ = ["PrimaryMuon", "GlobalMuon", "StandaloneMuon", "MuonCov"]


@dataclass(eq=False)
class PrimaryMuon(DataBase):
    """Selected primary muon candidate.

    Attributes
    ----------
    collision_id : int
        Index of the collision the muon is paired with
    fwdtrack_id : int
        Index of the forward track the muon was built from
    track_type : TrackTypeEnum
        Category of the forward track
    pt : float
        Transverse momentum at the vertex (GeV/c)
    eta : float
        Pseudorapidity at the vertex
    phi : float
        Azimuthal angle at the vertex, in [0, 2pi)
    sign : int
        Charge sign
    dca_x : float
        Transverse x distance of closest approach to the vertex (cm)
    dca_y : float
        Transverse y distance of closest approach to the vertex (cm)
    c_xx : float
        Variance of x at the DCA plane
    c_yy : float
        Variance of y at the DCA plane
    c_xy : float
        Covariance of x and y at the DCA plane
    pt_matched_mchmid : float
        Transverse momentum of the matched MCH-MID track at the vertex
    eta_matched_mchmid : float
        Pseudorapidity of the matched MCH-MID track at the vertex
    phi_matched_mchmid : float
        Azimuthal angle of the matched MCH-MID track at the vertex
    n_clusters : int
        Number of muon chamber clusters
    p_dca : float
        Momentum times DCA (GeV/c cm)
    r_at_absorber_end : float
        Transverse radius at the end of the front absorber (cm)
    chi2 : float
        Track fit chi2
    ndf : int
        Number of degrees of freedom of the track fit
    chi2_match_mchmid : float
        Matching chi2 between the muon chamber and muon identifier tracks
    chi2_match_mchmft : float
        Matching chi2 between the muon chamber and MFT tracks
    mch_bitmap : int
        Bitmap of the muon chambers with clusters
    mid_bitmap : int
        Bitmap of the muon identifier planes with clusters
    mid_boards : int
        Muon identifier local boards crossed by the track
    is_associated_to_mpc : bool
        Whether the paired collision is the one the track was reconstructed
        with (most probable collision)
    is_ambiguous : bool
        Whether the track is associated with more than one collision
    """

    collision_id: int = -1
    fwdtrack_id: int = -1
    track_type: TrackTypeEnum = TrackTypeEnum.MUON_STANDALONE
    pt: float = 0.0
    eta: float = 0.0
    phi: float = 0.0
    sign: int = 0
    dca_x: float = 0.0
    dca_y: float = 0.0
    c_xx: float = 0.0
    c_yy: float = 0.0
    c_xy: float = 0.0
    pt_matched_mchmid: float = 0.0
    eta_matched_mchmid: float = 0.0
    phi_matched_mchmid: float = 0.0
    n_clusters: int = 0
    p_dca: float = 0.0
    r_at_absorber_end: float = 0.0
    chi2: float = 0.0
    ndf: int = 1
    chi2_match_mchmid: float = 0.0
    chi2_match_mchmft: float = 0.0
    mch_bitmap: int = 0
    mid_bitmap: int = 0
    mid_boards: int = 0
    is_associated_to_mpc: bool = False
    is_ambiguous: bool = False

    # Enumerated attributes
    _enum_attrs = (("track_type", TrackTypeEnum),)

    # Boolean attributes
    _bool_attrs = ("is_associated_to_mpc", "is_ambiguous")

    # Index attributes
    _index_attrs = ("collision_id", "fwdtrack_id")

    @property
    def dca_xy(self):
        """Transverse distance of closest approach (cm)."""
        return np.sqrt(self.dca_x**2 + self.dca_y**2)

    @property
    def chi2_per_ndf(self):
        """Track fit chi2 per degree of freedom."""
        return self.chi2 / self.ndf

    @property
    def is_global(self):
        """Whether the muon carries an MFT segment."""
        return False


@dataclass(eq=False)
@inherit_docstring(PrimaryMuon)
class GlobalMuon(PrimaryMuon):
    """Primary muon matched to an MFT segment.

    Attributes
    ----------
    mft_track_id : int
        Index of the matched MFT track
    mch_track_id : int
        Index of the matched MCH-MID forward track
    n_clusters_mft : int
        Number of MFT clusters
    chi2_mft : float
        MFT track fit chi2
    mft_cluster_sizes_and_track_flags : int
        Packed MFT cluster sizes per layer and track flags
    """

    track_type: TrackTypeEnum = TrackTypeEnum.GLOBAL_MUON
    mft_track_id: int = -1
    mch_track_id: int = -1
    n_clusters_mft: int = 0
    chi2_mft: float = 0.0
    mft_cluster_sizes_and_track_flags: int = 0

    # Index attributes
    _index_attrs = (*PrimaryMuon._index_attrs, "mft_track_id", "mch_track_id")

    def __post_init__(self):
        """Checks that the MFT segment link is valid."""
        super().__post_init__()
        if self.mft_track_id < 0 or self.mch_track_id < 0:
            raise ValueError(
                "A global muon must be linked to an MFT track and to an "
                f"MCH-MID track, got {self.mft_track_id} and {self.mch_track_id}."
            )

    @property
    def is_global(self):
        return True


@dataclass(eq=False)
@inherit_docstring(PrimaryMuon)
class StandaloneMuon(PrimaryMuon):
    """Primary muon reconstructed without an MFT segment."""


@dataclass(eq=False)
class MuonCov(DataBase):
    """Covariance of the muon parameters at the primary vertex.

    Attributes
    ----------
    cov : np.ndarray
        (15) Lower triangle of the (x, y, phi, tgl, q/pt) covariance matrix
    """

    cov: np.ndarray = None

    # Fixed-length attributes
    _fixed_length_attrs = (("cov", (15, np.float64)),)

    @classmethod
    def from_matrix(cls, covariance):
        """Builds the record from a full (5, 5) covariance matrix.

        Parameters
        ----------
        covariance : np.ndarray
            (5, 5) Covariance matrix

        Returns
        -------
        MuonCov
            Covariance record
        """
        return cls(cov=np.asarray(covariance, dtype=np.float64)[TRIL_ROWS, TRIL_COLS])

    @property
    def covariance(self):
        """Full (5, 5) symmetric covariance matrix."""
        covariance = np.zeros((5, 5), dtype=np.float64)
        covariance[TRIL_ROWS, TRIL_COLS] = self.cov
        covariance[TRIL_COLS, TRIL_ROWS] = self.cov

        return covariance
