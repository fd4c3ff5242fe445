"""Module with the append-only table of selected muons."""

import numpy as np

from muskim.utils.enums import TrackTypeEnum

from .muon import GlobalMuon, MuonCov, StandaloneMuon

__all__ = ["MuonTable", "MUON_DTYPE"]

# Flat storage schema shared by both muon variants. Columns which only exist
# for global muons hold their default value for standalone muons.
MUON_DTYPE = np.dtype(
    [
        ("collision_id", np.int64),
        ("fwdtrack_id", np.int64),
        ("track_type", np.int8),
        ("pt", np.float64),
        ("eta", np.float64),
        ("phi", np.float64),
        ("sign", np.int8),
        ("dca_x", np.float64),
        ("dca_y", np.float64),
        ("c_xx", np.float64),
        ("c_yy", np.float64),
        ("c_xy", np.float64),
        ("pt_matched_mchmid", np.float64),
        ("eta_matched_mchmid", np.float64),
        ("phi_matched_mchmid", np.float64),
        ("n_clusters", np.int32),
        ("p_dca", np.float64),
        ("r_at_absorber_end", np.float64),
        ("chi2", np.float64),
        ("ndf", np.int32),
        ("chi2_match_mchmid", np.float64),
        ("chi2_match_mchmft", np.float64),
        ("mch_bitmap", np.int64),
        ("mid_bitmap", np.int64),
        ("mid_boards", np.int64),
        ("is_associated_to_mpc", np.bool_),
        ("is_ambiguous", np.bool_),
        ("mft_track_id", np.int64),
        ("mch_track_id", np.int64),
        ("n_clusters_mft", np.int32),
        ("chi2_mft", np.float64),
        ("mft_cluster_sizes_and_track_flags", np.uint64),
    ]
)

# Values of the global-only columns for standalone muons
GLOBAL_DEFAULTS = {
    "mft_track_id": -1,
    "mch_track_id": -1,
    "n_clusters_mft": 0,
    "chi2_mft": 0.0,
    "mft_cluster_sizes_and_track_flags": 0,
}


class MuonTable:
    """Selected muons and their vertex covariance, in emission order.

    The two lists are only ever extended together, which guarantees that the
    i-th covariance record belongs to the i-th muon.
    """

    def __init__(self):
        """Initialize empty lists."""
        self._muons = []
        self._covs = []

    def __len__(self):
        return len(self._muons)

    def __iter__(self):
        return iter(self._muons)

    def __getitem__(self, idx):
        return self._muons[idx]

    @property
    def muons(self):
        """Tuple of stored muons."""
        return tuple(self._muons)

    @property
    def covs(self):
        """Tuple of stored covariance records."""
        return tuple(self._covs)

    def append(self, muon, cov):
        """Appends one muon and its covariance record.

        Parameters
        ----------
        muon : PrimaryMuon
            Selected muon
        cov : MuonCov
            Covariance of the muon parameters at the vertex
        """
        if not isinstance(cov, MuonCov):
            raise TypeError(f"Expected a `MuonCov` record, got {type(cov)}.")

        self._muons.append(muon)
        self._covs.append(cov)

    def extend(self, pairs):
        """Appends a sequence of (muon, covariance) pairs.

        Parameters
        ----------
        pairs : Iterable[Tuple[PrimaryMuon, MuonCov]]
            Pairs to append, in order
        """
        for muon, cov in pairs:
            self.append(muon, cov)

    def to_arrays(self):
        """Exports the table as numpy arrays.

        Returns
        -------
        np.ndarray
            (N) Structured array of muons with the `MUON_DTYPE` schema
        np.ndarray
            (N, 15) Covariance entries
        """
        muons = np.empty(len(self), dtype=MUON_DTYPE)
        for i, muon in enumerate(self._muons):
            values = {**GLOBAL_DEFAULTS, **muon.as_dict()}
            muons[i] = tuple(values[name] for name in MUON_DTYPE.names)

        covs = np.empty((len(self), 15), dtype=np.float64)
        for i, cov in enumerate(self._covs):
            covs[i] = cov.cov

        return muons, covs

    @classmethod
    def from_arrays(cls, muons, covs):
        """Rebuilds a table from its array representation.

        Parameters
        ----------
        muons : np.ndarray
            (N) Structured array of muons
        covs : np.ndarray
            (N, 15) Covariance entries

        Returns
        -------
        MuonTable
            Rebuilt table
        """
        if len(muons) != len(covs):
            raise ValueError(
                f"Muon ({len(muons)}) and covariance ({len(covs)}) counts differ."
            )

        table = cls()
        for row, cov in zip(muons, covs):
            if row["track_type"] == TrackTypeEnum.GLOBAL_MUON:
                muon = GlobalMuon.from_row(row)
            else:
                muon = StandaloneMuon.from_row(row)
            table.append(muon, MuonCov(cov=np.array(cov, dtype=np.float64)))

        return table
