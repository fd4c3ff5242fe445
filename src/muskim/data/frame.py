"""Module with a data class object which holds one processing pass."""

from dataclasses import dataclass, field

import numpy as np

__all__ = ["InputFrame"]


@dataclass
class InputFrame:
    """Tables read for one processing pass (one stored data frame).

    The per-collision indexes are built on first use, the tables must not be
    modified after that.

    Attributes
    ----------
    collisions : List[Collision]
        Ordered list of collisions
    fwd_tracks : Dict[int, FwdTrack]
        Forward tracks, keyed by their index, in table order
    mft_tracks : Dict[int, MFTTrack]
        MFT tracks, keyed by their index
    track_assoc : np.ndarray
        (N, 2) Time-compatible (collision index, forward track index) pairs
    """

    collisions: list = field(default_factory=list)
    fwd_tracks: dict = field(default_factory=dict)
    mft_tracks: dict = field(default_factory=dict)
    track_assoc: np.ndarray = None

    def __post_init__(self):
        """Normalizes the association table shape."""
        if self.track_assoc is None:
            self.track_assoc = np.empty((0, 2), dtype=np.int64)
        else:
            self.track_assoc = np.asarray(self.track_assoc, dtype=np.int64).reshape(-1, 2)

        self._tracks_by_collision = None
        self._assoc_by_collision = None

    @property
    def num_collisions(self):
        return len(self.collisions)

    @property
    def num_fwd_tracks(self):
        return len(self.fwd_tracks)

    def tracks_of_collision(self, collision_id):
        """Returns the forward tracks reconstructed with one collision.

        Parameters
        ----------
        collision_id : int
            Index of the collision

        Returns
        -------
        List[FwdTrack]
            Tracks in table order
        """
        if self._tracks_by_collision is None:
            index = {}
            for track in self.fwd_tracks.values():
                index.setdefault(track.collision_id, []).append(track)
            self._tracks_by_collision = index

        return self._tracks_by_collision.get(collision_id, [])

    def associated_track_ids(self, collision_id):
        """Returns the forward track indexes associated with one collision.

        Parameters
        ----------
        collision_id : int
            Index of the collision

        Returns
        -------
        List[int]
            Track indexes, in association table order
        """
        if self._assoc_by_collision is None:
            index = {}
            for coll_id, track_id in self.track_assoc.tolist():
                index.setdefault(coll_id, []).append(track_id)
            self._assoc_by_collision = index

        return self._assoc_by_collision.get(collision_id, [])
