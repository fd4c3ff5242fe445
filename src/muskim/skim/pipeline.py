"""Drives the candidate builder over the collisions of a processing pass."""

from functools import partial
from itertools import groupby
from multiprocessing.pool import ThreadPool

import numpy as np

from muskim.data import MuonTable
from muskim.utils.globals import MUON_TRACK_TYPES
from muskim.utils.logger import logger

__all__ = ["SkimPipeline", "SKIM_MODES"]

# Named pipeline configurations. The flags specify:
# - use_association: pair tracks with collisions through the time-compatible
#   association table (and flag ambiguous tracks) rather than through the
#   collision each track was reconstructed with
# - swt_filter: only keep collisions which fired a software trigger
# - mc_gated: only keep collisions and tracks linked to simulated objects
SKIM_MODES = {
    "sa": dict(use_association=False, swt_filter=False, mc_gated=False),
    "ttca": dict(use_association=True, swt_filter=False, mc_gated=False),
    "sa_swt": dict(use_association=False, swt_filter=True, mc_gated=False),
    "ttca_swt": dict(use_association=True, swt_filter=True, mc_gated=False),
    "mc_sa": dict(use_association=False, swt_filter=False, mc_gated=True),
    "mc_ttca": dict(use_association=True, swt_filter=False, mc_gated=True),
}


class SkimPipeline:
    """Selects the collisions and tracks of a processing pass and builds the
    primary muon table.

    Collisions are processed in input order. Consecutive collisions which
    belong to the same run form a block: the conditions of the run are loaded
    before any of its collisions is processed, then the collisions of the
    block are distributed among the workers. Records are appended in input
    order, whatever the number of workers.
    """

    def __init__(
        self,
        builder,
        conditions,
        use_association=True,
        swt_filter=False,
        mc_gated=False,
        num_workers=1,
    ):
        """Initialize the pipeline.

        Parameters
        ----------
        builder : CandidateBuilder
            Builder called for each (collision, track) pair
        conditions : ConditionsManager
            Run-scoped conditions cache
        use_association : bool, default True
            Pair tracks with collisions through the association table
        swt_filter : bool, default False
            Only keep collisions which fired a software trigger
        mc_gated : bool, default False
            Only keep collisions and tracks linked to simulated objects
        num_workers : int, default 1
            Number of threads used to process the collisions of a run
        """
        self.builder = builder
        self.conditions = conditions
        self.use_association = use_association
        self.swt_filter = swt_filter
        self.mc_gated = mc_gated
        self.num_workers = max(int(num_workers), 1)

    @classmethod
    def from_mode(cls, mode, builder, conditions, num_workers=1):
        """Builds a pipeline from one of the named modes.

        Parameters
        ----------
        mode : str
            Name of the mode, one of `SKIM_MODES`
        builder : CandidateBuilder
            Builder called for each (collision, track) pair
        conditions : ConditionsManager
            Run-scoped conditions cache
        num_workers : int, default 1
            Number of threads used to process the collisions of a run

        Returns
        -------
        SkimPipeline
            Configured pipeline
        """
        if mode not in SKIM_MODES:
            raise ValueError(
                f"Skim mode not recognized: {mode}. Must be one of "
                f"{list(SKIM_MODES.keys())}."
            )

        return cls(builder, conditions, num_workers=num_workers, **SKIM_MODES[mode])

    def __call__(self, frame):
        return self.run(frame)

    def ambiguity_map(self, frame):
        """Flags the tracks which appear in more than one association record.

        Parameters
        ----------
        frame : InputFrame
            Tables of the processing pass

        Returns
        -------
        Dict[int, bool]
            Whether each forward track is ambiguous
        """
        ambiguous = dict.fromkeys(frame.fwd_tracks, False)
        if not self.use_association or not len(frame.track_assoc):
            return ambiguous

        track_ids, counts = np.unique(frame.track_assoc[:, 1], return_counts=True)
        for track_id, count in zip(track_ids, counts):
            if count > 1:
                ambiguous[int(track_id)] = True

        return ambiguous

    def accept_collision(self, collision):
        """Checks the event-level selection of a collision."""
        if not collision.is_selected:
            return False
        if self.swt_filter and collision.swt_alias <= 0:
            return False
        if self.mc_gated and collision.mc_collision_id < 0:
            return False

        return True

    def accept_track(self, track):
        """Checks the category and truth link of a forward track."""
        if self.mc_gated and track.mc_particle_id < 0:
            return False

        return track.track_type in MUON_TRACK_TYPES

    def tracks_of(self, frame, collision):
        """Returns the forward tracks paired with a collision, in order.

        Parameters
        ----------
        frame : InputFrame
            Tables of the processing pass
        collision : Collision
            Collision to fetch the tracks of

        Returns
        -------
        List[FwdTrack]
            Forward tracks
        """
        if not self.use_association:
            return frame.tracks_of_collision(collision.id)

        tracks = []
        for track_id in frame.associated_track_ids(collision.id):
            track = frame.fwd_tracks.get(int(track_id))
            if track is None:
                logger.debug(
                    "Association of collision %d points to a missing track %d.",
                    collision.id,
                    track_id,
                )
                continue
            tracks.append(track)

        return tracks

    def process_collision(self, collision, frame, ambiguous, conditions):
        """Builds the muon records of one collision.

        Parameters
        ----------
        collision : Collision
            Collision to process
        frame : InputFrame
            Tables of the processing pass
        ambiguous : Dict[int, bool]
            Whether each forward track is ambiguous
        conditions : RunConditions
            Conditions of the run the collision belongs to

        Returns
        -------
        List[Tuple[PrimaryMuon, MuonCov]]
            Records of the selected muons, in track order
        """
        if not self.accept_collision(collision):
            return []

        records = []
        for track in self.tracks_of(frame, collision):
            if not self.accept_track(track):
                continue

            record = self.builder(
                collision, track, frame, conditions, ambiguous.get(track.id, False)
            )
            if record is not None:
                records.append(record)

        return records

    def run(self, frame):
        """Processes all the collisions of one pass.

        Parameters
        ----------
        frame : InputFrame
            Tables of the processing pass

        Returns
        -------
        MuonTable
            Selected muons and their covariance, in emission order
        """
        ambiguous = self.ambiguity_map(frame)
        table = MuonTable()

        pool = ThreadPool(self.num_workers) if self.num_workers > 1 else None
        try:
            for run, block in groupby(frame.collisions, key=lambda c: c.run_number):
                block = list(block)
                self.conditions.reload(run)
                process_fn = partial(
                    self.process_collision,
                    frame=frame,
                    ambiguous=ambiguous,
                    conditions=self.conditions.get(),
                )
                if pool is not None:
                    results = pool.map(process_fn, block)
                else:
                    results = map(process_fn, block)

                for records in results:
                    table.extend(records)

        finally:
            if pool is not None:
                pool.close()
                pool.join()

        logger.debug(
            "Selected %d muon(s) out of %d collision(s).",
            len(table),
            frame.num_collisions,
        )

        return table
