"""Test the cross-referencing of muons which share an identity."""

import numpy as np
import pytest
from conftest import make_frame, make_global, make_mft, make_standalone

from muskim.assoc import IdentityResolver
from muskim.build import CandidateBuilder
from muskim.data import Collision, GlobalMuon, MuonCov, MuonTable, StandaloneMuon
from muskim.skim import SkimPipeline


def make_table(muons):
    """Builds a table from a list of muons."""
    table = MuonTable()
    table.extend((m, MuonCov()) for m in muons)
    return table


def as_lists(self_ids):
    return [ids.tolist() for ids in self_ids]


class TestGroup:
    """Test the generic two-pass grouping."""

    def test_group(self):
        keys = ["a", "b", "a", None, "a", "c"]
        self_ids = IdentityResolver.group(keys)
        assert as_lists(self_ids) == [[2, 4], [], [0, 4], [], [0, 2], []]
        assert all(ids.dtype == np.int64 for ids in self_ids)

    def test_empty(self):
        assert IdentityResolver.group([]) == []


class TestResolver:
    """Test the muon cross-references."""

    def test_ambiguous_pair(self):
        """A track paired with two collisions yields two records pointing
        at each other.
        """
        muons = [
            StandaloneMuon(collision_id=0, fwdtrack_id=5),
            StandaloneMuon(collision_id=0, fwdtrack_id=6),
            StandaloneMuon(collision_id=1, fwdtrack_id=5),
        ]
        ambiguous, same_mft = IdentityResolver().resolve(make_table(muons))
        assert as_lists(ambiguous) == [[2], [], [0]]
        assert as_lists(same_mft) == [[], [], []]

    def test_same_mft(self):
        """Global muons of a collision sharing an MFT segment are linked,
        never across collisions, and standalone muons never are.
        """
        muons = [
            GlobalMuon(collision_id=0, fwdtrack_id=1, mft_track_id=3, mch_track_id=10),
            GlobalMuon(collision_id=0, fwdtrack_id=2, mft_track_id=3, mch_track_id=11),
            GlobalMuon(collision_id=1, fwdtrack_id=4, mft_track_id=3, mch_track_id=12),
            StandaloneMuon(collision_id=0, fwdtrack_id=10),
            GlobalMuon(collision_id=0, fwdtrack_id=7, mft_track_id=8, mch_track_id=13),
        ]
        table = make_table(muons)
        same_mft = IdentityResolver().same_mft_self_ids(table)
        assert as_lists(same_mft) == [[1], [0], [], [], []]
        for i, ids in enumerate(same_mft):
            assert i not in ids
            for j in ids:
                assert table[j].collision_id == table[i].collision_id

    def test_no_self_reference(self):
        muons = [StandaloneMuon(collision_id=i % 3, fwdtrack_id=i % 2) for i in range(9)]
        ambiguous, _ = IdentityResolver().resolve(make_table(muons))
        for i, ids in enumerate(ambiguous):
            assert i not in ids
            assert len(ids) == (3 if i % 2 else 4)

    def test_pipeline(self, propagator, policy, manager):
        """Cross-references of a table produced by the pipeline."""
        collisions = [Collision(id=0, run_number=1), Collision(id=1, run_number=1)]
        tracks = [
            make_standalone(1, collision_id=0),
            make_global(2, mch_id=1, mft_id=0, collision_id=0),
            make_global(3, mch_id=1, mft_id=0, collision_id=0, chi2_match_mchmft=20.0),
        ]
        assoc = [[0, 1], [0, 2], [0, 3], [1, 2]]
        frame = make_frame(collisions, tracks, [make_mft(0)], track_assoc=assoc)
        builder = CandidateBuilder(propagator, policy)
        table = SkimPipeline(builder, manager).run(frame)
        assert [(m.collision_id, m.fwdtrack_id) for m in table] == [
            (0, 1),
            (0, 2),
            (0, 3),
            (1, 2),
        ]

        ambiguous, same_mft = IdentityResolver().resolve(table)
        assert as_lists(ambiguous) == [[], [3], [], [1]]
        assert as_lists(same_mft) == [[], [2], [1], []]
