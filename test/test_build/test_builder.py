"""Test the construction of muon records from forward tracks."""

import numpy as np
import pytest
from conftest import DIAG_COV, FakePropagator, make_frame, make_standalone

from muskim.build import CandidateBuilder, MuonQA
from muskim.data import GlobalMuon, MuonCov, StandaloneMuon
from muskim.select import AcceptancePolicy
from muskim.utils.enums import PropagationPointEnum, TrackTypeEnum

VTX = PropagationPointEnum.TO_VERTEX
DCA = PropagationPointEnum.TO_DCA
ABS = PropagationPointEnum.TO_ABSORBER_END


@pytest.fixture(name="builder")
def fixture_builder(propagator, policy):
    """Candidate builder around the scripted propagator."""
    return CandidateBuilder(propagator, policy)


class TestStandalone:
    """Test the standalone muon branch."""

    def test_accepted(self, builder, propagator, collision, conditions):
        """A nominal standalone track produces a record and its covariance."""
        track = make_standalone(1)
        frame = make_frame([collision], [track])
        muon, cov = builder(collision, track, frame, conditions)

        assert isinstance(muon, StandaloneMuon)
        assert isinstance(cov, MuonCov)
        assert muon.collision_id == 0
        assert muon.fwdtrack_id == 1
        assert muon.track_type == TrackTypeEnum.MUON_STANDALONE
        assert muon.pt == pytest.approx(2.0)
        assert muon.eta == pytest.approx(np.arcsinh(-10.0))
        assert muon.phi == pytest.approx(0.5)
        assert muon.sign == 1
        assert muon.ndf == 1
        assert muon.r_at_absorber_end == pytest.approx(50.0)
        assert muon.dca_x == pytest.approx(0.01)
        assert muon.p_dca == pytest.approx(track.p * 0.01)
        assert muon.pt_matched_mchmid == muon.pt
        assert muon.is_associated_to_mpc
        assert not muon.is_ambiguous
        assert np.allclose(cov.cov, DIAG_COV)
        assert propagator.calls == [(1, VTX), (1, DCA), (1, ABS)]

    @pytest.mark.parametrize("pt, accepted", [(0.15, False), (0.25, True)])
    def test_pt_threshold(self, builder, collision, conditions, pt, accepted):
        track = make_standalone(1, pt=pt)
        frame = make_frame([collision], [track])
        result = builder(collision, track, frame, conditions)
        assert (result is not None) == accepted

    def test_absorber_radius(self, policy, collision, conditions):
        """The radius at the absorber end comes from the propagation."""
        builder = CandidateBuilder(FakePropagator(r_abs=95.0), policy)
        track = make_standalone(1, r_at_absorber_end=50.0)
        frame = make_frame([collision], [track])
        assert builder(collision, track, frame, conditions) is None

    def test_phi_wrapped(self, builder, collision, conditions):
        track = make_standalone(1, phi=-0.5)
        frame = make_frame([collision], [track])
        muon, _ = builder(collision, track, frame, conditions)
        assert muon.phi == pytest.approx(2 * np.pi - 0.5)

    def test_flags(self, builder, collision, conditions):
        """Ambiguity and most probable collision flags."""
        track = make_standalone(1, collision_id=4)
        frame = make_frame([collision], [track])
        muon, _ = builder(collision, track, frame, conditions, is_ambiguous=True)
        assert muon.is_ambiguous
        assert not muon.is_associated_to_mpc


class TestRejections:
    """Test the early rejections."""

    def test_matching_chi2(self, builder, propagator, global_frame, conditions):
        """A poor MCH-MFT match is rejected before any propagation."""
        track = global_frame.fwd_tracks[3]
        track.chi2_match_mchmft = 60.0
        collision = global_frame.collisions[0]
        assert builder(collision, track, global_frame, conditions) is None
        assert propagator.calls == []

    @pytest.mark.parametrize("attr", ["chi2", "chi2_match_mchmid"])
    def test_negative_chi2(self, builder, propagator, collision, conditions, attr):
        track = make_standalone(1, **{attr: -1.0})
        frame = make_frame([collision], [track])
        assert builder(collision, track, frame, conditions) is None
        assert propagator.calls == []

    def test_unsupported_type(self, builder, propagator, collision, conditions):
        track = make_standalone(1, track_type=TrackTypeEnum.MCH_STANDALONE)
        frame = make_frame([collision], [track])
        assert builder(collision, track, frame, conditions) is None
        assert propagator.calls == []

    def test_propagation_failure(self, policy, collision, conditions):
        """A track which cannot be propagated is skipped."""
        builder = CandidateBuilder(FakePropagator(fail_ids=[1]), policy)
        track = make_standalone(1)
        frame = make_frame([collision], [track])
        assert builder(collision, track, frame, conditions) is None

    def test_no_conditions(self, builder, collision):
        track = make_standalone(1)
        frame = make_frame([collision], [track])
        with pytest.raises(RuntimeError):
            builder(collision, track, frame, None)


class TestGlobal:
    """Test the global muon branch."""

    def test_refit(self, builder, propagator, global_frame, conditions):
        """Angles come from the MFT segment, momentum from the MCH-MID leg."""
        collision = global_frame.collisions[0]
        track = global_frame.fwd_tracks[3]
        mch = global_frame.fwd_tracks[2]
        mft = global_frame.mft_tracks[7]
        muon, _ = builder(collision, track, global_frame, conditions)

        assert isinstance(muon, GlobalMuon)
        assert muon.mft_track_id == 7
        assert muon.mch_track_id == 2
        assert muon.n_clusters_mft == 5
        assert muon.chi2_mft == 4.0
        assert muon.ndf == 2 * (mch.n_clusters + mft.n_clusters) - 5
        assert muon.eta == pytest.approx(mft.eta)
        assert muon.phi == pytest.approx(0.4)
        assert muon.pt == pytest.approx(mch.p / np.cosh(mft.eta))
        assert muon.pt_matched_mchmid == pytest.approx(2.5)
        assert muon.eta_matched_mchmid == pytest.approx(mch.eta)
        assert muon.p_dca == pytest.approx(mch.p * 0.05)
        assert muon.r_at_absorber_end == 40.0
        assert muon.sign == -1
        assert propagator.calls == [(3, VTX), (3, DCA), (2, VTX), (2, DCA)]

    def test_no_refit(self, propagator, policy, global_frame, conditions):
        """Without refit, the kinematics of the global track are kept."""
        builder = CandidateBuilder(propagator, policy, refit=False)
        collision = global_frame.collisions[0]
        track = global_frame.fwd_tracks[3]
        muon, _ = builder(collision, track, global_frame, conditions)
        assert muon.pt == pytest.approx(2.0)
        assert muon.eta == pytest.approx(np.arcsinh(-11.0))
        assert muon.phi == pytest.approx(0.45)

    def test_dangling_link(self, builder, global_frame, conditions):
        """A global track which points to a missing MFT segment is skipped."""
        global_frame.mft_tracks.clear()
        collision = global_frame.collisions[0]
        track = global_frame.fwd_tracks[3]
        assert builder(collision, track, global_frame, conditions) is None

    def test_non_positive_ndf(self, builder, global_frame, conditions):
        global_frame.fwd_tracks[2].n_clusters = 1
        global_frame.mft_tracks[7].n_clusters = 1
        collision = global_frame.collisions[0]
        track = global_frame.fwd_tracks[3]
        assert builder(collision, track, global_frame, conditions) is None

    def test_rabs_before_matching(self, builder, propagator, global_frame, conditions):
        """Global cuts on the track itself apply before the MCH-MID leg is
        propagated.
        """
        track = global_frame.fwd_tracks[3]
        track.r_at_absorber_end = 20.0
        collision = global_frame.collisions[0]
        assert builder(collision, track, global_frame, conditions) is None
        assert propagator.calls == [(3, VTX), (3, DCA)]

    def test_chi2_per_ndf(self, propagator, global_frame, conditions):
        builder = CandidateBuilder(propagator, AcceptancePolicy(max_chi2_gl=1.0))
        collision = global_frame.collisions[0]
        track = global_frame.fwd_tracks[3]
        assert builder(collision, track, global_frame, conditions) is None
        assert (2, VTX) not in propagator.calls

    def test_record_reaccepted(self, builder, policy, global_frame, conditions):
        """Stored records pass the cuts they were selected with."""
        collision = global_frame.collisions[0]
        track = global_frame.fwd_tracks[3]
        muon, _ = builder(collision, track, global_frame, conditions)
        assert policy.accept_muon(muon)


class TestMonitoring:
    """Test the filling of the monitoring histograms."""

    def test_fill(self, propagator, policy, global_frame, conditions):
        qa = MuonQA()
        builder = CandidateBuilder(propagator, policy, qa=qa)
        collision = global_frame.collisions[0]
        for track in global_frame.fwd_tracks.values():
            builder(collision, track, global_frame, conditions)

        assert len(qa["MCHMID/hPt"]) == 1
        assert len(qa["MFTMCHMID/hPt"]) == 1
        counts = qa["hMuonType"].counts
        assert counts[TrackTypeEnum.GLOBAL_MUON] == 1
        assert counts[TrackTypeEnum.MUON_STANDALONE] == 1

    def test_rejected_not_filled(self, propagator, policy, collision, conditions):
        qa = MuonQA()
        builder = CandidateBuilder(propagator, policy, qa=qa)
        track = make_standalone(1, pt=0.1)
        builder(collision, track, make_frame([collision], [track]), conditions)
        assert len(qa["hMuonType"]) == 0

    def test_to_dict(self):
        qa = MuonQA()
        qa.fill("MCHMID/hPt", 1.5)
        qa.fill("MCHMID/hPt", 50.0)
        hists = qa.to_dict()
        assert set(hists) == set(qa.keys())
        assert hists["MCHMID/hPt"]["counts"].sum() == 1
        assert len(hists["MCHMID/hPt"]["edges"][0]) == 101
        assert hists["MCHMID/hDCAxy2D"]["counts"].shape == (200, 200)
        assert hists["MCHMID/hDCAxResolutionvsPt"]["edges"][1][-1] == 5e5
        assert hists["MFTMCHMID/hDCAxResolutionvsPt"]["edges"][1][-1] == 500.0

    def test_duplicate(self):
        qa = MuonQA()
        with pytest.raises(KeyError):
            qa.add("hMuonType", "muon type", [(5, -0.5, 4.5)])

    def test_booked_counts(self):
        """Bin contents are booked once and incremented in place."""
        qa = MuonQA()
        hist = qa["MCHMID/hDCAxy2D"]
        assert hist.counts.shape == (200, 200)
        assert not hasattr(hist, "_values")
        nbytes = hist.counts.nbytes
        for _ in range(1000):
            qa.fill("MCHMID/hDCAxy2D", 0.055, -0.045)
        assert hist.counts.nbytes == nbytes
        assert len(hist) == 1000
        assert hist.counts.sum() == 1000
        assert hist.counts[105, 95] == 1000

    def test_bin_edges(self):
        """Entries follow the binning convention of `np.histogram`."""
        qa = MuonQA()
        values = [0.0, 0.05, 0.1, 9.99, 10.0, -1.0, 12.0, np.nan]
        for value in values:
            qa.fill("MCHMID/hPt", value)
        expected, _ = np.histogram(values[:5], bins=100, range=(0.0, 10.0))
        assert np.array_equal(qa["MCHMID/hPt"].counts, expected)
        assert len(qa["MCHMID/hPt"]) == len(values)
