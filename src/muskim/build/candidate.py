"""Builds primary muon records from forward tracks paired with a collision."""

import numpy as np

from muskim.data import GlobalMuon, MuonCov, StandaloneMuon
from muskim.math import pt_from_p_eta, wrap_to_2pi, wrap_to_pm_pi
from muskim.prop import PropagationError
from muskim.select import compute_dca, compute_p_dca, global_ndf
from muskim.utils.enums import PropagationPointEnum, TrackTypeEnum
from muskim.utils.logger import logger

__all__ = ["CandidateBuilder"]


class CandidateBuilder:
    """Propagates a forward track to a collision vertex, computes its quality
    metrics and, if it passes the selection, produces a muon record and the
    covariance of its parameters at the vertex.

    The cheap rejections which do not require any propagation are applied
    first. For global muons, the cuts which only depend on the track itself
    are applied before the matched MCH-MID leg is propagated.
    """

    def __init__(
        self, propagator, policy, refit=True, max_matching_chi2_mchmft=50.0, qa=None
    ):
        """Initialize the builder.

        Parameters
        ----------
        propagator : PropagatorBase
            Track propagation engine
        policy : AcceptancePolicy
            Selection cuts
        refit : bool, default True
            If `True`, the angles of global muons are taken from their MFT
            segment and their transverse momentum is recomputed from the
            momentum of their MCH-MID leg
        max_matching_chi2_mchmft : float, default 50.
            Maximum matching chi2 between the muon chamber and MFT tracks
        qa : MuonQA, optional
            Histogram registry to fill with the selected muons
        """
        self.propagator = propagator
        self.policy = policy
        self.refit = refit
        self.max_matching_chi2_mchmft = max_matching_chi2_mchmft
        self.qa = qa

    def __call__(self, collision, track, frame, conditions, is_ambiguous=False):
        return self.build(collision, track, frame, conditions, is_ambiguous)

    def build(self, collision, track, frame, conditions, is_ambiguous=False):
        """Builds the muon record of one (collision, track) pair.

        Parameters
        ----------
        collision : Collision
            Collision the track is paired with
        track : FwdTrack
            Forward track
        frame : InputFrame
            Tables of the processing pass, used to resolve the matched tracks
        conditions : RunConditions
            Field and geometry of the current run
        is_ambiguous : bool, default False
            Whether the track is associated with more than one collision

        Returns
        -------
        Tuple[PrimaryMuon, MuonCov]
            Muon record and its vertex covariance, or `None` if the track is
            rejected
        """
        track_type = track.track_type
        is_global = track_type == TrackTypeEnum.GLOBAL_MUON
        if is_global and track.chi2_match_mchmft > self.max_matching_chi2_mchmft:
            return None

        if track.chi2_match_mchmid < 0.0 or track.chi2 < 0.0:
            logger.debug("Skipping track %d with a negative chi2.", track.id)
            return None

        if not is_global and track_type != TrackTypeEnum.MUON_STANDALONE:
            logger.debug(
                "Skipping track %d of unsupported type %s.", track.id, track_type.name
            )
            return None

        try:
            return self._build(collision, track, frame, conditions, is_ambiguous)

        except PropagationError as err:
            logger.debug("Skipping track %d, propagation failed: %s", track.id, err)
            return None

    def _build(self, collision, track, frame, conditions, is_ambiguous):
        """Builds the record, letting propagation failures through."""
        prop = self.propagator
        at_pv = prop.propagate(track, collision, PropagationPointEnum.TO_VERTEX, conditions)
        pt, eta, phi = at_pv.pt, at_pv.eta, wrap_to_2pi(at_pv.phi)

        at_dca = prop.propagate(track, collision, PropagationPointEnum.TO_DCA, conditions)
        dca = compute_dca(at_dca, collision)

        r_abs = track.r_at_absorber_end
        p_dca = compute_p_dca(track.p, dca.dca_xy)
        pt_matched, eta_matched, phi_matched = pt, eta, phi
        ndf = 1
        extra = {}

        if track.track_type == TrackTypeEnum.GLOBAL_MUON:
            policy = self.policy
            if r_abs < policy.min_rabs_gl or r_abs > policy.max_rabs:
                return None
            if dca.dca_xy > policy.max_dca_xy:
                return None

            mch = frame.fwd_tracks.get(track.match_mch_track_id)
            mft = frame.mft_tracks.get(track.match_mft_track_id)
            if mch is None or mft is None:
                logger.debug(
                    "Skipping global track %d with a dangling link "
                    "(MCH-MID: %d, MFT: %d).",
                    track.id,
                    track.match_mch_track_id,
                    track.match_mft_track_id,
                )
                return None

            ndf = global_ndf(mch.n_clusters, mft.n_clusters)
            if ndf <= 0:
                logger.debug(
                    "Skipping global track %d with %d degrees of freedom.", track.id, ndf
                )
                return None

            if track.chi2 / ndf > policy.max_chi2_gl:
                return None

            mch_at_pv = prop.propagate(
                mch, collision, PropagationPointEnum.TO_VERTEX, conditions
            )
            pt_matched = mch_at_pv.pt
            eta_matched = mch_at_pv.eta
            phi_matched = wrap_to_2pi(mch_at_pv.phi)

            mch_at_dca = prop.propagate(
                mch, collision, PropagationPointEnum.TO_DCA, conditions
            )
            p_dca = compute_p_dca(mch.p, compute_dca(mch_at_dca, collision).dca_xy)

            if self.refit:
                eta = mft.eta
                phi = wrap_to_2pi(mft.phi)
                pt = pt_from_p_eta(mch_at_pv.p, eta)

            extra = {
                "mft_track_id": mft.id,
                "mch_track_id": mch.id,
                "n_clusters_mft": mft.n_clusters,
                "chi2_mft": mft.chi2,
                "mft_cluster_sizes_and_track_flags": mft.mft_cluster_sizes_and_track_flags,
            }

        else:
            at_abs = prop.propagate(
                track, collision, PropagationPointEnum.TO_ABSORBER_END, conditions
            )
            r_abs = float(np.hypot(at_abs.x, at_abs.y))

        chi2_per_ndf = track.chi2 / ndf
        if not self.policy.accept(
            pt, eta, r_abs, p_dca, chi2_per_ndf, track.track_type, dca.dca_xy
        ):
            return None

        cls = GlobalMuon if track.track_type == TrackTypeEnum.GLOBAL_MUON else StandaloneMuon
        muon = cls(
            collision_id=collision.id,
            fwdtrack_id=track.id,
            track_type=track.track_type,
            pt=pt,
            eta=eta,
            phi=phi,
            sign=track.sign,
            dca_x=dca.dca_x,
            dca_y=dca.dca_y,
            c_xx=dca.c_xx,
            c_yy=dca.c_yy,
            c_xy=dca.c_xy,
            pt_matched_mchmid=pt_matched,
            eta_matched_mchmid=eta_matched,
            phi_matched_mchmid=phi_matched,
            n_clusters=track.n_clusters,
            p_dca=p_dca,
            r_at_absorber_end=r_abs,
            chi2=track.chi2,
            ndf=ndf,
            chi2_match_mchmid=track.chi2_match_mchmid,
            chi2_match_mchmft=track.chi2_match_mchmft,
            mch_bitmap=track.mch_bitmap,
            mid_bitmap=track.mid_bitmap,
            mid_boards=track.mid_boards,
            is_associated_to_mpc=track.collision_id == collision.id,
            is_ambiguous=bool(is_ambiguous),
            **extra,
        )
        cov = MuonCov.from_matrix(at_pv.covariance)

        if self.qa is not None:
            deltas = (
                (pt_matched - pt) / pt,
                eta_matched - eta,
                wrap_to_pm_pi(phi_matched - phi),
            )
            qa_chi2 = chi2_per_ndf if muon.is_global else track.chi2
            self.qa.fill_muon(muon, dca, qa_chi2, deltas)

        return muon, cov
