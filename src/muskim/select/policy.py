"""Selection cuts applied to primary muon candidates."""

from muskim.utils.enums import TrackTypeEnum

__all__ = ["AcceptancePolicy"]


class AcceptancePolicy:
    """Kinematic and track quality selection of primary muon candidates.

    The cuts are evaluated in a fixed order, the first failing cut rejects
    the candidate:

    1. Transverse momentum window
    2. Absorber radius window
    3. pDCA cut, tighter for tracks crossing the absorber at large radius
    4. Category cuts. Global muons: pseudorapidity window, transverse DCA,
       chi2 per degree of freedom and the tighter absorber radius window.
       Standalone muons: pseudorapidity window and chi2 per degree of
       freedom. Any other category is rejected.
    """

    def __init__(
        self,
        min_pt=0.2,
        max_pt=1e10,
        min_eta_sa=-4.0,
        max_eta_sa=-2.5,
        min_eta_gl=-3.6,
        max_eta_gl=-2.5,
        min_rabs=17.6,
        mid_rabs=26.5,
        max_rabs=89.5,
        min_rabs_gl=27.6,
        max_dca_xy=1e10,
        max_pdca_small_r=594.0,
        max_pdca_large_r=324.0,
        max_chi2_sa=1e6,
        max_chi2_gl=1e6,
    ):
        """Store the cut values.

        Parameters
        ----------
        min_pt : float, default 0.2
            Minimum transverse momentum (GeV/c)
        max_pt : float, default 1e10
            Maximum transverse momentum (GeV/c)
        min_eta_sa : float, default -4.0
            Minimum pseudorapidity of standalone muons
        max_eta_sa : float, default -2.5
            Maximum pseudorapidity of standalone muons
        min_eta_gl : float, default -3.6
            Minimum pseudorapidity of global muons
        max_eta_gl : float, default -2.5
            Maximum pseudorapidity of global muons
        min_rabs : float, default 17.6
            Minimum radius at the absorber end (cm)
        mid_rabs : float, default 26.5
            Radius at the absorber end which separates the two pDCA cuts (cm)
        max_rabs : float, default 89.5
            Maximum radius at the absorber end (cm)
        min_rabs_gl : float, default 27.6
            Minimum radius at the absorber end of global muons (cm), used
            before the MCH-MID leg of the muon is propagated
        max_dca_xy : float, default 1e10
            Maximum transverse DCA of global muons (cm)
        max_pdca_small_r : float, default 594.
            Maximum pDCA below `mid_rabs` (GeV/c cm)
        max_pdca_large_r : float, default 324.
            Maximum pDCA above `mid_rabs` (GeV/c cm)
        max_chi2_sa : float, default 1e6
            Maximum chi2 per degree of freedom of standalone muons
        max_chi2_gl : float, default 1e6
            Maximum chi2 per degree of freedom of global muons
        """
        self.min_pt = min_pt
        self.max_pt = max_pt
        self.min_eta_sa = min_eta_sa
        self.max_eta_sa = max_eta_sa
        self.min_eta_gl = min_eta_gl
        self.max_eta_gl = max_eta_gl
        self.min_rabs = min_rabs
        self.mid_rabs = mid_rabs
        self.max_rabs = max_rabs
        self.min_rabs_gl = min_rabs_gl
        self.max_dca_xy = max_dca_xy
        self.max_pdca_small_r = max_pdca_small_r
        self.max_pdca_large_r = max_pdca_large_r
        self.max_chi2_sa = max_chi2_sa
        self.max_chi2_gl = max_chi2_gl

    def __repr__(self):
        attrs = ", ".join(f"{k}={v}" for k, v in self.__dict__.items())
        return f"{self.__class__.__name__}({attrs})"

    def accept(self, pt, eta, r_abs, p_dca, chi2_per_ndf, track_type, dca_xy):
        """Checks whether a candidate passes all the cuts.

        Parameters
        ----------
        pt : float
            Transverse momentum (GeV/c)
        eta : float
            Pseudorapidity
        r_abs : float
            Radius at the absorber end (cm)
        p_dca : float
            Momentum times DCA (GeV/c cm)
        chi2_per_ndf : float
            Track fit chi2 per degree of freedom
        track_type : TrackTypeEnum
            Category of the track
        dca_xy : float
            Transverse DCA (cm)

        Returns
        -------
        bool
            `True` if the candidate is accepted
        """
        if pt < self.min_pt or pt > self.max_pt:
            return False

        if r_abs < self.min_rabs or r_abs > self.max_rabs:
            return False

        if r_abs < self.mid_rabs:
            if p_dca > self.max_pdca_small_r:
                return False
        elif p_dca > self.max_pdca_large_r:
            return False

        if track_type == TrackTypeEnum.GLOBAL_MUON:
            if eta < self.min_eta_gl or eta > self.max_eta_gl:
                return False
            if dca_xy > self.max_dca_xy:
                return False
            if chi2_per_ndf > self.max_chi2_gl:
                return False
            if r_abs < self.min_rabs_gl or r_abs > self.max_rabs:
                return False

        elif track_type == TrackTypeEnum.MUON_STANDALONE:
            if eta < self.min_eta_sa or eta > self.max_eta_sa:
                return False
            if chi2_per_ndf > self.max_chi2_sa:
                return False

        else:
            return False

        return True

    def accept_muon(self, muon):
        """Re-evaluates the cuts on a stored muon.

        Parameters
        ----------
        muon : PrimaryMuon
            Stored muon

        Returns
        -------
        bool
            `True` if the muon passes the cuts
        """
        return self.accept(
            muon.pt,
            muon.eta,
            muon.r_at_absorber_end,
            muon.p_dca,
            muon.chi2_per_ndf,
            muon.track_type,
            muon.dca_xy,
        )
