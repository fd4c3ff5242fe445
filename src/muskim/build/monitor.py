"""Quality assurance histograms of the selected primary muons.

The histograms are booked once per muon category, under the `MFTMCHMID/`
prefix for global muons and under the `MCHMID/` prefix for standalone muons.
Each fill increments one bin of a histogram booked at construction time.
"""

import threading

import numpy as np

from muskim.utils.enums import TrackTypeEnum
from muskim.utils.globals import QA_PREFIX

__all__ = ["Histogram", "MuonQA"]

# Conversion factor from cm to um
CM_TO_UM = 1e4


class Histogram:
    """Fixed-binning histogram in one or two dimensions.

    The bin contents are booked with the histogram and incremented at fill
    time, so the memory footprint does not depend on the number of entries.

    Attributes
    ----------
    name : str
        Name of the histogram, including its category prefix
    title : str
        Title and axis labels, separated by semicolons
    axes : List[Tuple[int, float, float]]
        (number of bins, lower edge, upper edge) of each axis
    edges : List[np.ndarray]
        Bin edges, one array per axis
    counts : np.ndarray
        Bin contents, one dimension per axis
    entries : int
        Number of fills, including the out-of-range ones
    """

    def __init__(self, name, title, axes):
        """Book the histogram.

        Parameters
        ----------
        name : str
            Name of the histogram
        title : str
            Title and axis labels, separated by semicolons
        axes : List[Tuple[int, float, float]]
            (number of bins, lower edge, upper edge) of each axis
        """
        assert len(axes) in (1, 2), "Only 1D and 2D histograms are supported."
        self.name = name
        self.title = title
        self.axes = [(int(n), float(lo), float(hi)) for n, lo, hi in axes]
        self.edges = [np.linspace(lo, hi, n + 1) for n, lo, hi in self.axes]
        self.counts = np.zeros([n for n, _, _ in self.axes], dtype=np.float64)
        self.entries = 0

    def __len__(self):
        return self.entries

    @property
    def ndim(self):
        return len(self.axes)

    def clone(self, name):
        """Books an empty histogram with the same binning under another name."""
        return Histogram(name, self.title, self.axes)

    def fill(self, *values):
        """Adds one entry to the bin it falls in.

        Entries outside of the axis ranges (or NaN) are counted but not
        binned. The upper edge of the last bin is inclusive, as in
        `np.histogram`.

        Parameters
        ----------
        *values : float
            One value per axis
        """
        assert len(values) == self.ndim, (
            f"Histogram {self.name} expects {self.ndim} value(s), got {len(values)}."
        )
        self.entries += 1
        index = []
        for value, edges in zip(values, self.edges):
            if not edges[0] <= value <= edges[-1]:
                return
            bin_id = np.searchsorted(edges, value, side="right") - 1
            index.append(min(bin_id, len(edges) - 2))

        self.counts[tuple(index)] += 1


class MuonQA:
    """Registry of the quality assurance histograms of the selected muons."""

    def __init__(self):
        """Book all the histograms."""
        self._lock = threading.Lock()
        self._hists = {}

        self.add("hMuonType", "muon type", [(5, -0.5, 4.5)])

        gl = QA_PREFIX[TrackTypeEnum.GLOBAL_MUON]
        sa = QA_PREFIX[TrackTypeEnum.MUON_STANDALONE]
        eta_phi = [(180, 0.0, 2 * np.pi), (60, -5.0, -2.0)]
        delta = [(100, 0.0, 10.0), (200, -0.5, 0.5)]
        self.add(f"{gl}hPt", "pT;p_{T} (GeV/c)", [(100, 0.0, 10.0)])
        self.add(f"{gl}hEtaPhi", "eta vs. phi;phi (rad.);eta", eta_phi)
        self.add(f"{gl}hEtaPhi_MatchedMCHMID", "eta vs. phi;phi (rad.);eta", eta_phi)
        self.add(f"{gl}hDeltaPt_Pt", "dpT/pT vs. pT;p_{T}^{gl} (GeV/c);dpT/pT", delta)
        self.add(f"{gl}hDeltaEta_Pt", "deta vs. pT;p_{T}^{gl} (GeV/c);deta", delta)
        self.add(f"{gl}hDeltaPhi_Pt", "dphi vs. pT;p_{T}^{gl} (GeV/c);dphi (rad.)", delta)
        self.add(f"{gl}hSign", "sign;sign", [(3, -1.5, 1.5)])
        self.add(f"{gl}hNclusters", "Nclusters;Nclusters", [(21, -0.5, 20.5)])
        self.add(f"{gl}hNclustersMFT", "NclustersMFT;Nclusters MFT", [(11, -0.5, 10.5)])
        self.add(f"{gl}hRatAbsorberEnd", "R at absorber end;R (cm)", [(100, 0.0, 100.0)])
        self.add(
            f"{gl}hPDCA_Rabs",
            "pDCA vs. Rabs;R at absorber end (cm);p x DCA (GeV/c cm)",
            [(100, 0.0, 100.0), (100, 0.0, 1000.0)],
        )
        self.add(f"{gl}hChi2", "chi2;chi2/ndf", [(100, 0.0, 10.0)])
        self.add(f"{gl}hChi2MFT", "chi2 MFT;chi2 MFT/ndf", [(100, 0.0, 10.0)])
        self.add(f"{gl}hChi2MatchMCHMID", "chi2 match MCH-MID;chi2", [(100, 0.0, 100.0)])
        self.add(f"{gl}hChi2MatchMCHMFT", "chi2 match MCH-MFT;chi2", [(100, 0.0, 100.0)])
        self.add(
            f"{gl}hDCAxy2D",
            "DCA x vs. y;DCA_{x} (cm);DCA_{y} (cm)",
            [(200, -1.0, 1.0), (200, -1.0, 1.0)],
        )
        self.add(
            f"{gl}hDCAxy2DinSigma",
            "DCA x vs. y in sigma;DCA_{x} (sigma);DCA_{y} (sigma)",
            [(200, -10.0, 10.0), (200, -10.0, 10.0)],
        )
        self.add(f"{gl}hDCAxy", "DCAxy;DCA_{xy} (cm)", [(100, 0.0, 1.0)])
        self.add(f"{gl}hDCAxyinSigma", "DCAxy in sigma;DCA_{xy} (sigma)", [(100, 0.0, 10.0)])
        self.add_clone(gl, sa)

        # The resolution range differs between the two categories
        for prefix, max_res in ((gl, 500.0), (sa, 5e5)):
            for axis in ("x", "y", "xy"):
                self.add(
                    f"{prefix}hDCA{axis}ResolutionvsPt",
                    f"DCA_{{{axis}}} vs. pT;p_{{T}} (GeV/c);DCA_{{{axis}}} resolution (um)",
                    [(100, 0.0, 10.0), (500, 0.0, max_res)],
                )

    def __contains__(self, name):
        return name in self._hists

    def __getitem__(self, name):
        return self._hists[name]

    def keys(self):
        return self._hists.keys()

    def add(self, name, title, axes):
        """Books a new histogram.

        Parameters
        ----------
        name : str
            Name of the histogram
        title : str
            Title and axis labels, separated by semicolons
        axes : List[Tuple[int, float, float]]
            (number of bins, lower edge, upper edge) of each axis
        """
        if name in self._hists:
            raise KeyError(f"Histogram already booked: {name}")

        self._hists[name] = Histogram(name, title, axes)

    def add_clone(self, src_prefix, dst_prefix):
        """Books a copy of every histogram under a prefix under another prefix.

        Parameters
        ----------
        src_prefix : str
            Prefix of the histograms to copy
        dst_prefix : str
            Prefix of the new histograms
        """
        for name in list(self._hists):
            if name.startswith(src_prefix):
                new_name = dst_prefix + name[len(src_prefix) :]
                self._hists[new_name] = self._hists[name].clone(new_name)

    def fill(self, name, *values):
        """Fills one histogram with one entry."""
        with self._lock:
            self._hists[name].fill(*values)

    def fill_muon(self, muon, dca, chi2_per_ndf, deltas):
        """Fills the histograms of one selected muon.

        Parameters
        ----------
        muon : PrimaryMuon
            Selected muon
        dca : DCAMetrics
            DCA metrics of the muon
        chi2_per_ndf : float
            Track fit chi2 per degree of freedom (raw chi2 for standalone)
        deltas : Tuple[float, float, float]
            Relative pT, eta and phi differences with the MCH-MID leg
        """
        prefix = QA_PREFIX.get(muon.track_type)
        if prefix is None:
            return

        dpt, deta, dphi = deltas
        n_clusters_mft = getattr(muon, "n_clusters_mft", 0)
        chi2_mft = getattr(muon, "chi2_mft", 0.0)
        with np.errstate(divide="ignore", invalid="ignore"):
            sigma_x = np.sqrt(dca.c_xx)
            sigma_y = np.sqrt(dca.c_yy)
            entries = [
                ("hPt", (muon.pt,)),
                ("hEtaPhi", (muon.phi, muon.eta)),
                ("hEtaPhi_MatchedMCHMID", (muon.phi_matched_mchmid, muon.eta_matched_mchmid)),
                ("hDeltaPt_Pt", (muon.pt, dpt)),
                ("hDeltaEta_Pt", (muon.pt, deta)),
                ("hDeltaPhi_Pt", (muon.pt, dphi)),
                ("hSign", (muon.sign,)),
                ("hNclusters", (muon.n_clusters,)),
                ("hNclustersMFT", (n_clusters_mft,)),
                ("hPDCA_Rabs", (muon.r_at_absorber_end, muon.p_dca)),
                ("hRatAbsorberEnd", (muon.r_at_absorber_end,)),
                ("hChi2", (chi2_per_ndf,)),
                ("hChi2MFT", (chi2_mft,)),
                ("hChi2MatchMCHMID", (muon.chi2_match_mchmid,)),
                ("hChi2MatchMCHMFT", (muon.chi2_match_mchmft,)),
                ("hDCAxy2D", (dca.dca_x, dca.dca_y)),
                ("hDCAxy2DinSigma", (dca.dca_x / sigma_x, dca.dca_y / sigma_y)),
                ("hDCAxy", (dca.dca_xy,)),
                ("hDCAxyinSigma", (dca.dca_xy_in_sigma,)),
                ("hDCAxResolutionvsPt", (muon.pt, sigma_x * CM_TO_UM)),
                ("hDCAyResolutionvsPt", (muon.pt, sigma_y * CM_TO_UM)),
                ("hDCAxyResolutionvsPt", (muon.pt, dca.sigma_dca_xy * CM_TO_UM)),
            ]

        with self._lock:
            self._hists["hMuonType"].fill(int(muon.track_type))
            for name, values in entries:
                self._hists[prefix + name].fill(*values)

    def to_dict(self):
        """Exports all histograms.

        Returns
        -------
        Dict[str, dict]
            Dictionary which maps each histogram name onto its title, its
            bin edges and its bin contents
        """
        with self._lock:
            return {
                name: {"title": h.title, "edges": h.edges, "counts": h.counts.copy()}
                for name, h in self._hists.items()
            }
