"""Test the kinematics and DCA routines."""

import numpy as np
import pytest

from muskim.math import (
    dca_xy,
    dca_xy_in_sigma,
    dca_xy_resolution,
    eta_from_tgl,
    p_from_pt_tgl,
    pt_from_p_eta,
    wrap_to_2pi,
    wrap_to_pm_pi,
)


class TestKinematics:
    """Test the conversions between track parameters and kinematics."""

    @pytest.mark.parametrize("tgl", [-20.0, -10.0, -1.0, 0.5, 3.0])
    def test_eta_from_tgl(self, tgl):
        """The pseudorapidity is the inverse hyperbolic sine of tgl."""
        assert eta_from_tgl(tgl) == pytest.approx(np.arcsinh(tgl))

    def test_eta_sign(self):
        """Forward muons travel towards negative z."""
        assert eta_from_tgl(-10.0) < 0.0
        assert eta_from_tgl(0.0) == pytest.approx(0.0)

    def test_p_from_pt_tgl(self):
        """Total momentum from the transverse momentum and the dip angle."""
        assert p_from_pt_tgl(2.0, 0.0) == pytest.approx(2.0)
        assert p_from_pt_tgl(3.0, 4.0 / 3.0) == pytest.approx(5.0)

    @pytest.mark.parametrize("eta", [-3.6, -2.5, 0.0, 1.2])
    def test_pt_from_p_eta(self, eta):
        """Transverse momentum is recovered from the total momentum."""
        pt = 1.7
        p = pt * np.cosh(eta)
        assert pt_from_p_eta(p, eta) == pytest.approx(pt)

    def test_pt_roundtrip_through_tgl(self):
        """Going through (pt, tgl) -> (p, eta) -> pt is the identity."""
        pt, tgl = 2.5, -10.0
        p = p_from_pt_tgl(pt, tgl)
        assert pt_from_p_eta(p, eta_from_tgl(tgl)) == pytest.approx(pt)


class TestAngles:
    """Test the azimuthal angle wrapping."""

    @pytest.mark.parametrize(
        "phi, expected",
        [
            (0.0, 0.0),
            (1.0, 1.0),
            (-1.0, 2 * np.pi - 1.0),
            (2 * np.pi, 0.0),
            (7 * np.pi, np.pi),
            (-1e-20, 0.0),
        ],
    )
    def test_wrap_to_2pi(self, phi, expected):
        """Angles are brought into [0, 2pi)."""
        wrapped = wrap_to_2pi(phi)
        assert 0.0 <= wrapped < 2 * np.pi
        assert wrapped == pytest.approx(expected, abs=1e-12)

    @pytest.mark.parametrize(
        "phi, expected",
        [(0.1, 0.1), (-0.1, -0.1), (np.pi, np.pi), (1.5 * np.pi, -0.5 * np.pi)],
    )
    def test_wrap_to_pm_pi(self, phi, expected):
        """Angle differences are brought into (-pi, pi]."""
        assert wrap_to_pm_pi(phi) == pytest.approx(expected)


class TestDCA:
    """Test the distance of closest approach routines."""

    def test_dca_xy(self):
        """Transverse DCA is the norm of the offsets."""
        assert dca_xy(3.0, 4.0) == pytest.approx(5.0)

    def test_significance_diagonal(self):
        """Significance with an uncorrelated unit covariance."""
        assert dca_xy_in_sigma(1.0, 0.0, 1.0, 1.0, 0.0) == pytest.approx(
            np.sqrt(0.5)
        )
        assert dca_xy_in_sigma(0.0, 0.0, 1.0, 1.0, 0.0) == 0.0

    def test_significance_correlated(self):
        """Significance with a correlated covariance."""
        dx, dy, cxx, cyy, cxy = 0.1, -0.2, 0.04, 0.09, 0.01
        det = cxx * cyy - cxy * cxy
        chi2 = dx * dx * cyy + dy * dy * cxx - 2 * dx * dy * cxy
        assert dca_xy_in_sigma(dx, dy, cxx, cyy, cxy) == pytest.approx(
            np.sqrt(chi2 / det / 2.0)
        )

    @pytest.mark.parametrize(
        "cov", [(0.0, 0.0, 0.0), (1.0, 1.0, 1.0), (1.0, 1.0, 2.0), (-1.0, 1.0, 0.0)]
    )
    def test_significance_degenerate(self, cov):
        """A non-positive determinant yields the sentinel value."""
        assert dca_xy_in_sigma(0.3, 0.4, *cov) == 999.0

    def test_resolution(self):
        """Resolution is the DCA over its significance, 0 when undefined."""
        assert dca_xy_resolution(0.5, 2.0) == pytest.approx(0.25)
        assert dca_xy_resolution(0.0, 0.0) == 0.0
