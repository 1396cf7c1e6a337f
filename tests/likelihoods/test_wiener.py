"""
Tests for the Wiener first-passage time densities.
"""

import numpy as np
import pytest
from scipy.integrate import quad

from dynconf.likelihoods import drift_posterior, hitting_probability, wiener_density
from dynconf.likelihoods.wiener import standard_fpt_density


class TestStandardDensity:
    """Tests for the zero-drift density on the unit interval."""

    def test_zero_for_non_positive_time(self):
        np.testing.assert_array_equal(standard_fpt_density([-1.0, 0.0], 0.5), [0.0, 0.0])

    def test_matches_long_large_time_series(self):
        """Test both series representations against a long large-time sum."""
        u = np.linspace(0.05, 3.0, 300)
        k = np.arange(1, 201)[:, None]
        reference = np.pi * np.sum(
            k * np.exp(-(k**2) * np.pi**2 * u / 2) * np.sin(k * np.pi * 0.3), axis=0
        )
        dens = standard_fpt_density(u, 0.3, eps=1e-10)
        np.testing.assert_allclose(dens, reference, atol=1e-7)

    def test_hitting_probability_of_lower_boundary(self):
        mass, _ = quad(lambda u: standard_fpt_density(u, 0.3)[()], 0, np.inf, limit=200)
        assert mass == pytest.approx(0.7, abs=1e-5)


class TestWienerDensity:
    """Tests for the drift-rate dependent density."""

    @pytest.mark.parametrize("v, a, w", [(1.0, 2.0, 0.5), (-0.7, 1.5, 0.3), (2.0, 1.0, 0.6)])
    @pytest.mark.parametrize("response", [1, -1])
    def test_integrates_to_hitting_probability(self, v, a, w, response):
        mass, _ = quad(
            lambda t: wiener_density(t, response, v, a, w)[()], 0, np.inf, limit=200
        )
        assert mass == pytest.approx(hitting_probability(response, v, a, w), abs=1e-5)

    def test_drift_variability_mixture(self):
        """Test the analytic sv-marginal against a Gauss-Hermite mixture."""
        t = np.array([0.3, 0.8, 1.5, 3.0])
        v, sv, a, w = 0.8, 0.6, 1.6, 0.45
        nodes, weights = np.polynomial.hermite_e.hermegauss(40)
        mixture = sum(
            wt * wiener_density(t, 1, v + sv * x, a, w)
            for x, wt in zip(nodes, weights)
        ) / np.sqrt(2 * np.pi)
        np.testing.assert_allclose(wiener_density(t, 1, v, a, w, sv=sv), mixture, rtol=1e-6)

    def test_symmetry(self):
        t = np.linspace(0.1, 2.0, 20)
        np.testing.assert_allclose(
            wiener_density(t, 1, 0.5, 1.2, 0.4),
            wiener_density(t, -1, -0.5, 1.2, 0.6),
        )


class TestDriftPosterior:
    """Tests for the posterior of the drift rate given a boundary hit."""

    def test_no_variability(self):
        mean, var = drift_posterior(1.0, 1, 0.7, 2.0, 0.5, sv=0.0)
        assert mean == pytest.approx(0.7)
        assert var == pytest.approx(0.0)

    def test_upper_hit_shifts_mean_up(self):
        mean_up, var = drift_posterior(0.5, 1, 0.0, 2.0, 0.5, sv=1.0)
        mean_lo, _ = drift_posterior(0.5, -1, 0.0, 2.0, 0.5, sv=1.0)
        assert mean_up == pytest.approx(1.0 / 1.5)
        assert mean_lo == pytest.approx(-1.0 / 1.5)
        assert var == pytest.approx(1.0 / 1.5)


class TestHittingProbability:
    """Tests for the probability of the boundary that is hit."""

    def test_zero_drift(self):
        assert hitting_probability(1, 0.0, 2.0, 0.3) == pytest.approx(0.3)

    def test_complementary(self):
        p = hitting_probability(1, 1.2, 1.5, 0.4)
        assert p + hitting_probability(-1, 1.2, 1.5, 0.4) == pytest.approx(1.0)
        assert p > 0.5
