"""
Tests for the joint densities of race-type confidence models.
"""

import numpy as np
import pandas as pd
import pytest
from scipy.stats import norm

from dynconf import d_rtconf
from dynconf.config import get_model
from dynconf.likelihoods import CellDensity
from dynconf.likelihoods.race_density import (
    WedgeImages,
    decision_density,
    first_passage_density,
)
from dynconf.parameters import ParameterSet


def _cell(rho=0.0, mu=0.8, thr_up=1.5, thr_down=2.0):
    return {
        "s": 1.0,
        "mu": {1: mu, -1: -mu},
        "thr": {1: thr_up, -1: thr_down},
        "rho": rho,
        "time_scaled": False,
    }


def _survival(T, mu, threshold):
    """Probability that a single accumulator has not reached its threshold."""
    sqrt_t = np.sqrt(T)
    return norm.cdf((threshold - mu * T) / sqrt_t) - np.exp(
        2 * mu * threshold
    ) * norm.cdf((-threshold - mu * T) / sqrt_t)


class TestWedgeImages:
    """Tests for the image construction of the killed process."""

    def test_independent_race(self):
        wedge = WedgeImages(0.0)
        assert wedge.n == 2
        points, signs = wedge.sources(np.array([1.0, 2.0]))
        assert points.shape == (4, 2)
        assert signs.sum() == 0
        np.testing.assert_allclose(points[0], [1.0, 2.0])

    def test_anti_correlated_race(self):
        wedge = WedgeImages(-0.5)
        assert wedge.n == 3
        assert wedge.alpha == pytest.approx(np.pi / 3)

    def test_other_correlations_rejected(self):
        with pytest.raises(ValueError, match="method of images"):
            WedgeImages(0.3)


class TestIndependentRace:
    """Tests against the closed form of two independent accumulators."""

    def test_full_bin_factorizes(self):
        """Test winner density times loser survival for an unbounded bin."""
        T = np.array([0.2, 0.5, 1.0, 2.0, 4.0])
        dens = decision_density(T, 1, -np.inf, np.inf, _cell(), step_width=0.005)
        expected = first_passage_density(T, 0.8, 1.5) * _survival(T, -0.8, 2.0)
        np.testing.assert_allclose(dens, expected, rtol=1e-3)

    def test_lower_response(self):
        T = np.array([0.5, 1.5, 3.0])
        dens = decision_density(T, -1, -np.inf, np.inf, _cell(), step_width=0.005)
        expected = first_passage_density(T, -0.8, 2.0) * _survival(T, 0.8, 1.5)
        np.testing.assert_allclose(dens, expected, rtol=1e-3)

    def test_zero_for_non_positive_time(self):
        dens = decision_density(np.array([-1.0, 0.0]), 1, -np.inf, np.inf, _cell())
        np.testing.assert_array_equal(dens, 0.0)


class TestCorrelatedRace:
    """Tests for the partially anti-correlated race."""

    def test_total_mass(self):
        T = np.linspace(1e-4, 12.0, 2400)
        cell = _cell(rho=-0.5)
        mass = sum(
            np.trapezoid(decision_density(T, r, -np.inf, np.inf, cell), T) for r in (1, -1)
        )
        assert mass == pytest.approx(1.0, abs=2e-3)

    def test_nonnegative(self):
        T = np.linspace(0.01, 5.0, 50)
        dens = decision_density(T, -1, -np.inf, np.inf, _cell(rho=-0.5))
        assert np.all(dens >= 0)


class TestTimeScaledRace:
    """Tests for IRMt with confidence weights (wx, wrt, wint) = (.6, .2, .2)."""

    def test_ratings_partition_full_bin(self, race_params):
        params = ParameterSet.from_record(race_params, "IRMt")
        spec = get_model("IRMt")
        T = np.array([0.3, 0.8, 1.6, 3.0])
        by_rating = sum(
            CellDensity(params, spec, 1, 1, 1, r, step_width=0.005).decision_density(T)
            for r in (1, 2)
        )
        cell = CellDensity(params, spec, 1, 1, 1, 1).cell
        full = decision_density(T, 1, -np.inf, np.inf, cell, step_width=0.005)
        np.testing.assert_allclose(by_rating, full, rtol=5e-3)

    def test_d_rtconf_race_models(self, race_params):
        data = pd.DataFrame(
            {
                "rt": [0.05, 0.1, 0.6, 1.2, 0.9, 2.5],
                "response": [1, 1, 1, -1, -1, 1],
                "rating": [1, 2, 2, 1, 2, 1],
                "condition": [1, 1, 2, 2, 1, 2],
                "stimulus": [1, 1, 1, 1, -1, -1],
            }
        )
        for model in ("IRMt", "PCRMt"):
            dens = d_rtconf(data, race_params, model)
            assert dens[0] == 0
            assert dens[1] == 0
            assert np.all(np.isfinite(dens))
            assert np.all(dens[2:] > 0)
