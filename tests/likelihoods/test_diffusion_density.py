"""
Tests for the joint densities of diffusion-type confidence models.
"""

import numpy as np
import pandas as pd
import pytest
from scipy.integrate import quad
from scipy.stats import norm

from dynconf import d_rtconf, simulate_rtconf
from dynconf.config import get_model
from dynconf.exceptions import InvalidParameterError, UnsupportedModelError
from dynconf.likelihoods import CellDensity, wiener_density
from dynconf.likelihoods import diffusion_density
from dynconf.parameters import ParameterSet


def _trials(rt, response=1, rating=1, condition=1, stimulus=1):
    rt = np.atleast_1d(rt)
    return pd.DataFrame(
        {
            "rt": rt,
            "response": response,
            "rating": rating,
            "condition": condition,
            "stimulus": stimulus,
        }
    )


class TestDDConfScenario:
    """Tests for DDConf with the parameters a=2, v=(.5, 1), t0=.1, z=.55, sv=.2."""

    def test_zero_at_and_below_t0(self, ddconf_params):
        rt = np.array([0.0, 0.05, 0.1])
        for rating in (1, 2):
            dens = d_rtconf(_trials(rt, rating=rating), ddconf_params, "DDConf")
            np.testing.assert_array_equal(dens, 0.0)

    def test_nonnegative_and_finite(self, ddconf_params):
        rt = np.linspace(0.101, 5.0, 200)
        for response in (1, -1):
            for rating in (1, 2):
                dens = d_rtconf(
                    _trials(rt, response=response, rating=rating, condition=2),
                    ddconf_params,
                    "DDConf",
                )
                assert np.all(np.isfinite(dens))
                assert np.all(dens >= 0)

    def test_continuous_within_rating(self, ddconf_params):
        """Test continuity of the density inside a decision-time bin."""
        rt = np.linspace(0.12, 0.85, 400)
        dens = d_rtconf(_trials(rt, rating=2), ddconf_params, "DDConf")
        assert np.max(np.abs(np.diff(dens))) < 0.05

    def test_decision_time_bins(self, ddconf_params):
        """Test that fast decisions have the high rating and slow ones the low."""
        fast = _trials([0.5], rating=2)
        slow = _trials([1.5], rating=2)
        assert d_rtconf(fast, ddconf_params, "DDConf")[0] > 0
        assert d_rtconf(slow, ddconf_params, "DDConf")[0] == 0
        slow_low = _trials([1.5], rating=1)
        assert d_rtconf(slow_low, ddconf_params, "DDConf")[0] > 0

    def test_ratings_sum_to_wiener_density(self, ddconf_params):
        rt = np.linspace(0.2, 3.0, 30)
        total = sum(
            d_rtconf(_trials(rt, rating=r, condition=2), ddconf_params, "DDConf")
            for r in (1, 2)
        )
        expected = wiener_density(rt - 0.1, 1, 1.0, 2.0, 0.55, sv=0.2)
        np.testing.assert_allclose(total, expected, rtol=1e-10)


class TestDDConfThreeRatings:
    """Tests for decreasing decision-time cut points theta1=1.0, theta2=0.5."""

    PARAMS = {
        "a": 2.0,
        "v": 1.0,
        "t0": 0.2,
        "z": 0.5,
        "sv": 0.0,
        "theta1": 1.0,
        "theta2": 0.5,
    }

    @pytest.mark.parametrize("decision_time, rating", [(0.3, 3), (0.7, 2), (1.5, 1)])
    def test_density_only_in_matching_bin(self, decision_time, rating):
        rt = 0.2 + decision_time
        for r in (1, 2, 3):
            dens = d_rtconf(_trials([rt], rating=r), self.PARAMS, "DDConf")[0]
            if r == rating:
                assert dens > 0
            else:
                assert dens == 0

    def test_simulated_ratings(self):
        simus = simulate_rtconf(self.PARAMS, "DDConf", n=500, stimulus=1, seed=4)
        responded = simus[simus["response"] != 0]
        T = responded["rt"] - 0.2
        np.testing.assert_array_equal(responded.loc[T < 0.5 - 1e-9, "rating"], 3)
        np.testing.assert_array_equal(
            responded.loc[(T > 0.5 + 1e-9) & (T < 1.0 - 1e-9), "rating"], 2
        )
        np.testing.assert_array_equal(responded.loc[T > 1.0 + 1e-9, "rating"], 1)
        assert set(responded["rating"]) == {1, 2, 3}


class Test2DSDFinalState:
    """Tests for 2DSD confidence read from the final state of the process.

    With a=2, v=1, tau=1, s=1 and sv=0 the final state is N(3, 1) after an
    upper hit and N(1, 1) after a lower hit. A shared threshold theta1=2.5
    applies to X for upper and to a - X for lower responses.
    """

    PARAMS = {
        "a": 2.0,
        "v": 1.0,
        "t0": 0.2,
        "z": 0.5,
        "sv": 0.0,
        "tau": 1.0,
        "theta1": 2.5,
    }

    def _rating_share(self, record, response, rating):
        params = ParameterSet.from_record(record, "2DSD")
        cell = CellDensity(params, get_model("2DSD"), 1, 1, response, rating)
        T = np.array([0.4, 0.9, 1.6])
        return cell.decision_density(T) / wiener_density(T, response, 1.0, 2.0, 0.5)

    @pytest.mark.parametrize("response, expected", [(1, norm.cdf(0.5)), (-1, norm.cdf(-1.5))])
    def test_symmetric_threshold(self, response, expected):
        share = self._rating_share(self.PARAMS, response, 2)
        np.testing.assert_allclose(share, expected, rtol=1e-8)

    def test_lower_thresholds_on_raw_state(self):
        """thetaLower1=-0.5 is the raw-state cut below which a lower response
        gets the high rating (equal to a - theta1 for theta1=2.5)."""
        record = {k: v for k, v in self.PARAMS.items() if k != "theta1"}
        record.update(thetaUpper1=2.5, thetaLower1=-0.5)
        high = self._rating_share(record, -1, 2)
        low = self._rating_share(record, -1, 1)
        np.testing.assert_allclose(high, norm.cdf(-1.5), rtol=1e-8)
        np.testing.assert_allclose(low, norm.sf(-1.5), rtol=1e-8)

    def test_simulated_confidence_is_final_state(self):
        simus = simulate_rtconf(self.PARAMS, "2DSD", n=2000, stimulus=1, seed=6)
        upper = simus.loc[simus["response"] == 1, "conf"]
        lower = simus.loc[simus["response"] == -1, "conf"]
        assert upper.mean() == pytest.approx(3.0, abs=0.15)
        assert lower.mean() == pytest.approx(1.0, abs=0.3)


class TestEvidenceModels:
    """Tests for post-decisional evidence based confidence."""

    @pytest.mark.parametrize("model", ["2DSD", "2DSDT", "dynWEV", "dynaViTE"])
    def test_rating_probabilities_sum_to_one(self, dynavite_params, model):
        """Test that the ratings partition the first-passage density."""
        params = ParameterSet.from_record(dict(dynavite_params, sz=0.0), model)
        spec = get_model(model)
        T = np.linspace(0.05, 3.0, 25)
        total = sum(
            CellDensity(params, spec, 1, -1, -1, r).decision_density(T) for r in (1, 2, 3)
        )
        expected = wiener_density(T, -1, -0.6, 1.8, 0.5, sv=0.4)
        np.testing.assert_allclose(total, expected, rtol=1e-8)

    def test_noise_scaling_invariance(self, dynavite_params):
        """Test that scaling s together with a, v, sv and the visibility terms
        leaves the density unchanged."""
        scaled = dict(dynavite_params)
        for name in ("a", "v1", "v2", "sv", "svis", "sigvis", "theta1", "theta2"):
            scaled[name] = dynavite_params[name] * 2.0
        scaled["s"] = 2.0
        data = _trials(np.linspace(0.4, 2.0, 9), response=-1, rating=2, condition=2)
        np.testing.assert_allclose(
            d_rtconf(data, scaled, "dynaViTE"),
            d_rtconf(data, dynavite_params, "dynaViTE"),
            rtol=1e-8,
        )

    def test_st0_density_integrates_like_decision_density(self, dynavite_params):
        params = ParameterSet.from_record(dynavite_params, "dynaViTE")
        spec = get_model("dynaViTE")
        cell = CellDensity(params, spec, 2, 1, 1, 3)
        with_st0, _ = quad(lambda t: cell(t)[0], 0.25, 12.0, limit=200)
        without_st0, _ = quad(lambda t: cell.decision_density(t)[0], 0.0, 11.75, limit=200)
        assert with_st0 == pytest.approx(without_st0, abs=1e-4)

    def test_simult_conf_shifts_response_times(self, dynavite_params):
        params = ParameterSet.from_record(dict(dynavite_params, st0=0.0), "dynaViTE")
        spec = get_model("dynaViTE")
        plain = CellDensity(params, spec, 1, 1, 1, 2)
        simult = CellDensity(params, spec, 1, 1, 1, 2, simult_conf=True)
        rt = np.array([0.8, 1.4])
        np.testing.assert_allclose(simult(rt + 1.0), plain(rt))


class TestConditionParams:
    """Tests for the scaled cell parameters."""

    def test_stimulus_flips_drift(self, dynavite_params):
        params = ParameterSet.from_record(dynavite_params, "dynaViTE")
        spec = get_model("dynaViTE")
        up = diffusion_density.condition_params(params, spec, 2, 1)
        down = diffusion_density.condition_params(params, spec, 2, -1)
        assert up["v"] == -down["v"] == 1.4
        # visibility drift does not depend on the stimulus identity
        assert up["muvis"] == down["muvis"] == 1.4


class TestDRtconfValidation:
    """Tests for input checks of d_rtconf."""

    def test_unknown_model(self, ddconf_params):
        with pytest.raises(UnsupportedModelError):
            d_rtconf(_trials([1.0]), ddconf_params, "DDM")

    def test_invalid_response(self, ddconf_params):
        with pytest.raises(InvalidParameterError, match="response"):
            d_rtconf(_trials([1.0], response=0), ddconf_params, "DDConf")

    def test_rating_out_of_range(self, ddconf_params):
        with pytest.raises(InvalidParameterError, match="rating"):
            d_rtconf(_trials([1.0], rating=3), ddconf_params, "DDConf")

    def test_missing_columns(self, ddconf_params):
        with pytest.raises(ValueError, match="missing the columns"):
            d_rtconf(pd.DataFrame({"rt": [1.0]}), ddconf_params, "DDConf")

    def test_defaults_condition_and_stimulus(self, ddconf_params):
        data = pd.DataFrame({"rt": [0.6], "response": [1], "rating": [2]})
        expected = d_rtconf(_trials([0.6], rating=2), ddconf_params, "DDConf")
        np.testing.assert_allclose(d_rtconf(data, ddconf_params, "DDConf"), expected)

    def test_row_order_preserved(self, ddconf_params):
        data = pd.concat(
            [_trials([0.6], rating=2), _trials([1.5], rating=1), _trials([0.7], rating=2)],
            ignore_index=True,
        )
        dens = d_rtconf(data, ddconf_params, "DDConf")
        single = [d_rtconf(data.iloc[[i]], ddconf_params, "DDConf")[0] for i in range(3)]
        np.testing.assert_allclose(dens, single)
