"""
Tests for predicted rating distributions and response time densities.
"""

import numpy as np
import pytest

from dynconf import predict_conf, predict_rt
from dynconf.prediction.predict import CONF_COLUMNS


def _mass_per_stimulus(pred):
    return pred.groupby(["condition", "stimulus"])["p"].sum()


class TestPredictConf:
    """Tests for predict_conf."""

    def test_race_table_layout(self, race_params):
        pred = predict_conf(race_params, "IRMt")
        assert list(pred.columns) == CONF_COLUMNS
        # 2 conditions x 2 stimuli x 2 responses x 2 ratings
        assert len(pred) == 16
        assert pred["info"].map(type).eq(str).all()
        np.testing.assert_array_equal(
            pred["correct"], (pred["stimulus"] == pred["response"]).astype(int)
        )

    @pytest.mark.parametrize("model", ["IRMt", "PCRMt"])
    def test_race_masses(self, race_params, model):
        pred = predict_conf(race_params, model)
        assert np.all(pred["p"] >= 0)
        assert np.all(pred["p"] <= 1)
        mass = _mass_per_stimulus(pred)
        assert np.all(mass <= 1 + 5e-3)
        # slow trials of condition 1 may not finish before maxrt
        assert np.all(mass.loc[1] > 0.95)
        assert np.all(mass.loc[2] == pytest.approx(1.0, abs=5e-3))

    def test_ddconf_masses(self, ddconf_params):
        pred = predict_conf(ddconf_params, "DDConf")
        assert len(pred) == 16
        assert np.all(_mass_per_stimulus(pred) == pytest.approx(1.0, abs=1e-4))

    def test_dynavite_masses(self, dynavite_params):
        pred = predict_conf(dynavite_params, "dynaViTE")
        # 2 conditions x 2 stimuli x 2 responses x 3 ratings
        assert len(pred) == 24
        assert np.all(_mass_per_stimulus(pred) == pytest.approx(1.0, abs=1e-4))

    def test_accuracy_increases_with_drift(self, dynavite_params):
        pred = predict_conf(dynavite_params, "dynaViTE")
        accuracy = pred[pred["correct"] == 1].groupby("condition")["p"].sum()
        assert accuracy.loc[2] > accuracy.loc[1] > 0.5


class TestPredictRT:
    """Tests for predict_rt."""

    def test_grid_starts_at_t0(self, ddconf_params):
        pred = predict_rt(ddconf_params, "DDConf", maxrt=3.0, subdivisions=50)
        assert pred["rt"].min() == pytest.approx(0.1)
        assert len(pred) == 16 * 50
        assert np.all(pred["dens"] >= 0)

    def test_scaled_densities_integrate_to_one(self, dynavite_params):
        pred = predict_rt(
            dynavite_params, "dynaViTE", maxrt=12.0, subdivisions=2000, scaled=True
        )
        dist_conf = predict_conf(dynavite_params, "dynaViTE", maxrt=12.0)
        keys = ["condition", "stimulus", "response", "rating"]
        masses = dist_conf.set_index(keys)["p"]
        for key, cell in pred.groupby(keys):
            if masses.loc[key] < 0.01:
                continue
            area = np.trapezoid(cell["densscaled"], cell["rt"])
            assert area == pytest.approx(1.0, abs=1e-2)

    def test_zero_mass_gives_zero(self, ddconf_params):
        dist_conf = predict_conf(ddconf_params, "DDConf")
        dist_conf.loc[0, "p"] = 0.0
        pred = predict_rt(
            ddconf_params, "DDConf", maxrt=3.0, subdivisions=20, scaled=True, dist_conf=dist_conf
        )
        first = dist_conf.iloc[0]
        cell = pred[
            (pred["condition"] == first["condition"])
            & (pred["stimulus"] == first["stimulus"])
            & (pred["response"] == first["response"])
            & (pred["rating"] == first["rating"])
        ]
        assert len(cell) == 20
        assert np.all(cell["densscaled"] == 0)
