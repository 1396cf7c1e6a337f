"""
Tests for the negative log-likelihood objective.
"""

import pickle

import numpy as np
import pytest

from dynconf import d_rtconf
from dynconf.config import get_model
from dynconf.fitting import NegLogLikelihood, ParameterTransform, prepare_data
from dynconf.fitting.objective import INVALID_NLL, MIN_LIKELIHOOD


@pytest.fixture
def objective(ddconf_data):
    data = prepare_data(ddconf_data)
    transform = ParameterTransform(
        get_model("DDConf"),
        data.n_conditions,
        data.n_internal_ratings,
        fixed={"sym_thetas": True},
        min_rt=data.min_rt,
    )
    return NegLogLikelihood(data, transform)


def _record(**changes):
    record = {
        "a": 2.0,
        "v1": 0.5,
        "v2": 1.0,
        "t0": 0.1,
        "z": 0.55,
        "sz": 0.0,
        "sv": 0.2,
        "st0": 0.0,
        "theta1": 0.8,
    }
    record.update(changes)
    return record


class TestNegLogLikelihood:
    """Tests for NegLogLikelihood."""

    def test_matches_trial_densities(self, objective, ddconf_data):
        x = objective.transform.encode(_record())
        dens = d_rtconf(ddconf_data, _record(), "DDConf")
        expected = -np.sum(np.log(np.maximum(dens, MIN_LIKELIHOOD)))
        assert objective(x) == pytest.approx(expected, rel=1e-8)

    def test_true_parameters_better_than_distorted(self, objective):
        good = objective(objective.transform.encode(_record()))
        bad = objective(objective.transform.encode(_record(a=0.8, v1=2.0)))
        assert good < bad

    def test_invalid_parameters(self, objective):
        x = objective.transform.encode(_record(z=0.9, sz=0.5))
        assert objective(x) == INVALID_NLL

    def test_counts_calls(self, objective):
        x = objective.transform.encode(_record())
        objective(x)
        objective(x)
        assert objective.n_calls == 2

    def test_picklable(self, objective):
        x = objective.transform.encode(_record())
        clone = pickle.loads(pickle.dumps(objective))
        assert clone(x) == objective(x)
