"""Shared data of the fitting tests."""

import pytest

from dynconf import simulate_rtconf


@pytest.fixture(scope="module")
def ddconf_data():
    params = {
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
    return simulate_rtconf(params, "DDConf", n=100, seed=1)


@pytest.fixture
def fast_opts():
    return {"n_attempts": 1, "n_restarts": 1, "maxfun": 40}
