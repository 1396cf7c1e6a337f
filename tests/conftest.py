"""Pytest configuration for the dynconf test suite."""

import pytest


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-statistical",
        action="store_true",
        default=False,
        help="Run statistical simulation-vs-density and recovery tests (skipped by default)",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "statistical: mark test as a statistical test (skipped unless --run-statistical is passed)",
    )
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (large sample sizes or full fits)",
    )


def pytest_collection_modifyitems(config, items):
    """Skip statistical tests unless the corresponding flag is passed."""
    if config.getoption("--run-statistical"):
        return
    skip_statistical = pytest.mark.skip(reason="need --run-statistical option to run")
    for item in items:
        if "statistical" in item.keywords:
            item.add_marker(skip_statistical)


@pytest.fixture
def ddconf_params():
    return {
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


@pytest.fixture
def dynavite_params():
    return {
        "a": 1.8,
        "v1": 0.6,
        "v2": 1.4,
        "t0": 0.25,
        "z": 0.5,
        "sz": 0.1,
        "sv": 0.4,
        "st0": 0.1,
        "tau": 1.0,
        "w": 0.6,
        "svis": 0.5,
        "sigvis": 0.3,
        "lambda": 0.5,
        "theta1": 0.3,
        "theta2": 1.0,
    }


@pytest.fixture
def race_params():
    return {
        "a": 2.0,
        "b": 2.0,
        "v1": 0.5,
        "v2": 1.0,
        "t0": 0.1,
        "st0": 0.0,
        "wx": 0.6,
        "wrt": 0.2,
        "wint": 0.2,
        "theta1": 4.0,
    }
