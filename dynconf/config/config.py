"""Default options for simulation, prediction and fitting.

Functions
---------
get_default_simulation_config() -> dict
get_default_prediction_config() -> dict
get_default_fit_config() -> dict
get_default_fit_opts() -> dict
"""

import copy

_SIMULATION_DEFAULTS = {
    "n": 10000,
    "delta": 0.01,
    "maxrt": 15.0,
    "stimulus": (-1, 1),
    "simult_conf": False,
    "seed": None,
}

_PREDICTION_DEFAULTS = {
    "maxrt": 15.0,
    "minrt": 0.0,
    "subdivisions": 100,
    "stop_on_error": False,
    "precision": 1e-6,
    "step_width": 0.01,
    "simult_conf": False,
}

_PREDICT_RT_DEFAULTS = {
    "maxrt": 9.0,
    "minrt": None,
    "subdivisions": 100,
    "precision": 1e-6,
    "step_width": 0.01,
    "scaled": False,
    "simult_conf": False,
}

_FIT_OPTS = {
    "n_attempts": 5,
    "n_restarts": 5,
    "maxfun": 5000,
    "maxit": 2000,
    "reltol": 1e-6,
    "factr": 1e-10,
}

_FIT_DEFAULTS = {
    "grid_search": True,
    "optim_method": "bobyqa",
    "n_cores": 1,
    "restr_tau": float("inf"),
    "simult_conf": False,
    "precision": 1e-6,
    "step_width": 0.01,
    "n_grid": 200,
    "grid_seed": 0,
}

# Optimizers accepted by the fit engine
OPTIM_METHODS = ("bobyqa", "L-BFGS-B", "Nelder-Mead")


def get_default_simulation_config() -> dict:
    """Get default arguments of :func:`dynconf.simulate_rtconf`."""
    return copy.deepcopy(_SIMULATION_DEFAULTS)


def get_default_prediction_config(kind: str = "conf") -> dict:
    """Get default arguments of the prediction functions.

    Parameters
    ----------
    kind : str
        ``"conf"`` for :func:`dynconf.predict_conf` or ``"rt"`` for
        :func:`dynconf.predict_rt`.
    """
    if kind == "conf":
        return copy.deepcopy(_PREDICTION_DEFAULTS)
    if kind == "rt":
        return copy.deepcopy(_PREDICT_RT_DEFAULTS)
    raise ValueError(f"Unknown prediction kind '{kind}'. Available kinds: ['conf', 'rt']")


def get_default_fit_opts() -> dict:
    """Get default optimizer control options (``opts`` of the fit engine)."""
    return copy.deepcopy(_FIT_OPTS)


def get_default_fit_config() -> dict:
    """Get default arguments of :func:`dynconf.fit_rtconf`."""
    config = copy.deepcopy(_FIT_DEFAULTS)
    config["opts"] = get_default_fit_opts()
    return config
