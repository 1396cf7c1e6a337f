__version__ = "0.1.0"

from .basic_simulators import simulate_rtconf
from .config import get_model
from .exceptions import (
    DynConfError,
    IntegrationNonconvergenceError,
    InvalidParameterError,
    UnsupportedModelError,
)
from .fitting import fit_rtconf, fit_rtconf_models
from .likelihoods import d_rtconf
from .parameters import ParameterSet
from .prediction import predict_conf, predict_rt

__all__ = [
    "basic_simulators",
    "config",
    "fitting",
    "likelihoods",
    "prediction",
    "support_utils",
    "simulate_rtconf",
    "get_model",
    "DynConfError",
    "IntegrationNonconvergenceError",
    "InvalidParameterError",
    "UnsupportedModelError",
    "fit_rtconf",
    "fit_rtconf_models",
    "d_rtconf",
    "ParameterSet",
    "predict_conf",
    "predict_rt",
]
