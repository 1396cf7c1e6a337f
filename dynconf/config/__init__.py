from ._modelconfig import CONFIDENCE_KINDS, Family, ModelSpec
from .config import (
    OPTIM_METHODS,
    get_default_fit_config,
    get_default_fit_opts,
    get_default_prediction_config,
    get_default_simulation_config,
)
from .model_registry import (
    MODEL_ALIASES,
    ModelConfigRegistry,
    get_model,
    get_model_registry,
    register_model_config,
    register_model_config_factory,
)

__all__ = [
    "CONFIDENCE_KINDS",
    "Family",
    "ModelSpec",
    "OPTIM_METHODS",
    "get_default_fit_config",
    "get_default_fit_opts",
    "get_default_prediction_config",
    "get_default_simulation_config",
    "MODEL_ALIASES",
    "ModelConfigRegistry",
    "get_model",
    "get_model_registry",
    "register_model_config",
    "register_model_config_factory",
]
