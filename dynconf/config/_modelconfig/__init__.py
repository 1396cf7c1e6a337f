"""Model configuration factories."""

from .base import CONFIDENCE_KINDS, Family, ModelSpec
from .diffusion import (
    get_2dsd_config,
    get_2dsdt_config,
    get_ddconf_config,
    get_dynavite_config,
    get_dynwev_config,
)
from .race import get_irm_config, get_irmt_config, get_pcrm_config, get_pcrmt_config


def get_model_config() -> dict[str, ModelSpec]:
    """Collect the configurations of all built-in models."""
    return {
        "2DSD": get_2dsd_config(),
        "2DSDT": get_2dsdt_config(),
        "dynWEV": get_dynwev_config(),
        "dynaViTE": get_dynavite_config(),
        "DDConf": get_ddconf_config(),
        "IRM": get_irm_config(),
        "IRMt": get_irmt_config(),
        "PCRM": get_pcrm_config(),
        "PCRMt": get_pcrmt_config(),
    }


__all__ = [
    "CONFIDENCE_KINDS",
    "Family",
    "ModelSpec",
    "get_model_config",
]
