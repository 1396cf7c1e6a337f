"""Race-type confidence model configurations."""

from .base import Family, ModelSpec, RACE_DEFAULTS, grid_ranges, param_bounds

_RACE_REQUIRED = ("a", "b", "v", "t0")
_RACE_FIT = ("a", "b", "v", "t0", "st0")
_TIME_WEIGHTS = ("wx", "wrt", "wint")


def _race_config(name, correlation, time_scaled, description):
    required = _RACE_REQUIRED + (_TIME_WEIGHTS if time_scaled else ())
    fit = _RACE_FIT + (("wrt", "wint") if time_scaled else ())
    grid_names = set(fit) | {"vmin", "vmax", "thetamin", "thetamax"}
    grid = {k: v for k, v in grid_ranges.items() if k in grid_names}
    # balance of evidence is non-negative
    grid["thetamin"] = (0.1, 1.0)
    grid["thetamax"] = (1.0, 3.0)
    return ModelSpec(
        name=name,
        family=Family.RACE,
        confidence="balance",
        required_params=required,
        fit_params=fit,
        time_scaled=time_scaled,
        correlation=correlation,
        defaults=dict(RACE_DEFAULTS),
        bounds={k: v for k, v in param_bounds.items() if k in fit},
        grid=grid,
        description=description,
    )


def get_irm_config():
    """Independent race model with balance-of-evidence confidence."""
    return _race_config("IRM", 0.0, False, "IRM: independent race model")


def get_irmt_config():
    """Independent race model with time-dependent confidence."""
    return _race_config(
        "IRMt", 0.0, True, "IRMt: independent race, time-dependent confidence"
    )


def get_pcrm_config():
    """Partially anti-correlated race model (correlation -1/2)."""
    return _race_config("PCRM", -0.5, False, "PCRM: partially correlated race model")


def get_pcrmt_config():
    """Partially anti-correlated race model with time-dependent confidence."""
    return _race_config(
        "PCRMt", -0.5, True, "PCRMt: partially correlated race, time-dependent confidence"
    )
