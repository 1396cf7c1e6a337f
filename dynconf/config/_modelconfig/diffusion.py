"""Diffusion-type confidence model configurations."""

from .base import (
    DIFFUSION_DEFAULTS,
    Family,
    ModelSpec,
    grid_ranges,
    param_bounds,
)

_BASE_REQUIRED = ("a", "v", "t0")
_BASE_FIT = ("a", "v", "t0", "z", "sz", "sv", "st0")
_VISIBILITY = ("w", "svis", "sigvis")
# 2DSD rates the final state, which lies around the boundary separation
_STATE_THETA_GRID = {"thetamin": (0.0, 2.0), "thetamax": (2.0, 6.0)}


def _select(table: dict, names) -> dict:
    return {k: v for k, v in table.items() if k in names}


def _diffusion_config(
    name,
    confidence,
    required,
    fit,
    time_scaled=False,
    optional=(),
    grid=None,
    description="",
):
    defaults = dict(DIFFUSION_DEFAULTS)
    if not time_scaled:
        defaults["lambda"] = 0.0
    grid_names = set(fit) | {"vmin", "vmax", "thetamin", "thetamax"}
    model_grid = _select(grid_ranges, grid_names)
    model_grid.update(grid or {})
    return ModelSpec(
        name=name,
        family=Family.DIFFUSION,
        confidence=confidence,
        required_params=tuple(required),
        fit_params=tuple(fit),
        time_scaled=time_scaled,
        defaults=defaults,
        optional_params=tuple(optional),
        bounds=_select(param_bounds, fit),
        grid=model_grid,
        description=description,
    )


def get_2dsd_config():
    """Two-stage dynamic signal detection: confidence from post-decisional evidence."""
    return _diffusion_config(
        "2DSD",
        "evidence",
        _BASE_REQUIRED + ("tau",),
        _BASE_FIT + ("tau",),
        grid=_STATE_THETA_GRID,
        description="2DSD: post-decisional accumulation for tau seconds",
    )


def get_2dsdt_config():
    """2DSD with confidence divided by ``(T + tau) ** lambda``."""
    return _diffusion_config(
        "2DSDT",
        "evidence",
        _BASE_REQUIRED + ("tau", "lambda"),
        _BASE_FIT + ("tau", "lambda"),
        time_scaled=True,
        grid=_STATE_THETA_GRID,
        description="2DSD with time-scaled confidence",
    )


def get_dynwev_config():
    """Dynamical weighted evidence and visibility model."""
    return _diffusion_config(
        "dynWEV",
        "weighted",
        _BASE_REQUIRED + ("tau",) + _VISIBILITY,
        _BASE_FIT + ("tau",) + _VISIBILITY,
        optional=("muvis",),
        description="dynWEV: weighted post-decisional evidence and visibility",
    )


def get_dynavite_config():
    """dynWEV with confidence divided by ``(T + tau) ** lambda``."""
    return _diffusion_config(
        "dynaViTE",
        "weighted",
        _BASE_REQUIRED + ("tau",) + _VISIBILITY + ("lambda",),
        _BASE_FIT + ("tau",) + _VISIBILITY + ("lambda",),
        time_scaled=True,
        optional=("muvis",),
        description="dynaViTE: dynWEV with time-scaled confidence",
    )


def get_ddconf_config():
    """Diffusion model with confidence determined by decision time."""
    return _diffusion_config(
        "DDConf",
        "decision_time",
        _BASE_REQUIRED,
        _BASE_FIT,
        grid={"thetamin": (0.1, 0.8), "thetamax": (0.8, 3.0)},
        description="DDConf: confidence decreases with decision time",
    )
