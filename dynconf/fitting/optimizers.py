"""Local optimizers used by the fit engine.

``"bobyqa"`` maps onto SciPy's COBYQA, a derivative-free trust-region method
with quadratic models that respects bound constraints. ``"L-BFGS-B"`` is
used with finite-difference gradients. ``"Nelder-Mead"`` searches on a
transformed scale where the bounds disappear (logit for finite intervals,
log for half-open ones).
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from scipy.optimize import Bounds, minimize
from scipy.special import expit, logit

from dynconf.config import OPTIM_METHODS, get_default_fit_opts

logger = logging.getLogger(__name__)


@dataclass
class OptimizationOutcome:
    """Result of one optimizer run."""

    x: np.ndarray
    fun: float
    success: bool
    message: str
    nfev: int


class BoundTransform:
    """Elementwise bijection between a box and the real line."""

    def __init__(self, lower: np.ndarray, upper: np.ndarray):
        self.lower = np.asarray(lower, dtype=float)
        self.upper = np.asarray(upper, dtype=float)
        self.both = np.isfinite(self.lower) & np.isfinite(self.upper)
        self.only_lower = np.isfinite(self.lower) & ~np.isfinite(self.upper)
        self.only_upper = ~np.isfinite(self.lower) & np.isfinite(self.upper)

    def to_real(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        out = x.copy()
        both, low, up = self.both, self.only_lower, self.only_upper
        # stay away from the edges where logit and log diverge
        p = (x[both] - self.lower[both]) / (self.upper[both] - self.lower[both])
        out[both] = logit(np.clip(p, 1e-8, 1 - 1e-8))
        out[low] = np.log(np.maximum(x[low] - self.lower[low], 1e-12))
        out[up] = -np.log(np.maximum(self.upper[up] - x[up], 1e-12))
        return out

    def to_box(self, y: np.ndarray) -> np.ndarray:
        y = np.asarray(y, dtype=float)
        out = y.copy()
        both, low, up = self.both, self.only_lower, self.only_upper
        width = self.upper[both] - self.lower[both]
        out[both] = self.lower[both] + width * expit(y[both])
        out[low] = self.lower[low] + np.exp(y[low])
        out[up] = self.upper[up] - np.exp(-y[up])
        return out


def _with_bounds(fun, lower, upper):
    def bounded(x):
        return fun(np.clip(x, lower, upper))

    return bounded


def run_optimizer(
    fun: Callable[[np.ndarray], float],
    x0: np.ndarray,
    lower: np.ndarray,
    upper: np.ndarray,
    method: str = "bobyqa",
    opts: dict | None = None,
) -> OptimizationOutcome:
    """Minimize ``fun`` inside the box ``[lower, upper]`` starting at ``x0``.

    Arguments
    ---------
        fun (Callable): Objective of the parameter vector.
        x0 (np.ndarray): Starting vector (clipped to the box).
        lower, upper (np.ndarray): Bounds.
        method (str): One of ``"bobyqa"``, ``"L-BFGS-B"``, ``"Nelder-Mead"``.
        opts (dict, optional): Control options ``maxfun``, ``maxit``,
            ``reltol`` and ``factr``; defaults from
            :func:`dynconf.config.get_default_fit_opts`.

    Returns
    -------
        OptimizationOutcome
    """
    if method not in OPTIM_METHODS:
        raise ValueError(
            f"Unknown optim_method '{method}'. Available methods: {list(OPTIM_METHODS)}"
        )
    settings = get_default_fit_opts()
    settings.update(opts or {})
    lower = np.asarray(lower, dtype=float)
    upper = np.asarray(upper, dtype=float)
    x0 = np.clip(np.asarray(x0, dtype=float), lower, upper)

    if method == "bobyqa":
        # COBYQA evaluates only feasible points; clipping guards rounding at the bounds
        res = minimize(
            _with_bounds(fun, lower, upper),
            x0,
            method="COBYQA",
            bounds=Bounds(lower, upper),
            options={"maxfev": settings["maxfun"]},
        )
        x = np.clip(res.x, lower, upper)
    elif method == "L-BFGS-B":
        res = minimize(
            fun,
            x0,
            method="L-BFGS-B",
            bounds=list(zip(lower, upper)),
            options={
                "maxiter": settings["maxit"],
                "maxfun": settings["maxfun"],
                "ftol": settings["factr"] * np.finfo(float).eps,
            },
        )
        x = np.clip(res.x, lower, upper)
    else:
        box = BoundTransform(lower, upper)
        res = minimize(
            lambda y: fun(box.to_box(y)),
            box.to_real(x0),
            method="Nelder-Mead",
            options={
                "maxiter": settings["maxit"],
                "maxfev": settings["maxfun"],
                "fatol": settings["reltol"],
            },
        )
        x = np.clip(box.to_box(res.x), lower, upper)

    logger.debug(
        "%s finished after %d evaluations: nll=%.4f (%s)",
        method,
        res.nfev,
        res.fun,
        res.message,
    )
    return OptimizationOutcome(
        x=x,
        fun=float(res.fun),
        success=bool(res.success),
        message=str(res.message),
        nfev=int(res.nfev),
    )
