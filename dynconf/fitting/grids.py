"""Candidate starting values for the local optimization.

Candidates are flat records. The default grid is a Latin hypercube sample of
the model's grid ranges; drift rates are spanned equidistantly between
``vmin`` and ``vmax`` over conditions and thresholds between ``thetamin`` and
``thetamax`` over rating categories. A caller-supplied grid may use the same
shorthands.
"""

import logging

import numpy as np
import pandas as pd
from scipy.stats import qmc

from dynconf.fitting.transform import ParameterTransform

logger = logging.getLogger(__name__)


class LatinHypercubeSampler:
    """Latin hypercube sampling of box-shaped parameter spaces.

    Example:
        >>> sampler = LatinHypercubeSampler({"a": (0.5, 4.0), "t0": (0.0, 0.5)})
        >>> samples = sampler.sample(n_samples=10, rng=np.random.default_rng(0))
        >>> samples["a"].shape
        (10,)
    """

    def __init__(self, param_space: dict[str, tuple[float, float]]):
        for name, (lower, upper) in param_space.items():
            if not lower <= upper:
                raise ValueError(
                    f"Lower bound of '{name}' exceeds its upper bound: {lower} > {upper}"
                )
        self.param_space = param_space

    def sample(
        self, n_samples: int = 1, rng: np.random.Generator | None = None
    ) -> dict[str, np.ndarray]:
        """Sample ``n_samples`` points, one array per parameter."""
        rng = rng if rng is not None else np.random.default_rng()
        names = list(self.param_space)
        if not names:
            return {}
        unit = qmc.LatinHypercube(d=len(names), rng=rng).random(n_samples)
        lower = np.array([self.param_space[n][0] for n in names])
        upper = np.array([self.param_space[n][1] for n in names])
        points = lower + unit * (upper - lower)
        return {name: points[:, i] for i, name in enumerate(names)}


def _grid_space(transform: ParameterTransform) -> dict[str, tuple[float, float]]:
    spec = transform.spec
    space = {}
    for name, (lower, upper) in zip(transform.model_names, transform.bounds):
        if name.startswith("v"):
            continue
        low, high = spec.grid.get(name, (lower, upper))
        # keep the range inside the fit bounds (e.g. t0 below the fastest rt)
        low, high = max(low, lower), min(high, upper)
        if not np.isfinite(low) or not np.isfinite(high):
            raise ValueError(f"No finite grid range for parameter '{name}'")
        space[name] = (low, max(low, high))
    if any(name.startswith("v") for name in transform.model_names):
        space["vmin"] = spec.grid["vmin"]
        space["vmax"] = spec.grid["vmax"]
    space["thetamin"] = spec.grid["thetamin"]
    space["thetamax"] = spec.grid["thetamax"]
    return space


def expand_shorthands(
    record: dict, n_conditions: int, n_thresholds: int, descending: bool = False
) -> dict[str, float]:
    """Replace ``vmin/vmax`` and ``thetamin/thetamax`` by indexed parameters.

    ``theta0`` is accepted as an alias of ``thetamin``. With a single
    condition the drift rate is the mean of ``vmin`` and ``vmax``. For
    ``descending`` thresholds ``theta1`` is set to ``thetamax``.
    """
    record = dict(record)
    if "theta0" in record and "thetamin" not in record:
        record["thetamin"] = record.pop("theta0")
    if "vmin" in record and "vmax" in record:
        vmin, vmax = record.pop("vmin"), record.pop("vmax")
        if n_conditions == 1:
            drifts = [(vmin + vmax) / 2]
        else:
            drifts = np.linspace(vmin, vmax, n_conditions)
        record.update({f"v{i + 1}": float(v) for i, v in enumerate(drifts)})
    if "thetamin" in record and "thetamax" in record:
        low, high = record.pop("thetamin"), record.pop("thetamax")
        if n_thresholds == 1:
            cuts = [(low + high) / 2]
        else:
            cuts = np.linspace(low, high, n_thresholds)
        if descending:
            cuts = cuts[::-1]
        for i, cut in enumerate(cuts):
            record[f"theta{i + 1}"] = float(cut)
    return record


def default_grid(
    transform: ParameterTransform, n_grid: int = 200, seed: int | None = 0
) -> list[np.ndarray]:
    """Latin hypercube grid of starting vectors over the model's grid ranges."""
    space = _grid_space(transform)
    samples = LatinHypercubeSampler(space).sample(n_grid, np.random.default_rng(seed))
    candidates = []
    for i in range(n_grid):
        record = {name: float(values[i]) for name, values in samples.items()}
        record = expand_shorthands(
            record, transform.n_conditions, transform.n_thresholds, transform.descending
        )
        candidates.append(transform.encode(record))
    logger.debug("Sampled %d grid candidates over %s", n_grid, list(space))
    return candidates


def grid_center(transform: ParameterTransform) -> np.ndarray:
    """Starting vector at the center of the model's grid ranges."""
    space = _grid_space(transform)
    record = {name: (low + high) / 2 for name, (low, high) in space.items()}
    record = expand_shorthands(
        record, transform.n_conditions, transform.n_thresholds, transform.descending
    )
    return transform.encode(record)


def user_grid(
    transform: ParameterTransform, init_grid: pd.DataFrame | dict
) -> list[np.ndarray]:
    """Starting vectors from a caller-supplied table of flat records.

    Columns missing from the table are set to the center of the model's grid
    range.
    """
    if isinstance(init_grid, dict):
        init_grid = {k: np.atleast_1d(v) for k, v in init_grid.items()}
    table = pd.DataFrame(init_grid)
    if table.empty:
        raise ValueError("init_grid contains no rows")
    space = _grid_space(transform)
    center = {name: (low + high) / 2 for name, (low, high) in space.items()}
    candidates = []
    for _, row in table.iterrows():
        record = {k: float(v) for k, v in row.items() if pd.notna(v)}
        given = set(record)
        if "theta0" in given:
            given.add("thetamin")
        if any(key.startswith("v") for key in given):
            given |= {"vmin", "vmax"}
        if any(key.startswith("theta") for key in given):
            given |= {"thetamin", "thetamax"}
        for name, value in center.items():
            if name not in given:
                record[name] = value
        record = expand_shorthands(
            record, transform.n_conditions, transform.n_thresholds, transform.descending
        )
        candidates.append(transform.encode(record))
    return candidates
