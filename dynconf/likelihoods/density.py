"""Model-independent entry points of the density evaluators.

The model specification selects the evaluator: diffusion models use
:mod:`dynconf.likelihoods.diffusion_density`, race models
:mod:`dynconf.likelihoods.race_density`.
"""

import logging
from dataclasses import replace

import numpy as np
import pandas as pd

from dynconf.config import Family, ModelSpec, get_model
from dynconf.exceptions import InvalidParameterError
from dynconf.likelihoods import diffusion_density, race_density
from dynconf.parameters import ParameterSet
from dynconf.support_utils.thresholds import confidence_ladder, rating_bounds

logger = logging.getLogger(__name__)

_ATTRIBUTE_NAMES = {"lambda": "lam"}


def resolve_parameters(
    params: ParameterSet | dict | pd.Series | pd.DataFrame, model: str | ModelSpec
) -> tuple[ParameterSet, ModelSpec]:
    """Parse ``params`` for ``model`` and check that the model can use them.

    Raises
    ------
    InvalidParameterError
        If a parameter required by the model is missing or constraints are
        violated.
    UnsupportedModelError
        If the model is unknown.
    """
    spec = get_model(model)
    if not isinstance(params, ParameterSet):
        return ParameterSet.from_record(params, spec), spec
    missing = [
        name
        for name in spec.required_params
        if getattr(params, _ATTRIBUTE_NAMES.get(name, name)) is None
    ]
    if spec.family is Family.DIFFUSION and params.z is None:
        missing.append("z")
    if missing:
        raise InvalidParameterError(f"model '{spec.name}' requires parameters {missing}")
    descending = spec.confidence == "decision_time"
    if params.thresholds.descending != descending:
        params = params.with_values(
            thresholds=replace(params.thresholds, descending=descending)
        )
    return params, spec


class CellDensity:
    """Density of one (condition, stimulus, response, rating) cell.

    Parameters
    ----------
    params : ParameterSet
        Validated parameters.
    spec : ModelSpec
        Model specification.
    condition, stimulus, response, rating : int
        Cell identifiers; ``stimulus`` and ``response`` are +1 or -1.
    precision : float
        Tolerance of the first-passage series (diffusion models).
    step_width : float
        Grid spacing of the inner integral (race models).
    simult_conf : bool
        If True, the observed response time includes the post-decisional
        accumulation period ``tau`` (diffusion models).
    """

    def __init__(
        self,
        params: ParameterSet,
        spec: ModelSpec,
        condition: int,
        stimulus: int,
        response: int,
        rating: int,
        precision: float = 1e-6,
        step_width: float = 0.01,
        simult_conf: bool = False,
    ):
        self.params = params
        self.spec = spec
        self.response = response
        self.precision = precision
        self.step_width = step_width
        ladder = confidence_ladder(params.thresholds, spec, params.a)
        self.lower, self.upper = rating_bounds(ladder, response, rating)
        if spec.family is Family.RACE:
            self.cell = race_density.condition_params(params, spec, condition, stimulus)
            self.t0 = params.t0
        else:
            self.cell = diffusion_density.condition_params(
                params, spec, condition, stimulus
            )
            self.t0 = params.t0 + ((params.tau or 0.0) if simult_conf else 0.0)
        self.st0 = params.st0 or 0.0

    def decision_time_bounds(self) -> tuple[float, float]:
        """Decision-time range of the cell (bounded only for decision-time confidence)."""
        if self.spec.confidence == "decision_time":
            return max(-self.upper, 0.0), -self.lower
        return 0.0, np.inf

    def decision_density(self, T: float | np.ndarray) -> np.ndarray:
        """Density over decision time (``t0 = st0 = 0``)."""
        if self.spec.family is Family.RACE:
            return race_density.decision_density(
                T, self.response, self.lower, self.upper, self.cell, self.step_width
            )
        return diffusion_density.decision_density(
            T,
            self.response,
            self.lower,
            self.upper,
            self.cell,
            self.spec.confidence,
            self.precision,
        )

    def __call__(self, rt: float | np.ndarray) -> np.ndarray:
        """Density over observed response time."""
        if self.spec.family is Family.RACE:
            return race_density.race_density(
                rt,
                self.response,
                self.lower,
                self.upper,
                self.cell,
                self.t0,
                self.st0,
                self.step_width,
            )
        return diffusion_density.diffusion_density(
            rt,
            self.response,
            self.lower,
            self.upper,
            self.cell,
            self.spec.confidence,
            self.t0,
            self.st0,
            self.precision,
        )


def d_rtconf(
    data: pd.DataFrame,
    params: ParameterSet | dict | pd.Series | pd.DataFrame,
    model: str | ModelSpec,
    precision: float = 1e-6,
    step_width: float = 0.01,
    simult_conf: bool = False,
) -> np.ndarray:
    """Evaluate the joint density of response, response time and rating.

    Arguments
    ---------
        data (pd.DataFrame): Observations with columns ``rt``, ``response``
            (+1/-1), ``rating`` (1..n_ratings) and optionally ``condition``
            (default 1) and ``stimulus`` (+1/-1, default 1).
        params (ParameterSet or flat record): Model parameters.
        model (str or ModelSpec): Model name, e.g. ``"dynaViTE"`` or ``"IRMt"``.
        precision (float): Tolerance of the first-passage series.
        step_width (float): Grid spacing of the inner integral of race models.
        simult_conf (bool): Whether response times include the
            post-decisional accumulation period.

    Returns
    -------
        np.ndarray: Densities in the row order of ``data``. Response times at
        or below the non-decision time have density 0.

    Raises
    ------
        InvalidParameterError: Invalid parameters or observations.
        UnsupportedModelError: Unknown model name.
    """
    params, spec = resolve_parameters(params, model)
    frame = pd.DataFrame(data).reset_index(drop=True)
    for column, default in (("condition", 1), ("stimulus", 1)):
        if column not in frame:
            frame[column] = default
    missing = [c for c in ("rt", "response", "rating") if c not in frame]
    if missing:
        raise ValueError(f"data is missing the columns {missing}")
    _check_observations(frame, params)

    out = np.zeros(len(frame))
    keys = ["condition", "stimulus", "response", "rating"]
    for (condition, stimulus, response, rating), rows in frame.groupby(keys).groups.items():
        density = CellDensity(
            params,
            spec,
            int(condition),
            int(stimulus),
            int(response),
            int(rating),
            precision=precision,
            step_width=step_width,
            simult_conf=simult_conf,
        )
        rt = frame.loc[rows, "rt"].to_numpy(dtype=float)
        out[np.asarray(rows)] = density(rt)
        logger.debug(
            "Evaluated %d densities for condition=%s stimulus=%s response=%s rating=%s",
            len(rt),
            condition,
            stimulus,
            response,
            rating,
        )
    return out


def _check_observations(frame: pd.DataFrame, params: ParameterSet) -> None:
    problems = []
    if not frame["response"].isin([-1, 1]).all():
        problems.append("response must be -1 or 1")
    if not frame["stimulus"].isin([-1, 1]).all():
        problems.append("stimulus must be -1 or 1")
    if not frame["rating"].between(1, params.n_ratings).all():
        problems.append(f"rating must be in 1..{params.n_ratings}")
    if not frame["condition"].between(1, params.n_conditions).all():
        problems.append(f"condition must be in 1..{params.n_conditions}")
    if problems:
        raise InvalidParameterError(problems)
