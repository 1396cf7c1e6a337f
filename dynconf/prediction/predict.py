"""Predicted rating distributions and response time densities.

Non-decision time shift identity
--------------------------------
The probability of a (response, rating) cell is the integral of the joint
density over response time. Observed response times are decision times
shifted by the non-decision time ``t0 + U * st0`` with ``U ~ Uniform(0, 1)``,
so the density in ``rt`` is the decision-time density convolved with a
uniform kernel. Integrating over time removes the convolution: the cell mass
equals the integral of the decision-time density itself. :func:`predict_conf`
therefore evaluates the density with ``t0 = st0 = 0`` and accounts for the
jitter only through the upper integration bound, which is extended to
``maxrt + st0``. This avoids the quadrature over the jitter range, which is
exact but many times slower.
"""

import logging

import numpy as np
import pandas as pd
from tqdm import tqdm

from dynconf.config import ModelSpec
from dynconf.likelihoods.density import CellDensity, resolve_parameters
from dynconf.parameters import ParameterSet
from dynconf.prediction.integrator import integrate_density

logger = logging.getLogger(__name__)

CONF_COLUMNS = ["condition", "stimulus", "response", "correct", "rating", "p", "info", "err"]


def _cells(params: ParameterSet):
    for condition in range(1, params.n_conditions + 1):
        for stimulus in (-1, 1):
            for response in (-1, 1):
                for rating in range(1, params.n_ratings + 1):
                    yield condition, stimulus, response, rating


def predict_conf(
    params: ParameterSet | dict | pd.Series | pd.DataFrame,
    model: str | ModelSpec,
    maxrt: float = 15.0,
    minrt: float = 0.0,
    subdivisions: int = 100,
    stop_on_error: bool = False,
    precision: float = 1e-6,
    step_width: float = 0.01,
    simult_conf: bool = False,
    progress: bool = False,
) -> pd.DataFrame:
    """Predict the probabilities of all response and rating combinations.

    Arguments
    ---------
        params (ParameterSet or flat record): Model parameters.
        model (str or ModelSpec): Model name.
        maxrt (float): Upper bound of the decision-time integration (extended
            by ``st0``, see module docstring).
        minrt (float): Lower bound of the decision-time integration.
        subdivisions (int): Maximal number of quadrature subintervals.
        stop_on_error (bool): Raise on integration non-convergence instead of
            reporting it in the ``info`` column.
        precision (float): Tolerance of the first-passage series.
        step_width (float): Inner grid spacing of race models.
        simult_conf (bool): Passed on to the density evaluator.
        progress (bool): Show a progress bar.

    Returns
    -------
        pd.DataFrame: One row per condition, stimulus (-1, 1), response
        (-1, 1) and rating with columns ``condition, stimulus, response,
        correct, rating, p, info, err``.
    """
    params, spec = resolve_parameters(params, model)
    upper_bound = maxrt + (params.st0 or 0.0)
    cells = list(_cells(params))
    rows = []
    n_failed = 0
    for condition, stimulus, response, rating in tqdm(
        cells, disable=not progress, desc="predict_conf"
    ):
        density = CellDensity(
            params,
            spec,
            condition,
            stimulus,
            response,
            rating,
            precision=precision,
            step_width=step_width,
            simult_conf=simult_conf,
        )
        t_lo, t_hi = density.decision_time_bounds()
        result = integrate_density(
            density.decision_density,
            max(minrt, t_lo),
            min(upper_bound, t_hi),
            subdivisions=subdivisions,
            stop_on_error=stop_on_error,
        )
        n_failed += not result.converged
        rows.append(
            {
                "condition": condition,
                "stimulus": stimulus,
                "response": response,
                "correct": int(stimulus == response),
                "rating": rating,
                "p": max(result.value, 0.0),
                "info": result.message,
                "err": result.abs_error,
            }
        )
    if n_failed:
        logger.warning(
            "%d of %d integrations did not reach the requested tolerance",
            n_failed,
            len(cells),
        )
    return pd.DataFrame(rows, columns=CONF_COLUMNS)


def predict_rt(
    params: ParameterSet | dict | pd.Series | pd.DataFrame,
    model: str | ModelSpec,
    maxrt: float = 9.0,
    minrt: float | None = None,
    subdivisions: int = 100,
    scaled: bool = False,
    dist_conf: pd.DataFrame | None = None,
    precision: float = 1e-6,
    step_width: float = 0.01,
    simult_conf: bool = False,
    progress: bool = False,
) -> pd.DataFrame:
    """Predict response time densities for all response and rating combinations.

    Arguments
    ---------
        params (ParameterSet or flat record): Model parameters.
        model (str or ModelSpec): Model name.
        maxrt (float): Largest response time of the grid.
        minrt (float, optional): Smallest response time; defaults to ``t0``.
        subdivisions (int): Number of grid points.
        scaled (bool): Add a ``densscaled`` column where each density curve is
            divided by the probability of its cell, so it integrates to 1.
            Cells with zero probability get 0.
        dist_conf (pd.DataFrame, optional): Output of :func:`predict_conf` used
            for the rescaling; computed if missing.

    Returns
    -------
        pd.DataFrame: Columns ``condition, stimulus, response, correct,
        rating, rt, dens`` (and ``densscaled``).
    """
    params, spec = resolve_parameters(params, model)
    if minrt is None:
        minrt = params.t0
    rt = np.linspace(minrt, maxrt, subdivisions)

    if scaled and dist_conf is None:
        logger.info(
            "scaled is True and dist_conf is None. The rating distribution will "
            "be computed, which takes additional time."
        )
        dist_conf = predict_conf(
            params,
            spec,
            maxrt=maxrt,
            precision=precision,
            step_width=step_width,
            simult_conf=simult_conf,
        )
    if scaled:
        masses = dist_conf.set_index(["condition", "stimulus", "response", "rating"])["p"]

    frames = []
    for condition, stimulus, response, rating in tqdm(
        list(_cells(params)), disable=not progress, desc="predict_rt"
    ):
        density = CellDensity(
            params,
            spec,
            condition,
            stimulus,
            response,
            rating,
            precision=precision,
            step_width=step_width,
            simult_conf=simult_conf,
        )
        dens = density(rt)
        frame = pd.DataFrame(
            {
                "condition": condition,
                "stimulus": stimulus,
                "response": response,
                "correct": int(stimulus == response),
                "rating": rating,
                "rt": rt,
                "dens": dens,
            }
        )
        if scaled:
            mass = float(masses.loc[(condition, stimulus, response, rating)])
            frame["densscaled"] = dens / mass if mass > 0 else 0.0
        frames.append(frame)
    return pd.concat(frames, ignore_index=True)
