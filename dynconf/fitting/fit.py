"""Maximum-likelihood fits of confidence models.

A fit runs through the states INIT -> GRID_SEARCH (optional) ->
LOCAL_OPTIMIZATION -> DONE. The grid search evaluates the objective on a set
of candidate vectors and keeps the best ``n_attempts`` as starting points.
Every attempt is then optimized repeatedly, each restart starting from the
previous optimum, until ``n_restarts`` runs are done or a run does not
improve the objective.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
import pandas as pd
import psutil

from dynconf.config import OPTIM_METHODS, ModelSpec, get_default_fit_opts, get_model
from dynconf.fitting.checkpoint import Checkpointer, NullCheckpointer
from dynconf.fitting.data import FitData, prepare_data
from dynconf.fitting.grids import default_grid, grid_center, user_grid
from dynconf.fitting.objective import INVALID_NLL, NegLogLikelihood
from dynconf.fitting.optimizers import OptimizationOutcome, run_optimizer
from dynconf.fitting.parallel import parallel_map, worker_pool
from dynconf.fitting.transform import ParameterTransform
from dynconf.parameters import ParameterSet
from dynconf.support_utils.thresholds import confidence_cuts, expand_thresholds

logger = logging.getLogger(__name__)


class FitState(str, Enum):
    INIT = "init"
    GRID_SEARCH = "grid_search"
    LOCAL_OPTIMIZATION = "local_optimization"
    DONE = "done"


@dataclass
class AttemptRecord:
    """One optimizer run of one attempt."""

    attempt: int
    restart: int
    start_nll: float
    nll: float
    improved: bool
    success: bool
    message: str
    nfev: int


@dataclass
class FitResult:
    """Outcome of :func:`fit_rtconf`.

    Attributes
    ----------
    model : str
        Fitted model.
    params : ParameterSet
        Best parameters on the external rating scale. Rating categories that
        were never observed have empty threshold intervals.
    nll : float
        Negative log-likelihood at ``params``.
    k : int
        Number of estimated parameters.
    n_obs : int
        Number of trials.
    fixed : dict
        Parameters held fixed.
    optim_method : str
        Optimizer used.
    history : list[AttemptRecord]
        All optimizer runs.
    """

    model: str
    params: ParameterSet
    nll: float
    k: int
    n_obs: int
    fixed: dict = field(default_factory=dict)
    optim_method: str = "bobyqa"
    history: list[AttemptRecord] = field(default_factory=list)

    @property
    def aic(self) -> float:
        return 2 * self.k + 2 * self.nll

    @property
    def aicc(self) -> float:
        denominator = self.n_obs - self.k - 1
        if denominator <= 0:
            return np.inf
        return self.aic + 2 * self.k * (self.k + 1) / denominator

    @property
    def bic(self) -> float:
        return self.k * np.log(self.n_obs) + 2 * self.nll

    @property
    def converged(self) -> bool:
        return any(run.success for run in self.history)

    def to_record(self) -> dict:
        """Flat record of parameters and fit statistics."""
        record = self.params.to_record(self.model)
        record.update(
            {
                "negLogLik": self.nll,
                "N": self.n_obs,
                "k": self.k,
                "BIC": self.bic,
                "AICc": self.aicc,
                "AIC": self.aic,
                "converged": self.converged,
                "fixed": ", ".join(f"{k}={v}" for k, v in self.fixed.items()),
            }
        )
        return record

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([self.to_record()])


def resolve_n_cores(n_cores) -> int:
    """Number of worker processes; ``"all"`` uses every physical core."""
    if n_cores == "all":
        return psutil.cpu_count(logical=False) or 1
    n_cores = int(n_cores)
    if n_cores < 1:
        raise ValueError(f"n_cores must be positive or 'all', got {n_cores}")
    return n_cores


def _optimize_start(task) -> OptimizationOutcome:
    objective, x0, lower, upper, method, opts = task
    return run_optimizer(objective, x0, lower, upper, method, opts)


def _external_record(
    record: dict, spec: ModelSpec, data: FitData, sym_thetas: bool
) -> tuple[dict, bool]:
    """Translate the thresholds of a fitted record to the external rating scale."""
    if data.n_internal_ratings == data.n_ratings:
        return record, False
    out = {k: v for k, v in record.items() if not k.startswith("theta")}
    n_cuts = data.n_internal_ratings - 1
    a = record.get("a")
    for side in [""] if sym_thetas else ["Lower", "Upper"]:
        cuts = [record[f"theta{side}{i}"] for i in range(1, n_cuts + 1)]
        response = -1 if side == "Lower" else 1
        conf_cuts = confidence_cuts(cuts, spec, response, sym_thetas, a)
        expanded = expand_thresholds(conf_cuts, data.rating_levels, data.n_ratings)
        expanded = confidence_cuts(expanded, spec, response, sym_thetas, a)
        out.update({f"theta{side}{i + 1}": c for i, c in enumerate(expanded)})
    return out, True


def fit_rtconf(
    data: pd.DataFrame,
    model: str | ModelSpec,
    fixed: dict | None = None,
    init_grid: pd.DataFrame | dict | None = None,
    grid_search: bool = True,
    n_ratings: int | None = None,
    optim_method: str = "bobyqa",
    opts: dict | None = None,
    n_cores: int | str = 1,
    checkpoint: Checkpointer | None = None,
    restr_tau: float | str = np.inf,
    simult_conf: bool = False,
    precision: float = 1e-6,
    step_width: float = 0.01,
    n_grid: int = 200,
    grid_seed: int | None = 0,
) -> FitResult:
    """Fit a confidence model to choices, response times and ratings.

    Arguments
    ---------
        data (pd.DataFrame): Trials with columns ``condition`` (optional),
            ``rating``, ``rt`` (optional, otherwise only the rating
            distribution is fitted) and two of ``stimulus``, ``response``,
            ``correct``; may be aggregated with a count column ``n``.
        model (str or ModelSpec): Model name, e.g. ``"dynaViTE"``.
        fixed (dict, optional): Parameters held fixed, e.g.
            ``{"z": 0.5, "sym_thetas": True}``; race models accept
            ``{"b": "a"}``.
        init_grid (pd.DataFrame, optional): Candidate starting values as flat
            records; ``vmin/vmax`` and ``thetamin/thetamax`` are expanded
            equidistantly.
        grid_search (bool): Evaluate the candidates and start from the best
            ones. If False, every row of ``init_grid`` (or the center of the
            default grid) is a starting point.
        n_ratings (int, optional): Size of the rating scale.
        optim_method (str): ``"bobyqa"``, ``"L-BFGS-B"`` or ``"Nelder-Mead"``.
        opts (dict, optional): ``n_attempts``, ``n_restarts``, ``maxfun``,
            ``maxit``, ``reltol``, ``factr``.
        n_cores (int or "all"): Worker processes for grid evaluation and
            attempts.
        checkpoint (Checkpointer, optional): Receives the state after the
            grid search and after every restart.
        restr_tau (float or "simult_conf"): Upper bound of ``tau``.
            ``"simult_conf"`` implies ``simult_conf=True`` and bounds ``tau``
            so that ``t0 + tau`` stays below the fastest response time.
        simult_conf (bool): Response times include the post-decisional period.
        precision (float): Tolerance of the first-passage series.
        step_width (float): Inner grid spacing of race models.
        n_grid (int): Size of the default grid.
        grid_seed (int, optional): Seed of the default grid.

    Returns
    -------
        FitResult
    """
    spec = get_model(model)
    if optim_method not in OPTIM_METHODS:
        raise ValueError(
            f"Unknown optim_method '{optim_method}'. "
            f"Available methods: {list(OPTIM_METHODS)}"
        )
    settings = get_default_fit_opts()
    settings.update(opts or {})
    checkpoint = checkpoint if checkpoint is not None else NullCheckpointer()
    n_cores = resolve_n_cores(n_cores)
    if restr_tau == "simult_conf" and not simult_conf:
        logger.info("restr_tau='simult_conf': response times include tau")
        simult_conf = True

    state = FitState.INIT
    fit_data = prepare_data(data, n_ratings)
    fixed = dict(fixed or {})
    transform = ParameterTransform(
        spec,
        fit_data.n_conditions,
        fit_data.n_internal_ratings,
        fixed=fixed,
        restr_tau=restr_tau,
        min_rt=fit_data.min_rt,
    )
    objective = NegLogLikelihood(
        fit_data,
        transform,
        precision=precision,
        step_width=step_width,
        simult_conf=simult_conf,
    )
    logger.info(
        "Fitting %s to %d trials: %d free parameters %s",
        spec.name,
        fit_data.n_trials,
        transform.n_free,
        transform.names,
    )
    if n_cores == 1:
        logger.info("No Multiprocessing, since only one cpu requested!")

    if init_grid is not None:
        candidates = user_grid(transform, init_grid)
    elif grid_search:
        candidates = default_grid(transform, n_grid=n_grid, seed=grid_seed)
    else:
        candidates = [grid_center(transform)]

    with worker_pool(n_cores) as pool:
        values = np.asarray(parallel_map(objective, candidates, pool), dtype=float)
        if grid_search:
            state = FitState.GRID_SEARCH
            order = np.argsort(values)[: settings["n_attempts"]]
            logger.info(
                "Grid search over %d candidates: best nll %.4f, %d invalid",
                len(candidates),
                values[order[0]],
                int(np.sum(values >= INVALID_NLL)),
            )
            checkpoint.save(
                state.value,
                {
                    "model": spec.name,
                    "names": transform.names,
                    "grid": np.asarray(candidates),
                    "grid_nll": values,
                },
            )
        else:
            order = np.arange(len(candidates))
        best = [
            {"x": np.asarray(candidates[i]), "nll": float(values[i]), "active": True}
            for i in order
        ]

        state = FitState.LOCAL_OPTIMIZATION
        history: list[AttemptRecord] = []
        for restart in range(settings["n_restarts"]):
            active = [i for i, attempt in enumerate(best) if attempt["active"]]
            if not active:
                break
            tasks = [
                (
                    objective,
                    best[i]["x"],
                    transform.lower,
                    transform.upper,
                    optim_method,
                    settings,
                )
                for i in active
            ]
            outcomes = parallel_map(_optimize_start, tasks, pool)
            for i, outcome in zip(active, outcomes):
                start_nll = best[i]["nll"]
                tolerance = settings["reltol"] * (abs(start_nll) + settings["reltol"])
                improved = bool(outcome.fun < start_nll - tolerance)
                history.append(
                    AttemptRecord(
                        attempt=i + 1,
                        restart=restart + 1,
                        start_nll=start_nll,
                        nll=outcome.fun,
                        improved=improved,
                        success=outcome.success,
                        message=outcome.message,
                        nfev=outcome.nfev,
                    )
                )
                if improved:
                    best[i]["x"] = outcome.x
                    best[i]["nll"] = outcome.fun
                else:
                    best[i]["active"] = False
                    logger.info(
                        "Attempt %d stalled in restart %d at nll %.4f",
                        i + 1,
                        restart + 1,
                        start_nll,
                    )
            checkpoint.save(
                state.value,
                {
                    "model": spec.name,
                    "names": transform.names,
                    "restart": restart + 1,
                    "best": [(b["x"], b["nll"]) for b in best],
                    "history": history,
                },
            )
            logger.info(
                "Restart %d: best nll %.4f",
                restart + 1,
                min(b["nll"] for b in best),
            )

    winner = min(best, key=lambda b: b["nll"])
    if winner["nll"] >= INVALID_NLL:
        logger.warning("No valid parameter vector was found for %s", spec.name)
    record, expanded = _external_record(
        transform.to_record(winner["x"]), spec, fit_data, transform.sym_thetas
    )
    params = ParameterSet.from_record(record, spec, allow_empty_categories=expanded)
    state = FitState.DONE
    result = FitResult(
        model=spec.name,
        params=params,
        nll=winner["nll"],
        k=transform.n_free,
        n_obs=fit_data.n_trials,
        fixed=fixed,
        optim_method=optim_method,
        history=history,
    )
    logger.info(
        "Fit of %s %s: nll=%.4f, BIC=%.2f", spec.name, state.value, result.nll, result.bic
    )
    return result
