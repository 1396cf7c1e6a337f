"""Simulation of choices, response times and confidence ratings.

Trials are generated for the cross product of conditions, stimuli and
replicates. Every call owns its random number generator
(``numpy.random.default_rng(seed)``), so a seed only affects that call.
"""

import logging

import numpy as np
import pandas as pd

from dynconf.basic_simulators.diffusion_paths import diffusion_paths
from dynconf.basic_simulators.race_paths import race_paths
from dynconf.config import Family, ModelSpec, get_model
from dynconf.likelihoods.density import resolve_parameters
from dynconf.parameters import ParameterSet
from dynconf.support_utils.rank_correlation import rating_correlations
from dynconf.support_utils.thresholds import confidence_ladder, map_confidence

logger = logging.getLogger(__name__)

TRIAL_COLUMNS = ["condition", "stimulus", "response", "correct", "rt", "conf", "rating"]
AGGREGATE_COLUMNS = ["condition", "stimulus", "response", "correct", "rating", "p"]


def _simulate_cell(
    params: ParameterSet,
    spec: ModelSpec,
    condition: int,
    stimulus: int,
    n: int,
    rng: np.random.Generator,
    delta: float,
    maxrt: float,
) -> dict:
    s = params.noise(condition)
    v = params.drift(condition) * stimulus
    if spec.family is Family.RACE:
        return race_paths(
            n,
            mu_upper=v,
            mu_lower=-v,
            b=params.b if params.b is not None else params.a,
            a=params.a,
            rng=rng,
            rho=spec.correlation,
            s=s,
            t0=params.t0,
            st0=params.st0 or 0.0,
            weights=params.confidence_weights() if spec.time_scaled else None,
            delta=delta,
            max_t=maxrt,
        )
    kwargs = {}
    if spec.confidence == "weighted":
        kwargs = {
            "w": params.w,
            "muvis": params.visibility_drift(condition),
            "svis": params.svis,
            "sigvis": params.sigvis,
        }
    return diffusion_paths(
        n,
        v=v,
        a=params.a,
        z=params.z,
        rng=rng,
        sv=params.drift_sd(condition),
        sz=params.sz or 0.0,
        s=s,
        t0=params.t0,
        st0=params.st0 or 0.0,
        tau=params.tau or 0.0,
        confidence=spec.confidence,
        lam=(params.lam or 0.0) if spec.time_scaled else 0.0,
        delta=delta,
        max_t=maxrt,
        **kwargs,
    )


def simulate_rtconf(
    params: ParameterSet | dict | pd.Series | pd.DataFrame,
    model: str | ModelSpec,
    n: int = 10000,
    delta: float = 0.01,
    maxrt: float = 15.0,
    seed: int | None = None,
    stimulus: tuple[int, ...] | int = (-1, 1),
    simult_conf: bool = False,
    agg_simus: bool = False,
    gamma: bool = False,
) -> pd.DataFrame | dict:
    """Simulate trials of a confidence model.

    Arguments
    ---------
        params (ParameterSet or flat record): Model parameters.
        model (str or ModelSpec): Model name.
        n (int): Number of trials per condition and stimulus.
        delta (float): Step size of the Euler-Maruyama scheme.
        maxrt (float): Maximal decision time. Trials without a decision are
            non-responses (``response = 0``, ``rt = maxrt``, ``conf = NaN``,
            ``rating = 0``).
        seed (int, optional): Seed of the generator used by this call.
        stimulus (tuple or int): Stimulus identities to simulate (+1 / -1).
        simult_conf (bool): Add the post-decisional accumulation period
            ``tau`` to the response times (diffusion models).
        agg_simus (bool): Return response/rating proportions per condition
            and stimulus instead of single trials.
        gamma (bool): Also return rank correlations (Somers' Dxy) between
            ratings and condition, rt and accuracy.

    Returns
    -------
        pd.DataFrame or dict: Trial table with columns ``condition, stimulus,
        response, correct, rt, conf, rating`` (or the aggregated table).
        With ``gamma=True`` a dict ``{"simus": ..., "gamma": {...}}``.
    """
    params, spec = resolve_parameters(params, model)
    stimuli = (stimulus,) if np.isscalar(stimulus) else tuple(stimulus)
    if not set(stimuli) <= {-1, 1}:
        raise ValueError(
            f"Not accepted value for stimulus: {stimuli}. Must be 1, -1 or (-1, 1)."
        )
    if n < 1:
        raise ValueError(f"n must be positive, got {n}")

    rng = np.random.default_rng(seed)
    ladder = confidence_ladder(params.thresholds, spec, params.a)
    frames = []
    for condition in range(1, params.n_conditions + 1):
        for stim in stimuli:
            out = _simulate_cell(params, spec, condition, stim, n, rng, delta, maxrt)
            response = out["choices"]
            rt = out["rts"]
            if simult_conf and spec.family is Family.DIFFUSION:
                rt = np.where(response != 0, rt + (params.tau or 0.0), rt)
            frames.append(
                pd.DataFrame(
                    {
                        "condition": condition,
                        "stimulus": stim,
                        "response": response,
                        "correct": (response == stim).astype(np.int64),
                        "rt": rt,
                        "conf": out["conf"],
                        "rating": map_confidence(out["conf"], response, ladder),
                    }
                )
            )
            logger.debug(
                "Simulated %d trials for condition %d, stimulus %d (%d non-responses)",
                n,
                condition,
                stim,
                out["metadata"]["n_nonresponses"],
            )
    simus = pd.concat(frames, ignore_index=True)[TRIAL_COLUMNS]
    n_missing = int((simus["response"] == 0).sum())
    if n_missing > 0:
        logger.info(
            "%d of %d simulated trials reached maxrt=%s without a decision",
            n_missing,
            len(simus),
            maxrt,
        )

    correlations = rating_correlations(simus) if gamma else None
    if agg_simus:
        simus = aggregate_simulations(simus, n, params.n_ratings, stimuli)
    if gamma:
        return {"simus": simus, "gamma": correlations}
    return simus


def aggregate_simulations(
    simus: pd.DataFrame, n: int, n_ratings: int, stimuli=(-1, 1)
) -> pd.DataFrame:
    """Proportions of responses and ratings per condition and stimulus.

    Every combination of condition, stimulus, response (+1/-1) and rating is
    present; combinations never simulated get ``p = 0``. Non-responses are
    not counted, so proportions within a cell may sum to less than 1.
    """
    trials = simus[simus["response"] != 0]
    counts = trials.groupby(["condition", "stimulus", "response", "rating"]).size()
    full = pd.MultiIndex.from_product(
        [
            sorted(simus["condition"].unique()),
            sorted(stimuli),
            [-1, 1],
            range(1, n_ratings + 1),
        ],
        names=["condition", "stimulus", "response", "rating"],
    )
    counts = counts.reindex(full, fill_value=0)
    agg = counts.rename("count").reset_index()
    agg["p"] = agg["count"] / n
    agg["correct"] = (agg["response"] == agg["stimulus"]).astype(np.int64)
    return agg[AGGREGATE_COLUMNS]


class Simulator:
    """Reusable simulator bound to one model.

    Examples
    --------
    >>> sim = Simulator("dynaViTE")
    >>> trials = sim.simulate(params, n_samples=1000, random_state=1)
    """

    def __init__(self, model: str | ModelSpec):
        self.spec = get_model(model)

    def simulate(
        self,
        params: ParameterSet | dict | pd.Series | pd.DataFrame,
        n_samples: int = 1000,
        delta_t: float = 0.01,
        max_t: float = 15.0,
        random_state: int | None = None,
        **kwargs,
    ) -> pd.DataFrame | dict:
        """Run :func:`simulate_rtconf` for the bound model."""
        return simulate_rtconf(
            params,
            self.spec,
            n=n_samples,
            delta=delta_t,
            maxrt=max_t,
            seed=random_state,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"Simulator(model='{self.spec.name}')"
