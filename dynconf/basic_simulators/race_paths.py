"""Euler-Maruyama simulation of two-accumulator race models."""

import numpy as np


def race_paths(
    n: int,
    mu_upper: float,
    mu_lower: float,
    b: float,
    a: float,
    rng: np.random.Generator,
    rho: float = 0.0,
    s: float = 1.0,
    t0: float = 0.0,
    st0: float = 0.0,
    weights: tuple[float, float, float] | None = None,
    delta: float = 0.01,
    max_t: float = 15.0,
) -> dict:
    """Simulate ``n`` trials of a race between two correlated accumulators.

    The accumulator for response +1 has drift ``mu_upper`` and threshold
    ``b``, the one for response -1 drift ``mu_lower`` and threshold ``a``.
    Confidence is the balance of evidence ``threshold_winner - X_loser``;
    with ``weights = (wx, wrt, wint)`` it is
    ``wx * BoE + wrt / sqrt(T) + wint * BoE / sqrt(T)`` with decision time ``T``.

    Returns
    -------
        dict: ``rts``, ``choices`` (+1, -1, or 0 for non-responses), ``conf``,
        ``decision_times`` and ``metadata``.
    """
    sigma = np.sqrt(1.0 - rho**2)
    ndt = t0 + st0 * rng.uniform(size=n)
    x_up = np.zeros(n)
    x_lo = np.zeros(n)
    decision_times = np.full(n, np.nan)
    choices = np.zeros(n, dtype=np.int64)
    active = np.arange(n)
    sqrt_dt = np.sqrt(delta)
    n_steps = int(np.round(max_t / delta))
    for step in range(1, n_steps + 1):
        if active.size == 0:
            break
        eps1 = rng.standard_normal(active.size)
        eps2 = rho * eps1 + sigma * rng.standard_normal(active.size)
        x_up[active] += mu_upper * delta + s * sqrt_dt * eps1
        x_lo[active] += mu_lower * delta + s * sqrt_dt * eps2
        over_up = x_up[active] - b
        over_lo = x_lo[active] - a
        done = (over_up >= 0) | (over_lo >= 0)
        if np.any(done):
            finished = active[done]
            # simultaneous crossings go to the larger overshoot
            choices[finished] = np.where(over_up[done] >= over_lo[done], 1, -1)
            decision_times[finished] = step * delta
            active = active[~done]

    responded = choices != 0
    resp = choices[responded]
    T = decision_times[responded]
    loser = np.where(resp == 1, x_lo[responded], x_up[responded])
    winner_thr = np.where(resp == 1, b, a)
    boe = winner_thr - loser
    conf = np.full(n, np.nan)
    if weights is None:
        conf[responded] = boe
    else:
        wx, wrt, wint = weights
        conf[responded] = wx * boe + (wrt + wint * boe) / np.sqrt(T)

    rts = np.where(responded, decision_times + ndt, max_t)
    return {
        "rts": rts,
        "choices": choices,
        "conf": conf,
        "decision_times": decision_times,
        "metadata": {
            "n_samples": n,
            "delta": delta,
            "max_t": max_t,
            "rho": rho,
            "n_nonresponses": int(np.sum(~responded)),
        },
    }
