"""Euler-Maruyama simulation of diffusion-type confidence models."""

import numpy as np


def diffusion_paths(
    n: int,
    v: float,
    a: float,
    z: float,
    rng: np.random.Generator,
    sv: float = 0.0,
    sz: float = 0.0,
    s: float = 1.0,
    t0: float = 0.0,
    st0: float = 0.0,
    tau: float = 0.0,
    confidence: str = "evidence",
    w: float = 1.0,
    muvis: float = 0.0,
    svis: float = 0.0,
    sigvis: float = 0.0,
    lam: float = 0.0,
    delta: float = 0.01,
    max_t: float = 15.0,
) -> dict:
    """Simulate ``n`` trials of a diffusion process with confidence.

    Arguments
    ---------
        n (int): Number of trials.
        v (float): Mean drift (already signed by the stimulus).
        a (float): Boundary separation.
        z (float): Relative starting point.
        rng (np.random.Generator): Random number generator owned by the caller.
        sv, sz, st0 (float): Trial-to-trial variability of drift (normal),
            starting point and non-decision time (uniform, full widths).
        s (float): Diffusion constant.
        t0 (float): Non-decision time.
        tau (float): Duration of post-decisional accumulation.
        confidence (str): ``"evidence"``, ``"weighted"`` or
            ``"decision_time"``.
        w, muvis, svis, sigvis (float): Evidence weight and visibility
            parameters of the weighted models.
        lam (float): Exponent of the time scaling of confidence.
        delta (float): Step size.
        max_t (float): Maximal decision time. Unfinished trials are returned
            as non-responses.

    Returns
    -------
        dict: ``rts`` (decision time plus non-decision time), ``choices``
        (+1, -1, or 0 for non-responses), ``conf`` (NaN for non-responses),
        ``decision_times`` and ``metadata``.
    """
    drift = rng.normal(v, sv, size=n) if sv > 0 else np.full(n, float(v))
    start = a * (z + sz * (rng.uniform(size=n) - 0.5))
    ndt = t0 + st0 * rng.uniform(size=n)
    weighted = confidence == "weighted"
    if weighted:
        vis_drift = rng.normal(muvis, sigvis, size=n) if sigvis > 0 else np.full(n, float(muvis))
        vis = np.zeros(n)

    x = start.copy()
    decision_times = np.full(n, np.nan)
    choices = np.zeros(n, dtype=np.int64)
    active = np.arange(n)
    sqrt_dt = np.sqrt(delta)
    n_steps = int(np.round(max_t / delta))
    for step in range(1, n_steps + 1):
        if active.size == 0:
            break
        x[active] += drift[active] * delta + s * sqrt_dt * rng.standard_normal(active.size)
        if weighted:
            vis[active] += vis_drift[active] * delta + svis * sqrt_dt * rng.standard_normal(
                active.size
            )
        upper = x[active] >= a
        lower = x[active] <= 0
        done = upper | lower
        if np.any(done):
            finished = active[done]
            choices[finished] = np.where(upper[done], 1, -1)
            decision_times[finished] = step * delta
            active = active[~done]

    responded = choices != 0
    T = decision_times[responded]
    resp = choices[responded]
    conf = np.full(n, np.nan)
    if confidence == "decision_time":
        conf[responded] = -T
    else:
        noise = rng.standard_normal(resp.size)
        evidence = resp * (drift[responded] * tau + s * np.sqrt(tau) * noise)
        if weighted:
            vis_noise = rng.standard_normal(resp.size)
            vis_final = (
                vis[responded]
                + vis_drift[responded] * tau
                + svis * np.sqrt(tau) * vis_noise
            )
            raw = w * evidence + (1.0 - w) * vis_final
        else:
            # response-aligned final state: X for upper, a - X for lower responses
            raw = a + evidence
        conf[responded] = raw / np.power(T + tau, lam)

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
            "n_nonresponses": int(np.sum(~responded)),
        },
    }
