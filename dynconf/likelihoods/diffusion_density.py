"""Joint density of response, response time and rating for diffusion models.

The decision process is a Wiener diffusion between 0 and ``a`` started at
``z * a``. Confidence is computed from a response-aligned evidence measure::

    e = R * (X(T + tau) - boundary_R),    R = +1 (upper) / -1 (lower)

Given a hit of boundary ``R`` at decision time ``T``, the drift has a normal
posterior ``N(m, var)`` (see :func:`dynconf.likelihoods.wiener.drift_posterior`)
and ``e`` is normal with mean ``R * m * tau`` and variance
``tau + tau**2 * var`` (scaled units). ``2DSD`` and ``2DSDT`` rate the final
state itself, read from the side of the chosen response::

    conf = (a + s * e) / (T + tau) ** lambda   # X for upper, a - X for lower

The weighted models add a visibility accumulator
``vis ~ N(muvis * (T + tau), svis**2 * (T + tau) + sigvis**2 * (T + tau)**2)``::

    conf = s * (w * e + (1 - w) * vis) / (T + tau) ** lambda

For ``DDConf`` the confidence is the negated decision time, so the rating
probability is an indicator of the decision-time bin.
"""

import logging

import numpy as np
from scipy.stats import norm

from dynconf.likelihoods.wiener import drift_posterior, wiener_density

logger = logging.getLogger(__name__)

# Gauss-Legendre nodes on [-1, 1]
N_NODES_SZ = 10
N_NODES_ST0 = 20
_GL_SZ = np.polynomial.legendre.leggauss(N_NODES_SZ)
_GL_ST0 = np.polynomial.legendre.leggauss(N_NODES_ST0)


def condition_params(params, spec, condition: int, stimulus: int) -> dict:
    """Collect the parameters of one (condition, stimulus) cell in scaled units."""
    s = params.noise(condition)
    v = params.drift(condition) * stimulus
    out = {
        "s": s,
        "v": v / s,
        "sv": params.drift_sd(condition) / s,
        "a": params.a / s,
        "z": params.z,
        "sz": params.sz or 0.0,
        "tau": params.tau or 0.0,
        "lam": (params.lam or 0.0) if spec.time_scaled else 0.0,
    }
    if spec.confidence == "weighted":
        out.update(
            w=params.w,
            muvis=params.visibility_drift(condition) / s,
            svis=params.svis / s,
            sigvis=params.sigvis / s,
        )
    return out


def rating_probability(
    T: np.ndarray,
    response: int,
    lower: float,
    upper: float,
    cell: dict,
    w_start: float | np.ndarray,
    confidence: str,
) -> np.ndarray:
    """Probability that the confidence lands in ``[lower, upper)`` given ``T``."""
    T = np.asarray(T, dtype=float)
    if confidence == "decision_time":
        conf = -T
        return ((conf >= lower) & (conf < upper)).astype(float)

    tau = cell["tau"]
    m, var = drift_posterior(T, response, cell["v"], cell["a"], w_start, cell["sv"])
    mean = response * m * tau
    variance = tau + tau**2 * var
    tt = T + tau
    if confidence == "weighted":
        w = cell["w"]
        mean = w * mean + (1.0 - w) * cell["muvis"] * tt
        variance = w**2 * variance + (1.0 - w) ** 2 * (
            cell["svis"] ** 2 * tt + cell["sigvis"] ** 2 * tt**2
        )
    else:
        mean = cell["a"] + mean
    scale = np.power(tt, cell["lam"]) / cell["s"]
    lo = lower * scale
    hi = upper * scale
    sd = np.sqrt(variance)
    with np.errstate(divide="ignore", invalid="ignore"):
        p = norm.cdf((hi - mean) / sd) - norm.cdf((lo - mean) / sd)
    # degenerate confidence distribution (no post-decisional noise)
    degenerate = sd == 0
    if np.any(degenerate):
        point = np.broadcast_to(mean, p.shape)
        p = np.where(
            degenerate,
            ((point >= np.broadcast_to(lo, p.shape)) & (point < np.broadcast_to(hi, p.shape))).astype(float),
            p,
        )
    return np.clip(p, 0.0, 1.0)


def decision_density(
    T: float | np.ndarray,
    response: int,
    lower: float,
    upper: float,
    cell: dict,
    confidence: str,
    precision: float = 1e-6,
) -> np.ndarray:
    """Joint density of decision time, response and a confidence bin.

    Arguments
    ---------
        T (float or np.ndarray): Decision times (response time minus
            non-decision time).
        response (int): +1 (upper) or -1 (lower).
        lower, upper (float): Confidence bin in the response-aligned
            confidence space.
        cell (dict): Scaled parameters of one condition/stimulus cell, see
            :func:`condition_params`.
        confidence (str): Confidence kind of the model.
        precision (float): Tolerance of the first-passage series.

    Returns
    -------
        np.ndarray: Defective density values, 0 for ``T <= 0``.
    """
    T = np.atleast_1d(np.asarray(T, dtype=float))
    out = np.zeros(T.shape)
    pos = T > 0
    if not np.any(pos):
        return out
    Tp = T[pos]

    if cell["sz"] > 0:
        nodes, weights = _GL_SZ
        starts = cell["z"] + cell["sz"] / 2.0 * nodes
        weights = weights / 2.0
    else:
        starts = np.array([cell["z"]])
        weights = np.array([1.0])

    dens = np.zeros(Tp.shape)
    for w_start, weight in zip(starts, weights):
        f = wiener_density(Tp, response, cell["v"], cell["a"], w_start, cell["sv"], precision)
        p = rating_probability(Tp, response, lower, upper, cell, w_start, confidence)
        dens += weight * f * p
    out[pos] = dens
    return out


def diffusion_density(
    rt: np.ndarray,
    response: int,
    lower: float,
    upper: float,
    cell: dict,
    confidence: str,
    t0: float,
    st0: float = 0.0,
    precision: float = 1e-6,
) -> np.ndarray:
    """Density of observed response times for one response and confidence bin.

    A uniformly distributed non-decision time on ``[t0, t0 + st0]`` is
    integrated out by Gauss-Legendre quadrature over the decision times
    compatible with ``rt``. Response times at or below ``t0`` have density 0.
    """
    rt = np.atleast_1d(np.asarray(rt, dtype=float))
    T = rt - t0
    if st0 <= 0:
        return decision_density(T, response, lower, upper, cell, confidence, precision)

    t_hi = T
    t_lo = np.maximum(T - st0, 0.0)
    if confidence == "decision_time":
        # density vanishes outside the decision-time bin
        t_hi = np.minimum(t_hi, -lower)
        t_lo = np.maximum(t_lo, -upper)
    out = np.zeros(rt.shape)
    valid = t_hi > t_lo
    if not np.any(valid):
        return out
    nodes, weights = _GL_ST0
    half = (t_hi[valid] - t_lo[valid])[:, None] / 2.0
    mid = (t_hi[valid] + t_lo[valid])[:, None] / 2.0
    grid = mid + half * nodes[None, :]
    dens = decision_density(grid.ravel(), response, lower, upper, cell, confidence, precision)
    dens = dens.reshape(grid.shape)
    out[valid] = np.sum(dens * weights[None, :] * half, axis=1) / st0
    return out
