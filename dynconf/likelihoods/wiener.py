"""First-passage time densities of the Wiener diffusion process.

All functions work in *scaled* units, i.e. for a process with unit noise
(``s = 1``). A process with noise ``s`` is mapped to these units by dividing
drift, boundary separation and drift variability by ``s``; first-passage times
are unaffected by the rescaling.

The zero-drift density on the unit interval uses the small-time and
large-time series of Navarro & Fuss (2009), choosing for every time point the
representation that needs fewer terms for the requested precision.
"""

import numpy as np


def _series_terms(u: np.ndarray, eps: float) -> tuple[np.ndarray, np.ndarray]:
    """Number of series terms for the small- and large-time representations."""
    # large-time series
    kl = 1.0 / (np.pi * np.sqrt(u))
    crit = np.pi * u * eps
    mask = crit < 1
    kl[mask] = np.maximum(
        np.sqrt(-2.0 * np.log(crit[mask]) / (np.pi**2 * u[mask])), kl[mask]
    )
    # small-time series
    ks = np.full_like(u, 2.0)
    crit = 2.0 * np.sqrt(2.0 * np.pi * u) * eps
    mask = crit < 1
    ks[mask] = np.maximum(
        2.0 + np.sqrt(-2.0 * u[mask] * np.log(crit[mask])), np.sqrt(u[mask]) + 1.0
    )
    return ks, kl


def standard_fpt_density(
    u: float | np.ndarray, w: float | np.ndarray, eps: float = 1e-6
) -> np.ndarray:
    """Density of hitting the lower boundary of the unit interval without drift.

    Arguments
    ---------
        u (float or np.ndarray): Normalized time ``t / a**2``.
        w (float or np.ndarray): Relative starting point in (0, 1).
        eps (float): Truncation error tolerance of the series.

    Returns
    -------
        np.ndarray: Density values, 0 for ``u <= 0``.
    """
    u, w = np.broadcast_arrays(np.asarray(u, dtype=float), np.asarray(w, dtype=float))
    out = np.zeros(u.shape)
    pos = u > 0
    if not np.any(pos):
        return out
    uu = u[pos]
    ww = w[pos]
    ks, kl = _series_terms(uu, eps)
    small = ks < kl
    res = np.empty(uu.shape)

    if np.any(small):
        n_terms = int(np.ceil(ks[small].max()))
        k = np.arange(-((n_terms - 1) // 2), (n_terms - 1) // 2 + (n_terms - 1) % 2 + 1)
        us = uu[small][:, None]
        x = ww[small][:, None] + 2.0 * k[None, :]
        res[small] = np.sum(x * np.exp(-(x**2) / (2.0 * us)), axis=1) / np.sqrt(
            2.0 * np.pi * us[:, 0] ** 3
        )

    large = ~small
    if np.any(large):
        n_terms = int(np.ceil(kl[large].max()))
        k = np.arange(1, n_terms + 1)[None, :]
        ul = uu[large][:, None]
        res[large] = np.pi * np.sum(
            k * np.exp(-(k**2) * np.pi**2 * ul / 2.0) * np.sin(k * np.pi * ww[large][:, None]),
            axis=1,
        )

    out[pos] = np.maximum(res, 0.0)
    return out


def _displacement(response, a, w):
    """Relative start toward the hit boundary and distance travelled to it."""
    upper = np.asarray(response) == 1
    w_hit = np.where(upper, 1.0 - w, w)
    displacement = np.where(upper, a * (1.0 - w), -a * w)
    return w_hit, displacement


def wiener_density(
    t: float | np.ndarray,
    response: int | np.ndarray,
    v: float,
    a: float,
    w: float | np.ndarray,
    sv: float = 0.0,
    eps: float = 1e-6,
) -> np.ndarray:
    """Defective first-passage time density of a (unit noise) Wiener process.

    Arguments
    ---------
        t (float or np.ndarray): Decision times.
        response (int or np.ndarray): +1 for the upper boundary ``a``, -1 for
            the lower boundary 0.
        v (float): Drift rate.
        a (float): Boundary separation.
        w (float or np.ndarray): Relative starting point in (0, 1).
        sv (float): Standard deviation of the normally distributed drift.
            The drift is marginalized analytically.
        eps (float): Truncation error tolerance of the series.

    Returns
    -------
        np.ndarray: Density values (0 for ``t <= 0``).
    """
    t = np.asarray(t, dtype=float)
    w_hit, disp = _displacement(response, a, w)
    t_pos = np.where(t > 0, t, 1.0)
    f0 = standard_fpt_density(t / a**2, w_hit, eps)
    if sv == 0:
        log_factor = v * disp - v**2 * t_pos / 2.0
    else:
        denom = 1.0 + sv**2 * t_pos
        log_factor = (sv**2 * disp**2 + 2.0 * v * disp - v**2 * t_pos) / (
            2.0 * denom
        ) - 0.5 * np.log(denom)
    return np.where(t > 0, f0 / a**2 * np.exp(log_factor), 0.0)


def drift_posterior(
    t: float | np.ndarray,
    response: int | np.ndarray,
    v: float,
    a: float,
    w: float | np.ndarray,
    sv: float = 0.0,
) -> tuple[np.ndarray, np.ndarray]:
    """Mean and variance of the drift given a boundary hit at time ``t``.

    With a normal drift distribution ``N(v, sv**2)`` the posterior is normal
    with mean ``(v + sv**2 * D) / (1 + sv**2 * t)`` and variance
    ``sv**2 / (1 + sv**2 * t)``, where ``D`` is the distance travelled from the
    starting point to the boundary that was hit.
    """
    t = np.asarray(t, dtype=float)
    _, disp = _displacement(response, a, w)
    denom = 1.0 + sv**2 * t
    return (v + sv**2 * disp) / denom, np.broadcast_to(sv**2 / denom, np.shape(disp + t))


def hitting_probability(response: int, v: float, a: float, w: float) -> float:
    """Probability to end at the given boundary (unit noise, fixed drift)."""
    if v == 0:
        p_upper = w
    else:
        # (1 - exp(-2 v w a)) / (1 - exp(-2 v a)), evaluated stably
        p_upper = np.expm1(-2.0 * v * w * a) / np.expm1(-2.0 * v * a)
    p_upper = float(np.clip(p_upper, 0.0, 1.0))
    return p_upper if response == 1 else 1.0 - p_upper