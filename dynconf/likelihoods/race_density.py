"""Joint density of response, response time and rating for race models.

Two accumulators start at 0 and race toward their thresholds: the
accumulator for response +1 has drift ``+v * stimulus`` and threshold ``b``,
the one for response -1 has drift ``-v * stimulus`` and threshold ``a``. Both
have noise ``s`` and correlation ``rho`` (0 for the independent race, -1/2
for the partially anti-correlated race).

Write ``Y = threshold - X`` for the distances to the thresholds, ordered as
(winner, loser). Up to the first hit, ``Y`` is a two-dimensional Brownian
motion killed on the axes. The density that the winner hits at time ``T``
while the loser is at distance ``y`` below its threshold is the outward
probability flux through the winner's face::

    k(T, y) = 1/2 * G(T, y) * d/dy_w q0(T, (0, y))

where ``q0`` is the killed density of the driftless process and ``G`` the
Girsanov factor of the drift. Whitening with ``C^-1`` maps the positive
quadrant onto a wedge of opening angle ``pi / n`` (``n = 2`` for
``rho = 0``, ``n = 3`` for ``rho = -1/2``), where ``q0`` is given exactly by
the method of images.

Only mass of trials where one accumulator reaches its threshold is
represented; the loser never crosses first by construction, and trials where
neither accumulator finishes before the integration bound carry no
response.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)

N_NODES_ST0 = 20
_GL_ST0 = np.polynomial.legendre.leggauss(N_NODES_ST0)

# Number of standard deviations of the loser's state covered by the inner grid
Y_RANGE_SD = 8.0

# Decision times evaluated at once on the inner grid
CHUNK_SIZE = 256


class WedgeImages:
    """Image sources of the killed, whitened two-dimensional Brownian motion.

    Parameters
    ----------
    rho : float
        Correlation of the accumulators. The opening angle of the whitened
        wedge must be ``pi / n`` for an integer ``n``; this holds for
        ``rho = 0`` and ``rho = -1/2``.
    """

    def __init__(self, rho: float):
        self.rho = rho
        self.sigma = np.sqrt(1.0 - rho**2)
        self.beta = np.arctan2(-rho / self.sigma, 1.0)
        opening = np.pi / 2.0 - self.beta
        n = np.pi / opening
        if not np.isclose(n, np.round(n)):
            raise ValueError(
                f"Correlation {rho} gives a wedge angle that is not pi/n; "
                "the method of images does not apply."
            )
        self.n = int(np.round(n))
        self.alpha = opening
        # C^-1 for Sigma = C C^T with C = [[1, 0], [rho, sigma]]
        self.c_inv = np.array([[1.0, 0.0], [-rho / self.sigma, 1.0 / self.sigma]])
        self.sigma_inv = np.linalg.inv(np.array([[1.0, rho], [rho, 1.0]]))

    def sources(self, y0: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Image positions (2n x 2) and signs for the start point ``y0``."""
        z0 = self.c_inv @ y0
        radius = np.hypot(z0[0], z0[1])
        theta0 = np.arctan2(z0[1], z0[0])
        k = np.arange(self.n)
        angles = np.concatenate(
            [theta0 + 2 * k * self.alpha, 2 * self.beta - theta0 + 2 * k * self.alpha]
        )
        signs = np.concatenate([np.ones(self.n), -np.ones(self.n)])
        points = radius * np.column_stack([np.cos(angles), np.sin(angles)])
        return points, signs


_WEDGES: dict[float, WedgeImages] = {}


def _wedge(rho: float) -> WedgeImages:
    if rho not in _WEDGES:
        _WEDGES[rho] = WedgeImages(rho)
    return _WEDGES[rho]


def hitting_kernel(
    T: np.ndarray,
    y: np.ndarray,
    mu: tuple[float, float],
    thresholds: tuple[float, float],
    rho: float,
) -> np.ndarray:
    """Density of the winner hitting at ``T`` with the loser at distance ``y``.

    Unit-noise units. ``mu`` and ``thresholds`` are ordered (winner, loser).
    ``T`` and ``y`` are broadcast against each other.
    """
    wedge = _wedge(rho)
    T, y = np.broadcast_arrays(np.asarray(T, dtype=float), np.asarray(y, dtype=float))
    y0 = np.asarray(thresholds, dtype=float)
    points, signs = wedge.sources(y0)

    # whitened coordinates of (0, y)
    z1 = np.zeros(T.shape)
    z2 = y / wedge.sigma
    c_w = wedge.c_inv[:, 0]

    deriv = np.zeros(T.shape)
    for (p1, p2), sign in zip(points, signs):
        d1 = z1 - p1
        d2 = z2 - p2
        phi = np.exp(-(d1**2 + d2**2) / (2.0 * T)) / (2.0 * np.pi * T)
        deriv += sign * phi * (-(d1 * c_w[0] + d2 * c_w[1]) / T)
    deriv /= wedge.sigma

    m = -np.asarray(mu, dtype=float)
    m_prec = wedge.sigma_inv @ m
    log_g = (
        m_prec[0] * (0.0 - y0[0])
        + m_prec[1] * (y - y0[1])
        - 0.5 * T * float(m @ m_prec)
    )
    return np.maximum(0.5 * deriv * np.exp(log_g), 0.0)


def condition_params(params, spec, condition: int, stimulus: int) -> dict:
    """Collect the parameters of one (condition, stimulus) cell in scaled units."""
    s = params.noise(condition)
    v = params.drift(condition) * stimulus
    b = params.b if params.b is not None else params.a
    out = {
        "s": s,
        # drifts and thresholds of the accumulators for response +1 and -1
        "mu": {1: v / s, -1: -v / s},
        "thr": {1: b / s, -1: params.a / s},
        "rho": spec.correlation,
        "time_scaled": spec.time_scaled,
    }
    if spec.time_scaled:
        out["weights"] = params.confidence_weights()
    return out


def _loser_interval(T, lower, upper, cell, response):
    """Range of the loser's distance ``y`` whose confidence lies in the bin.

    Confidence is affine in ``y``: ``conf = s * (A_w - A_l + y) * slope + offset``.
    """
    s = cell["s"]
    thr_w = cell["thr"][response]
    thr_l = cell["thr"][-response]
    if cell["time_scaled"]:
        wx, wrt, wint = cell["weights"]
        sqrt_t = np.sqrt(T)
        slope = wx + wint / sqrt_t
        offset = wrt / sqrt_t
    else:
        slope = np.ones_like(T)
        offset = np.zeros_like(T)
    base = thr_w - thr_l
    with np.errstate(divide="ignore", invalid="ignore"):
        y_lo = (lower - offset) / (s * slope) - base
        y_hi = (upper - offset) / (s * slope) - base
    flat = slope <= 0
    if np.any(flat):
        inside = (offset >= lower) & (offset < upper)
        y_lo = np.where(flat, np.where(inside, -np.inf, np.inf), y_lo)
        y_hi = np.where(flat, np.inf, y_hi)
    return y_lo, y_hi


def decision_density(
    T: float | np.ndarray,
    response: int,
    lower: float,
    upper: float,
    cell: dict,
    step_width: float = 0.01,
) -> np.ndarray:
    """Joint density of decision time, response and a confidence bin.

    The loser's state is integrated with the trapezoidal rule on a grid with
    spacing about ``step_width`` (scaled units) over the part of
    ``(0, y_max(T)]`` compatible with the confidence bin, where
    ``y_max = max(A, A - mu * T) + 8 * sqrt(T)``.
    """
    T = np.atleast_1d(np.asarray(T, dtype=float))
    out = np.zeros(T.shape)
    pos = T > 0
    if not np.any(pos):
        return out
    Tp = T[pos]
    mu_w, mu_l = cell["mu"][response], cell["mu"][-response]
    thr_w, thr_l = cell["thr"][response], cell["thr"][-response]
    y_max = np.maximum(thr_l, thr_l - mu_l * Tp) + Y_RANGE_SD * np.sqrt(Tp)
    y_lo, y_hi = _loser_interval(Tp, lower, upper, cell, response)
    y_lo = np.clip(y_lo, 0.0, y_max)
    y_hi = np.clip(y_hi, 0.0, y_max)
    width = y_hi - y_lo
    valid = width > 0
    if not np.any(valid):
        return out
    n_points = int(np.clip(np.ceil(width[valid].max() / step_width), 2, 20000)) + 1
    frac = np.linspace(0.0, 1.0, n_points)
    idx = np.flatnonzero(valid)
    dens = np.zeros(Tp.shape)
    for start in range(0, len(idx), CHUNK_SIZE):
        rows = idx[start : start + CHUNK_SIZE]
        grid = y_lo[rows][:, None] + width[rows][:, None] * frac[None, :]
        kern = hitting_kernel(
            Tp[rows][:, None], grid, (mu_w, mu_l), (thr_w, thr_l), cell["rho"]
        )
        dens[rows] = np.trapezoid(kern, grid, axis=1)
    out[pos] = dens
    return out


def race_density(
    rt: np.ndarray,
    response: int,
    lower: float,
    upper: float,
    cell: dict,
    t0: float,
    st0: float = 0.0,
    step_width: float = 0.01,
) -> np.ndarray:
    """Density of observed response times for one response and confidence bin.

    The uniform non-decision time jitter ``st0`` is integrated out by
    Gauss-Legendre quadrature. Response times at or below ``t0`` have
    density 0.
    """
    rt = np.atleast_1d(np.asarray(rt, dtype=float))
    T = rt - t0
    if st0 <= 0:
        return decision_density(T, response, lower, upper, cell, step_width)
    t_hi = T
    t_lo = np.maximum(T - st0, 0.0)
    out = np.zeros(rt.shape)
    valid = t_hi > t_lo
    if not np.any(valid):
        return out
    nodes, weights = _GL_ST0
    half = (t_hi[valid] - t_lo[valid])[:, None] / 2.0
    mid = (t_hi[valid] + t_lo[valid])[:, None] / 2.0
    grid = mid + half * nodes[None, :]
    dens = decision_density(grid.ravel(), response, lower, upper, cell, step_width)
    out[valid] = np.sum(dens.reshape(grid.shape) * weights[None, :] * half, axis=1) / st0
    return out


def first_passage_density(T, mu: float, threshold: float) -> np.ndarray:
    """Inverse Gaussian density of a single accumulator (unit noise)."""
    T = np.asarray(T, dtype=float)
    Tp = np.where(T > 0, T, 1.0)
    dens = threshold / np.sqrt(2 * np.pi * Tp**3) * np.exp(
        -((threshold - mu * Tp) ** 2) / (2 * Tp)
    )
    return np.where(T > 0, dens, 0.0)
