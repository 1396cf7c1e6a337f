"""Negative log-likelihood of aggregated observations."""

import logging

import numpy as np

from dynconf.exceptions import InvalidParameterError
from dynconf.fitting.data import FitData
from dynconf.fitting.transform import ParameterTransform
from dynconf.likelihoods.density import CellDensity
from dynconf.prediction.integrator import integrate_density

logger = logging.getLogger(__name__)

# Objective value of parameter vectors that violate model constraints
INVALID_NLL = 1e12

# Densities and probabilities are floored before taking the logarithm
MIN_LIKELIHOOD = 1e-10

_CELL_KEYS = ["condition", "stimulus", "response", "rating"]


class NegLogLikelihood:
    """Picklable objective ``x -> -sum(n * log(likelihood))``.

    With response times the likelihood of a row is the joint density of
    response, response time and rating. Without response times it is the
    probability of the (response, rating) cell, integrated over time.

    Arguments
    ---------
        data (FitData): Prepared observations.
        transform (ParameterTransform): Decoder of the parameter vector.
        precision (float): Tolerance of the first-passage series.
        step_width (float): Inner grid spacing of race models.
        simult_conf (bool): Response times include the post-decisional period.
        maxrt (float): Upper bound of the time integral (rt-free data).
    """

    def __init__(
        self,
        data: FitData,
        transform: ParameterTransform,
        precision: float = 1e-6,
        step_width: float = 0.01,
        simult_conf: bool = False,
        maxrt: float = 15.0,
    ):
        self.transform = transform
        self.spec = transform.spec
        self.has_rt = data.has_rt
        self.precision = precision
        self.step_width = step_width
        self.simult_conf = simult_conf
        self.maxrt = maxrt
        self.n_calls = 0
        self.cells = []
        for key, rows in data.table.groupby(_CELL_KEYS):
            rt = rows["rt"].to_numpy(dtype=float) if self.has_rt else None
            self.cells.append(
                (tuple(int(k) for k in key), rt, rows["n"].to_numpy(dtype=float))
            )

    def _cell_likelihood(self, params, key, rt) -> np.ndarray:
        density = CellDensity(
            params,
            self.spec,
            *key,
            precision=self.precision,
            step_width=self.step_width,
            simult_conf=self.simult_conf,
        )
        if rt is not None:
            return density(rt)
        t_lo, t_hi = density.decision_time_bounds()
        result = integrate_density(
            density.decision_density,
            t_lo,
            min(self.maxrt + (params.st0 or 0.0), t_hi),
        )
        return np.array([result.value])

    def __call__(self, x: np.ndarray) -> float:
        self.n_calls += 1
        try:
            params = self.transform.decode(x)
        except InvalidParameterError:
            return INVALID_NLL
        nll = 0.0
        for key, rt, n in self.cells:
            likelihood = self._cell_likelihood(params, key, rt)
            nll -= float(np.sum(n * np.log(np.maximum(likelihood, MIN_LIKELIHOOD))))
        if not np.isfinite(nll):
            logger.debug("Non-finite objective at %s", x)
            return INVALID_NLL
        return nll
