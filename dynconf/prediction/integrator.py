"""Adaptive quadrature of density functions.

A thin wrapper around :func:`scipy.integrate.quad` that reports
non-convergence as a diagnostic instead of an exception, unless asked to stop.
"""

import logging
import warnings
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from scipy.integrate import IntegrationWarning, quad

from dynconf.exceptions import IntegrationNonconvergenceError

logger = logging.getLogger(__name__)

OK_MESSAGE = "OK"


@dataclass(frozen=True)
class IntegrationResult:
    """Result of one integration.

    Attributes
    ----------
    value : float
        Best estimate of the integral.
    abs_error : float
        Estimated absolute error.
    message : str
        ``"OK"`` or the integrator's status message.
    converged : bool
        Whether the requested tolerance was reached.
    """

    value: float
    abs_error: float
    message: str = OK_MESSAGE
    converged: bool = True


def integrate_density(
    func: Callable[[float], float],
    lower: float,
    upper: float,
    subdivisions: int = 100,
    stop_on_error: bool = False,
    rel_tol: float = 1.49e-8,
    abs_tol: float = 1.49e-8,
) -> IntegrationResult:
    """Integrate ``func`` over ``[lower, upper]``.

    Arguments
    ---------
        func (Callable): Function of one float; array results of size one
            are accepted.
        lower, upper (float): Integration bounds; ``upper`` may be ``inf``.
            An empty range (``upper <= lower``) gives 0.
        subdivisions (int): Maximal number of subintervals.
        stop_on_error (bool): Raise :class:`IntegrationNonconvergenceError`
            instead of returning a diagnostic when the tolerance is not met.
        rel_tol, abs_tol (float): Requested tolerances.

    Returns
    -------
        IntegrationResult
    """
    if not upper > lower:
        return IntegrationResult(0.0, 0.0)

    def scalar(x):
        return float(np.asarray(func(x)).reshape(-1)[0])

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", IntegrationWarning)
        out = quad(
            scalar,
            lower,
            upper,
            limit=subdivisions,
            epsabs=abs_tol,
            epsrel=rel_tol,
            full_output=1,
        )
    value, abs_error = float(out[0]), float(out[1])
    if len(out) > 3:
        message = str(out[3]).strip().splitlines()[0]
        if stop_on_error:
            raise IntegrationNonconvergenceError(message, value, abs_error)
        logger.debug("Integration over [%s, %s] did not converge: %s", lower, upper, message)
        return IntegrationResult(value, abs_error, message, converged=False)
    return IntegrationResult(value, abs_error)
