from .density import CellDensity, d_rtconf, resolve_parameters
from .wiener import drift_posterior, hitting_probability, wiener_density

__all__ = [
    "CellDensity",
    "d_rtconf",
    "resolve_parameters",
    "drift_posterior",
    "hitting_probability",
    "wiener_density",
]
