from .diffusion_paths import diffusion_paths
from .race_paths import race_paths
from .simulator import Simulator, aggregate_simulations, simulate_rtconf

__all__ = [
    "diffusion_paths",
    "race_paths",
    "Simulator",
    "aggregate_simulations",
    "simulate_rtconf",
]
