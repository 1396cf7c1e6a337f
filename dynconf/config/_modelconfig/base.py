"""Base types shared by all model configurations."""

from dataclasses import dataclass, field
from enum import Enum


class Family(str, Enum):
    """Process family of a model."""

    DIFFUSION = "diffusion"
    RACE = "race"


# Kinds of confidence measures
CONFIDENCE_KINDS = ("evidence", "weighted", "decision_time", "balance")

# Parameters shared by all diffusion-type models
DIFFUSION_DEFAULTS = {"z": 0.5, "sz": 0.0, "sv": 0.0, "st0": 0.0, "s": 1.0}

# Parameters shared by all race-type models
RACE_DEFAULTS = {"st0": 0.0, "s": 1.0}

# Fit bounds in the flat-record names (internal rating scale)
param_bounds = {
    "a": (0.05, 15.0),
    "b": (0.05, 15.0),
    "z": (0.05, 0.95),
    "sz": (0.0, 0.9),
    "v": (0.0, 20.0),
    "sv": (0.0, 10.0),
    "t0": (0.0, 2.0),
    "st0": (0.0, 2.0),
    "tau": (0.0, 20.0),
    "w": (0.0, 1.0),
    "svis": (0.0, 10.0),
    "sigvis": (0.0, 10.0),
    "muvis": (0.0, 20.0),
    "lambda": (0.0, 3.0),
    "wrt": (0.0, 10.0),
    "wint": (0.0, 10.0),
}

# Ranges for the default initial grid; ``vmin/vmax`` and ``thetamin/thetamax``
# are spanned equidistantly over conditions and rating categories.
grid_ranges = {
    "a": (0.5, 4.0),
    "b": (0.5, 4.0),
    "z": (0.4, 0.6),
    "sz": (0.0, 0.3),
    "vmin": (0.01, 0.5),
    "vmax": (0.5, 3.0),
    "sv": (0.0, 1.5),
    "t0": (0.0, 0.5),
    "st0": (0.0, 0.4),
    "tau": (0.2, 3.0),
    "w": (0.2, 0.8),
    "svis": (0.1, 2.0),
    "sigvis": (0.0, 1.0),
    "lambda": (0.0, 1.5),
    "wrt": (0.0, 2.0),
    "wint": (0.0, 2.0),
    "thetamin": (-1.0, 1.0),
    "thetamax": (1.0, 4.0),
}


@dataclass(frozen=True)
class ModelSpec:
    """Description of one registered model variant.

    Attributes
    ----------
    name : str
        Canonical model name (e.g. ``"dynaViTE"``).
    family : Family
        Diffusion or race process.
    confidence : str
        Kind of confidence measure, one of ``CONFIDENCE_KINDS``.
    time_scaled : bool
        Whether confidence is rescaled by (decision) time.
    correlation : float
        Correlation of the two race accumulators (0 for diffusion models).
    required_params : tuple[str, ...]
        Flat-record names (without condition index) that must be given.
    defaults : dict
        Optional parameters with their default values.
    optional_params : tuple[str, ...]
        Optional parameters without a default value.
    fit_params : tuple[str, ...]
        Parameters that are estimated by the fit engine unless fixed.
    bounds : dict
        Fit bounds per parameter.
    grid : dict
        Sampling ranges of the default initial grid.
    description : str
        Human readable description.
    """

    name: str
    family: Family
    confidence: str
    required_params: tuple[str, ...]
    fit_params: tuple[str, ...]
    time_scaled: bool = False
    correlation: float = 0.0
    defaults: dict = field(default_factory=dict)
    optional_params: tuple[str, ...] = ()
    bounds: dict = field(default_factory=dict)
    grid: dict = field(default_factory=dict)
    description: str = ""

    def __post_init__(self):
        if self.confidence not in CONFIDENCE_KINDS:
            raise ValueError(
                f"Unknown confidence kind '{self.confidence}'. "
                f"Available kinds: {list(CONFIDENCE_KINDS)}"
            )

    @property
    def is_race(self) -> bool:
        return self.family is Family.RACE

    @property
    def params(self) -> tuple[str, ...]:
        """All parameter names the model uses (thresholds excluded)."""
        names = list(self.required_params)
        names += [p for p in self.defaults if p not in names]
        names += [p for p in self.optional_params if p not in names]
        return tuple(names)
