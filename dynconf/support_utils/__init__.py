from .rank_correlation import somers_dxy
from .thresholds import (
    confidence_cuts,
    confidence_ladder,
    contiguous_ratings,
    expand_thresholds,
    map_confidence,
    rating_bounds,
)

__all__ = [
    "somers_dxy",
    "confidence_cuts",
    "confidence_ladder",
    "contiguous_ratings",
    "expand_thresholds",
    "map_confidence",
    "rating_bounds",
]
