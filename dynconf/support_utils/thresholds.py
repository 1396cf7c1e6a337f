"""Mapping of continuous confidence values onto discrete rating categories.

Ratings are the left-closed bins ``[theta_{r-1}, theta_r)`` of a threshold
ladder with implicit endpoints ``-inf`` and ``+inf``. The confidence measure
is always response-aligned (larger values mean more confidence in the given
response), so a symmetric ladder is applied unchanged to both responses.

Functions
---------
map_confidence(conf, response, ladder) -> np.ndarray
    Ratings in ``1..n_ratings`` (0 for non-responses or missing confidence).
rating_bounds(ladder, response, rating) -> tuple[float, float]
    Confidence interval of one rating category.
contiguous_ratings(ratings, n_ratings=None) -> tuple[np.ndarray, tuple, int]
    Re-index observed ratings without gaps.
expand_thresholds(cuts, levels, n_ratings) -> tuple[float, ...]
    Map thresholds of the contiguous rating scale back to the external one.
confidence_ladder(ladder, model, a=None) -> ThresholdLadder
    Thresholds in the confidence space of a model.
confidence_cuts(cuts, model, response, symmetric, a=None) -> tuple
    Translate one side of a ladder between the record and confidence space.
"""

import numpy as np

from dynconf.parameters.parameter_set import ThresholdLadder


def map_confidence(
    conf: float | np.ndarray,
    response: int | np.ndarray,
    ladder: ThresholdLadder,
) -> np.ndarray:
    """Bin confidence values into ratings.

    Arguments
    ---------
        conf (float or np.ndarray): Continuous confidence values.
        response (int or np.ndarray): Response signs (+1 / -1), broadcast
            against ``conf``. Entries equal to 0 are non-responses.
        ladder (ThresholdLadder): Confidence thresholds.

    Returns
    -------
        np.ndarray: Integer ratings in ``1..ladder.n_ratings``; 0 where the
        response is 0 or the confidence value is NaN.
    """
    conf = np.atleast_1d(np.asarray(conf, dtype=float))
    response = np.broadcast_to(np.asarray(response), conf.shape)
    ratings = np.zeros(conf.shape, dtype=np.int64)
    valid = ~np.isnan(conf)
    for sign in (1, -1):
        mask = valid & (response == sign)
        if np.any(mask):
            cuts = np.asarray(ladder.side(sign), dtype=float)
            ratings[mask] = np.searchsorted(cuts, conf[mask], side="right") + 1
    return ratings


def rating_bounds(
    ladder: ThresholdLadder, response: int, rating: int
) -> tuple[float, float]:
    """Return the confidence interval ``[lower, upper)`` of a rating."""
    if not 1 <= rating <= ladder.n_ratings:
        raise ValueError(
            f"rating must be in 1..{ladder.n_ratings}, got {rating}"
        )
    cuts = (-np.inf, *ladder.side(response), np.inf)
    return float(cuts[rating - 1]), float(cuts[rating])


def contiguous_ratings(
    ratings: np.ndarray, n_ratings: int | None = None
) -> tuple[np.ndarray, tuple[int, ...], int]:
    """Re-index ratings so that the observed categories are 1..k without gaps.

    Arguments
    ---------
        ratings (np.ndarray): Observed integer ratings. A zero-based scale
            (any rating equal to 0) is shifted by one.
        n_ratings (int, optional): Number of categories of the external scale.
            Defaults to the maximal (shifted) observed rating.

    Returns
    -------
        tuple: ``(internal, levels, n_ratings)`` where ``internal`` holds ratings
        in ``1..len(levels)``, ``levels`` the sorted external categories that
        were observed, and ``n_ratings`` the size of the external scale.
    """
    ratings = np.asarray(ratings)
    if ratings.size == 0:
        raise ValueError("No ratings given")
    if not np.issubdtype(ratings.dtype, np.integer):
        if not np.all(np.equal(np.mod(ratings, 1), 0)):
            raise ValueError("Ratings must be integer valued")
        ratings = ratings.astype(np.int64)
    if np.any(ratings == 0):
        ratings = ratings + 1
    if n_ratings is None:
        n_ratings = int(ratings.max())
    if ratings.min() < 1 or ratings.max() > n_ratings:
        raise ValueError(
            f"Ratings must lie in 1..{n_ratings}, got range "
            f"{ratings.min()}..{ratings.max()}"
        )
    levels = tuple(int(x) for x in np.unique(ratings))
    if len(levels) < 2:
        raise ValueError("There have to be at least two rating levels")
    internal = np.searchsorted(np.asarray(levels), ratings) + 1
    return internal, levels, int(n_ratings)


def expand_thresholds(
    cuts: tuple[float, ...] | list[float],
    levels: tuple[int, ...],
    n_ratings: int,
) -> tuple[float, ...]:
    """Translate thresholds of the contiguous scale to the external scale.

    Categories that were never observed get empty bins: below the lowest
    observed category the thresholds are ``-inf``, above the highest ``+inf``,
    and gaps between observed categories repeat the neighbouring threshold.
    """
    cuts = tuple(cuts)
    if len(cuts) != len(levels) - 1:
        raise ValueError(
            f"Expected {len(levels) - 1} thresholds for {len(levels)} levels, "
            f"got {len(cuts)}"
        )
    levels_arr = np.asarray(levels)
    out = []
    for boundary in range(1, n_ratings):
        below = int(np.sum(levels_arr <= boundary))
        if below == 0:
            out.append(-np.inf)
        elif below == len(levels):
            out.append(np.inf)
        else:
            out.append(float(cuts[below - 1]))
    return tuple(out)


def confidence_cuts(
    cuts: tuple[float, ...] | list[float],
    model,
    response: int,
    symmetric: bool,
    a: float | None = None,
) -> tuple[float, ...]:
    """Translate one side of a threshold ladder into confidence space.

    The translation is its own inverse, so the same call maps confidence-space
    cuts back to the record convention.

    * Decision-time confidence (``DDConf``): thresholds are decreasing
      decision-time cut points (``theta1`` is the longest decision time) and
      confidence is the negated decision time, so the cuts are negated.
    * Evidence confidence (``2DSD``, ``2DSDT``): confidence is the
      response-aligned state ``a - X`` for lower responses. Asymmetric
      ``thetaLower`` values are increasing cut points on the raw state ``X``
      and become ``a - theta`` in reversed order. Symmetric ladders and the
      upper side are used unchanged.
    * All other models use the cuts unchanged.
    """
    from dynconf.config import get_model

    spec = get_model(model)
    cuts = tuple(float(x) for x in cuts)
    if spec.confidence == "decision_time":
        return tuple(-x for x in cuts)
    if spec.confidence == "evidence" and response < 0 and not symmetric:
        if a is None:
            raise ValueError(
                "the boundary separation 'a' is needed to translate "
                "'thetaLower' thresholds"
            )
        return tuple(a - x for x in reversed(cuts))
    return cuts


def confidence_ladder(ladder: ThresholdLadder, model, a: float | None = None) -> ThresholdLadder:
    """Return the ladder in the model's (response-aligned) confidence space.

    See :func:`confidence_cuts` for the per-model translation. ``a`` is only
    needed for asymmetric ladders of evidence models.
    """
    from dynconf.config import get_model

    spec = get_model(model)
    if spec.confidence not in ("decision_time", "evidence"):
        return ladder
    if spec.confidence == "evidence" and ladder.symmetric:
        return ladder
    return ThresholdLadder(
        upper=confidence_cuts(ladder.upper, spec, 1, ladder.symmetric, a),
        lower=confidence_cuts(ladder.lower, spec, -1, ladder.symmetric, a),
        symmetric=ladder.symmetric,
    )
