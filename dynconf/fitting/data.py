"""Preparation of observed trials for fitting."""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from dynconf.support_utils.thresholds import contiguous_ratings

logger = logging.getLogger(__name__)

PARTICIPANT_COLUMNS = ("participant", "sbj", "subject")


@dataclass
class FitData:
    """Aggregated observations in the internal coding of the fit engine.

    Attributes
    ----------
    table : pd.DataFrame
        Columns ``condition`` (1..n_conditions), ``stimulus`` and ``response``
        (+1/-1), ``rating`` (contiguous 1..n_internal), optionally ``rt``, and
        the count ``n``.
    n_conditions : int
        Number of conditions.
    condition_levels : tuple
        Original condition labels in the order of the internal index.
    rating_levels : tuple[int, ...]
        Observed external rating categories.
    n_ratings : int
        Size of the external rating scale.
    has_rt : bool
        Whether response times are available.
    n_trials : int
        Total number of trials.
    """

    table: pd.DataFrame
    n_conditions: int
    condition_levels: tuple
    rating_levels: tuple[int, ...]
    n_ratings: int
    has_rt: bool
    n_trials: int

    @property
    def n_internal_ratings(self) -> int:
        return len(self.rating_levels)

    @property
    def min_rt(self) -> float:
        if not self.has_rt:
            return np.inf
        return float(self.table["rt"].min())


def _derive_stimulus_response(frame: pd.DataFrame) -> pd.DataFrame:
    has = {c: c in frame for c in ("stimulus", "response", "correct")}
    if has["stimulus"] and has["response"]:
        return frame
    if not has["correct"] or not (has["stimulus"] or has["response"]):
        raise ValueError(
            "Column names in data must contain 2 of following 3: "
            "stimulus, response, correct"
        )
    correct = frame["correct"].astype(int)
    if has["stimulus"]:
        frame["response"] = np.where(correct == 1, frame["stimulus"], -frame["stimulus"])
    else:
        frame["stimulus"] = np.where(correct == 1, frame["response"], -frame["response"])
    return frame


def prepare_data(data: pd.DataFrame, n_ratings: int | None = None) -> FitData:
    """Validate and aggregate observed trials.

    Arguments
    ---------
        data (pd.DataFrame): Raw trials with columns ``condition`` (optional),
            ``rating``, ``rt`` (optional), and two of ``stimulus``,
            ``response``, ``correct``; or aggregated observations with an
            additional count column ``n``. Stimulus and response are coded as
            +1/-1. Rows with ``response == 0`` (non-responses) are dropped.
        n_ratings (int, optional): Number of categories of the rating scale.
            Defaults to the largest observed rating.

    Returns
    -------
        FitData
    """
    frame = pd.DataFrame(data).copy()
    if "rating" not in frame:
        raise ValueError("data must contain a 'rating' column")
    frame = _derive_stimulus_response(frame)
    if "condition" not in frame:
        frame["condition"] = 1
    if "n" not in frame:
        frame["n"] = 1

    dropped = int((frame["response"] == 0).sum())
    if dropped:
        logger.info("Dropping %d non-responses (response == 0)", dropped)
        frame = frame[frame["response"] != 0]
    for column in ("stimulus", "response"):
        if not frame[column].isin([-1, 1]).all():
            raise ValueError(
                f"{column} must be coded as -1 and 1, got values "
                f"{sorted(frame[column].unique().tolist())}"
            )
    has_rt = "rt" in frame
    if has_rt and frame["rt"].isna().any():
        raise ValueError("rt contains missing values")

    internal, levels, n_ratings = contiguous_ratings(frame["rating"].to_numpy(), n_ratings)
    if len(levels) < n_ratings:
        logger.info(
            "Rating categories %s of %d were observed; unobserved categories are "
            "filled in after fitting",
            list(levels),
            n_ratings,
        )
    frame["rating"] = internal

    condition_levels = tuple(sorted(frame["condition"].unique()))
    frame["condition"] = frame["condition"].map(
        {level: i + 1 for i, level in enumerate(condition_levels)}
    )

    keys = ["condition", "stimulus", "response", "rating"] + (["rt"] if has_rt else [])
    table = (
        frame.groupby(keys, as_index=False)["n"]
        .sum()
        .astype({"condition": int, "stimulus": int, "response": int, "rating": int})
    )
    table = table[table["n"] > 0].reset_index(drop=True)
    return FitData(
        table=table,
        n_conditions=len(condition_levels),
        condition_levels=condition_levels,
        rating_levels=levels,
        n_ratings=n_ratings,
        has_rt=has_rt,
        n_trials=int(table["n"].sum()),
    )


def participant_column(data: pd.DataFrame) -> str | None:
    """Name of the column identifying participants, if any."""
    for column in PARTICIPANT_COLUMNS:
        if column in data:
            return column
    return None
