"""Rank concordance between confidence ratings and other trial variables."""

import numpy as np
import pandas as pd
from scipy.stats import somersd


def somers_dxy(rating: np.ndarray, other: np.ndarray) -> float:
    """Somers' Dxy between ratings and another variable.

    Counts concordant minus discordant pairs among all pairs that differ in
    ``other``; ties in ``rating`` count as neither. The value is ``NaN`` when
    ``other`` is constant or fewer than two trials are given.
    """
    rating = np.asarray(rating, dtype=float)
    other = np.asarray(other, dtype=float)
    if rating.size < 2 or np.unique(other).size < 2:
        return float("nan")
    return float(somersd(other, rating).statistic)


def grouped_dxy(
    frame: pd.DataFrame, variable: str, by: list[str] | str
) -> pd.DataFrame:
    """Somers' Dxy of ``rating`` and ``variable`` within groups of ``by``.

    Returns a DataFrame with the ``by`` columns and a ``Gamma`` column.
    """
    by = [by] if isinstance(by, str) else list(by)
    rows = []
    for key, group in frame.groupby(by, sort=True):
        key = key if isinstance(key, tuple) else (key,)
        row = dict(zip(by, key))
        row["Gamma"] = somers_dxy(group["rating"], group[variable])
        rows.append(row)
    return pd.DataFrame(rows, columns=by + ["Gamma"])


def rating_correlations(simus: pd.DataFrame) -> dict[str, pd.DataFrame]:
    """Rank correlations of rating with condition, rt and accuracy.

    Non-responses (``response == 0``) are excluded. The keys of the returned
    dict are ``condition`` (by correct), ``rt`` (by correct), ``correct``
    (by condition), ``rt_bycondition`` and ``rt_byconditionbycorrect``.
    """
    trials = simus[simus["response"] != 0]
    return {
        "condition": grouped_dxy(trials, "condition", "correct"),
        "rt": grouped_dxy(trials, "rt", "correct"),
        "correct": grouped_dxy(trials, "correct", "condition"),
        "rt_bycondition": grouped_dxy(trials, "rt", "condition"),
        "rt_byconditionbycorrect": grouped_dxy(trials, "rt", ["condition", "correct"]),
    }
