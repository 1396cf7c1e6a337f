"""
Tests for Somers' Dxy between ratings and trial variables.
"""

import numpy as np
import pandas as pd
import pytest

from dynconf.support_utils import somers_dxy
from dynconf.support_utils.rank_correlation import grouped_dxy, rating_correlations


class TestSomersDxy:
    """Tests for somers_dxy."""

    def test_perfect_concordance(self):
        assert somers_dxy([1, 2, 3, 4], [0.1, 0.2, 0.3, 0.4]) == pytest.approx(1.0)

    def test_perfect_discordance(self):
        assert somers_dxy([4, 3, 2, 1], [0.1, 0.2, 0.3, 0.4]) == pytest.approx(-1.0)

    def test_rating_ties_count_as_neither(self):
        # pairs differing in the second variable: 6, concordant: 4, discordant: 0
        value = somers_dxy([1, 1, 2, 2], [1, 2, 3, 4])
        assert value == pytest.approx(4 / 6)

    def test_constant_variable(self):
        assert np.isnan(somers_dxy([1, 2, 3], [1, 1, 1]))

    def test_too_few_trials(self):
        assert np.isnan(somers_dxy([1], [2]))


class TestRatingCorrelations:
    """Tests for the grouped correlation tables."""

    @pytest.fixture
    def simus(self):
        return pd.DataFrame(
            {
                "condition": [1, 1, 1, 1, 2, 2, 2, 2, 2],
                "correct": [1, 1, 0, 0, 1, 1, 0, 0, 0],
                "response": [1, 1, -1, -1, 1, 1, -1, -1, 0],
                "rt": [0.5, 1.0, 0.6, 1.2, 0.4, 0.9, 0.7, 1.5, 0.1],
                "rating": [3, 1, 2, 1, 4, 2, 3, 1, 0],
            }
        )

    def test_keys(self, simus):
        out = rating_correlations(simus)
        assert set(out) == {
            "condition",
            "rt",
            "correct",
            "rt_bycondition",
            "rt_byconditionbycorrect",
        }
        assert list(out["rt_byconditionbycorrect"].columns) == [
            "condition",
            "correct",
            "Gamma",
        ]

    def test_rt_correlation_negative(self, simus):
        out = rating_correlations(simus)
        assert np.all(out["rt"]["Gamma"] < 0)

    def test_non_responses_excluded(self, simus):
        out = rating_correlations(simus)
        by_condition = out["rt_bycondition"].set_index("condition")["Gamma"]
        # without the non-response condition 2 is perfectly discordant
        assert by_condition.loc[2] == pytest.approx(-1.0)

    def test_grouped_single_column(self, simus):
        table = grouped_dxy(simus[simus["response"] != 0], "condition", "correct")
        assert list(table["correct"]) == [0, 1]
