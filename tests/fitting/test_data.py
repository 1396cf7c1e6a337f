"""
Tests for the preparation of observed trials.
"""

import logging

import numpy as np
import pandas as pd
import pytest

from dynconf.fitting import prepare_data
from dynconf.fitting.data import participant_column


@pytest.fixture
def trials():
    return pd.DataFrame(
        {
            "condition": ["hard", "hard", "easy", "easy", "easy"],
            "stimulus": [1, -1, 1, 1, -1],
            "response": [1, 1, 1, 1, -1],
            "rating": [2, 1, 3, 3, 1],
            "rt": [0.8, 1.1, 0.5, 0.5, 0.7],
        }
    )


class TestPrepareData:
    """Tests for prepare_data."""

    def test_conditions_reindexed(self, trials):
        data = prepare_data(trials)
        assert data.condition_levels == ("easy", "hard")
        assert data.n_conditions == 2
        assert set(data.table["condition"]) == {1, 2}

    def test_identical_trials_aggregated(self, trials):
        data = prepare_data(trials)
        assert data.n_trials == 5
        assert len(data.table) == 4
        assert data.table["n"].max() == 2
        assert data.has_rt
        assert data.min_rt == 0.5

    def test_response_from_correct(self):
        raw = pd.DataFrame(
            {"stimulus": [1, -1, -1], "correct": [1, 1, 0], "rating": [1, 2, 2]}
        )
        data = prepare_data(raw)
        table = data.table.sort_values(["stimulus", "response"]).reset_index(drop=True)
        np.testing.assert_array_equal(table["response"], [-1, 1, 1])
        assert not data.has_rt
        assert data.min_rt == np.inf

    def test_two_of_three_columns_required(self):
        with pytest.raises(ValueError, match="2 of following 3"):
            prepare_data(pd.DataFrame({"response": [1, -1], "rating": [1, 2]}))

    def test_non_responses_dropped(self, trials, caplog):
        trials.loc[len(trials)] = ["easy", 1, 0, 0, 15.0]
        with caplog.at_level(logging.INFO, logger="dynconf.fitting.data"):
            data = prepare_data(trials)
        assert data.n_trials == 5
        assert "Dropping 1 non-responses" in caplog.text

    def test_invalid_coding(self, trials):
        trials["stimulus"] = [1, 2, 1, 1, 2]
        with pytest.raises(ValueError, match="stimulus must be coded"):
            prepare_data(trials)

    def test_missing_rt(self, trials):
        trials.loc[0, "rt"] = np.nan
        with pytest.raises(ValueError, match="missing values"):
            prepare_data(trials)

    def test_unobserved_categories(self, trials):
        data = prepare_data(trials, n_ratings=5)
        assert data.rating_levels == (1, 2, 3)
        assert data.n_ratings == 5
        assert data.n_internal_ratings == 3

    def test_counts_column(self):
        raw = pd.DataFrame(
            {
                "stimulus": [1, 1, -1, -1],
                "response": [1, -1, -1, 1],
                "rating": [2, 1, 2, 1],
                "n": [30, 10, 25, 0],
            }
        )
        data = prepare_data(raw)
        assert data.n_trials == 65
        # empty cells are removed
        assert len(data.table) == 3


class TestParticipantColumn:
    """Tests for participant_column."""

    @pytest.mark.parametrize("column", ["participant", "sbj", "subject"])
    def test_known_names(self, column):
        assert participant_column(pd.DataFrame({column: [1]})) == column

    def test_none(self):
        assert participant_column(pd.DataFrame({"rt": [1.0]})) is None
