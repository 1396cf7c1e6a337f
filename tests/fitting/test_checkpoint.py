"""
Tests for checkpoint collaborators.
"""

import logging

import numpy as np
import pytest

from dynconf.fitting import Checkpointer, NullCheckpointer, PickleCheckpointer


def test_interface_not_implemented():
    with pytest.raises(NotImplementedError):
        Checkpointer().save("grid_search", {})


def test_null_checkpointer_discards():
    assert NullCheckpointer().save("grid_search", {"x": 1}) is None


def test_pickle_round_trip(tmp_path, caplog):
    checkpoint = PickleCheckpointer("IRMt", participant="A", folder=tmp_path / "autosave")
    with caplog.at_level(logging.INFO, logger="dynconf.fitting.checkpoint"):
        checkpoint.save("grid_search", {"grid_nll": np.array([1.0, 2.0])})
    assert "Writing to file" in caplog.text
    state = checkpoint.load()
    assert state["stage"] == "grid_search"
    np.testing.assert_array_equal(state["grid_nll"], [1.0, 2.0])

    # later stages overwrite the file
    checkpoint.save("local_optimization", {"restart": 1})
    assert checkpoint.load() == {"stage": "local_optimization", "restart": 1}
    assert "part_A.pickle" in repr(checkpoint)
