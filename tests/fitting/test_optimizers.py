"""
Tests for the bounded local optimizers.
"""

import numpy as np
import pytest

from dynconf.fitting.optimizers import BoundTransform, run_optimizer


def _quadratic(x):
    return float(np.sum((np.asarray(x) - np.array([0.3, 2.0])) ** 2))


class TestRunOptimizer:
    """Tests for run_optimizer."""

    @pytest.mark.parametrize("method", ["bobyqa", "L-BFGS-B", "Nelder-Mead"])
    def test_interior_minimum(self, method):
        out = run_optimizer(_quadratic, [0.9, 4.0], [0.0, 0.0], [1.0, 10.0], method)
        np.testing.assert_allclose(out.x, [0.3, 2.0], atol=1e-2)
        assert out.fun == pytest.approx(0.0, abs=1e-3)
        assert out.nfev > 0

    @pytest.mark.parametrize("method", ["bobyqa", "L-BFGS-B"])
    def test_minimum_on_bound(self, method):
        out = run_optimizer(_quadratic, [0.05, 0.5], [0.1, 0.0], [1.0, 1.0], method)
        np.testing.assert_allclose(out.x, [0.3, 1.0], atol=1e-3)

    def test_result_inside_box(self):
        out = run_optimizer(_quadratic, [5.0, 5.0], [0.0, 0.0], [1.0, 1.0], "Nelder-Mead")
        assert np.all(out.x >= 0)
        assert np.all(out.x <= 1)

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="Unknown optim_method"):
            run_optimizer(_quadratic, [0.0, 0.0], [0.0, 0.0], [1.0, 1.0], "newuoa")


class TestBoundTransform:
    """Tests for BoundTransform."""

    def test_inverse(self):
        box = BoundTransform(
            np.array([0.0, 1.0, -np.inf, -np.inf]), np.array([2.0, np.inf, 3.0, np.inf])
        )
        x = np.array([0.5, 4.0, -2.0, 7.0])
        np.testing.assert_allclose(box.to_box(box.to_real(x)), x)

    def test_real_line_maps_into_box(self):
        box = BoundTransform(np.array([0.0, 1.0]), np.array([2.0, np.inf]))
        x = box.to_box(np.array([-50.0, -50.0]))
        assert 0 <= x[0] <= 2
        assert x[1] >= 1
