"""
Unit Tests -- Configuration, Logging and Numeric Helpers
=========================================================

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import logging
import math

import numpy as np
import pytest

from wiener_paths.config import Config
from wiener_paths.utils import (
    as_times,
    double_factorial,
    get_logger,
    log_double_factorial,
    timeit,
)


class TestConfig:
    """Environment-driven configuration."""

    def test_defaults(self):
        cfg = Config()
        assert cfg.chaining.max_levels >= cfg.chaining.levels
        assert cfg.numerics.psd_tolerance > 0

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("WIENER_LEVELS", "7")
        monkeypatch.setenv("WIENER_SEED", "123")
        monkeypatch.setenv("WIENER_BLOCK", "0.5")
        cfg = Config.from_env()
        assert cfg.chaining.levels == 7
        assert cfg.simulation.seed == 123
        assert cfg.chaining.block_length == 0.5


class TestLogging:
    """get_logger and timeit."""

    def test_no_duplicate_handlers(self):
        a = get_logger("wiener_paths.test_logger")
        b = get_logger("wiener_paths.test_logger")
        assert a is b
        assert len(a.handlers) == 1

    def test_file_handler(self, tmp_path):
        log = get_logger("wiener_paths.test_file_logger", log_dir=str(tmp_path))
        log.info("hello")
        assert any(isinstance(h, logging.FileHandler) for h in log.handlers)
        assert len(list(tmp_path.glob("wiener_paths_*.log"))) == 1

    def test_timeit_preserves_result(self):
        @timeit
        def square(x):
            return x * x
        assert square(4) == 16
        assert square.__name__ == "square"


class TestNumerics:
    """Double factorials and time coercion."""

    @pytest.mark.parametrize("n, expected", [(0, 1), (1, 1), (2, 3), (3, 15), (5, 945)])
    def test_double_factorial(self, n, expected):
        assert double_factorial(n) == expected
        assert math.exp(log_double_factorial(n)) == pytest.approx(expected)

    def test_negative_order(self):
        with pytest.raises(ValueError):
            double_factorial(-1)
        with pytest.raises(ValueError):
            log_double_factorial(-1)

    def test_large_order_finite(self):
        assert np.isfinite(log_double_factorial(500))

    def test_as_times(self):
        np.testing.assert_array_equal(as_times(2.0), [2.0])
        with pytest.raises(ValueError):
            as_times([[1.0, 2.0]])
