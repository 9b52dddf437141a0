"""
Smoke Tests -- Continuous-Path Figures
=======================================

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from wiener_paths.config import ChainingConfig, Config
from wiener_paths.models.brownian import BrownianAssembler
from wiener_paths.visualization.path_plots import (
    plot_chaining_levels,
    plot_dyadic_refinement,
    plot_sample_paths,
)


@pytest.fixture(scope="module")
def bm():
    return BrownianAssembler(Config(chaining=ChainingConfig(levels=5))).assemble(horizon=2.0)


class TestFigures:
    """Figures are written under outputs/figures/."""

    def test_sample_paths(self, bm, tmp_path):
        path = plot_sample_paths(bm, str(tmp_path), n_paths=2, levels=4)
        assert os.path.exists(path)
        assert path.endswith("01_sample_paths.png")

    def test_dyadic_refinement(self, bm, tmp_path):
        path = plot_dyadic_refinement(bm, str(tmp_path), level_list=(1, 3, 5))
        assert os.path.exists(path)

    def test_chaining_levels(self, bm, tmp_path):
        path = plot_chaining_levels(bm, str(tmp_path), n_paths=10, levels=6)
        assert os.path.exists(path)
