"""
Unit Tests -- Wiener Measure
=============================
Tests the pushforward measure on C([0, T], R): exact cylinder events,
Monte Carlo path functionals against the reflection principle, and the
measurability precondition.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import numpy as np
import pytest
from scipy.stats import norm

from wiener_paths.config import ChainingConfig, Config
from wiener_paths.exceptions import MomentBoundUnavailable
from wiener_paths.models.brownian import BrownianAssembler
from wiener_paths.models.certificates import brownian_certificates
from wiener_paths.models.chaining import ChentsovChainingEngine
from wiener_paths.models.covering import CoveringEngine
from wiener_paths.models.wiener_measure import (
    PathSpace,
    WienerMeasure,
    WienerMeasureConstructor,
    reflection_probability,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture(scope="module")
def bm():
    return BrownianAssembler(Config(chaining=ChainingConfig(levels=8))).assemble(horizon=1.0)


@pytest.fixture(scope="module")
def wm(bm):
    return bm.wiener_measure()


# ---------------------------------------------------------------------------
# Reflection principle
# ---------------------------------------------------------------------------
class TestReflection:
    """P(max_{[0,T]} W >= a) = 2 (1 - Phi(a / sqrt T))."""

    def test_closed_form(self):
        assert reflection_probability(0.0, 1.0) == pytest.approx(1.0)
        assert reflection_probability(1.0, 1.0) == pytest.approx(2 * norm.sf(1.0))
        assert reflection_probability(2.0, 4.0) == pytest.approx(2 * norm.sf(1.0))

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            reflection_probability(-1.0, 1.0)
        with pytest.raises(ValueError):
            reflection_probability(1.0, 0.0)

    def test_monte_carlo_running_maximum(self, wm):
        exact = reflection_probability(1.0, 1.0)
        p, se = wm.probability(lambda t, v: v.max(axis=1) >= 1.0, n_paths=4000)
        # The grid maximum underestimates the continuous maximum.
        assert p <= exact + 4 * se
        assert p >= exact - 0.05


# ---------------------------------------------------------------------------
# Wiener measure
# ---------------------------------------------------------------------------
class TestWienerMeasure:
    """Cylinder events are exact; functionals are Monte Carlo."""

    def test_type_and_space(self, wm):
        assert isinstance(wm, WienerMeasure)
        assert (wm.path_space.lower, wm.path_space.upper) == (0.0, 1.0)
        assert wm.path_space.evaluation_generates_borel

    def test_finite_dimensional_law(self, wm):
        np.testing.assert_allclose(wm.finite_dimensional_law([0.25, 1.0]).cov,
                                   [[0.25, 0.25], [0.25, 1.0]])

    def test_cylinder_probability(self, wm):
        p = wm.cylinder_probability([1.0], [-np.inf], [0.0])
        assert p == pytest.approx(0.5, abs=1e-12)

    def test_second_moment(self, wm):
        mean, se = wm.expectation(lambda t, v: v[:, -1] ** 2, n_paths=4000)
        assert abs(mean - 1.0) < 4 * se + 1e-9

    def test_cylinder_matches_monte_carlo(self, wm):
        exact = wm.cylinder_probability([0.5, 1.0], [0.0, 0.0], [np.inf, np.inf])
        p, se = wm.probability(
            lambda t, v: (v[:, np.searchsorted(t, 0.5)] >= 0) & (v[:, -1] >= 0),
            n_paths=4000)
        assert abs(p - exact) < 4 * se + 1e-3

    def test_sample_paths_offset(self, wm):
        mod = wm.sample_paths(3, levels=4, start=10)
        np.testing.assert_array_equal(mod.omegas, [10, 11, 12])
        with pytest.raises(ValueError):
            wm.sample_paths(0)

    def test_functional_shape_checked(self, wm):
        with pytest.raises(ValueError):
            wm.expectation(lambda t, v: v, n_paths=5, levels=3)


# ---------------------------------------------------------------------------
# Constructor
# ---------------------------------------------------------------------------
class TestConstructor:
    """Pushforward preconditions."""

    def test_non_borel_space_rejected(self, bm):
        space = PathSpace(0.0, 1.0, evaluation_generates_borel=False)
        with pytest.raises(ValueError):
            WienerMeasureConstructor(space).build(bm.law, bm.engine)

    def test_uncertified_engine_rejected(self, bm):
        engine = ChentsovChainingEngine(CoveringEngine(0.0, 1.0), brownian_certificates(1))
        with pytest.raises(MomentBoundUnavailable):
            WienerMeasureConstructor().build(bm.law, engine)

    def test_default_space_follows_engine(self, bm):
        measure = WienerMeasureConstructor().build(bm.law, bm.engine, levels=5)
        assert measure.levels == 5
        assert measure.path_space.topology == "uniform convergence on compacts"
