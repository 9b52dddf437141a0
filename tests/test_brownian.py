"""
Unit Tests -- Brownian Motion and Gaussian Process Assembly
=============================================================
Tests W(0) = 0, marginal variances, the even-moment law, the end-to-end
continuous-path scenario, horizon extension and independent increments.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import numpy as np
import pytest

from wiener_paths.config import ChainingConfig, Config
from wiener_paths.exceptions import MomentBoundUnavailable
from wiener_paths.models.brownian import (
    BrownianAssembler,
    BrownianMotion,
    GaussianProcessAssembler,
)
from wiener_paths.models.covariance import (
    BrownianBridgeKernel,
    CallableKernel,
    OrnsteinUhlenbeckKernel,
)
from wiener_paths.models.independence import (
    IncrementIndependenceChecker,
    increment_matrix,
    uncorrelated_gaussian_is_independent,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture(scope="module")
def bm():
    return BrownianAssembler(Config()).assemble(horizon=10.0)


@pytest.fixture(scope="module")
def ou():
    return GaussianProcessAssembler(OrnsteinUhlenbeckKernel()).assemble(horizon=10.0)


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------
class TestAssembly:
    """Wiring of the components into a process."""

    def test_type_and_horizon(self, bm):
        assert isinstance(bm, BrownianMotion)
        assert bm.horizon == 10.0
        assert bm.kernel.markov

    def test_continuity_guarantee(self, bm):
        g = bm.continuity_guarantee()
        assert g["continuous"]
        assert g["holder_ceiling"] < 0.5
        assert not g["ceiling_attained"]
        assert 0.0 < g["working_beta"] < g["holder_ceiling"]
        assert g["interval"] == (0.0, 10.0)

    def test_brownian_must_start_at_zero(self):
        with pytest.raises(ValueError):
            BrownianAssembler().assemble(horizon=2.0, lower=1.0)

    def test_kernel_without_bound_keeps_raw_law(self):
        proc = GaussianProcessAssembler(
            CallableKernel(lambda s, t: np.minimum(s, t))).assemble(horizon=1.0)
        np.testing.assert_allclose(proc.finite_law([0.5, 1.0]).cov, [[0.5, 0.5], [0.5, 1.0]])
        with pytest.raises(MomentBoundUnavailable):
            proc.paths(2, levels=2)

    def test_bridge_pinned(self):
        proc = GaussianProcessAssembler(BrownianBridgeKernel(1.0)).assemble(horizon=1.0)
        mod = proc.paths(5, levels=6)
        np.testing.assert_allclose(mod.values[:, -1], 0.0, atol=1e-12)
        np.testing.assert_allclose(mod.values[:, 0], 0.0, atol=1e-12)


# ---------------------------------------------------------------------------
# Marginal laws
# ---------------------------------------------------------------------------
class TestMarginals:
    """W(0) = 0 and W(t) ~ N(0, t)."""

    @pytest.mark.parametrize("omega", [0, 1, 2])
    def test_starts_at_zero(self, bm, omega):
        assert bm.sample(omega, 0.0) == 0.0

    @pytest.mark.parametrize("t", [0.5, 1.0, 3.0])
    def test_exact_variance(self, bm, t):
        assert bm.variance(t) == pytest.approx(t)
        assert bm.marginal(t).var() == pytest.approx(t)

    def test_empirical_variance(self, bm):
        mod = bm.paths(20_000, levels=2)
        Y = mod.values_at([0.5, 1.0, 3.0])
        np.testing.assert_allclose(Y.var(axis=0), [0.5, 1.0, 3.0], rtol=0.05)
        np.testing.assert_allclose(Y.mean(axis=0), 0.0, atol=0.06)

    def test_marginal_rejects_negative_time(self, bm):
        with pytest.raises(ValueError):
            bm.marginal(-1.0)

    def test_increment_law(self, bm):
        assert bm.increment_law(2.0, 5.0).var() == pytest.approx(3.0)


# ---------------------------------------------------------------------------
# Moment law
# ---------------------------------------------------------------------------
class TestMomentLaw:
    """E|W_s - W_t|^{2n} = (2n-1)!! |s - t|^n."""

    @pytest.mark.parametrize("n, expected", [(1, 2.0), (2, 12.0), (3, 120.0)])
    def test_exact_moments(self, bm, n, expected):
        assert bm.even_moment(1.0, 3.0, n) == pytest.approx(expected)

    @pytest.mark.parametrize("n, rtol", [(1, 0.05), (2, 0.12), (3, 0.30)])
    def test_monte_carlo_moments(self, bm, n, rtol):
        mod = bm.paths(20_000, levels=1)
        Y = mod.values_at([1.0, 2.0])
        dW = Y[:, 1] - Y[:, 0]
        assert np.mean(dW ** (2 * n)) == pytest.approx(bm.even_moment(1.0, 2.0, n), rel=rtol)


# ---------------------------------------------------------------------------
# End-to-end scenario
# ---------------------------------------------------------------------------
class TestEndToEnd:
    """min(s, t) on [0, 10]: continuous paths at resolution 2^-12."""

    def test_three_paths(self, bm):
        mod = bm.paths(3, levels=12)
        dt = mod.spacing
        assert dt == pytest.approx(2.0**-12)
        assert len(mod.times) == 10 * 2**12 + 1

        # Y(0) = 0 on every path
        np.testing.assert_array_equal(mod.values_at(0.0)[:, 0], 0.0)

        # No increment exceeds C dt^0.49
        max_inc = np.max(np.abs(np.diff(mod.values, axis=1)), axis=1)
        assert np.all(max_inc <= 10.0 * dt**0.49)

    def test_covariance_of_two_times(self, bm):
        mod = bm.paths(10_000, levels=2)
        Y = mod.values_at([2.0, 5.0])
        emp = np.mean(Y[:, 0] * Y[:, 1])
        assert abs(emp - 2.0) < 0.2

        report = bm.engine.verify_agreement(bm.law, mod, [2.0, 5.0])
        assert report.passed

    def test_path_cache(self, bm):
        assert bm.path(1, levels=4) is bm.path(1, levels=4)

    def test_path_cache_bounded(self):
        cfg = Config(chaining=ChainingConfig(levels=3, path_cache_size=2))
        proc = BrownianAssembler(cfg).assemble(horizon=1.0)
        for omega in range(5):
            proc.path(omega)
        info = proc.path_cache_info()
        assert info.maxsize == 2
        assert info.currsize == 2
        assert proc.path(4) is proc.path(4)
        assert proc.path_cache_info().hits > info.hits


# ---------------------------------------------------------------------------
# Horizon extension
# ---------------------------------------------------------------------------
class TestExtension:
    """Growing the horizon keeps earlier values for Markov kernels."""

    def test_extend_preserves_values(self):
        cfg = Config(chaining=ChainingConfig(levels=6))
        proc = BrownianAssembler(cfg).assemble(horizon=2.0)
        before = proc.path(0)(np.array([0.3, 1.1, 1.9]))
        value = proc.sample(0, 3.0)
        assert proc.horizon == 4.0
        after = proc.path(0)(np.array([0.3, 1.1, 1.9]))
        np.testing.assert_allclose(after, before, rtol=0, atol=1e-12)
        assert np.isfinite(value)

    def test_extend_from_partial_block(self):
        cfg = Config(chaining=ChainingConfig(levels=6))
        proc = BrownianAssembler(cfg).assemble(horizon=2.5)
        assert proc.horizon == 2.5
        assert proc.continuity_guarantee()["interval"] == (0.0, 3.0)
        before = proc.path(0)(np.array([0.3, 1.1, 1.9, 2.4]))
        proc.sample(0, 3.0)
        assert proc.horizon == 5.0
        after = proc.path(0)(np.array([0.3, 1.1, 1.9, 2.4]))
        np.testing.assert_allclose(after, before, rtol=0, atol=1e-12)

    def test_extend_from_short_horizon(self):
        cfg = Config(chaining=ChainingConfig(levels=6))
        proc = BrownianAssembler(cfg).assemble(horizon=0.5)
        first = proc.sample(0, 0.25)
        proc.sample(0, 0.9)
        assert proc.horizon == 1.0
        assert proc.sample(0, 0.25) == pytest.approx(first, abs=1e-12)

    def test_extend_noop_inside_horizon(self):
        proc = BrownianAssembler(Config(chaining=ChainingConfig(levels=4))).assemble(horizon=2.0)
        proc.extend(1.5)
        assert proc.horizon == 2.0

    def test_negative_time_rejected(self, bm):
        with pytest.raises(ValueError):
            bm.sample(0, -0.1)


# ---------------------------------------------------------------------------
# Independent increments
# ---------------------------------------------------------------------------
class TestIncrements:
    """Disjoint increments are uncorrelated, hence independent."""

    def test_lemma_diagonal(self):
        assert uncorrelated_gaussian_is_independent(np.diag([1.0, 2.0, 3.0]))

    def test_lemma_correlated(self):
        S = np.array([[1.0, 0.3], [0.3, 1.0]])
        assert not uncorrelated_gaussian_is_independent(S)

    def test_lemma_trivial_and_invalid(self):
        assert uncorrelated_gaussian_is_independent(np.array([[2.0]]))
        with pytest.raises(ValueError):
            uncorrelated_gaussian_is_independent(np.ones((2, 3)))

    def test_increment_matrix(self):
        A = increment_matrix(3)
        np.testing.assert_array_equal(A @ np.array([1.0, 4.0, 9.0]), [3.0, 5.0])
        with pytest.raises(ValueError):
            increment_matrix(1)

    def test_brownian_increments_independent(self, bm):
        checker = IncrementIndependenceChecker()
        times = [0.0, 0.7, 1.5, 4.0, 9.2]
        S = checker.increment_covariance(bm, times)
        np.testing.assert_allclose(np.diag(S), np.diff(times))
        assert checker.has_independent_increments(bm, times)
        assert bm.has_independent_increments()
        assert checker.max_increment_correlation(bm) < 1e-12

    def test_ou_increments_dependent(self, ou):
        checker = IncrementIndependenceChecker()
        assert not checker.has_independent_increments(ou, [0.0, 0.2, 0.4, 0.6])
        assert checker.max_increment_correlation(ou, [0.0, 0.2, 0.4, 0.6]) > 0.05

    def test_decreasing_times_rejected(self, bm):
        with pytest.raises(ValueError):
            IncrementIndependenceChecker().increment_covariance(bm, [1.0, 0.5])

    def test_empirical_increment_correlation(self, bm):
        mod = bm.paths(5000, levels=2)
        Y = mod.values_at([0.0, 1.0, 2.5, 4.0, 6.0, 9.0])
        R = np.corrcoef(np.diff(Y, axis=1).T)
        off = R[~np.eye(len(R), dtype=bool)]
        assert np.max(np.abs(off)) < 0.07
