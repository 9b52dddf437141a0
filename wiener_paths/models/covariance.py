"""
Covariance Kernels and Gram-Matrix Bookkeeping
===============================================

A mean-zero Gaussian process on an index set T = [lower, upper] is fully
described by its covariance kernel k(s, t). This module provides:

    - CovarianceKernel: abstract kernel with vectorised evaluation, a Markov
      capability flag and an increment-variance bound
          Var(X_s - X_t) <= scale * |s - t|^(2 * hurst)
    - Concrete kernels: Brownian motion, Brownian bridge, stationary
      Ornstein-Uhlenbeck, fractional Brownian motion, arbitrary callables
    - CovarianceModel: validated, cached Gram matrices over finite subsets
    - psd_factor(): eigen-factor A with A @ A.T = cov, valid for singular
      PSD matrices (Cholesky is not: the Brownian Gram containing t = 0
      has a zero row)

References:
    Karatzas, I. & Shreve, S. (1991). Brownian Motion and Stochastic
    Calculus, Ch. 2. Springer.
    Mandelbrot, B. & Van Ness, J. (1968). Fractional Brownian Motions,
    Fractional Noises and Applications. SIAM Review 10(4), 422-437.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

import functools
from abc import ABC, abstractmethod
from typing import Callable, Optional, Tuple

import numpy as np

from wiener_paths.config import NumericsConfig
from wiener_paths.exceptions import InvalidKernel
from wiener_paths.utils import as_times, get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Kernels
# ---------------------------------------------------------------------------
class CovarianceKernel(ABC):
    """Abstract base class for symmetric positive semidefinite kernels."""

    #: Gauss-Markov processes may be conditioned on nearest neighbours only.
    markov: bool = False

    @abstractmethod
    def __call__(self, s, t) -> np.ndarray:
        """Evaluate k(s, t) with numpy broadcasting."""
        pass

    @abstractmethod
    def increment_bound(self) -> Optional[Tuple[float, float]]:
        """(scale, hurst) with Var(X_s - X_t) <= scale * |s-t|^(2*hurst)."""
        pass


class BrownianKernel(CovarianceKernel):
    """
    Standard Brownian motion.
    k(s, t) = min(s, t),  Var(W_s - W_t) = |s - t|
    """
    markov = True

    def __call__(self, s, t):
        return np.minimum(s, t)

    def increment_bound(self):
        return 1.0, 0.5

    def __repr__(self):
        return "BrownianKernel()"


class BrownianBridgeKernel(CovarianceKernel):
    """
    Brownian bridge pinned at 0 on [0, horizon].
    k(s, t) = min(s, t) - s*t/horizon
    """
    markov = True

    def __init__(self, horizon: float = 1.0):
        if horizon <= 0:
            raise ValueError(f"horizon must be positive, got {horizon}")
        self.horizon = horizon

    def __call__(self, s, t):
        s, t = np.asarray(s, dtype=float), np.asarray(t, dtype=float)
        return np.minimum(s, t) - s * t / self.horizon

    def increment_bound(self):
        # Var = h - h^2/horizon <= h
        return 1.0, 0.5

    def __repr__(self):
        return f"BrownianBridgeKernel(horizon={self.horizon})"


class OrnsteinUhlenbeckKernel(CovarianceKernel):
    """
    Stationary OU process dX = -kappa*X*dt + sigma*dW.
    k(s, t) = sigma^2 / (2*kappa) * exp(-kappa*|s - t|)
    """
    markov = True

    def __init__(self, kappa: float = 3.0, sigma: float = 0.02):
        if kappa <= 0 or sigma <= 0:
            raise ValueError(f"kappa and sigma must be positive, got {kappa}, {sigma}")
        self.kappa = kappa
        self.sigma = sigma

    def __call__(self, s, t):
        s, t = np.asarray(s, dtype=float), np.asarray(t, dtype=float)
        return (self.sigma**2 / (2 * self.kappa)) * np.exp(-self.kappa * np.abs(s - t))

    def increment_bound(self):
        # Var = sigma^2/kappa * (1 - e^{-kappa h}) <= sigma^2 * h
        return self.sigma**2, 0.5

    def __repr__(self):
        return f"OrnsteinUhlenbeckKernel(kappa={self.kappa}, sigma={self.sigma})"


class FractionalBrownianKernel(CovarianceKernel):
    """
    Fractional Brownian motion with Hurst index H in (0, 1).
    k(s, t) = (s^{2H} + t^{2H} - |s - t|^{2H}) / 2

    Markov only for H = 1/2, where it reduces to Brownian motion.
    """

    def __init__(self, hurst: float = 0.7):
        if not 0 < hurst < 1:
            raise ValueError(f"hurst must be in (0, 1), got {hurst}")
        self.hurst = hurst
        self.markov = hurst == 0.5

    def __call__(self, s, t):
        s, t = np.asarray(s, dtype=float), np.asarray(t, dtype=float)
        h2 = 2 * self.hurst
        return 0.5 * (s**h2 + t**h2 - np.abs(s - t)**h2)

    def increment_bound(self):
        return 1.0, self.hurst

    def __repr__(self):
        return f"FractionalBrownianKernel(hurst={self.hurst})"


class CallableKernel(CovarianceKernel):
    """Wrap an arbitrary vectorised callable k(s, t)."""

    def __init__(self, fn: Callable, markov: bool = False,
                 increment_bound: Optional[Tuple[float, float]] = None):
        self.fn = fn
        self.markov = markov
        self._increment_bound = increment_bound

    def __call__(self, s, t):
        return np.asarray(self.fn(s, t), dtype=float)

    def increment_bound(self):
        return self._increment_bound

    def __repr__(self):
        return f"CallableKernel({getattr(self.fn, '__name__', 'fn')})"


# ---------------------------------------------------------------------------
# PSD helpers
# ---------------------------------------------------------------------------
def check_psd(matrix: np.ndarray, psd_tolerance: float = 1e-9,
              symmetry_tolerance: float = 1e-12) -> float:
    """
    Verify that `matrix` is symmetric PSD to tolerance.

    Returns the smallest eigenvalue; raises InvalidKernel otherwise.
    Eigenvalues down to -psd_tolerance * max(1, spectral radius) are
    accepted as round-off; anything below is reported, never clamped.
    """
    matrix = np.asarray(matrix, dtype=float)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise InvalidKernel(f"Gram matrix must be square, got shape {matrix.shape}")
    if matrix.size == 0:
        return 0.0
    if not np.all(np.isfinite(matrix)):
        raise InvalidKernel("Gram matrix contains non-finite entries")

    asym = np.max(np.abs(matrix - matrix.T))
    scale = max(1.0, float(np.max(np.abs(matrix))))
    if asym > symmetry_tolerance * scale:
        raise InvalidKernel(f"Gram matrix is not symmetric (max asymmetry {asym:.3e})")

    eigvals = np.linalg.eigvalsh(0.5 * (matrix + matrix.T))
    radius = max(1.0, float(np.max(np.abs(eigvals))))
    lam_min = float(eigvals[0])
    if lam_min < -psd_tolerance * radius:
        raise InvalidKernel(
            f"Gram matrix is not positive semidefinite "
            f"(smallest eigenvalue {lam_min:.3e}, tolerance {psd_tolerance * radius:.3e})"
        )
    return lam_min


def psd_factor(cov: np.ndarray, tolerance: float = 1e-9) -> np.ndarray:
    """
    Factor A with A @ A.T = cov via the symmetric eigendecomposition.

    Round-off negatives within tolerance are set to zero; larger negative
    eigenvalues raise InvalidKernel.
    """
    cov = np.atleast_2d(np.asarray(cov, dtype=float))
    if cov.size == 0:
        return cov.copy()
    sym = 0.5 * (cov + cov.T)
    eigvals, eigvecs = np.linalg.eigh(sym)
    radius = max(1.0, float(np.max(np.abs(eigvals))))
    if eigvals[0] < -tolerance * radius:
        raise InvalidKernel(f"covariance is not PSD (smallest eigenvalue {eigvals[0]:.3e})")
    return eigvecs * np.sqrt(np.clip(eigvals, 0.0, None))


# ---------------------------------------------------------------------------
# Covariance model
# ---------------------------------------------------------------------------
class CovarianceModel:
    """
    Kernel k on the index set T = [lower, upper] with cached Gram matrices.

    The kernel is PSD-checked on a deterministic probe grid at construction,
    so an invalid kernel fails immediately, and again on every new Gram
    matrix. Gram matrices are cached by the sorted set of times and are
    read-only; gram(I) re-orders the cached matrix to the order of I.
    """

    def __init__(self, kernel: CovarianceKernel, lower: float = 0.0,
                 upper: float = 1.0, config: Optional[NumericsConfig] = None,
                 cache_size: int = 256):
        if lower < 0:
            raise ValueError(f"index set must be non-negative, got lower={lower}")
        if not upper > lower:
            raise ValueError(f"upper must exceed lower, got [{lower}, {upper}]")
        self.kernel = kernel
        self.lower = float(lower)
        self.upper = float(upper)
        self.config = config or NumericsConfig()
        self._sorted_gram = functools.lru_cache(maxsize=cache_size)(self._compute_gram)

        probe = np.linspace(self.lower, self.upper, self.config.kernel_probe_points)
        lam_min = check_psd(self._sorted_gram(tuple(probe)),
                            self.config.psd_tolerance, self.config.symmetry_tolerance)
        logger.debug("%r accepted on [%g, %g] (probe min eigenvalue %.3e)",
                     kernel, self.lower, self.upper, lam_min)

    @property
    def markov(self) -> bool:
        return bool(getattr(self.kernel, "markov", False))

    def _validate(self, times: np.ndarray) -> np.ndarray:
        slack = 1e-12 * max(1.0, self.upper)
        if np.any(~np.isfinite(times)):
            raise ValueError("times must be finite")
        if np.any(times < self.lower - slack) or np.any(times > self.upper + slack):
            raise ValueError(
                f"times must lie in [{self.lower}, {self.upper}], "
                f"got range [{times.min()}, {times.max()}]"
            )
        return times

    def _compute_gram(self, key: tuple) -> np.ndarray:
        t = np.asarray(key, dtype=float)
        K = np.asarray(self.kernel(t[:, None], t[None, :]), dtype=float)
        check_psd(K, self.config.psd_tolerance, self.config.symmetry_tolerance)
        K.setflags(write=False)
        return K

    def gram(self, times) -> np.ndarray:
        """Gram matrix [k(s, t)] over `times`, in the given order."""
        t = self._validate(as_times(times))
        key = np.unique(t)
        base = self._sorted_gram(tuple(key))
        idx = np.searchsorted(key, t)
        return base[np.ix_(idx, idx)]

    def cross_covariance(self, times_a, times_b) -> np.ndarray:
        """Rectangular block [k(a, b)]; no PSD check applies."""
        a = self._validate(as_times(times_a))
        b = self._validate(as_times(times_b))
        return np.asarray(self.kernel(a[:, None], b[None, :]), dtype=float)

    def covariance(self, s: float, t: float) -> float:
        self._validate(as_times([s, t]))
        return float(self.kernel(s, t))

    def variance(self, t: float) -> float:
        return self.covariance(t, t)

    def cache_info(self):
        return self._sorted_gram.cache_info()

    def __repr__(self):
        return f"CovarianceModel({self.kernel!r}, [{self.lower}, {self.upper}])"
