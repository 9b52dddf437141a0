"""
Independent Increments of Gaussian Processes
==============================================

For a general random vector, zero covariance does NOT imply independence.
For a jointly Gaussian vector Z ~ N(0, S) it does: the characteristic
function

    phi(u) = E[exp(i u.Z)] = exp(-u' S u / 2)

factorises into prod_i exp(-S_ii u_i^2 / 2) exactly when S is diagonal, and
a factorised characteristic function is the characteristic function of the
product of the marginals. The lemma below checks both halves numerically.

For 0 <= t_0 <= t_1 <= ... <= t_{k+1}, the increments D_i = X(t_{i+1}) - X(t_i)
are a linear image A X of a Gaussian vector, hence jointly Gaussian with
covariance A K A'. For the kernel min(s, t):

    Cov(D_i, D_j) = min(t_{i+1}, t_{j+1}) - min(t_{i+1}, t_j)
                    - min(t_i, t_{j+1}) + min(t_i, t_j) = 0    (i != j)

because non-overlapping intervals share no length.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

from typing import Optional

import numpy as np

from wiener_paths.models.projective_limit import ProcessLaw
from wiener_paths.utils import as_times, get_logger

logger = get_logger(__name__)


def _probe_frequencies(dim: int, n_probes: int = 64, seed: int = 7) -> np.ndarray:
    """Deterministic probe set: unit axes, pairwise sums and a fixed random cloud."""
    eye = np.eye(dim)
    pairs = [eye[i] + eye[j] for i in range(dim) for j in range(i + 1, dim)]
    rng = np.random.default_rng(seed)
    cloud = rng.standard_normal((n_probes, dim))
    return np.vstack([eye] + pairs + [cloud]) if pairs else np.vstack([eye, cloud])


def uncorrelated_gaussian_is_independent(cov: np.ndarray, tolerance: float = 1e-10,
                                         n_probes: int = 64) -> bool:
    """
    Lemma: a jointly Gaussian vector with diagonal covariance has independent
    coordinates.

    Step 1 checks that every off-diagonal covariance vanishes within
    `tolerance` (relative to the largest variance). Step 2 checks that the
    joint characteristic function equals the product of the marginal ones on
    deterministic probe frequencies. Returns True only if both hold.
    """
    S = np.atleast_2d(np.asarray(cov, dtype=float))
    if S.shape[0] != S.shape[1]:
        raise ValueError(f"covariance must be square, got {S.shape}")
    dim = S.shape[0]
    if dim <= 1:
        return True

    scale = max(1.0, float(np.max(np.abs(np.diag(S)))))
    off = S - np.diag(np.diag(S))
    if np.max(np.abs(off)) > tolerance * scale:
        return False

    U = _probe_frequencies(dim, n_probes)
    U = U / max(1.0, np.sqrt(scale))
    log_joint = -0.5 * np.einsum("ki,ij,kj->k", U, S, U)
    log_product = -0.5 * np.sum(U**2 * np.diag(S)[None, :], axis=1)
    return bool(np.max(np.abs(log_joint - log_product)) <= tolerance * scale * dim)


def increment_matrix(n_times: int) -> np.ndarray:
    """A with (A x)_i = x_{i+1} - x_i, shape (n_times - 1, n_times)."""
    if n_times < 2:
        raise ValueError(f"need at least two times, got {n_times}")
    return np.diff(np.eye(n_times), axis=0)


class IncrementIndependenceChecker:
    """
    Certify independent increments of a Gaussian process law.

    Parameters
    ----------
    tolerance : float
        Relative tolerance for vanishing covariances.
    default_points : int
        Size of the default chain of times spanning the index set.
    """

    def __init__(self, tolerance: float = 1e-10, default_points: int = 12):
        self.tolerance = tolerance
        self.default_points = default_points

    @staticmethod
    def _law(process) -> ProcessLaw:
        # Accept a ProcessLaw or anything exposing one (BrownianMotion, ...).
        return process if isinstance(process, ProcessLaw) else process.law

    def _chain(self, law: ProcessLaw, times) -> np.ndarray:
        if times is None:
            return np.linspace(law.lower, law.upper, self.default_points)
        t = as_times(times)
        if np.any(np.diff(t) < 0):
            raise ValueError("times must be non-decreasing")
        return t

    def increment_covariance(self, process, times=None) -> np.ndarray:
        """Covariance A K A' of the increments over the chain `times`."""
        law = self._law(process)
        t = self._chain(law, times)
        A = increment_matrix(len(t))
        return A @ law.restrict(t).cov @ A.T

    def has_independent_increments(self, process, times=None) -> bool:
        """
        True iff the increments over `times` are independent.

        The law is jointly Gaussian, so vanishing pairwise covariance is
        sufficient; the lemma makes that step explicit.
        """
        S = self.increment_covariance(process, times)
        result = uncorrelated_gaussian_is_independent(S, self.tolerance)
        logger.info("Increment independence over %d increments: %s", S.shape[0], result)
        return result

    def max_increment_correlation(self, process, times=None) -> float:
        """Largest |corr(D_i, D_j)|, i != j; zero-variance increments are skipped."""
        S = self.increment_covariance(process, times)
        sd = np.sqrt(np.clip(np.diag(S), 0.0, None))
        live = sd > 0
        S, sd = S[np.ix_(live, live)], sd[live]
        if len(sd) < 2:
            return 0.0
        R = S / np.outer(sd, sd)
        np.fill_diagonal(R, 0.0)
        return float(np.max(np.abs(R)))
