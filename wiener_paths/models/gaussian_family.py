"""
Gaussian Projective Family
===========================

For every finite set of times I the family returns the mean-zero Gaussian
law N(0, K_I), K_I = [k(s, t)]_{s,t in I}. Marginalising a Gaussian onto a
subset J keeps the sub-block K_J, so a family read from a single kernel is
consistent by construction:

    marginal(N(0, K_I), J) = N(0, K_I[J, J]) = N(0, K_J)

The family still verifies this on every finite law it builds, because the
covariances are read through a Gram provider that may be arbitrary code.

GaussianLawProvider is the explicit capability object that the chaining
engine uses to draw new coordinates given already-sampled ones:

    E[X_new | X_known = x]   = K_nk K_kk^+ x
    Cov[X_new | X_known]     = K_nn - K_nk K_kk^+ K_kn

For Gauss-Markov kernels the conditioning reduces to the nearest known
neighbours on each side and distinct gaps are conditionally independent.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np
from scipy.stats import multivariate_normal

from wiener_paths.config import NumericsConfig
from wiener_paths.exceptions import InconsistentFamily, InvalidKernel
from wiener_paths.models.covariance import CovarianceModel, psd_factor
from wiener_paths.utils import as_times, get_logger

logger = get_logger(__name__)


def _locate(times: np.ndarray, subset: np.ndarray, atol: float = 1e-12) -> np.ndarray:
    """Index in `times` of every element of `subset`; ValueError if absent."""
    diff = np.abs(times[None, :] - subset[:, None])
    idx = np.argmin(diff, axis=1)
    missing = diff[np.arange(len(subset)), idx] > atol
    if np.any(missing):
        raise ValueError(f"times {subset[missing]} are not coordinates of this law")
    return idx


@dataclass(frozen=True, eq=False)
class FiniteLaw:
    """Mean-zero multivariate Gaussian law over the coordinates `times`."""
    times: np.ndarray
    cov: np.ndarray

    @property
    def dim(self) -> int:
        return len(self.times)

    @property
    def mean(self) -> np.ndarray:
        return np.zeros(self.dim)

    @property
    def variances(self) -> np.ndarray:
        return np.diag(self.cov).copy()

    def marginal(self, subset) -> "FiniteLaw":
        """Law of the coordinates `subset` (a subset of `times`)."""
        sub = as_times(subset)
        idx = _locate(self.times, sub)
        return FiniteLaw(sub, self.cov[np.ix_(idx, idx)])

    def sample(self, size: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
        """Draw `size` vectors; returns shape (size, dim)."""
        rng = rng if rng is not None else np.random.default_rng()
        A = psd_factor(self.cov)
        return rng.standard_normal((size, self.dim)) @ A.T

    def frozen(self):
        """scipy.stats frozen distribution (singular covariances allowed)."""
        return multivariate_normal(mean=self.mean, cov=self.cov, allow_singular=True)

    def logpdf(self, x) -> np.ndarray:
        return self.frozen().logpdf(x)

    def __repr__(self):
        return f"FiniteLaw(dim={self.dim}, times=[{self.times.min():g}..{self.times.max():g}])"


class GaussianProjectiveFamily:
    """
    Consistent family {N(0, K_I) : I finite subset of T}.

    Parameters
    ----------
    model : CovarianceModel
        Supplies the index set and the kernel.
    gram_provider : callable, optional
        times -> covariance matrix. Defaults to model.gram.
    config : NumericsConfig, optional
        Consistency tolerance and probe size; defaults to the model's.
    """

    def __init__(self, model: CovarianceModel,
                 gram_provider: Optional[Callable] = None,
                 config: Optional[NumericsConfig] = None):
        self.model = model
        self.provider = gram_provider or model.gram
        self.config = config or model.config

    @property
    def markov(self) -> bool:
        return self.model.markov

    def _read(self, times: np.ndarray) -> np.ndarray:
        cov = np.asarray(self.provider(times), dtype=float)
        if cov.shape != (len(times), len(times)):
            raise InconsistentFamily(
                f"provider returned shape {cov.shape} for {len(times)} coordinates"
            )
        return cov

    def _compare(self, law: FiniteLaw, subset: np.ndarray) -> float:
        expected = self._read(subset)
        got = law.marginal(subset).cov
        dev = float(np.max(np.abs(got - expected))) if subset.size else 0.0
        if dev > self.config.consistency_tolerance * max(1.0, float(np.max(np.abs(expected)))):
            raise InconsistentFamily(
                f"marginal on {subset.size} coordinates deviates from the family "
                f"by {dev:.3e}"
            )
        return dev

    def finite_law(self, times) -> FiniteLaw:
        """N(0, gram(times)), checked for consistency on a probe subset."""
        t = as_times(times)
        law = FiniteLaw(t, self._read(t))
        n = len(t)
        if n >= 2:
            m = min(n - 1, self.config.consistency_probe_points)
            probe = np.unique(np.linspace(0, n - 1, m).round().astype(int))
            if len(probe) == n:
                probe = probe[:-1]
            self._compare(law, t[probe])
        return law

    def check_consistency(self, times, subset) -> float:
        """Max |marginal(finite_law(times), subset) - finite_law(subset)|."""
        t, sub = as_times(times), as_times(subset)
        law = FiniteLaw(t, self._read(t))
        _locate(t, sub)
        return self._compare(law, sub)

    def sample(self, times, size: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
        return self.finite_law(times).sample(size, rng)


class GaussianLawProvider:
    """
    Capability object: the process is jointly Gaussian (and possibly Markov).

    Used by the chaining engine to draw new coordinates from their exact
    conditional law given already-sampled coordinates.
    """

    def __init__(self, family: GaussianProjectiveFamily, markov: Optional[bool] = None):
        self.family = family
        self.markov = family.markov if markov is None else bool(markov)
        self.tolerance = family.config.psd_tolerance

    @property
    def model(self) -> CovarianceModel:
        return self.family.model

    def conditional_law(self, known_times, known_values,
                        new_times) -> Tuple[np.ndarray, np.ndarray]:
        """
        Conditional law of X(new_times) given X(known_times) = known_values.

        known_values has shape (n_paths, len(known_times)). Returns the
        conditional means, shape (n_paths, len(new_times)), and the common
        conditional covariance, shape (k, k).
        """
        mean, cov, diagonal = self._conditional(known_times, known_values, new_times)
        return mean, (np.diag(cov) if diagonal else cov)

    def _conditional(self, known_times, known_values, new_times):
        # Diagonal covariances are returned as a vector of variances.
        known = as_times(known_times)
        new = as_times(new_times)
        values = np.atleast_2d(np.asarray(known_values, dtype=float))
        if values.shape[1] != len(known):
            raise ValueError(
                f"known_values has {values.shape[1]} columns for {len(known)} times"
            )
        if len(known) == 0:
            return np.zeros((values.shape[0], len(new))), self.model.gram(new), False

        if self.markov and np.all(np.diff(known) > 0):
            pos = np.searchsorted(known, new)
            if np.unique(pos).size == pos.size:
                mean, var = self._neighbour_conditional(known, values, new, pos)
                return mean, var, True
        mean, cov = self._full_conditional(known, values, new)
        return mean, cov, False

    def _full_conditional(self, known, values, new):
        K_kk = self.model.gram(known)
        K_nk = self.model.cross_covariance(new, known)
        K_nn = self.model.gram(new)
        W = K_nk @ np.linalg.pinv(K_kk, rcond=1e-12, hermitian=True)
        mean = values @ W.T
        cov = K_nn - W @ K_nk.T
        return mean, self._check(0.5 * (cov + cov.T))

    def _neighbour_conditional(self, known, values, new, pos):
        k = self.model.kernel
        m = len(known)
        left = np.clip(pos - 1, 0, m - 1)
        right = np.clip(pos, 0, m - 1)
        has_left = pos > 0
        has_right = pos < m

        c_l = k(new, known[left])
        c_r = k(new, known[right])
        a_ll = k(known[left], known[left])
        a_rr = k(known[right], known[right])
        a_lr = k(known[left], known[right])

        # One-sided gaps condition on a single neighbour.
        w_l = np.where(has_left & ~has_right, _safe_ratio(c_l, a_ll), 0.0)
        w_r = np.where(has_right & ~has_left, _safe_ratio(c_r, a_rr), 0.0)

        both = has_left & has_right
        if np.any(both):
            G = np.empty((both.sum(), 2, 2))
            G[:, 0, 0], G[:, 1, 1] = a_ll[both], a_rr[both]
            G[:, 0, 1] = G[:, 1, 0] = a_lr[both]
            c = np.stack([c_l[both], c_r[both]], axis=1)
            w = np.einsum("ki,kij->kj", c, np.linalg.pinv(G, rcond=1e-12, hermitian=True))
            w_l[both], w_r[both] = w[:, 0], w[:, 1]

        mean = values[:, left] * w_l + values[:, right] * w_r
        var = k(new, new) - w_l * c_l - w_r * c_r
        return mean, self._check(var)

    def _check(self, cov: np.ndarray) -> np.ndarray:
        if cov.size == 0:
            return cov
        var = cov if cov.ndim == 1 else np.diag(cov)
        scale = max(1.0, float(np.max(np.abs(cov))))
        if np.min(var) < -self.tolerance * scale:
            raise InvalidKernel(f"negative conditional variance {np.min(var):.3e}")
        return cov

    def draw(self, known_times, known_values, new_times,
             normals: np.ndarray) -> np.ndarray:
        """Conditional draw driven by standard normals of shape (n_paths, k)."""
        mean, cov, diagonal = self._conditional(known_times, known_values, new_times)
        if diagonal:
            return mean + normals * np.sqrt(np.clip(cov, 0.0, None))
        return mean + normals @ psd_factor(cov, self.tolerance).T


def _safe_ratio(num: np.ndarray, den: np.ndarray) -> np.ndarray:
    """num / den, with 0 where the conditioning variance vanishes."""
    out = np.zeros_like(np.asarray(num, dtype=float))
    np.divide(num, den, out=out, where=np.asarray(den) > 0)
    return out
