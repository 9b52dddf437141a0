"""
Projective Limit of a Consistent Gaussian Family
==================================================

Kolmogorov's extension theorem turns a projectively consistent family of
finite-dimensional laws {mu_I} into a unique probability measure P on the
product space R^T with

    P(pi_I^{-1}(B)) = mu_I(B)     for every finite I and Borel B in R^I

where pi_I is the coordinate projection. Cylinder sets generate the
product sigma-algebra, so P is determined by its cylinder probabilities.

The infinite-dimensional measure is never materialised. ProcessLaw is an
exact oracle for its cylinder events:

    - restrict(I)               -> FiniteLaw(I)
    - cylinder_probability(...) -> P(a_i <= X(t_i) <= b_i for all i)
    - sample(I, size)           -> raw draws of (X(t))_{t in I}

No path regularity is claimed for the raw process; that is the job of the
chaining engine.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

from typing import Optional

import numpy as np
from scipy.stats import multivariate_normal, norm

from wiener_paths.config import NumericsConfig
from wiener_paths.models.gaussian_family import (
    FiniteLaw, GaussianLawProvider, GaussianProjectiveFamily)
from wiener_paths.utils import as_times, get_logger

logger = get_logger(__name__)

# Bounds beyond this many standard deviations are treated as infinite.
_TRUNCATION_SD = 40.0


class ProcessLaw:
    """
    Law of the raw process X on T -> R (coordinates are the projections).

    Parameters
    ----------
    family : GaussianProjectiveFamily
        Consistent family of finite-dimensional laws.
    provider : GaussianLawProvider, optional
        Conditioning capability; built from the family when omitted.
    """

    def __init__(self, family: GaussianProjectiveFamily,
                 provider: Optional[GaussianLawProvider] = None):
        self.family = family
        self.provider = provider or GaussianLawProvider(family)

    @property
    def model(self):
        return self.family.model

    @property
    def lower(self) -> float:
        return self.family.model.lower

    @property
    def upper(self) -> float:
        return self.family.model.upper

    def restrict(self, times) -> FiniteLaw:
        """Image of the law under the projection onto `times` (exact)."""
        return self.family.finite_law(times)

    def covariance(self, s: float, t: float) -> float:
        return self.family.model.covariance(s, t)

    def sample(self, times, size: int,
               rng: Optional[np.random.Generator] = None) -> np.ndarray:
        """Raw finite-dimensional draws, shape (size, len(times))."""
        return self.restrict(times).sample(size, rng)

    def cylinder_probability(self, times, lower, upper) -> float:
        """
        P(lower_i <= X(t_i) <= upper_i for all i).

        Infinite bounds are allowed. Zero-variance coordinates equal 0 almost
        surely and are handled exactly.
        """
        t = as_times(times)
        lo = np.broadcast_to(np.asarray(lower, dtype=float), t.shape).copy()
        hi = np.broadcast_to(np.asarray(upper, dtype=float), t.shape).copy()
        if np.any(lo > hi):
            return 0.0

        law = self.restrict(t)
        var = law.variances
        tol = self.family.config.psd_tolerance * max(1.0, float(var.max()))
        degenerate = var <= tol
        if np.any(degenerate & ((lo > 0) | (hi < 0))):
            return 0.0

        keep = ~degenerate
        if not np.any(keep):
            return 1.0
        cov = law.cov[np.ix_(keep, keep)]
        sd = np.sqrt(np.diag(cov))
        lo = np.maximum(lo[keep], -_TRUNCATION_SD * sd)
        hi = np.minimum(hi[keep], _TRUNCATION_SD * sd)

        if cov.shape[0] == 1:
            return float(norm.cdf(hi[0] / sd[0]) - norm.cdf(lo[0] / sd[0]))
        mvn = multivariate_normal(mean=np.zeros(len(sd)), cov=cov, allow_singular=True)
        return float(np.clip(mvn.cdf(hi, lower_limit=lo), 0.0, 1.0))

    def agrees_with(self, other: "ProcessLaw", times, tolerance: float = 1e-12) -> bool:
        """Equality of the two laws on every cylinder over `times`."""
        a, b = self.restrict(times), other.restrict(times)
        return bool(np.max(np.abs(a.cov - b.cov)) <= tolerance)

    def __repr__(self):
        return f"ProcessLaw({self.family.model!r})"


class ProjectiveLimitBuilder:
    """
    Build the process law from a projectively consistent family.

    The consistency precondition is checked on a probe chain before the law
    is released: nested prefixes and a thinned subset of the probe times.
    """

    def __init__(self, config: Optional[NumericsConfig] = None):
        self.config = config

    def build(self, family: GaussianProjectiveFamily, probe_times=None) -> ProcessLaw:
        model = family.model
        cfg = self.config or family.config
        if probe_times is None:
            probe = np.linspace(model.lower, model.upper, cfg.kernel_probe_points)
        else:
            probe = as_times(probe_times)

        n = len(probe)
        checks = [probe[: max(1, n // 4)], probe[: max(1, n // 2)], probe[::2]]
        worst = max(family.check_consistency(probe, sub) for sub in checks)
        logger.info("Projective limit of %r built (consistency deviation %.2e on %d probes)",
                    model.kernel, worst, n)
        return ProcessLaw(family)
