"""
Brownian Motion and Gaussian Process Assembly
===============================================

Wires the components leaf to root:

    CovarianceModel -> GaussianProjectiveFamily -> ProjectiveLimitBuilder
                    -> (raw ProcessLaw)
    CoveringEngine + Kolmogorov certificates -> ChentsovChainingEngine
                    -> continuous modification -> Wiener measure

BrownianAssembler specialises to k(s, t) = min(s, t), whose increments are
N(0, |s - t|) with exact even moments

    E|W_s - W_t|^{2n} = (2n-1)!! |s - t|^n

giving certificates p = 2n, alpha = n - 1 and the Hoelder ceiling
(n-1)/(2n) -> 1/2. Every sampled path is continuous and, on each bounded
interval, locally Hoelder-beta for every beta below the ceiling.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

import functools
import math
from typing import List, Optional, Sequence, Union

import numpy as np
from scipy.stats import norm

from wiener_paths.config import Config
from wiener_paths.exceptions import CoveringDivergent, MomentBoundUnavailable
from wiener_paths.models.certificates import (
    KolmogorovCertificate, brownian_certificates, gaussian_certificates,
    gaussian_even_moment)
from wiener_paths.models.chaining import (
    ChentsovChainingEngine, Modification, SamplePath)
from wiener_paths.models.covariance import (
    BrownianKernel, CovarianceKernel, CovarianceModel)
from wiener_paths.models.covering import CoveringEngine
from wiener_paths.models.gaussian_family import FiniteLaw, GaussianProjectiveFamily
from wiener_paths.models.independence import IncrementIndependenceChecker
from wiener_paths.models.projective_limit import ProcessLaw, ProjectiveLimitBuilder
from wiener_paths.models.wiener_measure import WienerMeasure, WienerMeasureConstructor
from wiener_paths.utils import as_times, get_logger

logger = get_logger(__name__)


class GaussianProcess:
    """
    An assembled mean-zero Gaussian process with continuous sample paths.

    The raw law stays usable for finite-dimensional statistics even when no
    continuous modification can be certified; path-level calls then raise
    MomentBoundUnavailable or CoveringDivergent.
    """

    def __init__(self, model: CovarianceModel, family: GaussianProjectiveFamily,
                 law: ProcessLaw, certificates: List[KolmogorovCertificate],
                 engine: ChentsovChainingEngine,
                 assembler: "GaussianProcessAssembler",
                 horizon: Optional[float] = None):
        self.model = model
        self.family = family
        self.law = law
        self.certificates = certificates
        self.engine = engine
        self._assembler = assembler
        self._horizon = model.upper if horizon is None else float(horizon)
        # Each entry holds a full Modification.
        self._path_cache = functools.lru_cache(
            maxsize=engine.config.path_cache_size)(self._build_path)

    @property
    def kernel(self) -> CovarianceKernel:
        return self.model.kernel

    @property
    def horizon(self) -> float:
        """Requested horizon; the chained grid may run on to the next whole block."""
        return self._horizon

    @property
    def levels(self) -> int:
        return self.engine.config.levels

    @property
    def holder_ceiling(self) -> float:
        return self.engine.certify().holder_ceiling

    # ------------------------------------------------------------------
    # Second-moment structure
    # ------------------------------------------------------------------
    def covariance(self, s: float, t: float) -> float:
        return self.model.covariance(s, t)

    def variance(self, t: float) -> float:
        return self.model.variance(t)

    def finite_law(self, times) -> FiniteLaw:
        """law(I): the finite-dimensional Gaussian law at `times`."""
        return self.law.restrict(times)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------
    def extend(self, t: float) -> None:
        """
        Grow the horizon by doubling until it covers `t`.

        For Markov kernels values on the old horizon are unchanged.
        """
        if t <= self.horizon:
            return
        horizon = self.horizon
        while horizon < t:
            horizon *= 2.0
        if not self.model.markov:
            logger.warning("Extending a non-Markov process to %g re-conditions earlier values",
                           horizon)
        fresh = self._assembler.assemble(horizon=horizon, lower=self.model.lower)
        self.model, self.family, self.law = fresh.model, fresh.family, fresh.law
        self.engine = fresh.engine
        self._horizon = fresh.horizon
        self._path_cache.cache_clear()
        logger.info("Horizon extended to %g", horizon)

    def paths(self, omegas: Union[int, Sequence[int]],
              levels: Optional[int] = None) -> Modification:
        """Continuous modification for several sample indices at once."""
        return self.engine.construct(self.law, omegas, levels)

    def _build_path(self, omega: int, levels: int) -> SamplePath:
        return self.paths([omega], levels).path(omega)

    def path(self, omega: int, levels: Optional[int] = None) -> SamplePath:
        levels = self.levels if levels is None else int(levels)
        return self._path_cache(int(omega), levels)

    def path_cache_info(self):
        return self._path_cache.cache_info()

    def sample(self, omega: int, t, levels: Optional[int] = None):
        """Y(t, omega); extends the horizon when t lies beyond it."""
        t_arr = as_times(t)
        if np.any(t_arr < self.model.lower):
            raise ValueError(f"t must be >= {self.model.lower}")
        self.extend(float(t_arr.max()))
        return self.path(omega, levels)(t)

    # ------------------------------------------------------------------
    # Guarantees
    # ------------------------------------------------------------------
    def continuity_guarantee(self) -> dict:
        cert = self.engine.certify()
        return {
            "continuous": True,
            "holder_ceiling": cert.holder_ceiling,
            "ceiling_attained": False,
            "working_beta": max(cert.holder_ceiling - self.engine.config.holder_margin,
                                0.5 * cert.holder_ceiling),
            "moment_order": cert.certificate.order,
            "interval": (self.engine.covering.lower, self.engine.covering.upper),
        }

    def has_independent_increments(self, times=None) -> bool:
        return IncrementIndependenceChecker().has_independent_increments(self.law, times)

    def wiener_measure(self, levels: Optional[int] = None) -> WienerMeasure:
        return WienerMeasureConstructor().build(self.law, self.engine, levels)

    def __repr__(self):
        return f"{type(self).__name__}({self.kernel!r}, horizon={self.horizon})"


class BrownianMotion(GaussianProcess):
    """Canonical Brownian motion: W(0) = 0, W(t) ~ N(0, t), continuous paths."""

    def marginal(self, t: float):
        """Law of W(t): scipy.stats.norm(0, sqrt(t))."""
        if t < 0:
            raise ValueError(f"t must be >= 0, got {t}")
        return norm(loc=0.0, scale=math.sqrt(t))

    def increment_law(self, s: float, t: float):
        """Law of W(s) - W(t): N(0, |s - t|)."""
        return norm(loc=0.0, scale=math.sqrt(abs(s - t)))

    def even_moment(self, s: float, t: float, n: int) -> float:
        """E|W_s - W_t|^{2n} = (2n-1)!! |s - t|^n."""
        return float(gaussian_even_moment(abs(s - t), n))


class GaussianProcessAssembler:
    """
    Assemble a continuous Gaussian process from any kernel of the library.

    Certificates are derived from kernel.increment_bound(); a kernel without
    one gets none, and path-level calls raise MomentBoundUnavailable.
    """

    process_class = GaussianProcess

    def __init__(self, kernel: CovarianceKernel, config: Optional[Config] = None):
        self.kernel = kernel
        self.config = config or Config()

    def certificates(self) -> List[KolmogorovCertificate]:
        bound = self.kernel.increment_bound()
        if bound is None:
            return []
        scale, hurst = bound
        return gaussian_certificates(scale, hurst, self.config.chaining.max_moment_order)

    def assemble(self, horizon: Optional[float] = None, lower: float = 0.0) -> GaussianProcess:
        """
        Build the process on [lower, horizon].

        Chaining runs on blocks of exactly `block_length` anchored at `lower`,
        so the index set is rounded up to the next whole block. A longer
        horizon only appends blocks, leaving earlier anchors and streams alone.
        """
        cfg = self.config
        horizon = cfg.simulation.horizon if horizon is None else float(horizon)
        if not horizon > lower:
            raise ValueError(f"horizon must exceed {lower}, got {horizon}")
        block = cfg.chaining.block_length
        upper = lower + max(1, math.ceil((horizon - lower) / block - 1e-9)) * block

        model = CovarianceModel(self.kernel, lower, upper, cfg.numerics)
        family = GaussianProjectiveFamily(model)
        law = ProjectiveLimitBuilder(cfg.numerics).build(family)

        covering = CoveringEngine(lower, upper, base_length=block)
        certs = self.certificates()
        engine = ChentsovChainingEngine(covering, certs, cfg.chaining, cfg.simulation.seed)
        try:
            engine.certify()
        except (MomentBoundUnavailable, CoveringDivergent) as exc:
            logger.warning("No continuous modification certified for %r: %s", self.kernel, exc)

        return self.process_class(model, family, law, certs, engine, self, horizon=horizon)


class BrownianAssembler(GaussianProcessAssembler):
    """k(s, t) = min(s, t) with the exact Brownian even-moment certificates."""

    process_class = BrownianMotion

    def __init__(self, config: Optional[Config] = None):
        super().__init__(BrownianKernel(), config)

    def certificates(self) -> List[KolmogorovCertificate]:
        return brownian_certificates(self.config.chaining.max_moment_order)

    def assemble(self, horizon: Optional[float] = None, lower: float = 0.0) -> BrownianMotion:
        if lower != 0.0:
            raise ValueError("Brownian motion starts at t = 0")
        return super().assemble(horizon, lower)
