"""
Wiener Measure on Continuous-Function Space
=============================================

The continuous modification Y defines a map

    omega -> (t -> Y(t, omega)),   Omega -> C(T, R)

and the Wiener measure is the pushforward of the process law along it.
Measurability is the external topology fact that the evaluation maps
f -> f(t) generate the Borel sigma-algebra of C(T, R) with the topology of
uniform convergence on compacts (T locally compact, second countable). It
is consumed here through the PathSpace capability object, not re-derived.

Operationally the measure is:
    - exact on cylinder events (through the process law, since Y = X a.s.
      at each fixed time),
    - Monte Carlo on genuine path functionals (running maxima, hitting
      events, integrals), driven by the chaining engine.

References:
    Wiener, N. (1923). Differential Space. J. Math. Phys. 2, 131-174.
    Billingsley, P. (1999). Convergence of Probability Measures, Sec. 7-8.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np
from scipy.stats import norm

from wiener_paths.models.chaining import ChentsovChainingEngine, Modification
from wiener_paths.models.gaussian_family import FiniteLaw
from wiener_paths.models.projective_limit import ProcessLaw
from wiener_paths.utils import get_logger

logger = get_logger(__name__)


def reflection_probability(level: float, horizon: float) -> float:
    """P(max_{[0, horizon]} W >= level) = 2 (1 - Phi(level / sqrt(horizon))), level >= 0."""
    if level < 0:
        raise ValueError(f"level must be non-negative, got {level}")
    if horizon <= 0:
        raise ValueError(f"horizon must be positive, got {horizon}")
    return float(2.0 * norm.sf(level / np.sqrt(horizon)))


@dataclass(frozen=True)
class PathSpace:
    """C([lower, upper], R) and the topology fact the pushforward relies on."""
    lower: float
    upper: float
    topology: str = "uniform convergence on compacts"
    evaluation_generates_borel: bool = True


class WienerMeasure:
    """Law of the continuous modification on C([lower, upper], R)."""

    def __init__(self, law: ProcessLaw, engine: ChentsovChainingEngine,
                 path_space: PathSpace, levels: Optional[int] = None):
        self.law = law
        self.engine = engine
        self.path_space = path_space
        self.levels = levels

    def finite_dimensional_law(self, times) -> FiniteLaw:
        """Image under the evaluation map at `times` (exact)."""
        return self.law.restrict(times)

    def cylinder_probability(self, times, lower, upper) -> float:
        return self.law.cylinder_probability(times, lower, upper)

    def sample_paths(self, n_paths: int, levels: Optional[int] = None,
                     start: int = 0) -> Modification:
        """Paths for omega = start .. start + n_paths - 1."""
        if n_paths < 1:
            raise ValueError(f"n_paths must be >= 1, got {n_paths}")
        levels = self.levels if levels is None else levels
        return self.engine.construct(self.law, np.arange(start, start + n_paths), levels)

    def expectation(self, functional: Callable[[np.ndarray, np.ndarray], np.ndarray],
                    n_paths: int = 1000, levels: Optional[int] = None) -> Tuple[float, float]:
        """
        Monte Carlo E[F(Y)] and its standard error.

        `functional(times, values)` maps the grid and an (n_paths, M) array
        of path values to one number per path.
        """
        mod = self.sample_paths(n_paths, levels)
        f = np.asarray(functional(mod.times, mod.values), dtype=float)
        if f.shape != (mod.n_paths,):
            raise ValueError(f"functional must return shape ({mod.n_paths},), got {f.shape}")
        se = float(f.std(ddof=1) / np.sqrt(len(f))) if len(f) > 1 else float("nan")
        return float(f.mean()), se

    def probability(self, event: Callable[[np.ndarray, np.ndarray], np.ndarray],
                    n_paths: int = 1000, levels: Optional[int] = None) -> Tuple[float, float]:
        """Monte Carlo P(Y in event) and its standard error."""
        return self.expectation(
            lambda t, v: np.asarray(event(t, v), dtype=bool).astype(float), n_paths, levels)

    def __repr__(self):
        return (f"WienerMeasure(C([{self.path_space.lower}, {self.path_space.upper}]), "
                f"{self.law.model.kernel!r})")


class WienerMeasureConstructor:
    """Push a process law forward along its continuous modification."""

    def __init__(self, path_space: Optional[PathSpace] = None):
        self.path_space = path_space

    def build(self, process_law: ProcessLaw, modification: ChentsovChainingEngine,
              levels: Optional[int] = None) -> WienerMeasure:
        """
        `modification` is the chaining engine that realises Y for any omega.

        Certification runs first, so MomentBoundUnavailable and
        CoveringDivergent surface here rather than at sampling time.
        """
        space = self.path_space or PathSpace(modification.covering.lower,
                                             modification.covering.upper)
        if not space.evaluation_generates_borel:
            raise ValueError(
                "evaluation maps must generate the Borel sigma-algebra of the path space; "
                "the pushforward is not measurable otherwise"
            )
        cert = modification.certify()
        logger.info("Wiener measure on C([%g, %g]) built (Hoelder ceiling %.4f)",
                    space.lower, space.upper, cert.holder_ceiling)
        return WienerMeasure(process_law, modification, space, levels)
