"""
Covering Numbers for Dyadic Chaining
=====================================

For the metric d(s, t) = |s - t|^gamma on a bounded interval [a, b],
a d-ball of radius r is a Euclidean interval of half-width r^(1/gamma), so

    N([a, b], r) = ceil( (b - a) / (2 r^(1/gamma)) )

The dyadic decomposition into cells of length base * 2^-n needs
N_n = ceil(length / (base 2^-n)) balls, giving log N_n = n log 2 + O(1)
and covering dimension 1/gamma (1 for the Euclidean metric).

The chaining bound combines N_n with a Kolmogorov certificate through
Markov's inequality:

    P(max adjacent increment at level n > s_n^beta)
        <= N_n * C * s_n^(1 + alpha - beta p),     s_n = d-size of a cell

which is summable in n iff 1 + alpha - dimension - beta p > 0.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from wiener_paths.models.certificates import KolmogorovCertificate


@dataclass(frozen=True)
class CoveringLevel:
    """One step of the dyadic decomposition."""
    level: int
    cell_length: float      # Euclidean length of a cell
    radius: float           # d-radius of the ball covering one cell
    covering_number: int
    log_size: float


class CoveringEngine:
    """
    Covering numbers of [lower, upper] under d(s, t) = |s - t|^metric_exponent.

    Parameters
    ----------
    lower, upper : float
        Bounded sub-interval of T.
    metric_exponent : float
        gamma in (0, 1]; 1 is the Euclidean metric.
    base_length : float, optional
        Cell length at level 0. Defaults to the interval length.
    """

    def __init__(self, lower: float, upper: float, metric_exponent: float = 1.0,
                 base_length: Optional[float] = None):
        if not upper > lower:
            raise ValueError(f"empty interval [{lower}, {upper}]")
        if not 0 < metric_exponent <= 1:
            raise ValueError(f"metric_exponent must be in (0, 1], got {metric_exponent}")
        self.lower = float(lower)
        self.upper = float(upper)
        self.gamma = float(metric_exponent)
        self.base_length = float(base_length) if base_length else self.length
        if self.base_length <= 0:
            raise ValueError(f"base_length must be positive, got {base_length}")

    @property
    def length(self) -> float:
        return self.upper - self.lower

    def distance(self, s, t) -> np.ndarray:
        return np.abs(np.asarray(s, dtype=float) - np.asarray(t, dtype=float)) ** self.gamma

    def covering_number(self, ball: Optional[Tuple[float, float]], radius: float) -> int:
        """
        Number of d-balls of `radius` needed to cover `ball`.

        `ball` is (center, ball_radius) in the metric d, clipped to the
        interval; None means the whole interval.
        """
        if radius <= 0:
            raise ValueError(f"radius must be positive, got {radius}")
        if ball is None:
            a, b = self.lower, self.upper
        else:
            center, ball_radius = ball
            if ball_radius < 0:
                raise ValueError(f"ball radius must be non-negative, got {ball_radius}")
            half = ball_radius ** (1.0 / self.gamma)
            a, b = max(self.lower, center - half), min(self.upper, center + half)
            if b < a:
                raise ValueError(f"ball {ball} does not meet [{self.lower}, {self.upper}]")
        width = 2.0 * radius ** (1.0 / self.gamma)
        # Guard against 2^-n round-off pushing an exact ratio over an integer.
        return max(1, math.ceil((b - a) / width - 1e-9))

    def level(self, n: int) -> CoveringLevel:
        if n < 0:
            raise ValueError(f"level must be >= 0, got {n}")
        cell = self.base_length * 2.0 ** (-n)
        radius = (cell / 2.0) ** self.gamma
        N = self.covering_number(None, radius)
        return CoveringLevel(level=n, cell_length=cell, radius=radius,
                             covering_number=N, log_size=math.log(N))

    def log_size_sequence(self, n: int) -> List[CoveringLevel]:
        """Levels 0..n: radii non-increasing, log-sizes non-decreasing."""
        if n < 0:
            raise ValueError(f"n must be >= 0, got {n}")
        return [self.level(k) for k in range(n + 1)]

    def dimension(self) -> float:
        return 1.0 / self.gamma

    def estimated_dimension(self, n: int = 20) -> float:
        """Growth rate log N_n / log(1/r_n) read off two consecutive levels."""
        a, b = self.level(n - 1), self.level(n)
        return (b.log_size - a.log_size) / (math.log(a.radius) - math.log(b.radius))

    # ------------------------------------------------------------------
    # Chaining bounds
    # ------------------------------------------------------------------
    def excess(self, certificate: KolmogorovCertificate) -> float:
        """alpha_eff = 1 + alpha - dimension; positive iff chaining can sum."""
        return certificate.exponent - self.dimension()

    def holder_ceiling(self, certificate: KolmogorovCertificate) -> float:
        return max(self.excess(certificate), 0.0) / certificate.p

    def is_summable(self, certificate: KolmogorovCertificate, beta: float) -> bool:
        return self.excess(certificate) - beta * certificate.p > 0

    def _log_term(self, certificate, beta, n):
        lvl = self.level(n)
        size = lvl.cell_length ** self.gamma
        e = certificate.exponent - beta * certificate.p
        return lvl.log_size + certificate.log_constant + e * math.log(size)

    def tail_bound(self, certificate: KolmogorovCertificate, beta: float, n: int) -> float:
        """Markov/union bound on P(level n is bad), capped at 1."""
        return min(1.0, math.exp(min(self._log_term(certificate, beta, n), 0.0)))

    def tail_sum(self, certificate: KolmogorovCertificate, beta: float, start: int,
                 n_terms: int = 64) -> float:
        """
        Upper bound on the sum of the uncapped level bounds over n >= start
        (Borel-Cantelli).

        The first `n_terms` levels are summed with their exact covering
        numbers. Beyond level m = start + n_terms, N_n <= (N_m + 1) 2^(n-m)
        bounds the rest by a geometric series. inf when the series diverges.
        """
        if not self.is_summable(certificate, beta):
            return math.inf
        e = certificate.exponent - beta * certificate.p
        log_q = (1.0 - self.gamma * e) * math.log(2.0)
        logs = [self._log_term(certificate, beta, n) for n in range(start, start + n_terms)]
        m = start + n_terms
        n_m = self.level(m).covering_number
        logs.append(self._log_term(certificate, beta, m) + math.log1p(1.0 / n_m)
                    - math.log1p(-math.exp(log_q)))
        top = max(logs)
        log_total = top + math.log(sum(math.exp(v - top) for v in logs))
        return math.inf if log_total > 700.0 else math.exp(log_total)

    def first_good_level(self, certificate: KolmogorovCertificate, beta: float,
                         epsilon: float = 1e-3, max_level: int = 64) -> int:
        """Smallest n0 with sum_{n >= n0} P(level n bad) <= epsilon."""
        for n in range(max_level + 1):
            if self.tail_sum(certificate, beta, n) <= epsilon:
                return n
        raise ValueError(f"tail sum does not fall below {epsilon} by level {max_level}")
