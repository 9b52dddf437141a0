"""
Kolmogorov Certificates and Gaussian Moment Algebra
=====================================================

A Kolmogorov certificate (p, alpha, C) witnesses the moment bound

    E|X_s - X_t|^p <= C * d(s, t)^(1 + alpha)

on a one-dimensional index set. The chaining engine turns it into a.s.
Hoelder continuity of a modification for every exponent beta < alpha / p.

For a centred Gaussian increment with variance v, the even absolute moments
are explicit:

    E|X_s - X_t|^{2n} = (2n-1)!! * v^n

so a kernel with Var(X_s - X_t) <= c |s-t|^{2H} yields, for each n >= 1,

    p = 2n,   1 + alpha = 2Hn,   C = (2n-1)!! c^n,   ceiling = H - 1/(2n)

For Brownian motion (c = 1, H = 1/2) the ceiling (n-1)/(2n) tends to 1/2
and never reaches it.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

import math
from dataclasses import dataclass
from typing import List

import numpy as np

from wiener_paths.utils import log_double_factorial


@dataclass(frozen=True)
class KolmogorovCertificate:
    """E|X_s - X_t|^p <= exp(log_constant) * d(s, t)^(1 + alpha)."""
    p: float
    alpha: float
    log_constant: float
    order: int = 0          # moment order n when p = 2n, else 0

    @property
    def constant(self) -> float:
        """C itself; inf when it overflows a float."""
        try:
            return math.exp(self.log_constant)
        except OverflowError:
            return math.inf

    @property
    def exponent(self) -> float:
        """Exponent of the distance in the moment bound."""
        return 1.0 + self.alpha

    @property
    def holder_ceiling(self) -> float:
        """Supremum of certified Hoelder exponents on a 1-D index set."""
        return max(self.alpha, 0.0) / self.p

    def bound(self, distance) -> np.ndarray:
        """Right-hand side C * d^(1+alpha)."""
        d = np.asarray(distance, dtype=float)
        with np.errstate(divide="ignore"):
            return np.exp(self.log_constant + self.exponent * np.log(d))

    @classmethod
    def from_moment_bound(cls, p: float, exponent: float, constant: float,
                          order: int = 0) -> "KolmogorovCertificate":
        """Certificate from E|dX|^p <= constant * d^exponent."""
        if p <= 0:
            raise ValueError(f"p must be positive, got {p}")
        if constant <= 0:
            raise ValueError(f"constant must be positive, got {constant}")
        return cls(p=float(p), alpha=float(exponent) - 1.0,
                   log_constant=math.log(constant), order=order)


def gaussian_even_moment(variance, n: int) -> np.ndarray:
    """E|Z|^{2n} for Z ~ N(0, variance): (2n-1)!! * variance^n."""
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    v = np.asarray(variance, dtype=float)
    return np.exp(log_double_factorial(n)) * v**n


def gaussian_certificates(scale: float, hurst: float,
                          max_order: int) -> List[KolmogorovCertificate]:
    """
    Certificates for every order n = 1..max_order from the increment bound
    Var(X_s - X_t) <= scale * |s - t|^(2*hurst).
    """
    if scale <= 0 or not 0 < hurst <= 1:
        raise ValueError(f"invalid increment bound (scale={scale}, hurst={hurst})")
    if max_order < 1:
        raise ValueError(f"max_order must be >= 1, got {max_order}")
    certs = []
    for n in range(1, max_order + 1):
        certs.append(KolmogorovCertificate(
            p=2.0 * n,
            alpha=2.0 * hurst * n - 1.0,
            log_constant=log_double_factorial(n) + n * math.log(scale),
            order=n,
        ))
    return certs


def brownian_certificates(max_order: int) -> List[KolmogorovCertificate]:
    """E|W_s - W_t|^{2n} = (2n-1)!! |s - t|^n for n = 1..max_order."""
    return gaussian_certificates(1.0, 0.5, max_order)
