"""
Error kinds raised while building a continuous Gaussian process.

InvalidKernel and InconsistentFamily are fatal: the construction cannot
proceed. MomentBoundUnavailable and CoveringDivergent only mean that the
chaining engine cannot certify a continuous modification; the raw process
law stays usable for finite-dimensional statistics.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""


class WienerPathsError(Exception):
    """Base class for all construction errors."""


class InvalidKernel(WienerPathsError, ValueError):
    """A Gram matrix is not symmetric positive semidefinite within tolerance."""


class InconsistentFamily(WienerPathsError, ValueError):
    """Finite-dimensional laws disagree under marginalisation."""


class MomentBoundUnavailable(WienerPathsError, RuntimeError):
    """No Kolmogorov certificate with a strictly positive excess exponent."""


class CoveringDivergent(WienerPathsError, RuntimeError):
    """Covering numbers grow too fast for every available moment bound."""
