"""
Wiener Paths
============
Continuous-path Gaussian processes from a covariance kernel: projective
limit of finite-dimensional Gaussian laws, Kolmogorov-Chentsov continuity
by dyadic chaining, canonical Brownian motion and Wiener measure.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

from wiener_paths.config import Config
from wiener_paths.exceptions import (
    CoveringDivergent, InconsistentFamily, InvalidKernel,
    MomentBoundUnavailable, WienerPathsError)
from wiener_paths.models.covariance import (
    BrownianBridgeKernel, BrownianKernel, CallableKernel, CovarianceKernel,
    CovarianceModel, FractionalBrownianKernel, OrnsteinUhlenbeckKernel)
from wiener_paths.models.gaussian_family import (
    FiniteLaw, GaussianLawProvider, GaussianProjectiveFamily)
from wiener_paths.models.projective_limit import ProcessLaw, ProjectiveLimitBuilder
from wiener_paths.models.covering import CoveringEngine
from wiener_paths.models.certificates import KolmogorovCertificate
from wiener_paths.models.chaining import (
    ChentsovChainingEngine, HolderWitness, Modification)
from wiener_paths.models.brownian import (
    BrownianAssembler, BrownianMotion, GaussianProcessAssembler)
from wiener_paths.models.independence import IncrementIndependenceChecker
from wiener_paths.models.wiener_measure import WienerMeasure, WienerMeasureConstructor

__version__ = "1.0.0"
__author__ = "Jose Orlando Bobadilla Fuentes"

__all__ = [
    "Config",
    "WienerPathsError",
    "InvalidKernel",
    "InconsistentFamily",
    "MomentBoundUnavailable",
    "CoveringDivergent",
    "CovarianceKernel",
    "BrownianKernel",
    "BrownianBridgeKernel",
    "OrnsteinUhlenbeckKernel",
    "FractionalBrownianKernel",
    "CallableKernel",
    "CovarianceModel",
    "FiniteLaw",
    "GaussianProjectiveFamily",
    "GaussianLawProvider",
    "ProcessLaw",
    "ProjectiveLimitBuilder",
    "CoveringEngine",
    "KolmogorovCertificate",
    "ChentsovChainingEngine",
    "Modification",
    "HolderWitness",
    "BrownianAssembler",
    "BrownianMotion",
    "GaussianProcessAssembler",
    "IncrementIndependenceChecker",
    "WienerMeasure",
    "WienerMeasureConstructor",
]
