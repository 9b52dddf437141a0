"""
config.py
---------
Centralised configuration for the continuous-path construction.
All parameters are read from environment variables with sensible defaults,
so the same code runs quick checks and high-resolution studies.
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class NumericsConfig:
    """Tolerances for PSD and projective-consistency checks."""
    psd_tolerance: float           = float(os.getenv("WIENER_PSD_TOL",    "1e-9"))   # relative to spectral radius
    symmetry_tolerance: float      = float(os.getenv("WIENER_SYM_TOL",    "1e-12"))
    consistency_tolerance: float   = float(os.getenv("WIENER_CONS_TOL",   "1e-10"))
    consistency_probe_points: int  = int(os.getenv("WIENER_CONS_PROBES",  "16"))
    kernel_probe_points: int       = int(os.getenv("WIENER_KERNEL_PROBES", "64"))


@dataclass
class ChainingConfig:
    """Dyadic chaining parameters."""
    levels: int              = int(os.getenv("WIENER_LEVELS",        "10"))   # default resolution
    max_levels: int          = int(os.getenv("WIENER_MAX_LEVELS",    "24"))
    block_length: float      = float(os.getenv("WIENER_BLOCK",       "1.0"))  # exhaustion interval length
    max_moment_order: int    = int(os.getenv("WIENER_MOMENT_ORDER",  "64"))   # n in E|dX|^{2n}
    holder_margin: float     = float(os.getenv("WIENER_HOLDER_MARGIN", "0.01"))
    path_cache_size: int     = int(os.getenv("WIENER_PATH_CACHE",    "128"))  # cached single paths


@dataclass
class SimulationConfig:
    """Sampling defaults."""
    seed: int        = int(os.getenv("WIENER_SEED",    "42"))
    horizon: float   = float(os.getenv("WIENER_HORIZON", "10.0"))
    n_paths: int     = int(os.getenv("WIENER_N_PATHS", "1000"))


@dataclass
class LogConfig:
    """Logging destination and verbosity."""
    level: str               = os.getenv("WIENER_LOG_LEVEL", "INFO")
    log_dir: Optional[str]   = os.getenv("WIENER_LOG_DIR")           # None -> console only


@dataclass
class Config:
    """Master configuration object passed through the whole construction."""
    numerics:   NumericsConfig   = field(default_factory=NumericsConfig)
    chaining:   ChainingConfig   = field(default_factory=ChainingConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    logging:    LogConfig        = field(default_factory=LogConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a fresh configuration, re-reading the environment."""
        return cls(
            numerics=NumericsConfig(
                psd_tolerance=float(os.getenv("WIENER_PSD_TOL", "1e-9")),
                symmetry_tolerance=float(os.getenv("WIENER_SYM_TOL", "1e-12")),
                consistency_tolerance=float(os.getenv("WIENER_CONS_TOL", "1e-10")),
                consistency_probe_points=int(os.getenv("WIENER_CONS_PROBES", "16")),
                kernel_probe_points=int(os.getenv("WIENER_KERNEL_PROBES", "64")),
            ),
            chaining=ChainingConfig(
                levels=int(os.getenv("WIENER_LEVELS", "10")),
                max_levels=int(os.getenv("WIENER_MAX_LEVELS", "24")),
                block_length=float(os.getenv("WIENER_BLOCK", "1.0")),
                max_moment_order=int(os.getenv("WIENER_MOMENT_ORDER", "64")),
                holder_margin=float(os.getenv("WIENER_HOLDER_MARGIN", "0.01")),
                path_cache_size=int(os.getenv("WIENER_PATH_CACHE", "128")),
            ),
            simulation=SimulationConfig(
                seed=int(os.getenv("WIENER_SEED", "42")),
                horizon=float(os.getenv("WIENER_HORIZON", "10.0")),
                n_paths=int(os.getenv("WIENER_N_PATHS", "1000")),
            ),
            logging=LogConfig(
                level=os.getenv("WIENER_LOG_LEVEL", "INFO"),
                log_dir=os.getenv("WIENER_LOG_DIR"),
            ),
        )
