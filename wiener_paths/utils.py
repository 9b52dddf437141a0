"""
utils.py
--------
Logging, timing decorators, and shared numeric helpers.
"""

import os
import math
import logging
import time
import functools
from datetime import datetime
from pathlib import Path
from typing import Optional

import numpy as np


def get_logger(name: str, log_dir: Optional[str] = os.getenv("WIENER_LOG_DIR"),
               level: str = os.getenv("WIENER_LOG_LEVEL", "INFO")) -> logging.Logger:
    """
    Return a named logger writing to stdout and, optionally, a daily file.

    Parameters
    ----------
    name    : Logger name (typically the module __name__).
    log_dir : Directory for log files; None keeps the logger console-only.
    level   : Logging level string ("DEBUG", "INFO", "WARNING", "ERROR").
              Defaults follow LogConfig (WIENER_LOG_LEVEL, WIENER_LOG_DIR).

    Returns
    -------
    logging.Logger
    """
    logger = logging.getLogger(name)

    if logger.handlers:          # avoid duplicate handlers on re-import
        return logger

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # File handler
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_file = os.path.join(
            log_dir, f"wiener_paths_{datetime.now().strftime('%Y%m%d')}.log"
        )
        fh = logging.FileHandler(log_file)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def timeit(func):
    """Decorator that logs the execution time of any function."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__)
        t0 = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - t0
        logger.debug("%s completed in %.3f s", func.__qualname__, elapsed)
        return result
    return wrapper


def log_double_factorial(n: int) -> float:
    """
    log((2n-1)!!) = log((2n)!) - n log 2 - log(n!).

    Works for orders where the double factorial itself overflows a float.
    """
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    return math.lgamma(2 * n + 1) - n * math.log(2.0) - math.lgamma(n + 1)


def double_factorial(n: int) -> int:
    """(2n-1)!! = 1 * 3 * 5 * ... * (2n-1); equals 1 for n = 0."""
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    return math.prod(range(1, 2 * n, 2))


def as_times(times) -> np.ndarray:
    """Coerce a scalar or sequence of times to a 1-D float array."""
    arr = np.atleast_1d(np.asarray(times, dtype=float))
    if arr.ndim != 1:
        raise ValueError(f"times must be one-dimensional, got shape {arr.shape}")
    return arr
