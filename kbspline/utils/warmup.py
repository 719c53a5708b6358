"""
JIT warmup utilities.

Call warmup_jit() before a control loop starts following paths so the first
PathFollower sample does not pay for numba compilation. With cache=True this
is fast once the on-disk cache exists.
"""

import logging
import time

import numpy as np

from kbspline.spline.segment import HERMITE_BASIS, field_to_body, hermite_blend

logger = logging.getLogger(__name__)


def warmup_jit() -> float:
    """
    Pre-compile all numba JIT functions by calling them with dummy data.

    Returns the time taken in seconds.
    """
    logger.info("Warming JIT...")
    start = time.perf_counter()

    # kbspline/spline/segment.py
    dummy_coeffs = np.zeros((4, 3), dtype=np.float64)
    out_value = np.zeros(3, dtype=np.float64)
    out_deriv = np.zeros(3, dtype=np.float64)
    out_body = np.zeros(3, dtype=np.float64)
    hermite_blend(0.5, 1.0, HERMITE_BASIS, dummy_coeffs, out_value, out_deriv)
    field_to_body(0.0, 0.0, 0.0, 0.0, 1.0, out_body)

    elapsed = time.perf_counter() - start
    logger.info(f"\tJIT warmup completed in {elapsed * 1000:.1f}ms")
    return elapsed
