"""
Configuration checks run before any stepping begins.
"""
import logging
from typing import Optional

import numpy as np

from ode_engine.errors import InvalidConfigurationError

__all__ = ["validate_step_size",
           "validate_tolerance",
           "validate_step_bounds",
           "validate_iterations",
           "validate_quantum"]

logger = logging.getLogger(__name__)


def _fail(message: str):
    logger.error(message)
    raise InvalidConfigurationError(message)


def validate_step_size(h: float, start: float, end: Optional[float] = None) -> float:
    """
    Check a step size against the integration direction.

    Args:
        h: Signed step size.
        start: Initial time.
        end: Target end time. If given, h must point from start towards end.

    Returns:
        The step size as a float.
    """
    if h is None or not np.isfinite(h) or h == 0:
        _fail("Step size must be a finite, non-zero number, got {}.".format(h))

    if end is not None:
        if not np.isfinite(end):
            _fail("End time must be finite, got {}.".format(end))
        if end == start:
            _fail("End time {} equals the start time.".format(end))
        if np.sign(end - start) != np.sign(h):
            _fail("Step size {0} does not point from start {1} towards "
                  "end {2}.".format(h, start, end))

    return float(h)


def validate_tolerance(tolerance: float) -> float:
    if tolerance is None or not np.isfinite(tolerance) or tolerance <= 0:
        _fail("Tolerance must be a positive number, got {}.".format(tolerance))
    return float(tolerance)


def validate_step_bounds(min_step: float, max_step: float):
    if min_step is None or not min_step > 0:
        _fail("Minimum step size must be positive, got {}.".format(min_step))
    if max_step is None or not max_step >= min_step:
        _fail("Maximum step size {0} must not be smaller than the minimum "
              "step size {1}.".format(max_step, min_step))
    return float(min_step), float(max_step)


def validate_iterations(value: int, name: str = "max_iterations") -> int:
    if value is None or int(value) != value or value < 1:
        _fail("{0} must be a positive integer, got {1}.".format(name, value))
    return int(value)


def validate_quantum(dq) -> np.ndarray:
    """Quantum width(s) for QSS methods, a scalar or one value per component."""
    arr = np.asarray(dq, dtype=float)
    if arr.size == 0 or not np.all(np.isfinite(arr)) or np.any(arr <= 0):
        _fail("Quantum dQ must be positive, got {}.".format(dq))
    return arr
