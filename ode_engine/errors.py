"""
Error taxonomy for ODE integration runs.

Every error raised by a driver loop carries the partial trajectory computed up
to the last good state, so callers can still inspect or continue from it.
"""

__all__ = ["IntegrationError",
           "NonFiniteStateError",
           "ConvergenceError",
           "DimensionMismatchError",
           "InvalidConfigurationError"]


class IntegrationError(Exception):
    """
    Base class for all integration errors.

    Attributes:
        trajectory: Frozen partial trajectory up to the last accepted state, or None
         if the error occurred before stepping began.
    """

    def __init__(self, message: str, trajectory=None):
        super(IntegrationError, self).__init__(message)
        self.trajectory = trajectory


class NonFiniteStateError(IntegrationError):
    """A derivative or state became infinite or NaN."""
    pass


class ConvergenceError(IntegrationError):
    """An iteration limit (corrector, step size search, step count) was exceeded."""
    pass


class DimensionMismatchError(IntegrationError, ValueError):
    """A derivative function returned a result whose shape differs from the state."""
    pass


class InvalidConfigurationError(IntegrationError, ValueError):
    """Rejected configuration, raised before any stepping begins."""
    pass
