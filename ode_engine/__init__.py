from ode_engine.version import PACKAGE_NAME, PACKAGE_VERSION

from ode_engine.errors import (
    IntegrationError,
    NonFiniteStateError,
    ConvergenceError,
    DimensionMismatchError,
    InvalidConfigurationError
)
from ode_engine.models import ODEModel, HamiltonianSystem
from ode_engine.trajectory import Trajectory
from ode_engine.integrators import Integrator
from ode_engine import solvers

__version__ = PACKAGE_VERSION
