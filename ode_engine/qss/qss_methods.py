import logging
from typing import Dict, Iterable, List, Tuple

import numpy as np

from ode_engine.defaults import QSS_DQ, FD_STEP
from ode_engine.errors import DimensionMismatchError, InvalidConfigurationError
from ode_engine.models import ODEModel
from ode_engine.qss.event_queue import EventQueue
from ode_engine.qss.quantized_variable import QuantizedVariable
from ode_engine.types import StateVariable
from ode_engine.utils.validation import validate_quantum

logger = logging.getLogger(__name__)

__all__ = ["QSSMethod", "QSS1", "QSS2", "QSS3"]


class QSSMethod:
    """
    Base class for quantized state system (QSS) methods.

    Instead of advancing all components of the state with a common time step, a QSS method
    quantizes the state values. Each component advances along its own polynomial trajectory
    and schedules its next event for the time at which the trajectory leaves its current
    quantization band of width dq. Firing an event requantizes the component and recomputes
    the derivatives, and hence the predicted event times, of all components that read it.

    For more information, see Cellier & Kofman, "Continuous System Simulation", chapter 11.
    """
    order = 0
    is_adaptive = False

    def __init__(self,
                 dq=QSS_DQ,
                 dependencies: Dict[int, Iterable[int]] = None,
                 fd_step: float = FD_STEP):
        """
        QSS method constructor.

        Args:
            dq: Quantum, either a scalar or one positive value per state component.
            dependencies: Optional dict mapping a component index to the indices of the
             components whose right-hand side reads it. Defaults to all components.
            fd_step: Time offset used for the finite difference derivatives of the right-hand
             side along the quantized trajectories (QSS2 and QSS3 only).
        """
        self.dq = validate_quantum(dq)

        if fd_step <= 0:
            raise InvalidConfigurationError("Finite difference step must be positive, "
                                            "got {}.".format(fd_step))

        self.dependencies = dependencies
        self.fd_step = fd_step

        self.variables: List[QuantizedVariable] = []
        self.queue = EventQueue()
        self.t = None
        self._scalar = False

    def reset(self):
        self.variables = []
        self.queue = EventQueue()
        self.t = None

    @property
    def num_events(self) -> int:
        return sum(v.num_events for v in self.variables)

    def _call(self, model: ODEModel, t: float, q: np.ndarray) -> np.ndarray:
        y = q[0] if self._scalar else q
        return np.atleast_1d(model(t, y)).astype(float)

    def _quantized_state(self, t: float) -> np.ndarray:
        return np.array([v.quantized_value(t) for v in self.variables])

    def _taylor_coeffs(self, model: ODEModel, t: float) -> np.ndarray:
        """
        Taylor coefficients of orders 1 to n of all components at time t, computed from
        the right-hand side evaluated along the quantized trajectories.

        Returns:
            An array of shape (n, dim).
        """
        f0 = self._call(model, t, self._quantized_state(t))

        if self.order == 1:
            return f0[np.newaxis, :]

        delta = self.fd_step
        f_plus = self._call(model, t + delta, self._quantized_state(t + delta))
        f_minus = self._call(model, t - delta, self._quantized_state(t - delta))

        # central differences for the first and second time derivative
        df = (f_plus - f_minus) / (2 * delta)

        if self.order == 2:
            return np.stack([f0, df / 2])

        d2f = (f_plus - 2 * f0 + f_minus) / delta ** 2

        return np.stack([f0, df / 2, d2f / 6])

    def _dependents(self, index: int) -> Iterable[int]:
        if self.dependencies is None:
            return range(len(self.variables))
        return set(self.dependencies.get(index, ())) | {index}

    def _reschedule(self, t: float, indices: Iterable[int], coeffs: np.ndarray):
        for j in indices:
            v = self.variables[j]
            v.update_derivatives(t, coeffs[:, j])
            self.queue.schedule(j, v.compute_next_time(t))

    def initialize(self, model: ODEModel, t0: float, y0: StateVariable):
        """
        Set up the quantized variables and schedule the first event of every component.

        Args:
            model: ODEModel object implementing the ODE model.
            t0: Initial time.
            y0: Initial state, a scalar or a 1-d array.
        """
        self._scalar = np.ndim(y0) == 0
        y = np.atleast_1d(np.asarray(y0, dtype=float))

        if y.ndim != 1:
            raise DimensionMismatchError("QSS methods require a scalar or 1-d state, "
                                         "got shape {}.".format(y.shape))

        if self.dq.ndim > 0 and self.dq.shape != y.shape:
            raise DimensionMismatchError("Got {0} quanta for a state of dimension "
                                         "{1}.".format(self.dq.size, y.size))

        dq = np.broadcast_to(self.dq, y.shape)

        self.queue = EventQueue()
        self.variables = [QuantizedVariable(index=i, order=self.order, dq=dq[i], value=y[i], t=t0)
                          for i in range(len(y))]
        self.t = t0

        # each pass makes one more Taylor coefficient of q consistent with x
        for _ in range(self.order - 1):
            coeffs = self._taylor_coeffs(model, t0)
            for v in self.variables:
                v.update_derivatives(t0, coeffs[:, v.index])
                v.requantize(t0, count=False)

        self._reschedule(t0, range(len(y)), self._taylor_coeffs(model, t0))

    def peek(self) -> Tuple[float, int]:
        """
        Return (time, index) of the next pending event, or (inf, -1) if no component
        will ever fire again.
        """
        nxt = self.queue.peek()
        return nxt if nxt is not None else (np.inf, -1)

    def fire(self, model: ODEModel) -> Tuple[float, int]:
        """
        Process the earliest pending event.

        The firing component is requantized; afterwards the derivatives of all of its
        dependents (and its own) are recomputed from the updated quantized state, and their
        next events are rescheduled.

        Returns:
            A tuple (t, index) of the event time and the firing component.
        """
        t, i = self.queue.pop()
        self.t = t

        self.variables[i].requantize(t)

        self._reschedule(t, self._dependents(i), self._taylor_coeffs(model, t))

        return t, i

    def values(self, t: float) -> StateVariable:
        """State trajectories of all components evaluated at time t."""
        y = np.array([v.value(t) for v in self.variables])
        return np.float64(y[0]) if self._scalar else y


class QSS1(QSSMethod):
    """
    First order QSS method. Quantized trajectories are piecewise constant,
    state trajectories piecewise linear.
    """
    order = 1


class QSS2(QSSMethod):
    """
    Second order QSS method. Quantized trajectories are piecewise linear,
    state trajectories piecewise parabolic.
    """
    order = 2


class QSS3(QSSMethod):
    """
    Third order QSS method. Quantized trajectories are piecewise parabolic,
    state trajectories piecewise cubic.
    """
    order = 3
