from typing import Dict, Text, Any, Tuple

import numpy as np

from ode_engine.defaults import TOLERANCE, MIN_STEP, SAFETY_FACTOR, FAC_MIN, FAC_MAX
from ode_engine.models import BaseModel
from ode_engine.types import ModelState, StateVariable
from ode_engine.utils.helpers import error_norm
from ode_engine.utils.validation import validate_tolerance, validate_step_bounds


class StepSizeController:
    """
    Base StepSizeController interface. Subclass this to define your own custom step size control
    functions.
    """

    def __call__(self,
                 i: int,
                 h: float,
                 state: ModelState,
                 updated_state: Tuple[ModelState, StateVariable],
                 model: BaseModel,
                 local_vars: Dict[Text, Any]) -> Tuple[bool, float]:
        raise NotImplementedError


class EmbeddedErrorController(StepSizeController):
    """
    Step size control for embedded Runge-Kutta pairs. The step size is regulated by the norm of
    the difference of the two solutions of the pair, which estimates the local error of a step.

    A step is accepted if its error estimate does not exceed the tolerance. In any case, the next
    step size is ::

        h_new = h * clip(safety_factor * (tolerance / err) ** (1 / (order + 1)), fac_min, fac_max),

    clamped in absolute value to the range [min_step, max_step].
    """

    def __init__(self,
                 tolerance: float = TOLERANCE,
                 min_step: float = MIN_STEP,
                 max_step: float = np.inf,
                 safety_factor: float = SAFETY_FACTOR,
                 fac_min: float = FAC_MIN,
                 fac_max: float = FAC_MAX,
                 order: int = None):
        """
        Embedded error step size control constructor.

        Args:
            tolerance: Local error tolerance per step.
            min_step: Minimal absolute step size.
            max_step: Maximal absolute step size.
            safety_factor: Safety factor, commonly set around 0.9.
            fac_min: Maximal step size reduction factor.
            fac_max: Maximal step size increase factor.
            order: Order of the error estimate. If not given, it is taken from the
             step function's ``error_order`` attribute.
        """

        self.tolerance = validate_tolerance(tolerance)
        self.min_step, self.max_step = validate_step_bounds(min_step, max_step)
        self.fac_min = fac_min
        self.fac_max = fac_max
        self.safety_factor = safety_factor
        self.order = order

    def clamp(self, h: float) -> float:
        """Clamp the absolute value of a step size to [min_step, max_step], keeping its sign."""
        return float(np.sign(h) * min(self.max_step, max(self.min_step, abs(h))))

    def __call__(self,
                 i: int,
                 h: float,
                 state: ModelState,
                 updated_state: Tuple[ModelState, StateVariable],
                 model: BaseModel,
                 local_vars: Dict[Text, Any]) -> Tuple[bool, float]:
        """
        Embedded error step size control call operator.

        Args:
            i: Current iteration number.
            h: Current step size.
            state: Previous ODE state.
            updated_state: Tuple of the new computed ODE state and its local error estimate.
            model: The ODE model being integrated.
            local_vars: Handle for locals() dict passed to the step size control.

        Returns:
            A tuple (acc, h_new) consisting of a boolean acc, indicating whether or not the new
            state was accepted, and the step size h_new to use in the next step.

        """
        _, y_err = updated_state

        order = self.order
        if order is None:
            order = getattr(local_vars.get("step_func"), "error_order", 1)

        err = error_norm(y_err)

        accept = err <= self.tolerance

        if err == 0.:
            factor = self.fac_max
        else:
            error_est = (self.tolerance / err) ** (1 / (order + 1))
            factor = min(self.fac_max, max(self.fac_min, self.safety_factor * error_est))

        return accept, self.clamp(h * factor)
