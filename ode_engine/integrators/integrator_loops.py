import copy
import logging
from typing import Callable, List

import numpy as np
from tqdm import trange

from ode_engine import defaults
from ode_engine.callbacks import Callback
from ode_engine.constants import ModelMetadataKeys
from ode_engine.errors import (ConvergenceError, IntegrationError, InvalidConfigurationError,
                               NonFiniteStateError)
from ode_engine.metrics import Metric
from ode_engine.models import BaseModel
from ode_engine.qss import QSSMethod
from ode_engine.stepfunctions import StepFunction
from ode_engine.stepsize_control import StepSizeController, EmbeddedErrorController
from ode_engine.trajectory import Trajectory
from ode_engine.types import State
from ode_engine.utils.helpers import as_state_variable, is_finite_state
from ode_engine.utils.validation import validate_step_size, validate_iterations

__all__ = ["constant_h_loop", "adaptive_h_loop", "quantized_loop"]

progress_funcs = {True: trange, False: range}

logger = logging.getLogger(__name__)

# relative slack when counting the grid points up to the end time
_GRID_EPS = 1e-9


def _prepare_state(initial_state: State) -> State:
    # deepcopy here, otherwise the initial state gets overwritten
    state = copy.deepcopy(tuple(initial_state))
    return (float(state[0]),) + tuple(as_state_variable(v) for v in state[1:])


def _make_trajectory(model: BaseModel, state: State) -> Trajectory:
    try:
        metadata = model.get_metadata()
    except NotImplementedError:
        metadata = {}

    variable_names = metadata.get(ModelMetadataKeys.VARIABLE_NAMES)
    if variable_names is not None and len(variable_names) != len(state):
        variable_names = None

    return Trajectory(state,
                      variable_names=variable_names,
                      dim_names=metadata.get(ModelMetadataKeys.DIM_NAMES))


def _fail(error_cls, message: str, trajectory: Trajectory):
    logger.error(message)
    raise error_cls(message, trajectory=trajectory.freeze())


def _check_finite(state: State, i: int, trajectory: Trajectory):
    if not is_finite_state(state):
        _fail(NonFiniteStateError,
              "Non-finite state encountered in step {0} at t={1}.".format(i, state[0]),
              trajectory)


def _attach(err: IntegrationError, trajectory: Trajectory):
    if err.trajectory is None:
        err.trajectory = trajectory.freeze()
    logger.error("Integration failed at t={0}: {1}".format(trajectory.final_state[0], err))


def _record_step(i: int,
                 state: State,
                 new_state: State,
                 model: BaseModel,
                 trajectory: Trajectory,
                 callbacks: List[Callback],
                 metrics: List[Metric],
                 local_vars,
                 builtin_metrics=None):
    # adding the current iteration number and time stamp
    new_metrics = dict(builtin_metrics or {})
    new_metrics.update({m.__name__: m(i, state, new_state, model, local_vars) for m in metrics})

    # execute the registered callbacks after the step
    for callback in callbacks:
        callback(i, state, new_state, model, local_vars)

    trajectory.append(new_state, new_metrics)


def constant_h_loop(step_func: StepFunction,
                    model: BaseModel,
                    h: float,
                    max_steps: int,
                    end: float,
                    initial_state: State,
                    callbacks: List[Callback],
                    metrics: List[Metric],
                    event: Callable[..., bool] = None,
                    progress_bar: bool = False,
                    **kwargs) -> Trajectory:
    """
    Integrate with a constant step size.

    With an end time, the run visits the grid points t0 + i * h and lands exactly on the end
    time; the last step is shortened if the span is not a multiple of h. Without an end time,
    exactly max_steps steps are taken.

    Returns:
        The frozen trajectory, including the initial state.

    Raises:
        ConvergenceError: If max_steps steps do not reach the end time.
    """
    state = _prepare_state(initial_state)
    t0 = state[0]

    h = validate_step_size(h, start=t0, end=end)
    max_steps = validate_iterations(max_steps, name="max_steps")

    if end is None:
        num_steps = max_steps
    else:
        num_steps = max(1, int(np.ceil((end - t0) / h - _GRID_EPS)))

    trajectory = _make_trajectory(model, state)

    step_func.reset()

    # treat initial state as state 0
    iterator = progress_funcs.get(bool(progress_bar))(1, min(num_steps, max_steps) + 1)

    for i in iterator:
        t_next = end if (end is not None and i == num_steps) else t0 + i * h

        try:
            new_state = step_func.forward(model, state, t_next - state[0])
        except IntegrationError as err:
            _attach(err, trajectory)
            raise

        # pin the time to the grid to avoid accumulating round-off
        new_state = (t_next,) + tuple(new_state[1:])

        _check_finite(new_state, i, trajectory)

        _record_step(i, state, new_state, model, trajectory, callbacks, metrics, locals())

        # update delayed after callback execution
        state = new_state

        if event is not None and event(*state):
            logger.info("Event triggered at t={}.".format(state[0]))
            break
    else:
        if num_steps > max_steps:
            _fail(ConvergenceError,
                  "Maximum number of {0} steps exceeded before reaching the end "
                  "time {1}.".format(max_steps, end),
                  trajectory)

    return trajectory.freeze()


def adaptive_h_loop(step_func: StepFunction,
                    model: BaseModel,
                    h: float,
                    max_steps: int,
                    end: float,
                    initial_state: State,
                    callbacks: List[Callback],
                    metrics: List[Metric],
                    sc: StepSizeController = None,
                    max_iterations: int = defaults.MAX_ITERATIONS,
                    event: Callable[..., bool] = None,
                    progress_bar: bool = False,
                    **kwargs) -> Trajectory:
    """
    Integrate adaptively with an embedded Runge-Kutta pair.

    Every trial step is judged by the step size controller. Rejected trial steps are retried
    with the reduced step size and never enter the trajectory. The last step is shortened to
    land exactly on the end time.

    Returns:
        The frozen trajectory, including the initial state.

    Raises:
        ConvergenceError: If a step is rejected more than max_iterations times, if the step
         size cannot be reduced any further, or if max_steps accepted steps do not reach
         the end time.
    """
    if not getattr(step_func, "is_adaptive", False):
        raise InvalidConfigurationError("Adaptive integration requires a step function with an "
                                        "error estimate, got {}.".format(type(step_func).__name__))

    if end is None:
        raise InvalidConfigurationError("Adaptive integration requires an end time.")

    state = _prepare_state(initial_state)
    t0 = state[0]

    h = validate_step_size(h, start=t0, end=end)
    max_steps = validate_iterations(max_steps, name="max_steps")
    max_iterations = validate_iterations(max_iterations, name="max_iterations")

    sc = sc or EmbeddedErrorController()
    if isinstance(sc, EmbeddedErrorController):
        h = sc.clamp(h)

    direction = np.sign(end - t0)

    trajectory = _make_trajectory(model, state)

    step_func.reset()

    # treat initial state as state 0
    iterator = progress_funcs.get(bool(progress_bar))(1, max_steps + 1)

    for i in iterator:
        t, y = state

        num_rejected = 0
        h_step = h

        while True:
            # shorten the step to land on the end time
            last_step = direction * (t + h_step - end) >= 0
            if last_step:
                h_step = end - t

            try:
                y_new, y_err = step_func.step_with_error(model, t, y, h_step)
            except IntegrationError as err:
                _attach(err, trajectory)
                raise

            new_state = (end if last_step else t + h_step, y_new)

            _check_finite((t, y_new, y_err), i, trajectory)

            accepted, h_next = sc(i, h_step, state, (new_state, y_err), model, locals())

            if accepted:
                break

            num_rejected += 1
            logger.debug("Rejected step of size {0} at t={1}, retrying with "
                         "h={2}.".format(h_step, t, h_next))

            if num_rejected > max_iterations:
                _fail(ConvergenceError,
                      "Step at t={0} rejected {1} times.".format(t, num_rejected),
                      trajectory)

            if abs(h_next) >= abs(h_step):
                _fail(ConvergenceError,
                      "Step size cannot be reduced below {0} at t={1} to meet the "
                      "tolerance.".format(abs(h_step), t),
                      trajectory)

            h_step = h_next

        builtin_metrics = {defaults.step_size: h_step, defaults.rejected: num_rejected}

        _record_step(i, state, new_state, model, trajectory, callbacks, metrics, locals(),
                     builtin_metrics=builtin_metrics)

        # update delayed after callback execution
        state = new_state
        h = h_next

        if last_step:
            break

        if event is not None and event(*state):
            logger.info("Event triggered at t={}.".format(state[0]))
            break
    else:
        _fail(ConvergenceError,
              "Maximum number of {0} steps exceeded before reaching the end "
              "time {1}.".format(max_steps, end),
              trajectory)

    return trajectory.freeze()


def quantized_loop(step_func: QSSMethod,
                   model: BaseModel,
                   max_steps: int,
                   end: float,
                   initial_state: State,
                   callbacks: List[Callback],
                   metrics: List[Metric],
                   event: Callable[..., bool] = None,
                   progress_bar: bool = False,
                   **kwargs) -> Trajectory:
    """
    Integrate with a quantized state system method.

    Every quantization event appends one state to the trajectory, recording the firing
    component in the builtin "component" metric. Events are processed in order of their
    time, ties in order of the component index. Unless the run was stopped by the event
    predicate, the trajectory is completed with the state at the end time.

    Returns:
        The frozen trajectory, including the initial state.

    Raises:
        ConvergenceError: If more than max_steps events are due before the end time.
    """
    if not isinstance(step_func, QSSMethod):
        raise InvalidConfigurationError("Quantized integration requires a QSS method, "
                                        "got {}.".format(type(step_func).__name__))

    state = _prepare_state(initial_state)
    t0, y0 = state

    if end is None or not np.isfinite(end) or end <= t0:
        raise InvalidConfigurationError("Quantized integration requires a finite end time "
                                        "after the initial time {0}, got {1}.".format(t0, end))

    max_steps = validate_iterations(max_steps, name="max_steps")

    trajectory = _make_trajectory(model, state)

    try:
        step_func.initialize(model, t0, y0)
    except IntegrationError as err:
        _attach(err, trajectory)
        raise

    stopped = False

    iterator = progress_funcs.get(bool(progress_bar))(1, max_steps + 1)

    for i in iterator:
        t_next, _ = step_func.peek()
        if t_next > end:
            break

        try:
            t, index = step_func.fire(model)
        except IntegrationError as err:
            _attach(err, trajectory)
            raise

        new_state = (t, step_func.values(t))

        _check_finite(new_state, i, trajectory)

        _record_step(i, state, new_state, model, trajectory, callbacks, metrics, locals(),
                     builtin_metrics={defaults.component: index})

        state = new_state

        if event is not None and event(*state):
            logger.info("Event triggered at t={}.".format(state[0]))
            stopped = True
            break
    else:
        if step_func.peek()[0] <= end:
            _fail(ConvergenceError,
                  "Maximum number of {0} quantization events exceeded before reaching the "
                  "end time {1}.".format(max_steps, end),
                  trajectory)

    if not stopped and state[0] < end:
        final_state = (end, step_func.values(end))
        _check_finite(final_state, len(trajectory), trajectory)
        trajectory.append(final_state)

    logger.debug("QSS run finished after {} events.".format(step_func.num_events))

    return trajectory.freeze()
