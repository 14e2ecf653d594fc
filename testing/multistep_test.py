import numpy as np
import pytest

from ode_engine import solvers
from ode_engine.callbacks import Callback
from ode_engine.errors import ConvergenceError, InvalidConfigurationError
from ode_engine.integrators import constant_h_loop
from ode_engine.models import ODEModel
from ode_engine.stepfunctions import (AdamsBashforth, AdamsMoulton, ForwardEulerMethod,
                                      HistoryBuffer, MultiStepPhase)


def ode_func(t, y):
    return -y


class HistoryLengthRecorder(Callback):
    """Records the history buffer length of the multi-step method after every step."""
    def __init__(self):
        super(HistoryLengthRecorder, self).__init__()
        self.lengths = []

    def __call__(self, i, state, new_state, model, local_vars):
        step_func = local_vars["step_func"]
        self.lengths.append(len(step_func.history))


def run(step_func, h, end=2.0, y0=1.0, t0=0.0, callbacks=None):
    return constant_h_loop(step_func=step_func,
                           model=ODEModel(ode_fn=ode_func),
                           h=h,
                           max_steps=10000,
                           end=end,
                           initial_state=(t0, y0),
                           callbacks=callbacks or [],
                           metrics=[])


@pytest.mark.parametrize("order", [1, 2, 3, 4, 5])
@pytest.mark.parametrize("cls", [AdamsBashforth, AdamsMoulton])
def test_startup_phase_and_history_bound(cls, order):
    step_func = cls(order=order)
    recorder = HistoryLengthRecorder()

    run(step_func, h=0.1, callbacks=[recorder])

    assert step_func.startup_steps == order - 1
    assert step_func.phase is MultiStepPhase.RUNNING
    assert step_func.ready
    assert max(recorder.lengths) <= order
    assert recorder.lengths[-1] == order


@pytest.mark.parametrize("cls", [AdamsBashforth, AdamsMoulton])
def test_large_initial_time_keeps_running_phase(cls):
    # step sizes taken from differences of large time values carry round-off
    t0 = 1e6
    step_func = cls(order=4)

    t, y = run(step_func, h=1e-3, end=t0 + 1.0, t0=t0).final_state

    assert t == t0 + 1.0
    assert step_func.phase is MultiStepPhase.RUNNING
    assert step_func.startup_steps == 3
    assert abs(y - np.exp(-1.0)) < 1e-8


@pytest.mark.parametrize("order", [1, 2, 3, 4])
@pytest.mark.parametrize("cls", [AdamsBashforth, AdamsMoulton])
def test_convergence_order(cls, order):
    errors = []
    for h in (0.05, 0.025):
        t, y = run(cls(order=order), h=h).final_state
        errors.append(abs(y - np.exp(-t)))

    observed_order = np.log2(errors[0] / errors[1])

    assert abs(observed_order - order) < 0.4


def test_vector_valued_state():
    y0 = np.array([1.0, 2.0, -1.0])
    t, y = run(AdamsBashforth(order=3), h=0.01, y0=y0).final_state

    assert y.shape == (3,)
    assert np.allclose(y, y0 * np.exp(-t), atol=1e-5)


def test_adams_moulton_corrector_non_convergence():
    # h * b_0 * |lambda| = 5, the fixed point iteration diverges
    with pytest.raises(ConvergenceError) as excinfo:
        solvers.adams_moulton(lambda t, y: -100.0 * y, t0=0.0, y0=1.0, end=1.0, h=0.1,
                              order=2, max_iterations=20)

    trajectory = excinfo.value.trajectory
    assert trajectory.frozen
    # initial state and the single startup step
    assert len(trajectory) == 2


def test_corrector_iteration_count():
    step_func = AdamsMoulton(order=3, tolerance=1e-12)
    run(step_func, h=0.01)

    assert 1 <= step_func.last_iterations <= step_func.max_iterations


def test_restart_on_discontinuous_input():
    model = ODEModel(ode_fn=ode_func)
    step_func = AdamsBashforth(order=3)

    state = (0.0, 1.0)
    for _ in range(5):
        state = step_func.forward(model, state, 0.1)
    assert step_func.ready

    # a state that does not continue the previous step restarts the method
    step_func.forward(model, (10.0, 1.0), 0.1)
    assert step_func.phase is MultiStepPhase.STARTING
    assert step_func.startup_steps == 1


def test_reset_clears_history():
    model = ODEModel(ode_fn=ode_func)
    step_func = AdamsBashforth(order=2)

    step_func.forward(model, (0.0, 1.0), 0.1)
    assert len(step_func.history) == 1

    step_func.reset()
    assert len(step_func.history) == 0
    assert step_func.startup_steps == 0


def test_low_order_startup_is_accepted():
    step_func = AdamsBashforth(order=2, startup=ForwardEulerMethod())
    t, y = run(step_func, h=0.01).final_state

    assert abs(y - np.exp(-t)) < 1e-3


@pytest.mark.parametrize("order", [0, 6])
def test_unsupported_order(order):
    with pytest.raises(InvalidConfigurationError):
        AdamsBashforth(order=order)
    with pytest.raises(InvalidConfigurationError):
        AdamsMoulton(order=order)


def test_history_buffer_evicts_oldest():
    buffer = HistoryBuffer(capacity=3)

    for value in range(5):
        buffer.push(float(value))
        assert len(buffer) <= 3

    assert buffer.is_full
    assert np.array_equal(buffer.ordered(), [2.0, 3.0, 4.0])
    assert buffer.newest == 4.0


def test_history_buffer_reallocates_on_shape_change():
    buffer = HistoryBuffer(capacity=2)

    buffer.push(np.ones(3))
    buffer.push(np.ones(3))
    buffer.push(np.ones(2))

    assert len(buffer) == 1
    assert buffer.ordered().shape == (1, 2)


def test_history_buffer_capacity():
    with pytest.raises(ValueError):
        HistoryBuffer(capacity=0)
