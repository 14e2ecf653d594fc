import numpy as np
import pytest

from ode_engine import defaults, solvers
from ode_engine.errors import ConvergenceError, InvalidConfigurationError
from ode_engine.integrators import adaptive_h_loop
from ode_engine.models import ODEModel
from ode_engine.stepfunctions import RungeKutta4, RungeKuttaFehlberg45
from ode_engine.stepsize_control import EmbeddedErrorController


def ode_func(t, y):
    return -y


def oscillator(t, y):
    return np.array([y[1], -y[0]])


def test_rkf45_local_error_stays_within_tolerance():
    tolerance = 1e-6
    trajectory = solvers.rkf45(ode_func, t0=0.0, y0=1.0, end=5.0, tolerance=tolerance)

    states = trajectory.states
    for (t0, y0), (t1, y1) in zip(states[:-1], states[1:]):
        local_error = abs(y1 - y0 * np.exp(-(t1 - t0)))
        assert local_error <= 10 * tolerance

    t, y = trajectory.final_state
    assert t == 5.0
    assert abs(y - np.exp(-5.0)) < 1e-4


@pytest.mark.parametrize("tolerance", [1e-3, 1e-8])
def test_rkf45_step_sizes_respect_bounds(tolerance):
    min_step, max_step = 1e-3, 0.2

    trajectory = solvers.rkf45(oscillator, t0=0.0, y0=np.array([1.0, 0.0]), end=10.0,
                               tolerance=tolerance, min_step=min_step, max_step=max_step)

    step_sizes = [m[defaults.step_size] for m in trajectory.metrics[1:]]

    # the final step is shortened to land on the end time
    for h in step_sizes[:-1]:
        assert min_step <= h <= max_step
    assert 0 < step_sizes[-1] <= max_step

    assert np.allclose(np.diff(trajectory.times), step_sizes)


def test_rejected_trial_steps_are_not_recorded():
    trajectory = solvers.rkf45(lambda t, y: -50.0 * y, t0=0.0, y0=1.0, end=1.0, h=1.0,
                               tolerance=1e-6)

    first = trajectory.metrics[1]
    assert first[defaults.rejected] >= 1
    assert first[defaults.step_size] < 1.0

    # every recorded state advances time
    assert np.all(np.diff(trajectory.times) > 0)
    assert sum(m[defaults.rejected] for m in trajectory.metrics[1:]) >= 1


def test_zero_error_grows_step_by_maximal_factor():
    sc = EmbeddedErrorController(tolerance=1e-6)

    accepted, h_new = sc(1, 0.1, (0.0, 1.0), ((0.1, 1.0), 0.0), None, {"step_func": RungeKuttaFehlberg45()})

    assert accepted
    assert h_new == pytest.approx(0.1 * defaults.FAC_MAX)


def test_controller_step_size_update():
    sc = EmbeddedErrorController(tolerance=1e-6, order=4)

    accepted, h_new = sc(1, 0.1, (0.0, 1.0), ((0.1, 1.0), 1e-6 / 32), None, {})
    assert accepted
    assert h_new == pytest.approx(0.1 * 0.9 * 2)

    accepted, h_new = sc(1, 0.1, (0.0, 1.0), ((0.1, 1.0), 1e-1), None, {})
    assert not accepted
    assert h_new == pytest.approx(0.1 * defaults.FAC_MIN)


def test_controller_keeps_sign_for_backward_steps():
    sc = EmbeddedErrorController(tolerance=1e-6, min_step=1e-3, max_step=0.5, order=4)

    _, h_new = sc(1, -0.4, (1.0, 1.0), ((0.6, 1.0), 0.0), None, {})
    assert h_new == -0.5


def test_backward_integration():
    t, y = solvers.rkf45(ode_func, t0=1.0, y0=np.exp(-1.0), end=0.0, tolerance=1e-8,
                         final_only=True)

    assert t == 0.0
    assert y == pytest.approx(1.0, abs=1e-6)


def test_bogacki_shampine_adaptive():
    t, y = solvers.bogacki_shampine(ode_func, t0=0.0, y0=np.ones(3), end=2.0, tolerance=1e-7,
                                    final_only=True)

    assert np.allclose(y, np.exp(-2.0), atol=1e-5)


def test_step_size_floor_raises_convergence_error():
    with pytest.raises(ConvergenceError) as excinfo:
        solvers.rkf45(ode_func, t0=0.0, y0=1.0, end=1.0, tolerance=1e-15,
                      min_step=0.1, max_step=0.1, h=0.1)

    trajectory = excinfo.value.trajectory
    assert trajectory.frozen
    assert len(trajectory) == 1


def test_max_steps_exceeded_raises_convergence_error():
    with pytest.raises(ConvergenceError) as excinfo:
        solvers.rkf45(ode_func, t0=0.0, y0=1.0, end=100.0, max_step=0.1, max_steps=3)

    assert len(excinfo.value.trajectory) == 4


def test_event_stops_adaptive_run():
    trajectory = solvers.rkf45(ode_func, t0=0.0, y0=1.0, end=10.0,
                               event=lambda t, y: y < 0.5)

    t, y = trajectory.final_state
    assert y < 0.5
    assert t < 10.0
    assert all(y_i >= 0.5 for y_i in trajectory.values()[:-1])


def test_adaptive_loop_requires_embedded_method():
    with pytest.raises(InvalidConfigurationError):
        adaptive_h_loop(step_func=RungeKutta4(),
                        model=ODEModel(ode_fn=ode_func),
                        h=0.1,
                        max_steps=100,
                        end=1.0,
                        initial_state=(0.0, 1.0),
                        callbacks=[],
                        metrics=[])


@pytest.mark.parametrize("kwargs", [
    {"tolerance": 0.0},
    {"tolerance": -1e-6},
    {"min_step": 0.0},
    {"min_step": 0.5, "max_step": 0.1},
    {"h": -0.1},
    {"max_iterations": 0},
])
def test_invalid_adaptive_configuration(kwargs):
    with pytest.raises(InvalidConfigurationError):
        solvers.rkf45(ode_func, t0=0.0, y0=1.0, end=1.0, **kwargs)
