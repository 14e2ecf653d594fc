import numpy as np
import pytest

from ode_engine import defaults, solvers
from ode_engine.errors import ConvergenceError, DimensionMismatchError, InvalidConfigurationError
from ode_engine.integrators import Integrator
from ode_engine.models import ODEModel
from ode_engine.qss import QSS1, QSS2, QSS3, EventQueue, QuantizedVariable
from ode_engine.qss.quantized_variable import shift_polynomial


def constant_rate(rate):
    def ode_func(t, y):
        return rate

    return ode_func


def count_events(trajectory):
    return sum(defaults.component in m for m in trajectory.metrics)


def test_qss1_fires_one_event_per_quantum():
    trajectory = solvers.qss1(constant_rate(0.5), t0=0.0, y0=0.0, end=1.1, dq=0.1)

    assert count_events(trajectory) == 5

    event_times = trajectory.times[1:-1]
    assert np.allclose(event_times, [0.2, 0.4, 0.6, 0.8, 1.0])
    assert np.allclose(trajectory.values()[1:-1], [0.1, 0.2, 0.3, 0.4, 0.5])

    t, y = trajectory.final_state
    assert t == 1.1
    assert y == pytest.approx(0.55)


def test_qss1_no_event_within_one_quantum():
    trajectory = solvers.qss1(constant_rate(0.05), t0=0.0, y0=0.0, end=1.0, dq=0.1)

    assert count_events(trajectory) == 0
    assert len(trajectory) == 2
    assert trajectory.final_state[1] == pytest.approx(0.05)


def test_simultaneous_events_are_ordered_by_component():
    trajectory = solvers.qss1(lambda t, y: np.array([0.5, 0.5]), t0=0.0, y0=np.zeros(2),
                              end=0.3, dq=0.1)

    components = [m[defaults.component] for m in trajectory.metrics if defaults.component in m]
    assert components == [0, 1]


def test_components_fire_asynchronously():
    trajectory = solvers.qss1(lambda t, y: np.array([0.5, 1.0]), t0=0.0, y0=np.zeros(2),
                              end=0.45, dq=0.1)

    components = [m[defaults.component] for m in trajectory.metrics if defaults.component in m]

    assert components.count(1) == 4
    assert components.count(0) == 2
    assert np.all(np.diff(trajectory.times) >= 0)


@pytest.mark.parametrize("method, dq, atol", [
    (solvers.qss1, 1e-3, 5e-3),
    (solvers.qss2, 1e-3, 1e-3),
    (solvers.qss3, 1e-3, 1e-3),
])
def test_qss_tracks_exponential_decay(method, dq, atol):
    t, y = method(lambda t, y: -y, t0=0.0, y0=1.0, end=2.0, dq=dq, final_only=True)

    assert t == 2.0
    assert abs(y - np.exp(-2.0)) < atol


def test_higher_order_needs_fewer_events():
    num_events = []
    for method in (solvers.qss1, solvers.qss2, solvers.qss3):
        trajectory = method(lambda t, y: -y, t0=0.0, y0=1.0, end=2.0, dq=1e-3)
        num_events.append(count_events(trajectory))

    assert num_events[0] > num_events[1] > num_events[2]


def test_qss2_is_exact_for_constant_derivative():
    trajectory = solvers.qss2(constant_rate(0.5), t0=0.0, y0=1.0, end=10.0, dq=0.01)

    assert count_events(trajectory) == 0
    assert trajectory.final_state[1] == pytest.approx(6.0)


def test_coupled_oscillator_with_dependencies():
    def oscillator(t, y):
        return np.array([y[1], -y[0]])

    # component 0 is read by the derivative of component 1 and vice versa
    dependencies = {0: [1], 1: [0]}

    t, y = solvers.qss2(oscillator, t0=0.0, y0=np.array([1.0, 0.0]), end=np.pi / 2,
                        dq=1e-4, dependencies=dependencies, final_only=True)

    assert np.allclose(y, [0.0, -1.0], atol=1e-2)


def test_event_predicate_stops_qss_run():
    trajectory = solvers.qss1(constant_rate(0.5), t0=0.0, y0=0.0, end=10.0, dq=0.1,
                              event=lambda t, y: y >= 0.25)

    assert count_events(trajectory) == 3
    assert len(trajectory) == 4
    assert trajectory.final_state[0] == pytest.approx(0.6)


def test_too_many_events_raise_convergence_error():
    with pytest.raises(ConvergenceError) as excinfo:
        solvers.qss1(constant_rate(1.0), t0=0.0, y0=0.0, end=10.0, dq=0.01, max_steps=5)

    assert len(excinfo.value.trajectory) == 6


@pytest.mark.parametrize("dq", [0.0, -0.1, [0.1, 0.0]])
def test_non_positive_quantum_is_rejected(dq):
    with pytest.raises(InvalidConfigurationError):
        QSS1(dq=dq)


def test_quantum_per_component_must_match_state():
    with pytest.raises(DimensionMismatchError):
        solvers.qss1(lambda t, y: -y, t0=0.0, y0=np.ones(3), end=1.0, dq=[0.1, 0.1])


def test_qss_requires_end_after_start():
    with pytest.raises(InvalidConfigurationError):
        solvers.qss1(lambda t, y: -y, t0=1.0, y0=1.0, end=0.0)


def test_integrator_records_quantized_runs():
    integrator = Integrator()
    integrator.integrate_quantized(model=ODEModel(ode_fn=constant_rate(0.5)),
                                   step_func=QSS2(dq=0.1),
                                   initial_state=(0.0, 0.0),
                                   end=1.0)

    trajectory = integrator.get_result_by_id("latest")
    assert trajectory.final_state[1] == pytest.approx(0.5)


def test_event_queue_orders_by_time_then_index():
    queue = EventQueue()
    queue.schedule(2, 1.0)
    queue.schedule(0, 1.0)
    queue.schedule(1, 0.5)

    assert len(queue) == 3
    assert queue.pop() == (0.5, 1)
    assert queue.pop() == (1.0, 0)
    assert queue.pop() == (1.0, 2)
    assert queue.peek() is None


def test_event_queue_reschedule_invalidates_previous_entry():
    queue = EventQueue()
    queue.schedule(0, 1.0)
    queue.schedule(1, 2.0)
    queue.schedule(0, 3.0)

    assert queue.pop() == (2.0, 1)
    assert queue.pop() == (3.0, 0)

    queue.schedule(0, 4.0)
    queue.cancel(0)
    assert len(queue) == 0
    with pytest.raises(IndexError):
        queue.pop()


def test_quantized_variable_next_time():
    variable = QuantizedVariable(index=0, order=1, dq=0.1, value=1.0, t=0.0)
    variable.update_derivatives(0.0, np.array([-0.25]))

    assert variable.compute_next_time(0.0) == pytest.approx(0.4)

    variable.requantize(0.4)
    assert variable.quantized_value(1.0) == pytest.approx(0.9)
    assert variable.num_events == 1


def test_shift_polynomial():
    coeffs = np.array([1.0, 2.0, 3.0])
    shifted = shift_polynomial(coeffs, 0.5)

    for s in (0.0, 0.3, 1.7):
        assert np.polynomial.polynomial.polyval(s, shifted) == \
            pytest.approx(np.polynomial.polynomial.polyval(s + 0.5, coeffs))


def test_qss3_order_attribute():
    assert (QSS1.order, QSS2.order, QSS3.order) == (1, 2, 3)
    assert not QSS3.is_adaptive
