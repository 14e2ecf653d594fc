import numpy as np
import pytest

from ode_engine import solvers
from ode_engine.errors import InvalidConfigurationError
from ode_engine.integrators import constant_h_loop
from ode_engine.models import ODEModel
from ode_engine.stepfunctions import *


def ode_func(t, y, lamb=1.0):
    return - lamb * y


def zero_func(t, y):
    return np.zeros_like(y)


def final_error(step_func, h, end=1.0):
    model = ODEModel(ode_fn=ode_func)
    trajectory = constant_h_loop(step_func=step_func,
                                 model=model,
                                 h=h,
                                 max_steps=10000,
                                 end=end,
                                 initial_state=(0.0, 1.0),
                                 callbacks=[],
                                 metrics=[])
    t, y = trajectory.final_state
    return abs(y - np.exp(-t))


@pytest.mark.parametrize("step_func, expected_order", [
    (ForwardEulerMethod(), 1),
    (HeunMethod(), 2),
    (RungeKutta2(), 2),
    (RungeKutta4(), 4),
    (BogackiShampine(), 3),
    (RungeKuttaFehlberg45(), 4),
    (RadauIIA3(tol=1e-13), 3),
])
def test_convergence_order(step_func, expected_order):
    coarse = final_error(step_func, h=0.1)
    fine = final_error(step_func, h=0.05)

    observed_order = np.log2(coarse / fine)

    assert abs(observed_order - expected_order) < 0.35
    assert step_func.order == expected_order


@pytest.mark.parametrize("step_func", [ForwardEulerMethod(), HeunMethod(), RungeKutta2(), RungeKutta4()])
@pytest.mark.parametrize("y0", [1.5, np.array([1.0, -2.0, 3.5])])
def test_stationary_solution_is_idempotent(step_func, y0):
    model = ODEModel(ode_fn=zero_func)

    y = y0
    for i in range(20):
        y_new = step_func.step(model, 0.1 * i, y, 0.1)
        assert np.array_equal(y_new, y)
        y = y_new


def test_rk4_exponential_growth():
    t, y = solvers.rk4(lambda t, y: y, t0=0.0, y0=1.0, end=1.0, h=0.1, final_only=True)

    assert t == 1.0
    assert abs(y - np.e) < 1e-4
    assert y == pytest.approx(2.71814, abs=1e-4)


def test_euler_exponential_growth():
    trajectory = solvers.euler(lambda t, y: y, t0=0.0, y0=1.0, end=1.0, h=0.1)

    assert len(trajectory) == 11
    assert trajectory.final_state[1] == pytest.approx(2.5937, abs=1e-4)
    # first order under-estimate of e
    assert trajectory.final_state[1] < np.e


def test_generic_template_matches_classic_rk4():
    alphas = np.array([0.0, 0.5, 0.5, 1.0])
    betas = np.array([[0.0, 0.0, 0.0, 0.0],
                      [0.5, 0.0, 0.0, 0.0],
                      [0.0, 0.5, 0.0, 0.0],
                      [0.0, 0.0, 1.0, 0.0]])
    gammas = np.array([1 / 6, 1 / 3, 1 / 3, 1 / 6])

    template = ExplicitRungeKuttaMethod(alphas=alphas, betas=betas, gammas=gammas, order=4)
    classic = RungeKutta4()

    model = ODEModel(ode_fn=ode_func, fn_args={"lamb": 0.5})
    y0 = np.ones(5)

    assert np.allclose(template.step(model, 0.0, y0, 0.1), classic.step(model, 0.0, y0, 0.1),
                       rtol=1e-14, atol=0.0)


def test_template_switches_between_scalar_and_vector_states():
    step_func = RungeKutta4()
    template = BogackiShampine()
    model = ODEModel(ode_fn=ode_func)

    for y0 in (1.0, np.ones(3), 2.0):
        y_new = template.step(model, 0.0, y0, 0.1)
        assert np.shape(y_new) == np.shape(y0)
        assert np.allclose(y_new, step_func.step(model, 0.0, y0, 0.1), atol=1e-5)


def test_explicit_template_rejects_implicit_tableau():
    alphas = np.array([0.0, 1.0])
    betas = np.array([[0.5, 0.0],
                      [0.5, 0.5]])
    gammas = np.array([0.5, 0.5])

    with pytest.raises(InvalidConfigurationError):
        ExplicitRungeKuttaMethod(alphas=alphas, betas=betas, gammas=gammas)


def test_explicit_template_rejects_mismatched_lengths():
    with pytest.raises(InvalidConfigurationError):
        ExplicitRungeKuttaMethod(alphas=np.zeros(3), betas=np.zeros((2, 2)), gammas=np.ones(2))


@pytest.mark.parametrize("step_func", [BogackiShampine(), RungeKuttaFehlberg45()])
def test_embedded_error_estimate_scales_with_step_size(step_func):
    model = ODEModel(ode_fn=ode_func)

    _, err_coarse = step_func.step_with_error(model, 0.0, 1.0, 0.1)
    _, err_fine = step_func.step_with_error(model, 0.0, 1.0, 0.05)

    observed = np.log2(abs(err_coarse) / abs(err_fine))

    assert step_func.is_adaptive
    assert abs(observed - (step_func.error_order + 1)) < 0.35


def test_non_embedded_methods_are_not_adaptive():
    for cls in (ForwardEulerMethod, HeunMethod, RungeKutta2, RungeKutta4):
        assert not cls.is_adaptive


def test_step_function_factory_builds_every_method():
    for name, cls in step_function_factory.items():
        step_func = cls()
        assert step_func.order >= 1, name
