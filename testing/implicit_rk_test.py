from math import sqrt

import numpy as np
import pytest

from ode_engine import solvers
from ode_engine.errors import InvalidConfigurationError
from ode_engine.integrators import Integrator
from ode_engine.metrics import DistanceToSolution
from ode_engine.models import ODEModel
from ode_engine.stepfunctions import ImplicitRungeKuttaMethod, RadauIIA3, RungeKutta4

y_0 = np.ones(10)
lamb = 0.5


def ode_func(t, y, lamb=0.5):
    return - lamb * y


def sol(t):
    return y_0 * np.exp(-lamb * t)


def gauss_legendre_4():
    c = sqrt(3) / 6

    alphas = np.array([0.5 - c, 0.5 + c])
    betas = np.array([[0.25, 0.25 - c],
                      [0.25 + c, 0.25]])
    gammas = np.array([0.5, 0.5])

    return ImplicitRungeKuttaMethod(alphas=alphas, betas=betas, gammas=gammas, order=4)


def test_implicit_template_tracks_solution():
    model = ODEModel(ode_fn=ode_func, fn_args={"lamb": lamb})

    integrator = Integrator()

    for step_func in (RungeKutta4(), gauss_legendre_4(), RadauIIA3()):
        integrator.integrate_const(model=model,
                                   step_func=step_func,
                                   initial_state=(0.0, y_0),
                                   h=0.01,
                                   end=1.0,
                                   metrics=[DistanceToSolution(solution=sol, name="l2_distance")])

        metrics = integrator.return_metrics(result_id="latest")

        assert metrics["l2_distance"].max() < 1e-5


def test_radau_is_stable_on_stiff_problem():
    # explicit methods blow up for h * 1000 > 2.8 (RK4)
    t, y = solvers.radau_iia(lambda t, y: -1000.0 * (y - np.cos(t)), t0=0.0, y0=0.0,
                             end=1.0, h=0.1, final_only=True)

    assert t == 1.0
    assert abs(y - np.cos(1.0)) < 1e-2

    with np.errstate(over="ignore", invalid="ignore"):
        rk4_final = solvers.rk4(lambda t, y: -1000.0 * (y - np.cos(t)), t0=0.0, y0=0.0,
                                end=0.5, h=0.1, final_only=True)
    assert abs(rk4_final[1]) > 1e3


def test_single_stage_implicit_tableau_is_rejected():
    with pytest.raises(InvalidConfigurationError):
        ImplicitRungeKuttaMethod(alphas=np.array([1.0]),
                                 betas=np.array([[1.0]]),
                                 gammas=np.array([1.0]))
