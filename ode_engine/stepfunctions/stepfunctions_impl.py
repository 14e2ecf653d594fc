from ode_engine.models import ODEModel
from ode_engine.types import StateVariable

__all__ = ["forward_euler_step",
           "heun_step",
           "rk2_step",
           "rk4_step"]


def forward_euler_step(model: ODEModel, t: float, y: StateVariable, h: float) -> StateVariable:
    return y + h * model(t, y)


def heun_step(model: ODEModel, t: float, y: StateVariable, h: float) -> StateVariable:
    # predictor, then trapezoidal corrector
    k1 = model(t, y)
    k2 = model(t + h, y + h * k1)
    return y + 0.5 * h * (k1 + k2)


def rk2_step(model: ODEModel, t: float, y: StateVariable, h: float) -> StateVariable:
    # explicit midpoint rule
    hs = 0.5 * h

    k1 = model(t, y)
    k2 = model(t + hs, y + hs * k1)
    return y + h * k2


def rk4_step(model: ODEModel, t: float, y: StateVariable, h: float) -> StateVariable:
    # notation follows that in
    # https://en.wikipedia.org/wiki/Runge%E2%80%93Kutta_methods
    hs = 0.5 * h

    k1 = h * model(t, y)
    k2 = h * model(t + hs, y + 0.5 * k1)
    k3 = h * model(t + hs, y + 0.5 * k2)
    k4 = h * model(t + h, y + k3)

    return y + 1. / 6 * (k1 + 2 * k2 + 2 * k3 + k4)
