import numpy as np

from ode_engine.defaults import CORRECTOR_TOL, MAX_ITERATIONS
from ode_engine.errors import InvalidConfigurationError
from ode_engine.stepfunctions.stepfunctions_impl import *
from ode_engine.stepfunctions.templates import *

__all__ = ["ForwardEulerMethod",
           "HeunMethod",
           "RungeKutta2",
           "RungeKutta4",
           "BogackiShampine",
           "RungeKuttaFehlberg45",
           "RadauIIA3",
           "AdamsBashforth",
           "AdamsMoulton",
           "EulerA",
           "EulerB",
           "Leapfrog",
           "VelocityVerlet",
           "PositionVerlet",
           "ForestRuth",
           "Yoshida4"]


class ForwardEulerMethod(SingleStepMethod):
    """
    Forward Euler method for ODE integration.
    """
    order = 1
    _step = staticmethod(forward_euler_step)


class HeunMethod(SingleStepMethod):
    """
    Heun method for ODE integration.
    """
    order = 2
    _step = staticmethod(heun_step)


class RungeKutta2(SingleStepMethod):
    """
    Second order Runge Kutta (explicit midpoint) method for ODE integration.
    """
    order = 2
    _step = staticmethod(rk2_step)


class RungeKutta4(SingleStepMethod):
    """
    Classic Runge Kutta of order 4 for ODE integration.
    """
    order = 4
    _step = staticmethod(rk4_step)


class BogackiShampine(EmbeddedRungeKuttaMethod):
    """
    Bogacki-Shampine method for ODE integration. The third order solution is propagated,
    the embedded second order solution is used for error estimation.
    """

    def __init__(self):
        alphas = np.array([0.0, 0.5, 0.75, 1.0])
        betas = np.array([[0.0, 0.0, 0.0, 0.0],
                          [0.5, 0.0, 0.0, 0.0],
                          [0.0, 0.75, 0.0, 0.0],
                          [2 / 9, 1 / 3, 4 / 9, 0.0]])
        gammas = np.array([2 / 9, 1 / 3, 4 / 9, 0.0])
        gammas_embedded = np.array([7 / 24, 1 / 4, 1 / 3, 1 / 8])

        super(BogackiShampine, self).__init__(alphas=alphas,
                                              betas=betas,
                                              gammas=gammas,
                                              gammas_embedded=gammas_embedded,
                                              order=3,
                                              error_order=2)


class RungeKuttaFehlberg45(EmbeddedRungeKuttaMethod):
    """
    Runge-Kutta-Fehlberg method for ODE integration. Six stage evaluations yield a solution
    of order 4, which is propagated, and a solution of order 5, which is used to estimate the
    local error of the order 4 solution.
    """

    def __init__(self):
        alphas = np.array([0.0, 1 / 4, 3 / 8, 12 / 13, 1.0, 1 / 2])
        betas = np.array([
            [0, 0, 0, 0, 0, 0],
            [1 / 4, 0, 0, 0, 0, 0],
            [3 / 32, 9 / 32, 0, 0, 0, 0],
            [1932 / 2197, -7200 / 2197, 7296 / 2197, 0, 0, 0],
            [439 / 216, -8, 3680 / 513, -845 / 4104, 0, 0],
            [-8 / 27, 2, -3544 / 2565, 1859 / 4104, -11 / 40, 0]
        ])
        gammas = np.array([25 / 216, 0, 1408 / 2565, 2197 / 4104, -1 / 5, 0])
        gammas_embedded = np.array([16 / 135, 0, 6656 / 12825, 28561 / 56430, -9 / 50, 2 / 55])

        super(RungeKuttaFehlberg45, self).__init__(alphas=alphas,
                                                   betas=betas,
                                                   gammas=gammas,
                                                   gammas_embedded=gammas_embedded,
                                                   order=4,
                                                   error_order=4)


class RadauIIA3(ImplicitRungeKuttaMethod):
    """
    Two-stage Radau IIA method of order 3, an L-stable implicit method for stiff problems.
    """

    def __init__(self, **kwargs):
        alphas = np.array([1 / 3, 1.0])
        betas = np.array([[5 / 12, -1 / 12],
                          [3 / 4, 1 / 4]])
        gammas = np.array([3 / 4, 1 / 4])

        super(RadauIIA3, self).__init__(alphas=alphas,
                                        betas=betas,
                                        gammas=gammas,
                                        order=3,
                                        **kwargs)


# coefficients count the past derivatives in reverse, newest first
ADAMS_BASHFORTH_COEFFS = {
    1: [1.],
    2: [3 / 2, -1 / 2],
    3: [23 / 12, -16 / 12, 5 / 12],
    4: [55 / 24, -59 / 24, 37 / 24, -9 / 24],
    5: [1901 / 720, -2774 / 720, 2616 / 720, -1274 / 720, 251 / 720],
}

# the first coefficient belongs to the implicit derivative f(t_{n+1}, y_{n+1})
ADAMS_MOULTON_COEFFS = {
    1: [1.],
    2: [1 / 2, 1 / 2],
    3: [5 / 12, 8 / 12, -1 / 12],
    4: [9 / 24, 19 / 24, -5 / 24, 1 / 24],
    5: [251 / 720, 646 / 720, -264 / 720, 106 / 720, -19 / 720],
}


def _check_adams_order(order: int):
    if order not in ADAMS_BASHFORTH_COEFFS:
        raise InvalidConfigurationError("Adams methods are available for orders "
                                        "{0}, got {1}.".format(sorted(ADAMS_BASHFORTH_COEFFS), order))


class AdamsBashforth(ExplicitMultiStepMethod):
    """
    Adams-Bashforth method of order k for ODE solving, using the last k derivative evaluations.
    """

    def __init__(self, order: int = 2, startup: SingleStepMethod = None):
        _check_adams_order(order)

        super(AdamsBashforth, self).__init__(startup=startup or RungeKutta4(),
                                             b_coeffs=np.array(ADAMS_BASHFORTH_COEFFS[order]),
                                             order=order)


class AdamsMoulton(ImplicitMultiStepMethod):
    """
    Adams-Moulton method of order k for ODE solving, in predictor-corrector form with an
    Adams-Bashforth predictor of the same order.
    """

    def __init__(self,
                 order: int = 2,
                 startup: SingleStepMethod = None,
                 tolerance: float = CORRECTOR_TOL,
                 max_iterations: int = MAX_ITERATIONS):
        _check_adams_order(order)

        super(AdamsMoulton, self).__init__(startup=startup or RungeKutta4(),
                                           b_coeffs=np.array(ADAMS_MOULTON_COEFFS[order]),
                                           predictor_coeffs=np.array(ADAMS_BASHFORTH_COEFFS[order]),
                                           order=order,
                                           tolerance=tolerance,
                                           max_iterations=max_iterations)


class EulerA(SymplecticMethod):
    """
    EulerA (symplectic Euler, position first) method for Hamiltonian Systems integration.
    """
    order = 1
    c_coeffs = np.array([1.])
    d_coeffs = np.array([1.])


class EulerB(SymplecticMethod):
    """
    EulerB (symplectic Euler, momentum first) method for Hamiltonian Systems integration.
    """
    order = 1
    c_coeffs = np.array([0., 1.])
    d_coeffs = np.array([1., 0.])


class Leapfrog(SymplecticMethod):
    """
    Leapfrog method in kick-drift-kick form: half-step momentum update, full-step position
    update, half-step momentum update. Time-reversible and of order 2.
    """
    order = 2
    c_coeffs = np.array([0., 1.])
    d_coeffs = np.array([0.5, 0.5])


class VelocityVerlet(Leapfrog):
    """
    Velocity Verlet method, algebraically identical to the kick-drift-kick leapfrog.
    """


class PositionVerlet(SymplecticMethod):
    """
    Position Verlet method in drift-kick-drift form, of order 2.
    """
    order = 2
    c_coeffs = np.array([0.5, 0.5])
    d_coeffs = np.array([1., 0.])


_CBRT2 = 2 ** (1 / 3)

# triple jump weights, w1 + w0 + w1 = 1
_W1 = 1 / (2 - _CBRT2)
_W0 = -_CBRT2 / (2 - _CBRT2)


class ForestRuth(CompositionMethod):
    """
    Forest-Ruth method of order 4, composing three leapfrog sub-steps of sizes
    w1 * h, w0 * h and w1 * h. The middle sub-step runs backwards in time.
    """
    order = 4
    weights = np.array([_W1, _W0, _W1])

    def __init__(self):
        super(ForestRuth, self).__init__(base=Leapfrog())


class Yoshida4(SymplecticMethod):
    """
    Fourth order Yoshida method in drift-kick form. The negative coefficients are part of the
    triple-product construction.
    """
    order = 4
    c_coeffs = np.array([_W1 / 2, (_W0 + _W1) / 2, (_W0 + _W1) / 2, _W1 / 2])
    d_coeffs = np.array([_W1, _W0, _W1, 0.])
