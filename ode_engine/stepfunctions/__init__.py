from typing import Union

from ode_engine.stepfunctions.stepfunctions import (
    ForwardEulerMethod,
    HeunMethod,
    RungeKutta2,
    RungeKutta4,
    BogackiShampine,
    RungeKuttaFehlberg45,
    RadauIIA3,
    AdamsBashforth,
    AdamsMoulton,
    EulerA,
    EulerB,
    Leapfrog,
    VelocityVerlet,
    PositionVerlet,
    ForestRuth,
    Yoshida4
)

from ode_engine.stepfunctions.templates import (
    SingleStepMethod,
    MultiStepMethod,
    MultiStepPhase,
    ExplicitRungeKuttaMethod,
    EmbeddedRungeKuttaMethod,
    ImplicitRungeKuttaMethod,
    ExplicitMultiStepMethod,
    ImplicitMultiStepMethod,
    SymplecticMethod,
    CompositionMethod
)

from ode_engine.stepfunctions.history import HistoryBuffer

StepFunction = Union[SingleStepMethod, MultiStepMethod]

# registry of step functions by name, used by the solver entry points
step_function_factory = {
    "euler": ForwardEulerMethod,
    "heun": HeunMethod,
    "rk2": RungeKutta2,
    "rk4": RungeKutta4,
    "bogacki_shampine": BogackiShampine,
    "rkf45": RungeKuttaFehlberg45,
    "radau_iia": RadauIIA3,
    "adams_bashforth": AdamsBashforth,
    "adams_moulton": AdamsMoulton,
    "euler_a": EulerA,
    "euler_b": EulerB,
    "leapfrog": Leapfrog,
    "verlet": VelocityVerlet,
    "position_verlet": PositionVerlet,
    "forest_ruth": ForestRuth,
    "yoshida4": Yoshida4,
}
