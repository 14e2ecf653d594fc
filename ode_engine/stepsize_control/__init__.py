from ode_engine.stepsize_control.stepsizecontroller import (
    StepSizeController,
    EmbeddedErrorController
)
