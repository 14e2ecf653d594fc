"""
Named entry points, one per integration method.

Every solver takes the right-hand side (or Hamiltonian system), the initial condition, the
horizon and the method configuration, and returns the frozen Trajectory of the run. Pass
``final_only=True`` to only get the final state.
"""
from typing import Callable, Union

from ode_engine import defaults
from ode_engine.integrators import constant_h_loop, adaptive_h_loop, quantized_loop
from ode_engine.models import BaseModel, ODEModel, HamiltonianSystem
from ode_engine.qss import QSS1, QSS2, QSS3
from ode_engine.stepfunctions import step_function_factory
from ode_engine.stepsize_control import EmbeddedErrorController

__all__ = ["euler",
           "heun",
           "rk2",
           "rk4",
           "bogacki_shampine",
           "rkf45",
           "radau_iia",
           "adams_bashforth",
           "adams_moulton",
           "leapfrog",
           "verlet",
           "forest_ruth",
           "yoshida4",
           "qss1",
           "qss2",
           "qss3"]


def _as_model(f: Union[Callable, BaseModel], fn_args=None) -> BaseModel:
    if isinstance(f, BaseModel):
        return f
    return ODEModel(ode_fn=f, fn_args=fn_args)


def _as_system(system: Union[Callable, HamiltonianSystem]) -> HamiltonianSystem:
    # a plain callable is read as the acceleration a(t, x) of x'' = a(t, x)
    if isinstance(system, HamiltonianSystem):
        return system
    return HamiltonianSystem.from_acceleration(acceleration=system)


def _finish(trajectory, final_only: bool):
    return trajectory.final_state if final_only else trajectory


def _fixed_step(method: str, f, t0, y0, end, h, max_steps, event, final_only, fn_args=None, **kwargs):
    step_func = step_function_factory[method](**kwargs)

    trajectory = constant_h_loop(step_func=step_func,
                                 model=_as_model(f, fn_args),
                                 h=h,
                                 max_steps=max_steps,
                                 end=end,
                                 initial_state=(t0, y0),
                                 callbacks=[],
                                 metrics=[],
                                 event=event)

    return _finish(trajectory, final_only)


def _symplectic(method: str, system, t0, q0, p0, end, h, max_steps, event, final_only):
    trajectory = constant_h_loop(step_func=step_function_factory[method](),
                                 model=_as_system(system),
                                 h=h,
                                 max_steps=max_steps,
                                 end=end,
                                 initial_state=(t0, q0, p0),
                                 callbacks=[],
                                 metrics=[],
                                 event=event)

    return _finish(trajectory, final_only)


def _adaptive(method: str, f, t0, y0, end, tolerance, min_step, max_step, h, max_iterations,
              max_steps, event, final_only, fn_args=None):
    sc = EmbeddedErrorController(tolerance=tolerance, min_step=min_step, max_step=max_step)

    if h is None:
        h = defaults.INITIAL_H if end >= t0 else -defaults.INITIAL_H

    trajectory = adaptive_h_loop(step_func=step_function_factory[method](),
                                 model=_as_model(f, fn_args),
                                 h=h,
                                 max_steps=max_steps,
                                 end=end,
                                 initial_state=(t0, y0),
                                 callbacks=[],
                                 metrics=[],
                                 sc=sc,
                                 max_iterations=max_iterations,
                                 event=event)

    return _finish(trajectory, final_only)


def _quantized(method_cls, f, t0, y0, end, dq, dependencies, max_steps, event, final_only,
               fn_args=None):
    trajectory = quantized_loop(step_func=method_cls(dq=dq, dependencies=dependencies),
                                model=_as_model(f, fn_args),
                                max_steps=max_steps,
                                end=end,
                                initial_state=(t0, y0),
                                callbacks=[],
                                metrics=[],
                                event=event)

    return _finish(trajectory, final_only)


def euler(f, t0, y0, end=None, h=defaults.INITIAL_H, max_steps=defaults.MAX_STEPS,
          event=None, final_only=False, fn_args=None):
    """Forward Euler, order 1."""
    return _fixed_step("euler", f, t0, y0, end, h, max_steps, event, final_only, fn_args)


def heun(f, t0, y0, end=None, h=defaults.INITIAL_H, max_steps=defaults.MAX_STEPS,
         event=None, final_only=False, fn_args=None):
    """Heun's method, order 2."""
    return _fixed_step("heun", f, t0, y0, end, h, max_steps, event, final_only, fn_args)


def rk2(f, t0, y0, end=None, h=defaults.INITIAL_H, max_steps=defaults.MAX_STEPS,
        event=None, final_only=False, fn_args=None):
    """Explicit midpoint Runge-Kutta method, order 2."""
    return _fixed_step("rk2", f, t0, y0, end, h, max_steps, event, final_only, fn_args)


def rk4(f, t0, y0, end=None, h=defaults.INITIAL_H, max_steps=defaults.MAX_STEPS,
        event=None, final_only=False, fn_args=None):
    """
    Classic Runge-Kutta method of order 4.

    Args:
        f: Right-hand side f(t, y), or an ODEModel.
        t0: Initial time.
        y0: Initial value, a scalar or a 1-d array.
        end: End time. If omitted, max_steps steps are taken.
        h: Step size, its sign has to match the integration direction.
        max_steps: Maximum number of steps.
        event: Optional predicate event(t, y), stops the run once it returns True.
        final_only: Whether to return only the final state instead of the trajectory.
        fn_args: Additional keyword arguments for f.

    Returns:
        The frozen Trajectory of the run, or its final state (t, y).
    """
    return _fixed_step("rk4", f, t0, y0, end, h, max_steps, event, final_only, fn_args)


def bogacki_shampine(f, t0, y0, end, tolerance=defaults.TOLERANCE, min_step=defaults.MIN_STEP,
                     max_step=float("inf"), h=None, max_iterations=defaults.MAX_ITERATIONS,
                     max_steps=defaults.MAX_STEPS, event=None, final_only=False, fn_args=None):
    """Adaptive Bogacki-Shampine 3(2) pair."""
    return _adaptive("bogacki_shampine", f, t0, y0, end, tolerance, min_step, max_step, h,
                     max_iterations, max_steps, event, final_only, fn_args)


def rkf45(f, t0, y0, end, tolerance=defaults.TOLERANCE, min_step=defaults.MIN_STEP,
          max_step=float("inf"), h=None, max_iterations=defaults.MAX_ITERATIONS,
          max_steps=defaults.MAX_STEPS, event=None, final_only=False, fn_args=None):
    """
    Adaptive Runge-Kutta-Fehlberg 4(5) method.

    Args:
        f: Right-hand side f(t, y), or an ODEModel.
        t0: Initial time.
        y0: Initial value, a scalar or a 1-d array.
        end: End time.
        tolerance: Local error tolerance per step.
        min_step: Minimal absolute step size.
        max_step: Maximal absolute step size.
        h: Initial step size. Defaults to defaults.INITIAL_H in the integration direction.
        max_iterations: Maximum number of retries of a rejected step.
        max_steps: Maximum number of accepted steps.
        event: Optional predicate event(t, y), stops the run once it returns True.
        final_only: Whether to return only the final state instead of the trajectory.
        fn_args: Additional keyword arguments for f.

    Returns:
        The frozen Trajectory of the run, or its final state (t, y).
    """
    return _adaptive("rkf45", f, t0, y0, end, tolerance, min_step, max_step, h,
                     max_iterations, max_steps, event, final_only, fn_args)


def radau_iia(f, t0, y0, end=None, h=defaults.INITIAL_H, max_steps=defaults.MAX_STEPS,
              event=None, final_only=False, fn_args=None):
    """Implicit two-stage Radau IIA method, order 3."""
    return _fixed_step("radau_iia", f, t0, y0, end, h, max_steps, event, final_only, fn_args)


def adams_bashforth(f, t0, y0, end=None, h=defaults.INITIAL_H, order=4,
                    max_steps=defaults.MAX_STEPS, event=None, final_only=False, fn_args=None):
    """Explicit Adams-Bashforth method of order 1 to 5, started with RK4."""
    return _fixed_step("adams_bashforth", f, t0, y0, end, h, max_steps, event, final_only,
                       fn_args, order=order)


def adams_moulton(f, t0, y0, end=None, h=defaults.INITIAL_H, order=4,
                  tolerance=defaults.CORRECTOR_TOL, max_iterations=defaults.MAX_ITERATIONS,
                  max_steps=defaults.MAX_STEPS, event=None, final_only=False, fn_args=None):
    """
    Adams-Moulton predictor-corrector method of order 1 to 5, started with RK4.

    Raises:
        ConvergenceError: If the corrector iteration of a step does not converge within
         max_iterations iterations.
    """
    return _fixed_step("adams_moulton", f, t0, y0, end, h, max_steps, event, final_only,
                       fn_args, order=order, tolerance=tolerance, max_iterations=max_iterations)


def leapfrog(system, t0, q0, p0, end=None, h=defaults.INITIAL_H, max_steps=defaults.MAX_STEPS,
             event=None, final_only=False):
    """
    Leapfrog (kick-drift-kick) integration of a separable Hamiltonian system.

    Args:
        system: HamiltonianSystem, or the acceleration a(t, x) of x'' = a(t, x).
        t0: Initial time.
        q0: Initial position.
        p0: Initial momentum (the velocity for an acceleration of unit mass).
        end: End time. If omitted, max_steps steps are taken.
        h: Step size.
        max_steps: Maximum number of steps.
        event: Optional predicate event(t, q, p), stops the run once it returns True.
        final_only: Whether to return only the final state instead of the trajectory.

    Returns:
        The frozen Trajectory of the run, or its final state (t, q, p).
    """
    return _symplectic("leapfrog", system, t0, q0, p0, end, h, max_steps, event, final_only)


def verlet(system, t0, q0, p0, end=None, h=defaults.INITIAL_H, max_steps=defaults.MAX_STEPS,
           event=None, final_only=False):
    """Velocity Verlet integration of a separable Hamiltonian system."""
    return _symplectic("verlet", system, t0, q0, p0, end, h, max_steps, event, final_only)


def forest_ruth(system, t0, q0, p0, end=None, h=defaults.INITIAL_H, max_steps=defaults.MAX_STEPS,
                event=None, final_only=False):
    """Fourth order Forest-Ruth integration of a separable Hamiltonian system."""
    return _symplectic("forest_ruth", system, t0, q0, p0, end, h, max_steps, event, final_only)


def yoshida4(system, t0, q0, p0, end=None, h=defaults.INITIAL_H, max_steps=defaults.MAX_STEPS,
             event=None, final_only=False):
    """Fourth order Yoshida integration of a separable Hamiltonian system."""
    return _symplectic("yoshida4", system, t0, q0, p0, end, h, max_steps, event, final_only)


def qss1(f, t0, y0, end, dq=defaults.QSS_DQ, dependencies=None, max_steps=defaults.MAX_STEPS,
         event=None, final_only=False, fn_args=None):
    """
    First order quantized state system integration.

    Args:
        f: Right-hand side f(t, y), or an ODEModel.
        t0: Initial time.
        y0: Initial value, a scalar or a 1-d array.
        end: End time.
        dq: Quantum, a scalar or one value per component.
        dependencies: Optional dict mapping a component to the components reading it.
        max_steps: Maximum number of quantization events.
        event: Optional predicate event(t, y), stops the run once it returns True.
        final_only: Whether to return only the final state instead of the trajectory.
        fn_args: Additional keyword arguments for f.

    Returns:
        The frozen Trajectory of the run, or its final state (t, y).
    """
    return _quantized(QSS1, f, t0, y0, end, dq, dependencies, max_steps, event, final_only, fn_args)


def qss2(f, t0, y0, end, dq=defaults.QSS_DQ, dependencies=None, max_steps=defaults.MAX_STEPS,
         event=None, final_only=False, fn_args=None):
    """Second order quantized state system integration."""
    return _quantized(QSS2, f, t0, y0, end, dq, dependencies, max_steps, event, final_only, fn_args)


def qss3(f, t0, y0, end, dq=defaults.QSS_DQ, dependencies=None, max_steps=defaults.MAX_STEPS,
         event=None, final_only=False, fn_args=None):
    """Third order quantized state system integration."""
    return _quantized(QSS3, f, t0, y0, end, dq, dependencies, max_steps, event, final_only, fn_args)
