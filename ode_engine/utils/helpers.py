import inspect
from typing import Callable, List, Text

import numpy as np

from ode_engine.types import State, StateVariable

__all__ = ["is_scalar",
           "as_state_variable",
           "is_finite_state",
           "error_norm",
           "infer_variable_names",
           "infer_separability"]


def is_scalar(y: StateVariable) -> bool:
    return np.ndim(y) == 0


def as_state_variable(y: StateVariable) -> StateVariable:
    """
    Convert user input into a float state variable. Scalars become numpy.float64,
    everything else becomes a (copied) float array.
    """
    arr = np.array(y, dtype=float)
    if arr.ndim == 0:
        return np.float64(arr)
    return arr


def is_finite_state(state: State) -> bool:
    """Check all spatial variables of a state (everything but the time) for inf / NaN."""
    return all(np.all(np.isfinite(v)) for v in state[1:])


def error_norm(err: StateVariable) -> float:
    return float(np.linalg.norm(np.atleast_1d(err)))


def infer_variable_names(rhs: Callable) -> List[Text]:
    """
    Infer the variable names from the right-hand side function of an ODE model.

    Args:
        rhs: Right-hand side to infer variable names from.

    Returns:
        A list containing the ODE variable names.
    """
    try:
        ode_spec = inspect.getfullargspec(func=rhs)
    except TypeError:
        # builtins and some C callables carry no signature
        return ["t", "y"]

    args = ode_spec.args
    if args and args[0] == "self":
        args = args[1:]

    arg_set = set(args)

    # check if the function spec is either of the standard ones
    # if true, return them
    if {"t", "y"}.issubset(arg_set):
        return ["t", "y"]
    elif {"t", "q", "p"}.issubset(arg_set):
        return ["t", "q", "p"]

    # otherwise, the positional arguments without defaults are the variables
    num_defaults = len(ode_spec.defaults or ())
    positional = args[:len(args) - num_defaults]

    if len(positional) >= 2:
        return positional

    if ode_spec.varargs:
        return ["t", "y"]

    raise ValueError("Incompatible function signature for ODE integration.")


def infer_separability(q_derivative: Callable, p_derivative: Callable) -> bool:
    """
    Infer whether a Hamiltonian is separable.

    Args:
        q_derivative: Function returning the (vector-valued) q-derivative of the Hamiltonian.
        p_derivative: Function returning the (vector-valued) p-derivative of the Hamiltonian.

    Returns:
        A boolean indicating whether or not the Hamiltonian is separable based on its derivatives.
    """
    q_set = set(infer_variable_names(q_derivative))
    p_set = set(infer_variable_names(p_derivative))

    return "q" not in p_set and "p" not in q_set
