from typing import Dict, Any, Text, List, Callable

import numpy as np

from ode_engine.constants import ModelMetadataKeys
from ode_engine.errors import DimensionMismatchError
from ode_engine.models.base_model import BaseModel
from ode_engine.models import messages
from ode_engine.types import StateVariable
from ode_engine.utils.helpers import infer_separability

Hamiltonian = Callable[[StateVariable, StateVariable, StateVariable, Any], float]


class HamiltonianSystem(BaseModel):
    """
    Hamiltonian system base class. Use this with the symplectic step functions
    for solving second-order (position / momentum) problems.

    The Hamiltonian System is characterized by three functions:

        - The Hamiltonian itself, a function H(t, q, p, **h_args),
        - The q-derivative del H / del q (t, q, **h_args) of the Hamiltonian,
        - The p-derivative del H / del p (t, p, **h_args) of the Hamiltonian.

    The equations of motion are ::

            q' = del H / del p,     p' = - del H / del q.

    IMPORTANT: Only separable Hamiltonian systems can be integrated with the builtin
    symplectic methods; these are functions of the type ::
            H(t, q, p) = T(p) + V(q).

    Separability is inferred automatically by checking the signatures of the q- and p-derivatives
    of the Hamiltonian; a separable Hamiltonian needs a q-derivative independent of p, and a p-derivative
    independent of q. To specify a separable Hamiltonian correctly, supply a q-derivative with signature
    (t, q, **h_args) and a p-derivative of signature (t, p, **h_args).
    """

    def __init__(self,
                 hamiltonian: Hamiltonian = None,
                 q_derivative: Callable = None,
                 p_derivative: Callable = None,
                 h_args: Dict[Text, Any] = None,
                 dim_names: List[Text] = None,
                 is_separable: bool = None):
        """
        Hamiltonian system constructor.

        Args:
            hamiltonian: Callable, computes the Hamiltonian at a point in phase space. Optional,
             only needed for energy evaluation.
            q_derivative: Callable, compute the q-(spatial) derivative at a point in phase space.
            p_derivative: Callable, compute the p-(momentum) derivative at a point in phase space.
            h_args: Additional keyword arguments for calling the Hamiltonian and its derivatives.
            dim_names: Optional column names for result data frames, one per scalar
             dimension of the state (t, q, p).
            is_separable: Boolean indicator, whether the Hamiltonian is separable or not. If not
             supplied, will be inferred on construction.
        """
        if not (callable(q_derivative) and callable(p_derivative)):
            raise ValueError(messages.MISSING_HAMILTONIAN)

        self.hamiltonian = hamiltonian
        self.q_derivative = q_derivative
        self.p_derivative = p_derivative

        # additional arguments for the functions
        self.h_args = h_args or {}

        self.variable_names = ["t", "q", "p"]
        self.dim_names = dim_names or []

        if is_separable is not None:
            self.is_separable = is_separable
        else:
            self.is_separable = infer_separability(self.q_derivative, self.p_derivative)

    @classmethod
    def from_acceleration(cls,
                          acceleration: Callable,
                          mass: float = 1.0,
                          potential: Callable = None,
                          dim_names: List[Text] = None):
        """
        Build the Hamiltonian system of a second-order ODE x'' = a(t, x).

        The momentum is p = m * v, so for the default unit mass the momentum
        coordinate equals the velocity.

        Args:
            acceleration: Callable a(t, x) returning the acceleration at position x.
            mass: Mass of the particle.
            potential: Optional potential energy V(t, x), used for energy evaluation.
            dim_names: Optional column names for result data frames, one per scalar
             dimension of the state (t, q, p).

        Returns:
            A separable HamiltonianSystem.
        """

        def q_derivative(t, q):
            return -mass * acceleration(t, q)

        def p_derivative(t, p):
            return p / mass

        hamiltonian = None
        if potential is not None:
            def hamiltonian(t, q, p):
                return 0.5 * np.sum(p * p) / mass + potential(t, q)

        return cls(hamiltonian=hamiltonian,
                   q_derivative=q_derivative,
                   p_derivative=p_derivative,
                   dim_names=dim_names,
                   is_separable=True)

    def get_metadata(self):
        """
        Return model metadata information. Used for constructing result pandas DataFrame objects.

        Returns:
            A dict with model metadata information.
        """
        return {ModelMetadataKeys.VARIABLE_NAMES: self.variable_names,
                ModelMetadataKeys.DIM_NAMES: self.dim_names}

    def dq_dt(self, t: StateVariable, p: StateVariable) -> StateVariable:
        """Position velocity q' = del H / del p."""
        dq = self.p_derivative(t, p, **self.h_args)
        self._check_dims(dq, p)
        return dq

    def dp_dt(self, t: StateVariable, q: StateVariable) -> StateVariable:
        """Force p' = - del H / del q."""
        dp = self.q_derivative(t, q, **self.h_args)
        self._check_dims(dp, q)
        return -dp

    @staticmethod
    def _check_dims(derivative: StateVariable, variable: StateVariable):
        if np.shape(derivative) != np.shape(variable):
            raise DimensionMismatchError(
                messages.DIMENSION_MISMATCH.format(np.shape(derivative), np.shape(variable)))

    def energy(self, t: StateVariable, q: StateVariable, p: StateVariable) -> float:
        """
        Value of the Hamiltonian (total energy) at a point in phase space.
        """
        if self.hamiltonian is None:
            raise ValueError(messages.NO_HAMILTONIAN)

        return self.hamiltonian(t, q, p, **self.h_args)

    def __call__(self, t: StateVariable, q: StateVariable, p: StateVariable) -> float:
        """
        Hamiltonian System call operator. Call a HamiltonianSystem object to return a value
        of the defining Hamiltonian at a certain point in phase space ("state").

        Args:
            t: Time variable at the current state.
            q: Spatial variable at the current state.
            p: Momentum variable at the current state.

        Returns:
            A scalar, the value of the Hamiltonian at the current state.
        """
        return self.energy(t, q, p)
