from typing import Dict, Text, Any, Callable, Union

import numpy as np

from ode_engine.models import BaseModel, HamiltonianSystem
from ode_engine.types import State

__all__ = ["Metric", "DistanceToSolution", "EnergyDrift"]


class Metric:
    """
    Base metric interface. Subclass this to define your own metrics,
    to be computed during ODE integration.
    """

    def __init__(self, name: Text = None):
        """
        Base metric constructor.

        Args:
            name: Optional name identifier. This is the name that will be displayed
             in metrics data frames obtained from integration runs.
        """
        self.__name__ = name or self.__class__.__name__

    def __call__(self,
                 i: int,
                 state: State,
                 new_state: State,
                 model: BaseModel,
                 local_vars: Dict[Text, Any]) -> Any:
        raise NotImplementedError


class DistanceToSolution(Metric):
    """
    Tracks distance of an ODE state vector to the state vector of a known
    solution. This is useful to test whether an integrator performs as
    expected.
    """

    def __init__(self,
                 solution: Callable,
                 norm: Union[Text, int] = None,
                 name: Text = None):
        """
        Solution distance metric constructor.

        Args:
            solution: Callable, of signature t -> y(t) giving the ODE solution at time t.
            norm: Norm identifier for use in np.linalg.norm.
            name: Optional name identifier.
        """
        super(DistanceToSolution, self).__init__(name=name)

        self.solution = solution
        self.norm = norm or None

    def __call__(self,
                 i: int,
                 state: State,
                 new_state: State,
                 model: BaseModel,
                 local_vars: Dict[Text, Any]) -> Any:
        """
        Solution distance call operator overload.

        Args:
            i: Current iteration number.
            state: Previous ODE model state.
            new_state: New calculated ODE model state.
            model: ODE model that is being integrated.
            local_vars: Handle for locals() dict object.

        Returns:
            A scalar, the norm difference between the calculated state and the theoretical solution.

        """
        t, y = new_state

        y_pred = self.solution(t)

        return float(np.linalg.norm(np.atleast_1d(y - y_pred), ord=self.norm))


class EnergyDrift(Metric):
    """
    Relative deviation of the total energy of a Hamiltonian system from its value
    at the first state seen by the metric.
    """

    def __init__(self, name: Text = None):
        super(EnergyDrift, self).__init__(name=name)
        self.initial_energy = None

    def __call__(self,
                 i: int,
                 state: State,
                 new_state: State,
                 model: BaseModel,
                 local_vars: Dict[Text, Any]) -> Any:
        if not isinstance(model, HamiltonianSystem):
            raise TypeError("EnergyDrift requires a HamiltonianSystem model.")

        if self.initial_energy is None or i == 1:
            self.initial_energy = model.energy(*state)

        energy = model.energy(*new_state)

        scale = abs(self.initial_energy) or 1.0

        return float(abs(energy - self.initial_energy) / scale)
