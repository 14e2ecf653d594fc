from typing import Any, Dict, List, Text

import numpy as np

from ode_engine.types import State
from ode_engine.utils.data_utils import result_to_dataframe

__all__ = ["Trajectory"]


class Trajectory:
    """
    Ordered, append-only sequence of states produced by an integration run.

    A trajectory is owned by the driver loop while the run is in progress. Once it is handed
    back to the caller it is frozen, and further appends raise an error.

    Each state is a tuple, (t, y) for ODE models and (t, q, p) for Hamiltonian systems.
    Every state has an accompanying dict of metrics recorded at that step.
    """

    def __init__(self,
                 initial_state: State,
                 variable_names: List[Text] = None,
                 dim_names: List[Text] = None):
        """
        Trajectory constructor.

        Args:
            initial_state: First state of the run.
            variable_names: Names of the state variables, used for data frame conversion.
            dim_names: Default column names of the scalar state dimensions.
        """
        self._states = [tuple(initial_state)]
        self._metrics = [{}]
        self._frozen = False
        self.variable_names = variable_names or (["t", "y"] if len(initial_state) == 2
                                                 else ["t", "q", "p"])
        self.dim_names = dim_names or None

    def append(self, state: State, metrics: Dict[Text, Any] = None):
        if self._frozen:
            raise RuntimeError("Cannot append to a frozen trajectory.")
        self._states.append(tuple(state))
        self._metrics.append(metrics or {})

    def freeze(self):
        """Mark the trajectory as read-only. Returns the trajectory itself."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self):
        return len(self._states)

    def __getitem__(self, item):
        return self._states[item]

    def __iter__(self):
        return iter(self._states)

    def __repr__(self):
        return "Trajectory(num_points={0}, t=[{1}, {2}])".format(
            len(self), self._states[0][0], self._states[-1][0])

    @property
    def times(self) -> np.ndarray:
        return np.array([s[0] for s in self._states])

    @property
    def states(self) -> List[State]:
        return list(self._states)

    @property
    def final_state(self) -> State:
        return self._states[-1]

    @property
    def metrics(self) -> List[Dict[Text, Any]]:
        return [dict(m) for m in self._metrics]

    def values(self, index: int = 1) -> np.ndarray:
        """
        Stack one state variable over the whole trajectory.

        Args:
            index: Position of the variable in the state tuple, 1 for y (or q), 2 for p.

        Returns:
            An array of shape (num_points,) for scalar variables, (num_points, dim) otherwise.
        """
        return np.array([s[index] for s in self._states])

    def to_dataframe(self, dim_names: List[Text] = None, include_metrics: bool = True):
        """
        Convert the trajectory into a pandas DataFrame, one row per state.

        Args:
            dim_names: Column names of the scalar state dimensions. Defaults to the dimension
             names of the integrated model, or names inferred from the first state.
            include_metrics: Whether to join the per-step metrics as extra columns.
        """
        return result_to_dataframe(self._states,
                                   variable_names=self.variable_names,
                                   dim_names=dim_names or self.dim_names,
                                   metrics=self._metrics if include_metrics else None)
