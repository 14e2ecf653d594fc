import logging
from typing import Dict, Text, Any

from ode_engine.models import BaseModel
from ode_engine.types import State

logger = logging.getLogger(__name__)

__all__ = ["Callback", "LogState"]


class Callback:
    """
    Base callback interface. Callbacks are executed after every accepted step of an
    integration run, and can be used to inspect the run or to change the model.
    """
    def __init__(self, name: Text = None):
        """
        Base callback constructor.

        Args:
            name: Optional string identifier.
        """
        self.__name__ = name or self.__class__.__name__

    def __call__(self,
                 i: int,
                 state: State,
                 new_state: State,
                 model: BaseModel,
                 local_vars: Dict[Text, Any]) -> None:
        """
        Callback class call operator. Overload this with your custom logic to use in
        ODE integration runs.

        Args:
            i: Current iteration number.
            state: Previous ODE state.
            new_state: New ODE state calculated by the used step function.
            model: ODE model that is used in the integration run.
            local_vars: Handle for the locals() dict passed to the Callbacks.
        """
        raise NotImplementedError


class LogState(Callback):
    """
    Logs the new state every few iterations.
    """
    def __init__(self, every: int = 100, level: int = logging.INFO, name: Text = None):
        super(LogState, self).__init__(name=name)

        if every < 1:
            raise ValueError("Logging interval must be a positive integer, got {}.".format(every))

        self.every = every
        self.level = level
        self.num_calls = 0

    def __call__(self,
                 i: int,
                 state: State,
                 new_state: State,
                 model: BaseModel,
                 local_vars: Dict[Text, Any]) -> None:
        self.num_calls += 1
        if i % self.every == 0:
            logger.log(self.level, "Iteration {0}: t={1}, state={2}".format(
                i, new_state[0], new_state[1:]))
