from typing import Dict, Any, Text, List, Callable

import numpy as np

from ode_engine.constants import ModelMetadataKeys
from ode_engine.errors import DimensionMismatchError
from ode_engine.models.base_model import BaseModel
from ode_engine.models import messages
from ode_engine.types import StateVariable
from ode_engine.utils.helpers import infer_variable_names

ODEFunction = Callable[[StateVariable, StateVariable, Any], StateVariable]


class ODEModel(BaseModel):
    """
    Base class for all ODE models.

    An ODEModel implements the right-hand side (RHS) ``f`` of an ordinary differential equation ::

        y'(t) = f(t, y).

    The right-hand side is expected to be a pure function of its inputs. Integrators do not
    enforce this, but reproducibility of integration results only holds for side-effect free
    right-hand sides.

    Attributes:
        ode_fn: Right-hand side of the ODE.
        fn_args: Dict with additional keyword arguments for the ode_fn.
        variable_names: List of ODE variable names, taken from the signature of the ode_fn.
        dim_names: Optional list of dimension names for result data frames. These will become
         column headers in result pandas.DataFrame objects.
    """

    def __init__(self,
                 ode_fn: ODEFunction = None,
                 fn_args: Dict[Text, Any] = None,
                 dim_names: List[Text] = None) -> None:
        """
        ODEModel constructor.

        Args:
            ode_fn: Callable implementing the right-hand side of the model.
            fn_args: Additional keyword arguments for ode_fn.
            dim_names: Optional list of dimension names for result data frames.
        """
        if not callable(ode_fn):
            raise ValueError(messages.MISSING_INFO)

        self.ode_fn = ode_fn

        # additional arguments for the function
        self.fn_args = fn_args or {}

        self.variable_names = infer_variable_names(rhs=ode_fn)
        self.dim_names = dim_names or []

    def get_metadata(self):
        """
        Return model metadata information. Used for constructing result pandas DataFrame objects.

        Returns:
            A dict with model metadata information.
        """

        return {ModelMetadataKeys.VARIABLE_NAMES: self.variable_names,
                ModelMetadataKeys.DIM_NAMES: self.dim_names}

    def __call__(self, t: StateVariable, y: StateVariable) -> StateVariable:
        """
        ODE model call operator.

        Args:
            t: Time variable at the current state.
            y: Spatial variable at the current state.

        Returns:
            A spatial variable representing the right-hand side given by the ode_fn
             at the input state.

        Raises:
            DimensionMismatchError: If the right-hand side does not return a result of the
             same shape as y.
        """
        dydt = self.ode_fn(t, y, **self.fn_args)

        if np.shape(dydt) != np.shape(y):
            raise DimensionMismatchError(
                messages.DIMENSION_MISMATCH.format(np.shape(dydt), np.shape(y)))

        return dydt
