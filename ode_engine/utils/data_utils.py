from typing import List, Dict, Text, Any

import numpy as np
import pandas as pd

from ode_engine.types import State

__all__ = ["initialize_dim_names", "convert_to_dict", "result_to_dataframe"]


def initialize_dim_names(variable_names: List[Text], state: State):
    """
    Initialize the dimension names for result data frames.
    The dimension names will be used as column headers in the resulting pd.DataFrame.

    Args:
        variable_names: Names of the state variables in the ODE integration run.
        state: Sample state from which to infer the dimension names.

    Returns:
        A list of dimension names.
    """

    var_dims = []

    for k, v in zip(variable_names, state):
        dim = 1 if np.isscalar(v) or np.ndim(v) == 0 else len(v)

        var_dims.append((k, dim))

    dim_names = []
    for name, dim in var_dims:
        if dim == 1:
            dim_names += [name]
        else:
            dim_names += ["{0}_{1}".format(name, i) for i in range(1, dim + 1)]

    return dim_names


def convert_to_dict(state: State, variable_names: List[Text], dim_names: List[Text]):
    """
    Convert a state in a trajectory to a Dict for use in a pd.DataFrame constructor.

    Args:
        state: ODE state obtained in the numerical integration run.
        variable_names: Names of the state variables, e.g. ["t", "y"].
        dim_names: Names of all scalar dimensions in the state.

    Returns:
        A dict containing the dimension names as keys and the corresponding scalar data as values.
    """

    output_dict = dict()

    idx = 0
    for i, _ in enumerate(variable_names):
        v = state[i]

        if np.ndim(v) == 0:
            output_dict[dim_names[idx]] = v
            idx += 1
        else:
            k = dim_names[idx:idx + len(v)]
            output_dict.update(dict(zip(k, v)))
            idx += len(v)

    return output_dict


def result_to_dataframe(states: List[State],
                        variable_names: List[Text],
                        dim_names: List[Text] = None,
                        metrics: List[Dict[Text, Any]] = None) -> pd.DataFrame:
    """
    Build a pandas DataFrame from a list of states, one row per state.

    Args:
        states: List of ODE states.
        variable_names: Names of the state variables.
        dim_names: Optional column names; inferred from the first state if omitted.
        metrics: Optional list of metric dicts, joined column-wise.

    Returns:
        A pd.DataFrame with one column per scalar dimension (and per metric).
    """
    if not states:
        return pd.DataFrame()

    inferred_names = initialize_dim_names(variable_names, states[0])

    if dim_names and len(dim_names) != len(inferred_names):
        raise ValueError("Error: Dimension mismatch. List of dimension names suggests a system "
                         "of size {0}, but inferred a system size of {1} from the first "
                         "state.".format(len(dim_names), len(inferred_names)))

    dim_names = dim_names or inferred_names

    rows = [convert_to_dict(s, variable_names=variable_names, dim_names=dim_names)
            for s in states]

    df = pd.DataFrame(data=rows)

    if metrics and any(metrics):
        df = df.join(pd.DataFrame(data=metrics, index=df.index))

    return df
