from typing import Dict, Text, Any

from ode_engine.constants import ConfigKeys, ResultKeys


def get_result_metadata(result: Dict[Text, Any]):
    """
    Get metadata from a result.

    Args:
        result: Result object saved in an Integrator instance.

    Returns:
        A dict with run metadata information.
    """
    config = result[ResultKeys.CONFIG]

    metadata_keys = [ConfigKeys.TIMESTAMP, ConfigKeys.ID, ConfigKeys.METHOD,
                     ConfigKeys.LOOP_TYPE, ConfigKeys.START, ConfigKeys.END]
    metadata = {k: config.get(k) for k in metadata_keys}
    metadata["num_points"] = len(result[ResultKeys.RESULT_DATA])

    return metadata
