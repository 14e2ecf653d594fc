class ResultKeys:
    RESULT_DATA = "result_data"
    CONFIG = "config"


class ConfigKeys:
    START = "start"
    END = "end"
    NUM_STEPS = "num_steps"
    STEP_SIZE = "h"
    TOLERANCE = "tolerance"
    MIN_STEP = "min_step"
    MAX_STEP = "max_step"
    MAX_ITERATIONS = "max_iterations"
    DQ = "dq"
    METHOD = "method"
    METRICS = "metrics"
    CALLBACKS = "callbacks"
    TIMESTAMP = "timestamp"
    ID = "result_id"
    LOOP_TYPE = "loop_type"


class ModelMetadataKeys:
    DIM_NAMES = "dim_names"
    VARIABLE_NAMES = "variable_names"
