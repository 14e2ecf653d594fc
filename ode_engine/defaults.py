# driver guards
MAX_STEPS = 10000
MAX_ITERATIONS = 50

# dynamic (variable step size) integration variables
INITIAL_H = 0.01
TOLERANCE = 1e-6
MIN_STEP = 1e-10
SAFETY_FACTOR = 0.9
FAC_MIN = 0.2
FAC_MAX = 5.0

# implicit methods
CORRECTOR_TOL = 1e-10

# quantized state systems
QSS_DQ = 1e-3
FD_STEP = 1e-5

# builtin metric names
step_size = "h"
rejected = "rejected"
component = "component"
