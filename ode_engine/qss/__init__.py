from ode_engine.qss.event_queue import EventQueue
from ode_engine.qss.quantized_variable import QuantizedVariable
from ode_engine.qss.qss_methods import QSSMethod, QSS1, QSS2, QSS3
