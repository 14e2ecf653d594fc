from ode_engine.callbacks.callback import Callback, LogState
