from ode_engine.integrators.integrator import Integrator
from ode_engine.integrators.integrator_loops import constant_h_loop, adaptive_h_loop, quantized_loop
from ode_engine.integrators.loop_factory import loop_factory
