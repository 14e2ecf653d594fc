from ode_engine.models.base_model import BaseModel
from ode_engine.models.model import ODEModel
from ode_engine.models.hamiltonian_system import HamiltonianSystem
