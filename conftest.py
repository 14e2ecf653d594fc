import numpy as np
import pytest

from ode_engine.models import ODEModel, HamiltonianSystem


def decay(t, y, lamb=1.0):
    return - lamb * y


def growth(t, y):
    return y


def harmonic_hamiltonian(t, q, p):
    return 0.5 * np.sum(p * p) + 0.5 * np.sum(q * q)


def harmonic_q_deriv(t, q):
    return q


def harmonic_p_deriv(t, p):
    return p


@pytest.fixture
def decay_model():
    return ODEModel(ode_fn=decay, fn_args={"lamb": 1.0})


@pytest.fixture
def growth_model():
    return ODEModel(ode_fn=growth)


@pytest.fixture
def harmonic_oscillator():
    return HamiltonianSystem(hamiltonian=harmonic_hamiltonian,
                             q_derivative=harmonic_q_deriv,
                             p_derivative=harmonic_p_deriv)
