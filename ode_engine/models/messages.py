MISSING_INFO = "Missing model information. Supply a right hand side f(t,y) " \
               "as a callable function."

MISSING_HAMILTONIAN = "Missing Hamiltonian information. Supply both the q-derivative " \
                      "dH/dq(t, q) and the p-derivative dH/dp(t, p) as callables."

NO_HAMILTONIAN = "This HamiltonianSystem was constructed without a Hamiltonian, " \
                 "so its energy cannot be evaluated."

DIMENSION_MISMATCH = "Dimension mismatch: the derivative function returned a result " \
                     "of shape {0} for a state of shape {1}."
