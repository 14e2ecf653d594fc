import enum
import logging

import numpy as np
from scipy.optimize import root

from ode_engine.defaults import CORRECTOR_TOL, MAX_ITERATIONS
from ode_engine.errors import ConvergenceError, InvalidConfigurationError
from ode_engine.models import BaseModel, ODEModel, HamiltonianSystem
from ode_engine.stepfunctions.history import HistoryBuffer
from ode_engine.types import StateVariable, ModelState
from ode_engine.utils.helpers import is_scalar, error_norm

logger = logging.getLogger(__name__)

__all__ = ["SingleStepMethod",
           "MultiStepMethod",
           "MultiStepPhase",
           "ExplicitRungeKuttaMethod",
           "EmbeddedRungeKuttaMethod",
           "ImplicitRungeKuttaMethod",
           "ExplicitMultiStepMethod",
           "ImplicitMultiStepMethod",
           "SymplecticMethod",
           "CompositionMethod"]


class SingleStepMethod:
    """
    Base class for all single step functions for ODE solving. Override this class and its methods
    to make your own custom single-step functions.

    Every step function exposes the same small capability interface: the ``order`` of the method,
    whether it ``is_adaptive`` (i.e. produces a local error estimate), and a ``step`` method
    advancing the spatial variable by one step. ``forward`` wraps ``step`` to work on full states.
    """
    order = 0
    is_adaptive = False
    _step = None

    def __init__(self, order: int = None):
        """
        Base SingleStepMethod constructor.

        Args:
            order: Order of the method. Defaults to the class-level order.
        """
        if order is not None:
            self.order = order
        self.model_dim = 0
        self.num_stages = 0

    def _adjust_dims(self, y: StateVariable):
        scalar_ode = is_scalar(y)

        if scalar_ode:
            model_dim = 1
            shape = (self.num_stages,)
        else:
            model_dim = len(y)
            shape = (self.num_stages, model_dim)

        self.model_dim = model_dim
        self.k = np.zeros(shape=shape)

    def _get_shape(self, y: StateVariable):
        return (self.num_stages,) if is_scalar(y) else (self.num_stages, len(y))

    @staticmethod
    def get_data_from_state(state: ModelState):
        """
        Custom member function for getting the raw numpy-compatible data from a ModelState object.
        Override this if you intend to use a custom state type such as a NamedTuple.

        Args:
            state: State object holding the numpy-compatible data.

        Returns:
            Raw numpy-compatible state data for use in the forward member function.
        """
        return state

    @staticmethod
    def make_new_state(t: StateVariable, y: StateVariable) -> ModelState:
        """
        Custom function for constructing a new state from numpy data.
        Override this if you intend to use a custom state type such as a NamedTuple.

        Args:
            t: Time variable at the new state.
            y: Spatial variable at the new state.

        Returns:
            A new state object holding the raw data.
        """
        return t, y

    def reset(self):
        """
        Unused reset method for compatibility with multi-step methods.
        """
        pass

    def step(self, model: BaseModel, t: float, y: StateVariable, h: float) -> StateVariable:
        """
        Advance the spatial variable y at time t by one step of size h.

        Args:
            model: ODEModel object implementing the ODE model.
            t: Current time.
            y: Current spatial variable.
            h: Signed step size.

        Returns:
            The spatial variable at time t+h.
        """
        if self._step is None:
            raise NotImplementedError
        return self._step(model, t, y, h)

    def forward(self,
                model: BaseModel,
                state: ModelState,
                h: float,
                **kwargs) -> ModelState:
        """
        Main method to advance an ODE in time by computing a new state using a single-step method.

        Args:
            model: ODEModel object implementing the ODE model.
            state: Input state.
            h: Step size to use in the step function.
            **kwargs: Additional keyword arguments, unused for now.

        Returns:
            A new state containing the ODE model data at time t+h.
        """
        t, y = self.get_data_from_state(state=state)

        y_new = self.step(model, t, y, h)

        return self.make_new_state(t=t + h, y=y_new)


class ExplicitRungeKuttaMethod(SingleStepMethod):
    """
    Base class template for explicit Runge-Kutta (RK) methods.

    A Runge-Kutta method is a generalized s-stage algorithm for advancing an ODE in time.
    It is defined by three sets of coefficients commonly called a Butcher tableau.
    An explicit Runge-Kutta method is characterized by a strictly lower-diagonal b-coefficient matrix.

    For more information on Runge-Kutta methods and the Butcher tableau, see
    https://en.wikipedia.org/wiki/Runge%E2%80%93Kutta_methods.
    """
    def __init__(self,
                 alphas: np.ndarray,
                 betas: np.ndarray,
                 gammas: np.ndarray,
                 order: int = None):
        """
        Explicit Runge-Kutta method constructor.

        Args:
            alphas: Alpha- or a-array in the Butcher tableau (commonly the left column).
            betas: Beta- or b-matrix in the Butcher tableau (commonly in the upper right).
            gammas: Gamma- or c-array in the Butcher tableau (commonly the bottom row).
            order: Order of the resulting explicit RK method.
        """

        super(ExplicitRungeKuttaMethod, self).__init__(order=order)

        alphas, betas, gammas = (np.asarray(a, dtype=float) for a in (alphas, betas, gammas))

        self._validate_butcher_tableau(alphas=alphas, betas=betas, gammas=gammas)

        self.alphas = alphas
        self.betas = betas
        self.gammas = gammas
        self.num_stages = len(self.alphas)
        self.k = np.zeros(betas.shape[0])

    @staticmethod
    def _validate_butcher_tableau(alphas: np.ndarray,
                                  betas: np.ndarray,
                                  gammas: np.ndarray) -> None:
        _error_msg = []
        if len(alphas) != len(gammas):
            _error_msg.append("Alpha and gamma vectors are not the same length")

        if betas.ndim != 2 or betas.shape[0] != betas.shape[1] or betas.shape[0] != len(alphas):
            _error_msg.append("Betas must be a quadratic matrix with the same "
                              "dimension as the alphas/gammas arrays")

        # for an explicit method, betas must be lower triangular
        elif not np.allclose(betas, np.tril(betas, k=-1)):
            _error_msg.append("The beta matrix has to be lower triangular for "
                              "an explicit Runge-Kutta method, i.e. "
                              "b_ij = 0 for i <= j")

        if _error_msg:
            raise InvalidConfigurationError("An error occurred while validating the input "
                                            "Butcher tableau. More information: "
                                            "{}.".format(",".join(_error_msg)))

    def _compute_stages(self, model: ODEModel, t: float, y: StateVariable, h: float) -> np.ndarray:
        if self._get_shape(y) != self.k.shape:
            self._adjust_dims(y)

        self.k[0] = model(t, y)

        for i in range(1, self.num_stages):
            # only the strictly lower part of row i contributes
            self.k[i] = model(t + h * self.alphas[i], y + h * np.dot(self.betas[i, :i], self.k[:i]))

        return self.k

    def step(self, model: ODEModel, t: float, y: StateVariable, h: float) -> StateVariable:
        """
        Advance y by one step of the multi-stage explicit Runge-Kutta method.

        This function is templated and not meant to be directly overridden. If you want more
        control over your step function, consider implementing an explicit RK method by subclassing the
        ``SingleStepMethod`` class.
        """
        k = self._compute_stages(model, t, y, h)

        return y + h * np.dot(self.gammas, k)


class EmbeddedRungeKuttaMethod(ExplicitRungeKuttaMethod):
    """
    Base class template for embedded explicit Runge-Kutta pairs.

    An embedded pair shares the stage evaluations of two explicit RK methods of different order.
    The difference of the two solutions is an estimate of the local error, which can be used
    for adaptive step size control without any additional right-hand side evaluations.
    """
    is_adaptive = True
    error_order = 0

    def __init__(self,
                 alphas: np.ndarray,
                 betas: np.ndarray,
                 gammas: np.ndarray,
                 gammas_embedded: np.ndarray,
                 order: int = None,
                 error_order: int = None):
        """
        Embedded Runge-Kutta method constructor.

        Args:
            alphas: Alpha- or a-array in the Butcher tableau.
            betas: Beta- or b-matrix in the Butcher tableau.
            gammas: Weights of the solution that is propagated.
            gammas_embedded: Weights of the companion solution used for error estimation.
            order: Order of the propagated solution.
            error_order: Order of the lower-order solution of the pair. The error estimate
             scales with h ** (error_order + 1).
        """
        super(EmbeddedRungeKuttaMethod, self).__init__(alphas=alphas,
                                                       betas=betas,
                                                       gammas=gammas,
                                                       order=order)

        gammas_embedded = np.asarray(gammas_embedded, dtype=float)
        if len(gammas_embedded) != self.num_stages:
            raise InvalidConfigurationError("Embedded weights must have one entry per stage.")

        self.gammas_embedded = gammas_embedded
        if error_order is not None:
            self.error_order = error_order

    def step_with_error(self, model: ODEModel, t: float, y: StateVariable, h: float):
        """
        Take a trial step and estimate its local error.

        Returns:
            A tuple (y_new, y_err) of the propagated solution and the difference between
            the two solutions of the embedded pair.
        """
        k = self._compute_stages(model, t, y, h)

        y_new = y + h * np.dot(self.gammas, k)
        y_err = h * np.dot(self.gammas - self.gammas_embedded, k)

        return y_new, y_err


class ImplicitRungeKuttaMethod(SingleStepMethod):
    """
    Base class template for implicit Runge-Kutta (RK) methods.

    A Runge-Kutta method is a generalized s-stage algorithm for advancing an ODE in time.
    It is defined by three sets of coefficients commonly called a Butcher tableau.

    An implicit Runge-Kutta method incurs generally much more computational effort than an explicit one,
    as a non-linear system of equations needs to be solved in each step. However, implicit methods
    have better properties when used on stiff equations, and can achieve very high order with a
    comparably low number of stages s.

    For more information on implicit Runge-Kutta methods and the Butcher tableau, see
    https://en.wikipedia.org/wiki/Runge%E2%80%93Kutta_methods#Implicit_Runge%E2%80%93Kutta_methods.
    """
    def __init__(self,
                 alphas: np.ndarray,
                 betas: np.ndarray,
                 gammas: np.ndarray,
                 order: int = None,
                 **kwargs):
        """
        Implicit Runge-Kutta method constructor.

        Args:
            alphas: Alpha- or a-array in the Butcher tableau (commonly the left column).
            betas: Beta- or b-matrix in the Butcher tableau (commonly in the upper right).
            gammas: Gamma- or c-array in the Butcher tableau (commonly the bottom row).
            order: Order of the resulting implicit RK method.
            **kwargs: Additional keyword arguments used in the call to scipy.optimize.root.
        """

        super(ImplicitRungeKuttaMethod, self).__init__(order=order)

        alphas, betas, gammas = (np.asarray(a, dtype=float) for a in (alphas, betas, gammas))

        self.validate_butcher_tableau(alphas=alphas, betas=betas, gammas=gammas)

        self.alphas = alphas
        self.betas = betas
        self.gammas = gammas
        self.num_stages = len(self.alphas)
        self.k = np.zeros(betas.shape[0])

        # scipy.optimize.root options
        self.solver_kwargs = kwargs

        self._array_ops = {"scalar": np.array,
                           "ndim": np.concatenate}

    @staticmethod
    def validate_butcher_tableau(alphas: np.ndarray,
                                 betas: np.ndarray,
                                 gammas: np.ndarray) -> None:
        _error_msg = []
        if len(alphas) != len(gammas):
            _error_msg.append("Alpha and gamma vectors are "
                              "not the same length")

        if betas.ndim != 2 or betas.shape[0] != betas.shape[1] or betas.shape[0] != len(alphas):
            _error_msg.append("Betas must be a quadratic matrix with the same "
                              "dimension as the alphas/gammas arrays")

        elif betas.shape[0] == 1:
            _error_msg.append("You have supplied a single-stage implicit RK method, which "
                              "is not supported by this template.")

        if _error_msg:
            raise InvalidConfigurationError("An error occurred while validating the input "
                                            "Butcher tableau. More information: "
                                            "{}.".format(",".join(_error_msg)))

    def step(self, model: ODEModel, t: float, y: StateVariable, h: float) -> StateVariable:
        """
        Advance y by one step of the multi-stage implicit Runge-Kutta method.

        The stage equations are solved with scipy.optimize.root, starting from the derivative
        at the current state.

        Raises:
            ConvergenceError: If the root finder does not converge.
        """
        if self._get_shape(y) != self.k.shape:
            self._adjust_dims(y)

        initial_shape = self.k.shape
        shape_prod = int(np.prod(initial_shape))

        op_type = "scalar" if is_scalar(y) else "ndim"

        def F(x: np.ndarray) -> np.ndarray:
            model_stack = self._array_ops.get(op_type)(
                [model(t + h * self.alphas[i], y + h * np.dot(self.betas[i], x.reshape(initial_shape)))
                 for i in range(self.num_stages)])

            return model_stack - x

        x0 = np.broadcast_to(model(t, y), initial_shape).reshape((shape_prod,))

        root_res = root(F, x0=x0, **self.solver_kwargs)

        if not root_res.success:
            raise ConvergenceError("Implicit Runge-Kutta stage equations did not converge "
                                   "at t={0}: {1}".format(t, root_res.message))

        self.k = root_res.x.reshape(initial_shape)

        return y + h * np.dot(self.gammas, self.k)


class MultiStepPhase(enum.Enum):
    STARTING = "starting"
    RUNNING = "running"


class MultiStepMethod:
    """
    Base class for linear multi-step methods for ODE solving. Override this class and its methods
    to make your own custom multi-step functions.

    Adams-type multi-step methods are defined by a set of b-coefficients weighting past derivative
    evaluations. For more information and sample methods, see
    https://en.wikipedia.org/wiki/Linear_multistep_method.

    A multi-step method is a small state machine. In the ``STARTING`` phase, every call takes a
    step with the startup single-step method and records the derivative at the current state.
    Once the history buffer holds ``num_previous`` derivatives, the method switches to the
    ``RUNNING`` phase and applies its multi-step formula from then on. A method of order k thus
    produces exactly k - 1 startup steps.
    """
    order = 0
    is_adaptive = False
    b_coeffs = None

    def __init__(self,
                 startup: SingleStepMethod,
                 b_coeffs: np.ndarray = None,
                 order: int = None,
                 reverse: bool = True):
        """
        Base MultiStepMethod constructor.

        Args:
            startup: SingleStepMethod used to compute the startup data.
            b_coeffs: Array of b-coefficients of the method. Defaults to the class-level coefficients.
            order: Order of the method.
            reverse: Whether to reverse the coefficient arrays. Set this to True if you are copying
             coefficient sets e.g. from Wikipedia, as they usually count the states in reverse.
        """
        if order is not None:
            self.order = order

        if b_coeffs is None:
            b_coeffs = self.b_coeffs

        b_coeffs = np.asarray(b_coeffs, dtype=float)
        self.b_coeffs = np.flip(b_coeffs) if reverse else b_coeffs

        self.startup = startup

        if startup.order < self.order:
            logger.warning("Startup method of order {0} is of lower order than the "
                           "multi-step method ({1}).".format(startup.order, self.order))

        self.num_previous = self._num_previous()
        self.history = HistoryBuffer(capacity=self.num_previous)

        self.reset()

    def _num_previous(self) -> int:
        return len(self.b_coeffs)

    @staticmethod
    def get_data_from_state(state: ModelState):
        """
        Custom member function for getting the raw numpy-compatible data from a ModelState object.
        Override this if you intend to use a custom state type such as a NamedTuple.
        """
        return state

    @staticmethod
    def make_new_state(t: StateVariable, y: StateVariable) -> ModelState:
        """
        Custom function for constructing a new state from numpy data.
        Override this if you intend to use a custom state type such as a NamedTuple.
        """
        return t, y

    @property
    def ready(self) -> bool:
        return self.phase is MultiStepPhase.RUNNING

    def reset(self):
        """
        Resets the step function so that next time the multi-step method is called,
        new startup values will be calculated with the saved startup step
        function. Useful if the multi-step method will be reused in
        multiple non-consecutive runs with different model dimensions.
        """
        self.phase = MultiStepPhase.STARTING
        self.startup_steps = 0
        self.history.clear()
        self.startup.reset()
        self._h = None
        self._t_last = None

    @staticmethod
    def _time_slack(t: float, h: float) -> float:
        # round-off of step sizes computed as differences of time values near t
        return 8 * float(np.spacing(max(abs(t), abs(t + h))))

    def _is_continuation(self, t: float, h: float) -> bool:
        if self._t_last is None:
            return True
        atol = max(1e-9 * abs(h), self._time_slack(t, h))
        return bool(np.isclose(t, self._t_last, rtol=1e-12, atol=atol))

    def step(self, model: ODEModel, t: float, y: StateVariable, h: float) -> StateVariable:
        return self.forward(model, (t, y), h)[1]

    def forward(self,
                model: ODEModel,
                state: ModelState,
                h: float,
                **kwargs) -> ModelState:
        """
        Main method to advance an ODE in time by computing a new state with a multi-step method.

        The input state is expected to be the output of the previous call. If it is not, the
        history is discarded and a new startup phase begins.

        Args:
            model: ODEModel object implementing the ODE model.
            state: Input state.
            h: Step size to use in the step function.
            **kwargs: Additional keyword arguments, unused for now.

        Returns:
            A new state containing the ODE model data at time t+h.
        """
        t, y = self.get_data_from_state(state=state)

        if not self._is_continuation(t, h):
            logger.debug("Input state does not continue the previous step, restarting.")
            self.reset()

        if self._h is not None and not np.isclose(h, self._h, rtol=1e-9,
                                                     atol=self._time_slack(t, h)):
            # history spacing no longer matches, e.g. a shortened final step
            logger.debug("Step size changed from {0} to {1}, using the startup "
                         "method.".format(self._h, h))
            self.reset()
            return self.startup.forward(model, state, h)

        self._h = h
        self.history.push(model(t, y))

        if len(self.history) < self.num_previous:
            new_state = self.startup.forward(model, state, h)
            self.startup_steps += 1
        else:
            if self.phase is MultiStepPhase.STARTING:
                logger.debug("Startup phase finished after {} "
                             "steps.".format(self.startup_steps))
                self.phase = MultiStepPhase.RUNNING

            new_state = self.make_new_state(t=t + h, y=self._multistep(model, t, y, h))

        self._t_last = new_state[0]

        return new_state

    def _multistep(self, model: ODEModel, t: float, y: StateVariable, h: float) -> StateVariable:
        """
        Apply the multi-step formula. The history buffer holds num_previous derivative
        evaluations, the newest of which belongs to the current state (t, y).
        """
        raise NotImplementedError


class ExplicitMultiStepMethod(MultiStepMethod):
    """
    Base class for explicit multi-step methods for ODE solving.

    In contrast to a single-step method, a linear multi-step method uses multiple past values
    to compute a new ODE state.

    The most prominent example of an explicit multi-step method is the class of Adams-Bashforth
    methods ::

        y_{n+1} = y_n + h * sum_i b_i * f_{n-i}.

    For more information on linear multi-step methods and sample coefficient sets, see
    https://en.wikipedia.org/wiki/Linear_multistep_method.
    """

    def _multistep(self, model: ODEModel, t: float, y: StateVariable, h: float) -> StateVariable:
        return y + h * np.dot(self.b_coeffs, self.history.ordered())


class ImplicitMultiStepMethod(MultiStepMethod):
    """
    Base class for implicit multi-step methods of Adams-Moulton type.

    The formula contains the derivative at the unknown new state ::

        y_{n+1} = y_n + h * (b_{-1} * f(t_{n+1}, y_{n+1}) + sum_i b_i * f_{n-i}).

    It is solved by fixed-point (corrector) iteration, seeded by an explicit predictor. The
    iteration stops once two successive iterates agree within the tolerance. If this does not
    happen within the iteration limit, the step fails with a ConvergenceError.
    """
    predictor_coeffs = None

    def __init__(self,
                 startup: SingleStepMethod,
                 b_coeffs: np.ndarray = None,
                 predictor_coeffs: np.ndarray = None,
                 order: int = None,
                 reverse: bool = True,
                 tolerance: float = CORRECTOR_TOL,
                 max_iterations: int = MAX_ITERATIONS):
        """
        ImplicitMultiStepMethod constructor.

        Args:
            startup: Single-step method used to compute the startup values.
            b_coeffs: Array of b-coefficients, including the implicit coefficient.
            predictor_coeffs: b-coefficients of the explicit predictor.
            order: Order of the resulting implicit multi-step method.
            reverse: Whether to reverse the coefficient arrays. Set this to True if you are copying
             coefficient sets e.g. from Wikipedia, as they usually count the states in reverse.
            tolerance: Convergence tolerance of the corrector iteration.
            max_iterations: Maximal number of corrector iterations per step.
        """
        if predictor_coeffs is None:
            predictor_coeffs = self.predictor_coeffs

        predictor_coeffs = np.asarray(predictor_coeffs, dtype=float)
        self.predictor_coeffs = np.flip(predictor_coeffs) if reverse else predictor_coeffs

        self.tolerance = tolerance
        self.max_iterations = max_iterations
        self.last_iterations = 0

        super(ImplicitMultiStepMethod, self).__init__(startup=startup,
                                                      b_coeffs=b_coeffs,
                                                      order=order,
                                                      reverse=reverse)

    def _num_previous(self) -> int:
        return max(len(self.predictor_coeffs), len(self.b_coeffs) - 1)

    def _multistep(self, model: ODEModel, t: float, y: StateVariable, h: float) -> StateVariable:
        past = self.history.ordered()

        y_curr = y + h * np.dot(self.predictor_coeffs, past[len(past) - len(self.predictor_coeffs):])

        # coefficients are ordered oldest to newest, the implicit one comes last
        num_explicit = len(self.b_coeffs) - 1
        b_implicit = self.b_coeffs[-1]
        y_explicit = y + h * np.dot(self.b_coeffs[:-1], past[len(past) - num_explicit:])

        for i in range(1, self.max_iterations + 1):
            y_next = y_explicit + h * b_implicit * model(t + h, y_curr)

            if error_norm(y_next - y_curr) <= self.tolerance * max(1.0, error_norm(y_next)):
                self.last_iterations = i
                return y_next

            y_curr = y_next

        raise ConvergenceError("Corrector iteration did not converge within {0} iterations "
                               "at t={1}.".format(self.max_iterations, t))


class SymplecticMethod(SingleStepMethod):
    """
    Base class template for explicit symplectic integrators of separable Hamiltonian systems.

    A step is a sequence of alternating drifts and kicks ::

        q <- q + c_i * h * dH/dp(p)
        p <- p - d_i * h * dH/dq(q)

    for i = 1, ..., s, see https://en.wikipedia.org/wiki/Symplectic_integrator. Symplectic methods
    are fixed-step methods and produce no error estimate.
    """
    c_coeffs = None
    d_coeffs = None

    def __init__(self,
                 c_coeffs: np.ndarray = None,
                 d_coeffs: np.ndarray = None,
                 order: int = None):
        super(SymplecticMethod, self).__init__(order=order)

        c_coeffs = self.c_coeffs if c_coeffs is None else c_coeffs
        d_coeffs = self.d_coeffs if d_coeffs is None else d_coeffs

        if c_coeffs is None or d_coeffs is None or len(c_coeffs) != len(d_coeffs):
            raise InvalidConfigurationError("Drift and kick coefficient arrays must be "
                                            "given and of the same length.")

        self.c_coeffs = np.asarray(c_coeffs, dtype=float)
        self.d_coeffs = np.asarray(d_coeffs, dtype=float)
        self.num_stages = len(self.c_coeffs)

    @staticmethod
    def make_new_state(t: StateVariable, *state_vectors):
        q, p = state_vectors
        return t, q, p

    @staticmethod
    def check_model(model: BaseModel):
        if not isinstance(model, HamiltonianSystem):
            raise InvalidConfigurationError("Symplectic methods require a HamiltonianSystem "
                                            "model, got {}.".format(type(model).__name__))
        if not model.is_separable:
            raise InvalidConfigurationError("Symplectic methods require a separable "
                                            "Hamiltonian H(t, q, p) = T(p) + V(q).")

    def step(self, model: HamiltonianSystem, t: float, q: StateVariable, p: StateVariable, h: float):
        """
        Advance position q and momentum p by one step of size h.

        Returns:
            A tuple (q, p) at time t+h.
        """
        self.check_model(model)

        tau = t
        for c, d in zip(self.c_coeffs, self.d_coeffs):
            if c:
                q = q + c * h * model.dq_dt(tau, p)
                tau = tau + c * h
            if d:
                p = p + d * h * model.dp_dt(tau, q)

        return q, p

    def forward(self,
                model: HamiltonianSystem,
                state: ModelState,
                h: float,
                **kwargs) -> ModelState:
        t, q, p = self.get_data_from_state(state=state)

        q_new, p_new = self.step(model, t, q, p, h)

        return self.make_new_state(t + h, q_new, p_new)


class CompositionMethod(SymplecticMethod):
    """
    Symplectic method built by composing sub-steps of a base method with fixed weights.
    The weights sum to one, so the sub-steps together make up one full step.
    """
    weights = None

    def __init__(self,
                 base: SymplecticMethod,
                 weights: np.ndarray = None,
                 order: int = None):
        weights = self.weights if weights is None else weights
        weights = np.asarray(weights, dtype=float)

        if not np.isclose(np.sum(weights), 1.0):
            raise InvalidConfigurationError("Composition weights must sum to one, "
                                            "got {}.".format(np.sum(weights)))

        super(CompositionMethod, self).__init__(c_coeffs=base.c_coeffs,
                                                d_coeffs=base.d_coeffs,
                                                order=order)
        self.base = base
        self.weights = weights

    def step(self, model: HamiltonianSystem, t: float, q: StateVariable, p: StateVariable, h: float):
        tau = t
        for w in self.weights:
            q, p = self.base.step(model, tau, q, p, w * h)
            tau = tau + w * h

        return q, p
