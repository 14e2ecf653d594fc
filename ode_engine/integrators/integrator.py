import datetime
import logging
import os
import uuid
from typing import Dict, Callable, Text, List, Any

import absl.logging
import pandas as pd
from tabulate import tabulate

from ode_engine import defaults
from ode_engine.callbacks import Callback
from ode_engine.constants import ResultKeys, ConfigKeys
from ode_engine.errors import IntegrationError
from ode_engine.integrators.loop_factory import loop_factory
from ode_engine.metrics import Metric
from ode_engine.models import BaseModel
from ode_engine.qss import QSSMethod
from ode_engine.stepfunctions import StepFunction
from ode_engine.stepsize_control import StepSizeController, EmbeddedErrorController
from ode_engine.trajectory import Trajectory
from ode_engine.types import State
from ode_engine.utils.result_utils import get_result_metadata

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

ch = logging.StreamHandler()
ch.setLevel(logging.INFO)
ch.setFormatter(absl.logging.PythonFormatter())
logger.addHandler(ch)


class Integrator:
    """
    Base class for all ODE integrators. An integrator keeps minimal state to facilitate
    logging of model integration results. It also serves as a registry for all model results and can be
    queried for specific results by different attributes.
    """

    def __init__(self,
                 base_log_dir: Text = None,
                 logfile_name: Text = None):
        """
        Base Integrator constructor.

        Args:
            base_log_dir: Base directory for saving ODE integration logs. If not given,
             logs are only written to the console.
            logfile_name: Base log file object to save all logs into.
        """
        # empty list holding the different executed ODE integration results
        self.results = []

        self.base_log_dir = base_log_dir

        self.logfile_name = logfile_name or "logs.txt"

        if self.base_log_dir:
            self._set_up_logger(log_dir=self.base_log_dir)

        logger.debug("Created an Integrator instance.")

    def _reset(self):
        # Hard reset all data
        self.results = []

    def _set_up_logger(self, log_dir):
        os.makedirs(log_dir, exist_ok=True)

        fh = logging.FileHandler(os.path.join(log_dir, self.logfile_name))
        fh.setLevel(logging.INFO)
        fh.setFormatter(absl.logging.PythonFormatter())
        logger.addHandler(fh)

    def _flush_stale_file_handlers(self):
        for handler in list(logger.handlers):
            if isinstance(handler, logging.FileHandler) and \
                    os.path.basename(handler.baseFilename) != self.logfile_name:
                logger.removeHandler(handler)
                handler.close()

    def _make_config(self,
                     loop_type: Text,
                     step_func: Any,
                     initial_state: State,
                     end: float,
                     callbacks: List[Callback],
                     metrics: List[Metric],
                     **loop_kwargs) -> Dict[Text, Any]:

        start = initial_state[0]

        sc = loop_kwargs.get("sc")

        config = {ConfigKeys.TIMESTAMP: datetime.datetime.now().strftime("%c"),
                  ConfigKeys.ID: str(uuid.uuid4()),
                  ConfigKeys.LOOP_TYPE: loop_type,
                  ConfigKeys.METHOD: step_func.__class__.__name__,
                  ConfigKeys.START: start,
                  ConfigKeys.END: end,
                  ConfigKeys.STEP_SIZE: loop_kwargs.get("h"),
                  ConfigKeys.NUM_STEPS: loop_kwargs.get("max_steps"),
                  ConfigKeys.MAX_ITERATIONS: loop_kwargs.get("max_iterations"),
                  ConfigKeys.METRICS: [m.__name__ for m in metrics],
                  ConfigKeys.CALLBACKS: [c.__name__ for c in callbacks]
                  }

        if isinstance(sc, EmbeddedErrorController):
            config.update({ConfigKeys.TOLERANCE: sc.tolerance,
                           ConfigKeys.MIN_STEP: sc.min_step,
                           ConfigKeys.MAX_STEP: sc.max_step})

        if isinstance(step_func, QSSMethod):
            config[ConfigKeys.DQ] = step_func.dq.tolist()

        return config

    def _integrate(self,
                   loop_type: Text,
                   model: BaseModel,
                   step_func: Any,
                   initial_state: State,
                   end: float,
                   reset: bool = False,
                   verbosity: int = logging.INFO,
                   logfile: Text = None,
                   progress_bar: bool = False,
                   **loop_kwargs):

        if reset:
            self._reset()

        # create file handler
        if logfile and self.base_log_dir:
            self.logfile_name = logfile
            self._flush_stale_file_handlers()
            self._set_up_logger(log_dir=self.base_log_dir)

        logger.setLevel(verbosity)
        for handler in logger.handlers:
            handler.setLevel(verbosity)

        # construct result object
        config = self._make_config(loop_type=loop_type,
                                   step_func=step_func,
                                   initial_state=initial_state,
                                   end=end,
                                   **loop_kwargs)

        logger.info("Starting integration with {0} from t={1} to t={2}.".format(
            config[ConfigKeys.METHOD], config[ConfigKeys.START], end))

        try:
            result = loop_factory.get(loop_type)(step_func=step_func,
                                                 model=model,
                                                 initial_state=initial_state,
                                                 end=end,
                                                 progress_bar=progress_bar,
                                                 **loop_kwargs)
        except IntegrationError as err:
            logger.error("Integration failed: {}".format(err))
            raise

        logger.info("Finished integration with {} points.".format(len(result)))

        result_dict = {ResultKeys.RESULT_DATA: result,
                       ResultKeys.CONFIG: config}

        self.results.append(result_dict)

        return self

    def integrate_const(self,
                        model: BaseModel,
                        step_func: StepFunction,
                        initial_state: State,
                        end: float = None,
                        h: float = None,
                        max_steps: int = None,
                        event: Callable[..., bool] = None,
                        reset: bool = False,
                        verbosity: int = logging.INFO,
                        logfile: Text = None,
                        progress_bar: bool = False,
                        callbacks: List[Callback] = None,
                        metrics: List[Metric] = None):
        """
        Integrate a model with a chosen step function and a constant step size.

        Args:
            model: ODEModel instance of your ODE problem.
            step_func: Step Function used to integrate the model.
            initial_state: State tuple containing the initial state variables.
            end: Target end time for ODE solving. Equals the time value of the last step.
            h: Constant step size for integration.
            max_steps: Maximum allowed steps during the integration.
            event: Optional predicate event(t, *state), stops the run once it returns True.
            reset: Bool, whether to reset the integrator (this deletes all previous results).
            verbosity: Logging verbosity, default logging.INFO.
            logfile: Log file. If specified, writes all logs of the integration into this file.
            progress_bar: Bool, whether to display a progress bar during the result.
            callbacks: List of callbacks to execute after each step.
            metrics: List of metrics to calculate after each step.
        """
        # empty lists in case nothing was supplied
        callbacks = callbacks or []
        metrics = metrics or []

        return self._integrate(loop_type="constant",
                               model=model,
                               step_func=step_func,
                               initial_state=initial_state,
                               end=end,
                               h=defaults.INITIAL_H if h is None else h,
                               max_steps=defaults.MAX_STEPS if max_steps is None else max_steps,
                               event=event,
                               reset=reset,
                               verbosity=verbosity,
                               logfile=logfile,
                               progress_bar=progress_bar,
                               callbacks=callbacks,
                               metrics=metrics)

    def integrate_adaptively(self,
                             model: BaseModel,
                             step_func: StepFunction,
                             initial_state: State,
                             end: float,
                             sc: StepSizeController = None,
                             initial_h: float = None,
                             max_steps: int = None,
                             max_iterations: int = None,
                             event: Callable[..., bool] = None,
                             reset: bool = False,
                             verbosity: int = logging.INFO,
                             logfile: Text = None,
                             progress_bar: bool = False,
                             callbacks: List[Callback] = None,
                             metrics: List[Metric] = None):
        """
        Integrate a model with a chosen step function adaptively with custom step size control.

        Args:
            model: ODEModel instance of your ODE problem.
            step_func: Embedded step function used to integrate the model.
            initial_state: State tuple containing the initial state variables.
            end: Target end time for ODE solving. Equals the time value of the last step.
            sc: Step size controller, adjusting the step size throughout the integration.
             Defaults to an EmbeddedErrorController with default tolerance.
            initial_h: Initial step size for integration.
            max_steps: Maximum allowed accepted steps during the integration.
            max_iterations: Maximum number of retries of a rejected step.
            event: Optional predicate event(t, *state), stops the run once it returns True.
            reset: Bool, whether to reset the integrator (this deletes all previous results).
            verbosity: Logging verbosity, default logging.INFO.
            logfile: Log file. If specified, writes all logs of the integration into this file.
            progress_bar: Bool, whether to display a progress bar during the result.
            callbacks: List of callbacks to execute after each step.
            metrics: List of metrics to calculate after each step.
        """
        # empty lists in case nothing was supplied
        callbacks = callbacks or []
        metrics = metrics or []

        if initial_h is None:
            initial_h = defaults.INITIAL_H if end >= initial_state[0] else -defaults.INITIAL_H

        if max_iterations is None:
            max_iterations = defaults.MAX_ITERATIONS

        return self._integrate(loop_type="adaptive",
                               model=model,
                               step_func=step_func,
                               initial_state=initial_state,
                               end=end,
                               h=initial_h,
                               max_steps=defaults.MAX_STEPS if max_steps is None else max_steps,
                               max_iterations=max_iterations,
                               event=event,
                               reset=reset,
                               verbosity=verbosity,
                               logfile=logfile,
                               progress_bar=progress_bar,
                               callbacks=callbacks,
                               metrics=metrics,
                               sc=sc or EmbeddedErrorController())

    def integrate_quantized(self,
                            model: BaseModel,
                            step_func: QSSMethod,
                            initial_state: State,
                            end: float,
                            max_steps: int = None,
                            event: Callable[..., bool] = None,
                            reset: bool = False,
                            verbosity: int = logging.INFO,
                            logfile: Text = None,
                            progress_bar: bool = False,
                            callbacks: List[Callback] = None,
                            metrics: List[Metric] = None):
        """
        Integrate a model with a quantized state system method.

        Args:
            model: ODEModel instance of your ODE problem.
            step_func: QSS method used to integrate the model.
            initial_state: State tuple containing the initial state variables.
            end: Target end time for ODE solving.
            max_steps: Maximum allowed number of quantization events.
            event: Optional predicate event(t, *state), stops the run once it returns True.
            reset: Bool, whether to reset the integrator (this deletes all previous results).
            verbosity: Logging verbosity, default logging.INFO.
            logfile: Log file. If specified, writes all logs of the integration into this file.
            progress_bar: Bool, whether to display a progress bar during the result.
            callbacks: List of callbacks to execute after each event.
            metrics: List of metrics to calculate after each event.
        """
        callbacks = callbacks or []
        metrics = metrics or []

        return self._integrate(loop_type="quantized",
                               model=model,
                               step_func=step_func,
                               initial_state=initial_state,
                               end=end,
                               max_steps=defaults.MAX_STEPS if max_steps is None else max_steps,
                               event=event,
                               reset=reset,
                               verbosity=verbosity,
                               logfile=logfile,
                               progress_bar=progress_bar,
                               callbacks=callbacks,
                               metrics=metrics)

    def list_results(self, tablefmt: Text = "github"):
        """
        Lists metadata of all available previous results.

        Args:
            tablefmt: Table format, passed to tabulate.
        """

        if len(self.results) == 0:
            print("No results available!")
            return

        metadata_list = [get_result_metadata(result) for result in self.results]

        print(tabulate(metadata_list, headers="keys", tablefmt=tablefmt))

    def get_result_by_id(self, result_id: Text) -> Trajectory:
        """
        Returns a previous ODE integration result by (partial) ID.

        Args:
            result_id: ID of the chosen integration result object, or "latest".

        Raises:
            ValueError: If no result matches the given result ID.

        """
        if len(self.results) == 0:
            raise ValueError("No results available. Please integrate a model first!")
        if result_id == "latest":
            return self.results[-1][ResultKeys.RESULT_DATA]
        try:
            result = next(r for r in self.results if result_id in str(r[ResultKeys.CONFIG][ConfigKeys.ID]))
        except StopIteration:
            raise ValueError(f"Result with ID {result_id} not found.")

        return result[ResultKeys.RESULT_DATA]

    def return_result_data(self, result_id: Text = "latest", dim_names: List[Text] = None) -> pd.DataFrame:
        """
        Return data of a previous integration result.

        Args:
            result_id: ID of the chosen integration result object.
            dim_names: Optional column names for the state dimensions.

        Returns:
            A pandas DataFrame containing the ODE integration data for each step.
        """
        trajectory = self.get_result_by_id(result_id=result_id)
        return trajectory.to_dataframe(dim_names=dim_names, include_metrics=False)

    def return_metrics(self, result_id: Text = "latest") -> pd.DataFrame:
        """
        Return metrics data of a previous integration result.

        Args:
            result_id: ID of the chosen integration result object.

        Returns:
            A pandas DataFrame of the metric data for each step of the result with ID result_id.
        """
        trajectory = self.get_result_by_id(result_id=result_id)
        return pd.DataFrame(data=trajectory.metrics, index=trajectory.times)
