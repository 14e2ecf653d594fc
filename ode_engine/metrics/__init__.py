from ode_engine.metrics.metric import Metric, DistanceToSolution, EnergyDrift
