"""Cost estimators used by the workload aggregator."""

from .fuel import FuelCostEstimator
from .tolls import estimate_toll_cost

__all__ = ["FuelCostEstimator", "estimate_toll_cost"]
