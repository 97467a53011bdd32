"""Workload engine exports."""

from .aggregator import aggregate_workload, classify_load
from .alerts import generate_alerts
from .critical_path import compute_critical_path
from .redistribution import suggest_redistribution
from .sequence import optimize_sequence

__all__ = [
    "aggregate_workload",
    "classify_load",
    "compute_critical_path",
    "generate_alerts",
    "optimize_sequence",
    "suggest_redistribution",
]
