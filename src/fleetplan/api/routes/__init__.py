"""Route group exports."""

from . import health, workload

__all__ = ["health", "workload"]
