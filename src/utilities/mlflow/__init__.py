"""MLflow utilities for experiment tracking."""

from .tracking import configure_tracking, experiment_name_for

__all__ = [
    "configure_tracking",
    "experiment_name_for",
]
