"""Plotting utilities for the staggered-grid solver.

Importing the package applies the seaborn style.
"""

from . import style  # noqa: F401
from .fields import plot_fields
from .history import plot_step_history

__all__ = ["plot_fields", "plot_step_history"]
