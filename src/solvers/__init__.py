"""Staggered-grid flow solver framework.

Solver Hierarchy:
-----------------
TimeSteppingSolver (abstract base - step loop, metrics, MLflow)
└── Simulation (staggered-grid projection method with SOR pressure solve)
"""

from .base import TimeSteppingSolver
from .datastructures import (
    # Base classes (shared by all solvers)
    Parameters,
    Metrics,
    Fields,
    TimeSeries,
    # Staggered-grid specific
    MACParameters,
    StaggeredGridFields,
)
from solvers.mac.solver import Simulation


__all__ = [
    # Base solver
    "TimeSteppingSolver",
    # Shared data structures
    "Parameters",
    "Metrics",
    "Fields",
    "TimeSeries",
    # Staggered-grid solver
    "Simulation",
    "MACParameters",
    "StaggeredGridFields",
]
