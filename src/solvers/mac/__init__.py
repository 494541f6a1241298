"""Staggered (MAC) grid engine: cells, grid, boundaries, predictor, Poisson, corrector."""

from .cell import BoundaryKind, Cell, CellType, ContractViolation, Side
from .grid import Grid
from .poisson import PoissonResult
from .solver import Simulation

__all__ = [
    "BoundaryKind",
    "Cell",
    "CellType",
    "ContractViolation",
    "Side",
    "Grid",
    "PoissonResult",
    "Simulation",
]
