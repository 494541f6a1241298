"""Cell taxonomy and read-only per-cell view for the staggered grid."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple


class ContractViolation(RuntimeError):
    """A stencil or contract accessor was used on a cell that violates its
    preconditions (wrong type or missing neighbor).

    Signals a malformed grid, never a transient condition.
    """


class CellType(IntEnum):
    """Tag stored per grid cell."""

    FLUID = 0
    BOUNDARY = 1
    VOID = 2


class BoundaryKind(IntEnum):
    """Sub-variant of a BOUNDARY cell."""

    NO_SLIP = 0
    FREE_SLIP = 1
    OUTFLOW = 2
    INFLOW = 3


class Side(IntEnum):
    """Axis neighbor direction, in the order neighbors are visited."""

    LEFT = 0
    RIGHT = 1
    BOTTOM = 2
    TOP = 3


@dataclass(frozen=True)
class Cell:
    """Snapshot of one grid cell.

    ``velocity[0]`` is u on the right face, ``velocity[1]`` is v on the top
    face; ``psi`` lives at the top-right corner.
    """

    x: int
    y: int
    cell_type: CellType
    boundary_kind: Optional[BoundaryKind]
    velocity: Tuple[float, float]
    f: float
    g: float
    pressure: float
    rhs: float
    psi: float
    boundary_condition_velocity: Tuple[float, float]

    @property
    def is_fluid(self) -> bool:
        return self.cell_type == CellType.FLUID

    @property
    def is_boundary(self) -> bool:
        return self.cell_type == CellType.BOUNDARY

    @property
    def is_void(self) -> bool:
        return self.cell_type == CellType.VOID
