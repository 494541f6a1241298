"""Staggered (MAC) grid: owned cell storage, accessors and post-processing.

Layout
------
All per-cell quantities live in one ``StaggeredGridFields`` instance of
shape ``(nx, ny)`` indexed ``[x, y]`` with x to the right and y upwards.
For cell ``(x, y)``:

- ``u[x, y]`` sits on the right face, ``v[x, y]`` on the top face
- ``p[x, y]`` and ``rhs[x, y]`` sit at the cell centre
- ``psi[x, y]`` sits at the top-right corner

Construction validates the layout once so that every FLUID cell has all
eight surrounding cells inside the grid and no VOID axis neighbor. The
stencils rely on this and index the arrays directly.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from ..datastructures import StaggeredGridFields
from .cell import BoundaryKind, Cell, CellType, ContractViolation, Side

log = logging.getLogger(__name__)

_OFFSETS = (
    (Side.LEFT, -1, 0),
    (Side.RIGHT, 1, 0),
    (Side.BOTTOM, 0, -1),
    (Side.TOP, 0, 1),
)


class Grid:
    """Rectangular staggered grid owning all simulation state.

    Parameters
    ----------
    arrays : StaggeredGridFields
        Per-cell storage. The grid takes ownership; the cell type arrays are
        frozen after validation.
    delta_space : tuple of float
        Physical cell size ``(dx, dy)`` in meters.
    """

    def __init__(self, arrays: StaggeredGridFields, delta_space):
        dx, dy = (float(d) for d in delta_space)
        if dx <= 0 or dy <= 0:
            raise ValueError(f"delta_space must be positive, got {(dx, dy)}")

        self.arrays = arrays
        self._delta_space = (dx, dy)
        self._validate_layout()

        a = self.arrays
        # Only boundary cells carry a kind
        a.boundary_kind[a.cell_type != CellType.BOUNDARY] = -1

        # Inflow cells expose their prescribed velocity to the interior
        inflow = a.boundary_kind == BoundaryKind.INFLOW
        a.u[inflow] = a.bc_u[inflow]
        a.v[inflow] = a.bc_v[inflow]

        a.cell_type.flags.writeable = False
        a.boundary_kind.flags.writeable = False

        self._fluid_mask = a.cell_type == CellType.FLUID
        self._fluid_mask.flags.writeable = False
        self._fluid_coordinates = [tuple(c) for c in np.argwhere(self._fluid_mask)]
        self._boundary_coordinates = [
            tuple(c) for c in np.argwhere(a.cell_type == CellType.BOUNDARY)
        ]

        # For coloring
        self.pressure_range = (0.0, 0.0)
        self.speed_range = (0.0, 0.0)
        self.psi_range = (0.0, 0.0)

        log.debug(
            f"Grid {self.space_size[0]}x{self.space_size[1]}: "
            f"{self.fluid_cell_count} fluid, "
            f"{len(self._boundary_coordinates)} boundary cells"
        )

    def _validate_layout(self):
        """Reject layouts that would let a stencil leave the grid."""
        a = self.arrays
        shapes = {
            name: getattr(a, name).shape
            for name in (
                "cell_type", "boundary_kind", "u", "v", "f", "g",
                "p", "rhs", "psi", "bc_u", "bc_v",
            )
        }
        if len(set(shapes.values())) != 1:
            raise ValueError(f"Grid arrays disagree in shape: {shapes}")
        if a.cell_type.ndim != 2:
            raise ValueError(f"Grid arrays must be 2-D, got shape {a.cell_type.shape}")

        nx, ny = a.cell_type.shape
        if nx < 3 or ny < 3:
            raise ValueError(f"Grid must be at least 3x3, got {nx}x{ny}")

        known_types = np.isin(a.cell_type, [t.value for t in CellType])
        if not known_types.all():
            x, y = np.argwhere(~known_types)[0]
            raise ValueError(f"Unknown cell type {a.cell_type[x, y]} at ({x}, {y})")

        boundary = a.cell_type == CellType.BOUNDARY
        known_kinds = np.isin(a.boundary_kind, [k.value for k in BoundaryKind])
        if (boundary & ~known_kinds).any():
            x, y = np.argwhere(boundary & ~known_kinds)[0]
            raise ValueError(f"Boundary cell ({x}, {y}) has no valid boundary kind")

        fluid = a.cell_type == CellType.FLUID
        edge = np.zeros_like(fluid)
        edge[0, :] = edge[-1, :] = edge[:, 0] = edge[:, -1] = True
        if (fluid & edge).any():
            x, y = np.argwhere(fluid & edge)[0]
            raise ValueError(f"Fluid cell ({x}, {y}) lies on the grid edge")

        void = a.cell_type == CellType.VOID
        void_neighbor = np.zeros_like(fluid)
        void_neighbor[1:, :] |= void[:-1, :]
        void_neighbor[:-1, :] |= void[1:, :]
        void_neighbor[:, 1:] |= void[:, :-1]
        void_neighbor[:, :-1] |= void[:, 1:]
        if (fluid & void_neighbor).any():
            x, y = np.argwhere(fluid & void_neighbor)[0]
            raise ValueError(f"Fluid cell ({x}, {y}) touches a void cell")

    def copy(self) -> "Grid":
        """Grid over copies of every array, sharing no state with this one."""
        clone = Grid(self.arrays.copy(), self._delta_space)
        clone.pressure_range = self.pressure_range
        clone.speed_range = self.speed_range
        clone.psi_range = self.psi_range
        return clone

    # =========================================================================
    # Metadata
    # =========================================================================

    @property
    def space_size(self) -> Tuple[int, int]:
        return self.arrays.shape

    @property
    def delta_space(self) -> Tuple[float, float]:
        return self._delta_space

    @property
    def fluid_mask(self) -> np.ndarray:
        return self._fluid_mask

    @property
    def fluid_cell_count(self) -> int:
        return len(self._fluid_coordinates)

    def fluid_coordinates(self) -> List[Tuple[int, int]]:
        """FLUID cells in raster order (x outer, y inner)."""
        return self._fluid_coordinates

    def boundary_coordinates(self) -> List[Tuple[int, int]]:
        """BOUNDARY cells in raster order (x outer, y inner)."""
        return self._boundary_coordinates

    def cell_centers(self) -> Tuple[np.ndarray, np.ndarray]:
        """Physical cell-centre coordinates, each shaped (nx, ny)."""
        nx, ny = self.space_size
        dx, dy = self.delta_space
        xc = (np.arange(nx) + 0.5) * dx
        yc = (np.arange(ny) + 0.5) * dy
        return np.meshgrid(xc, yc, indexing="ij")

    # =========================================================================
    # Accessors
    # =========================================================================

    def in_bounds(self, x: int, y: int) -> bool:
        nx, ny = self.space_size
        return 0 <= x < nx and 0 <= y < ny

    def cell_type_at(self, x: int, y: int) -> Optional[CellType]:
        """Cell type at (x, y), or None outside the grid."""
        if not self.in_bounds(x, y):
            return None
        return CellType(int(self.arrays.cell_type[x, y]))

    def is_fluid(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and bool(self._fluid_mask[x, y])

    def boundary_kind_at(self, x: int, y: int) -> Optional[BoundaryKind]:
        """Boundary kind at (x, y), or None if it is not a boundary cell."""
        if self.cell_type_at(x, y) != CellType.BOUNDARY:
            return None
        return BoundaryKind(int(self.arrays.boundary_kind[x, y]))

    def try_get_cell(self, x: int, y: int) -> Optional[Cell]:
        """Bounds-checked accessor: None when (x, y) lies outside the grid."""
        if not self.in_bounds(x, y):
            return None
        return self._snapshot(x, y)

    def get_cell(self, x: int, y: int) -> Cell:
        """Accessor for coordinates known to exist; leaving the grid is fatal."""
        if not self.in_bounds(x, y):
            raise ContractViolation(f"cell ({x}, {y}) outside {self.space_size} grid")
        return self._snapshot(x, y)

    def fluid_cell(self, x: int, y: int) -> Cell:
        """Accessor for stencil centres; anything but an existing FLUID cell is fatal."""
        if not self.is_fluid(x, y):
            raise ContractViolation(f"stencil on non fluid cell ({x}, {y})")
        return self._snapshot(x, y)

    def require_fluid(self, x: int, y: int):
        """Raise ContractViolation unless (x, y) is an existing FLUID cell."""
        if not self.is_fluid(x, y):
            raise ContractViolation(f"derivative on non fluid cell ({x}, {y})")

    def neighbors(self, x: int, y: int) -> List[Tuple[Side, int, int]]:
        """In-range axis neighbors as (side, x, y), ordered left, right, bottom, top."""
        return [
            (side, x + ox, y + oy)
            for side, ox, oy in _OFFSETS
            if self.in_bounds(x + ox, y + oy)
        ]

    def _snapshot(self, x: int, y: int) -> Cell:
        a = self.arrays
        cell_type = CellType(int(a.cell_type[x, y]))
        kind = None
        if cell_type == CellType.BOUNDARY:
            kind = BoundaryKind(int(a.boundary_kind[x, y]))
        return Cell(
            x=x,
            y=y,
            cell_type=cell_type,
            boundary_kind=kind,
            velocity=(float(a.u[x, y]), float(a.v[x, y])),
            f=float(a.f[x, y]),
            g=float(a.g[x, y]),
            pressure=float(a.p[x, y]),
            rhs=float(a.rhs[x, y]),
            psi=float(a.psi[x, y]),
            boundary_condition_velocity=(float(a.bc_u[x, y]), float(a.bc_v[x, y])),
        )

    def get_centered_velocity(self, x: int, y: int) -> Tuple[float, float]:
        """Collocated velocity at a FLUID cell centre, (0, 0) for anything else."""
        if not self.is_fluid(x, y):
            return (0.0, 0.0)
        u, v = self.arrays.u, self.arrays.v
        return (
            float((u[x, y] + u[x - 1, y]) / 2.0),
            float((v[x, y] + v[x, y - 1]) / 2.0),
        )

    def centered_velocity_field(self) -> Tuple[np.ndarray, np.ndarray]:
        """Collocated (u, v) on every cell, zero outside the fluid."""
        u, v = self.arrays.u, self.arrays.v
        uc = np.zeros_like(u)
        vc = np.zeros_like(v)
        uc[1:, :] = (u[1:, :] + u[:-1, :]) / 2.0
        vc[:, 1:] = (v[:, 1:] + v[:, :-1]) / 2.0
        uc[~self._fluid_mask] = 0.0
        vc[~self._fluid_mask] = 0.0
        return uc, vc

    # =========================================================================
    # Stream function and ranges (visualisation only)
    # =========================================================================

    def _shifted_fluid(self) -> Tuple[np.ndarray, np.ndarray]:
        """Masks of cells whose right / top neighbor is FLUID."""
        fluid_right = np.zeros_like(self._fluid_mask)
        fluid_right[:-1, :] = self._fluid_mask[1:, :]
        fluid_top = np.zeros_like(self._fluid_mask)
        fluid_top[:, :-1] = self._fluid_mask[:, 1:]
        return fluid_right, fluid_top

    def update_psi(self):
        """Integrate psi up each column: psi[x, 0] = 0, d(psi)/dy = u.

        The increment is only applied where the face carrying u touches
        fluid, i.e. where the cell or its right neighbor is FLUID.
        """
        a = self.arrays
        dy = self.delta_space[1]
        fluid_right, _ = self._shifted_fluid()
        active = self._fluid_mask | fluid_right

        increments = np.where(active, a.u * dy, 0.0)
        increments[:, 0] = 0.0
        np.cumsum(increments, axis=1, out=a.psi)

    def update_ranges(self):
        """Recompute pressure, speed and psi [min, max] for coloring."""
        a = self.arrays
        fluid = self._fluid_mask
        if fluid.any():
            pressure = a.p[fluid]
            speed = np.hypot(a.u[fluid], a.v[fluid])
            self.pressure_range = (float(pressure.min()), float(pressure.max()))
            self.speed_range = (float(speed.min()), float(speed.max()))

        fluid_right, fluid_top = self._shifted_fluid()
        psi_cells = fluid | fluid_right | fluid_top
        if psi_cells.any():
            psi = a.psi[psi_cells]
            self.psi_range = (float(psi.min()), float(psi.max()))
