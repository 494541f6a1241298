"""Build cell layouts for the staggered grid.

Layouts start as all-FLUID storage and are carved with boundary walls and
obstacles before being handed to ``Grid``, which freezes the cell types.
Index arguments accept anything numpy accepts (ints, slices, masks).
"""

import logging
from collections import namedtuple

import numpy as np

from solvers.datastructures import StaggeredGridFields
from solvers.mac.cell import BoundaryKind, CellType
from solvers.mac.grid import Grid

log = logging.getLogger(__name__)

BoundarySpec = namedtuple("BoundarySpec", ["kind", "velocity"], defaults=[(0.0, 0.0)])


def create_staggered_grid_2d(nx: int, ny: int) -> StaggeredGridFields:
    """All-FLUID storage at rest, shape (nx, ny)."""
    if nx < 3 or ny < 3:
        raise ValueError(f"Grid must be at least 3x3, got {nx}x{ny}")
    return StaggeredGridFields.allocate(nx, ny)


def set_boundary(fields: StaggeredGridFields, x, y, kind: BoundaryKind, velocity=(0.0, 0.0)):
    """Mark cells [x, y] as BOUNDARY of ``kind`` with prescribed velocity."""
    kind = BoundaryKind(kind)
    fields.cell_type[x, y] = CellType.BOUNDARY
    fields.boundary_kind[x, y] = kind
    fields.bc_u[x, y] = velocity[0]
    fields.bc_v[x, y] = velocity[1]


def set_void(fields: StaggeredGridFields, x, y):
    """Mark cells [x, y] as VOID (outside the flow, never touched)."""
    fields.cell_type[x, y] = CellType.VOID
    fields.boundary_kind[x, y] = -1
    fields.bc_u[x, y] = 0.0
    fields.bc_v[x, y] = 0.0
    fields.u[x, y] = 0.0
    fields.v[x, y] = 0.0


def enclose(fields: StaggeredGridFields, left, right, bottom, top):
    """Wrap the domain in a one-cell boundary layer.

    Each side is a ``BoundarySpec`` (or ``(kind, velocity)`` tuple). Sides are
    applied left, right, bottom, top, so the corner cells take the bottom/top
    specification.
    """
    for (x, y), side in (
        ((0, slice(None)), left),
        ((-1, slice(None)), right),
        ((slice(None), 0), bottom),
        ((slice(None), -1), top),
    ):
        side = BoundarySpec(*side)
        set_boundary(fields, x, y, side.kind, side.velocity)


def _axis_neighbor_count(mask: np.ndarray) -> np.ndarray:
    count = np.zeros(mask.shape, dtype=int)
    count[1:, :] += mask[:-1, :]
    count[:-1, :] += mask[1:, :]
    count[:, 1:] += mask[:, :-1]
    count[:, :-1] += mask[:, 1:]
    return count


def void_unreachable(fields: StaggeredGridFields, region: np.ndarray):
    """Turn BOUNDARY cells inside ``region`` without FLUID axis neighbors into VOID."""
    fluid = fields.cell_type == CellType.FLUID
    boundary = fields.cell_type == CellType.BOUNDARY
    unreachable = region & boundary & (_axis_neighbor_count(fluid) == 0)
    xs, ys = np.nonzero(unreachable)
    set_void(fields, xs, ys)
    return unreachable


def place_circle(
    fields: StaggeredGridFields,
    center,
    radius: float,
    delta_space,
    kind: BoundaryKind = BoundaryKind.NO_SLIP,
) -> np.ndarray:
    """Place a circular obstacle; cells whose centre lies inside become BOUNDARY.

    The obstacle interior that no fluid can see is voided. Returns the
    obstacle mask.
    """
    nx, ny = fields.shape
    dx, dy = delta_space
    xc = (np.arange(nx) + 0.5) * dx
    yc = (np.arange(ny) + 0.5) * dy
    X, Y = np.meshgrid(xc, yc, indexing="ij")

    inside = (X - center[0]) ** 2 + (Y - center[1]) ** 2 <= radius**2
    if not inside.any():
        raise ValueError(f"Circle at {center} with radius {radius} covers no cell")

    xs, ys = np.nonzero(inside)
    set_boundary(fields, xs, ys, kind)
    fields.u[inside] = 0.0
    fields.v[inside] = 0.0
    voided = void_unreachable(fields, inside)
    log.debug(f"Circle obstacle: {int(inside.sum())} cells, {int(voided.sum())} voided")
    return inside


def place_rectangle(
    fields: StaggeredGridFields,
    x_range,
    y_range,
    kind: BoundaryKind = BoundaryKind.NO_SLIP,
) -> np.ndarray:
    """Place a rectangular obstacle over cell index ranges [x0, x1) x [y0, y1)."""
    region = np.zeros(fields.shape, dtype=bool)
    region[slice(*x_range), slice(*y_range)] = True
    if not region.any():
        raise ValueError(f"Rectangle {x_range} x {y_range} covers no cell")

    xs, ys = np.nonzero(region)
    set_boundary(fields, xs, ys, kind)
    fields.u[region] = 0.0
    fields.v[region] = 0.0
    void_unreachable(fields, region)
    return region


def build_grid(fields: StaggeredGridFields, dx: float, dy: float) -> Grid:
    """Validate the layout and hand it to a Grid."""
    return Grid(fields, (dx, dy))
