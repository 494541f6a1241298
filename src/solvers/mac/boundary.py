"""Boundary condition resolution on the staggered grid.

Every BOUNDARY cell looks at its four axis neighbors. For each FLUID
neighbor the velocity pair straddling the shared face is rewritten
according to the boundary kind:

NO_SLIP    normal velocity zero on the face, tangential velocity reflected
           about the prescribed wall velocity (2 u_b - u_fluid)
FREE_SLIP  normal velocity zero on the face, tangential velocity copied
OUTFLOW    both components copied from the fluid; the fluid face that
           leaves the domain takes the value one cell further in
INFLOW     only the fluid face on the far side is copied from the
           boundary cell; the prescribed values stay exposed

Afterwards the pressure of each boundary cell is the mean of its FLUID
neighbors and the predictor faces towards the fluid are synchronised with
the resolved velocity.
"""

from .cell import BoundaryKind, ContractViolation, Side
from .grid import Grid


def _resolve_no_slip(a, x, y, side):
    if side == Side.LEFT:
        a.u[x - 1, y] = 0.0
        a.v[x, y] = 2.0 * a.bc_v[x, y] - a.v[x - 1, y]
    elif side == Side.RIGHT:
        a.u[x, y] = 0.0
        a.v[x, y] = 2.0 * a.bc_v[x, y] - a.v[x + 1, y]
    elif side == Side.BOTTOM:
        a.v[x, y - 1] = 0.0
        a.u[x, y] = 2.0 * a.bc_u[x, y] - a.u[x, y - 1]
    else:
        a.u[x, y] = 2.0 * a.bc_u[x, y] - a.u[x, y + 1]
        a.v[x, y] = 0.0


def _resolve_free_slip(a, x, y, side):
    if side == Side.LEFT:
        a.u[x - 1, y] = 0.0
        a.v[x, y] = a.v[x - 1, y]
    elif side == Side.RIGHT:
        a.u[x, y] = 0.0
        a.v[x, y] = a.v[x + 1, y]
    elif side == Side.BOTTOM:
        a.v[x, y - 1] = 0.0
        a.u[x, y] = a.u[x, y - 1]
    else:
        a.u[x, y] = a.u[x, y + 1]
        a.v[x, y] = 0.0


def _resolve_outflow(a, x, y, side):
    if side == Side.LEFT:
        a.u[x - 1, y] = a.u[x - 2, y]
        a.v[x, y] = a.v[x - 1, y]
    elif side == Side.RIGHT:
        a.u[x, y] = a.u[x + 1, y]
        a.v[x, y] = a.v[x + 1, y]
    elif side == Side.BOTTOM:
        a.u[x, y] = a.u[x, y - 1]
        a.v[x, y - 1] = a.v[x, y - 2]
    else:
        a.u[x, y] = a.u[x, y + 1]
        a.v[x, y] = a.v[x, y + 1]


def _resolve_inflow(a, x, y, side):
    if side == Side.LEFT:
        a.u[x - 1, y] = a.u[x, y]
    elif side == Side.BOTTOM:
        a.v[x, y - 1] = a.v[x, y]


_RESOLVERS = {
    BoundaryKind.NO_SLIP: _resolve_no_slip,
    BoundaryKind.FREE_SLIP: _resolve_free_slip,
    BoundaryKind.OUTFLOW: _resolve_outflow,
    BoundaryKind.INFLOW: _resolve_inflow,
}


def resolve_boundary_velocities(grid: Grid):
    """Rewrite ghost and face velocities around every BOUNDARY cell.

    Cells are visited in raster order (x outer, y inner) and neighbors in
    the order left, right, bottom, top; later writes see earlier ones.
    """
    a = grid.arrays
    fluid = grid.fluid_mask

    for x, y in grid.boundary_coordinates():
        kind = int(a.boundary_kind[x, y])
        try:
            resolve = _RESOLVERS[kind]
        except KeyError:
            raise ContractViolation(
                f"unhandled boundary kind {kind!r} at ({x}, {y})"
            ) from None

        for side, xn, yn in grid.neighbors(x, y):
            if fluid[xn, yn]:
                resolve(a, x, y, side)


def resolve_boundary_pressures(grid: Grid, sync_predictor: bool = False):
    """Set each BOUNDARY cell's pressure to the mean of its FLUID neighbors.

    A boundary cell without FLUID neighbors keeps pressure 0. With
    ``sync_predictor`` the predictor face shared with each FLUID neighbor
    (f for left/right, g for bottom/top) is set to the resolved velocity.
    """
    a = grid.arrays
    fluid = grid.fluid_mask

    for x, y in grid.boundary_coordinates():
        total = 0.0
        count = 0
        for side, xn, yn in grid.neighbors(x, y):
            if not fluid[xn, yn]:
                continue
            total += a.p[xn, yn]
            count += 1

            if not sync_predictor:
                continue
            if side == Side.LEFT:
                a.f[xn, yn] = a.u[xn, yn]
            elif side == Side.RIGHT:
                a.f[x, y] = a.u[x, y]
            elif side == Side.BOTTOM:
                a.g[xn, yn] = a.v[xn, yn]
            else:
                a.g[x, y] = a.v[x, y]

        a.p[x, y] = total / count if count else 0.0


def resolve_boundaries(grid: Grid):
    """Full per-timestep resolution: velocities, then pressures and predictor."""
    resolve_boundary_velocities(grid)
    resolve_boundary_pressures(grid, sync_predictor=True)
