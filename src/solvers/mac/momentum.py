"""Momentum predictor: finite-difference stencils and provisional velocities.

Diffusive terms use central second differences. Convective terms use the
donor-cell scheme: a central difference plus an upwind correction weighted
by ``gamma`` (0 gives pure central differences, 1 pure upwinding). The
upwind direction follows the sign of the sum of the two face velocities
that meet at the interpolation point.

Every stencil is evaluated at a FLUID cell; any other centre raises
``ContractViolation``.
"""

import numpy as np

from .grid import Grid

GAMMA = 0.9  # 0 <= GAMMA <= 1


# =============================================================================
# Diffusive terms
# =============================================================================


def d2udx2(grid: Grid, x: int, y: int) -> float:
    grid.require_fluid(x, y)
    u = grid.arrays.u
    dx = grid.delta_space[0]
    return (u[x + 1, y] - 2.0 * u[x, y] + u[x - 1, y]) / dx**2


def d2udy2(grid: Grid, x: int, y: int) -> float:
    grid.require_fluid(x, y)
    u = grid.arrays.u
    dy = grid.delta_space[1]
    return (u[x, y + 1] - 2.0 * u[x, y] + u[x, y - 1]) / dy**2


def d2vdx2(grid: Grid, x: int, y: int) -> float:
    grid.require_fluid(x, y)
    v = grid.arrays.v
    dx = grid.delta_space[0]
    return (v[x + 1, y] - 2.0 * v[x, y] + v[x - 1, y]) / dx**2


def d2vdy2(grid: Grid, x: int, y: int) -> float:
    grid.require_fluid(x, y)
    v = grid.arrays.v
    dy = grid.delta_space[1]
    return (v[x, y + 1] - 2.0 * v[x, y] + v[x, y - 1]) / dy**2


# =============================================================================
# Convective terms (donor-cell)
# =============================================================================


def du2dx(grid: Grid, x: int, y: int, gamma: float = GAMMA) -> float:
    """d(u^2)/dx at the right face of (x, y)."""
    grid.require_fluid(x, y)
    u = grid.arrays.u
    dx = grid.delta_space[0]

    ui = u[x, y]
    uip1 = u[x + 1, y]
    uim1 = u[x - 1, y]

    central = ((ui + uip1) ** 2 - (uim1 + ui) ** 2) / 4.0 / dx
    upwind = (abs(ui + uip1) * (ui - uip1) - abs(uim1 + ui) * (uim1 - ui)) / 4.0 / dx
    return central + gamma * upwind


def dv2dy(grid: Grid, x: int, y: int, gamma: float = GAMMA) -> float:
    """d(v^2)/dy at the top face of (x, y)."""
    grid.require_fluid(x, y)
    v = grid.arrays.v
    dy = grid.delta_space[1]

    vj = v[x, y]
    vjp1 = v[x, y + 1]
    vjm1 = v[x, y - 1]

    central = ((vj + vjp1) ** 2 - (vjm1 + vj) ** 2) / 4.0 / dy
    upwind = (abs(vj + vjp1) * (vj - vjp1) - abs(vjm1 + vj) * (vjm1 - vj)) / 4.0 / dy
    return central + gamma * upwind


def duvdx(grid: Grid, x: int, y: int, gamma: float = GAMMA) -> float:
    """d(uv)/dx at the top face of (x, y)."""
    grid.require_fluid(x, y)
    u, v = grid.arrays.u, grid.arrays.v
    dx = grid.delta_space[0]

    uij = u[x, y]
    vij = v[x, y]
    vip1 = v[x + 1, y]
    vim1 = v[x - 1, y]
    uim1 = u[x - 1, y]
    ujp1 = u[x, y + 1]
    uim1jp1 = u[x - 1, y + 1]

    central = ((uij + ujp1) * (vij + vip1) - (uim1 + uim1jp1) * (vim1 + vij)) / 4.0 / dx
    upwind = (
        abs(uij + ujp1) * (vij - vip1) - abs(uim1 + uim1jp1) * (vim1 - vij)
    ) / 4.0 / dx
    return central + gamma * upwind


def duvdy(grid: Grid, x: int, y: int, gamma: float = GAMMA) -> float:
    """d(uv)/dy at the right face of (x, y)."""
    grid.require_fluid(x, y)
    u, v = grid.arrays.u, grid.arrays.v
    dy = grid.delta_space[1]

    uij = u[x, y]
    vij = v[x, y]
    ujp1 = u[x, y + 1]
    ujm1 = u[x, y - 1]
    vjm1 = v[x, y - 1]
    vip1 = v[x + 1, y]
    vip1jm1 = v[x + 1, y - 1]

    central = ((vij + vip1) * (uij + ujp1) - (vjm1 + vip1jm1) * (ujm1 + uij)) / 4.0 / dy
    upwind = (
        abs(vij + vip1) * (uij - ujp1) - abs(vjm1 + vip1jm1) * (ujm1 - uij)
    ) / 4.0 / dy
    return central + gamma * upwind


# =============================================================================
# Predictor
# =============================================================================


def compute_predictor(
    grid: Grid,
    delta_time: float,
    reynolds: float,
    acceleration=(0.0, 0.0),
    gamma: float = GAMMA,
):
    """Update f and g on every face shared by two FLUID cells.

    Faces next to a boundary are skipped; the boundary resolver has already
    synchronised them with the boundary velocity.
    """
    a = grid.arrays
    fluid = grid.fluid_mask
    ax, ay = acceleration

    for x, y in grid.fluid_coordinates():
        if fluid[x + 1, y]:
            a.f[x, y] = a.u[x, y] + delta_time * (
                (d2udx2(grid, x, y) + d2udy2(grid, x, y)) / reynolds
                - du2dx(grid, x, y, gamma)
                - duvdy(grid, x, y, gamma)
                + ax
            )

        if fluid[x, y + 1]:
            a.g[x, y] = a.v[x, y] + delta_time * (
                (d2vdx2(grid, x, y) + d2vdy2(grid, x, y)) / reynolds
                - duvdx(grid, x, y, gamma)
                - dv2dy(grid, x, y, gamma)
                + ay
            )


def max_cell_reynolds(grid: Grid, reynolds: float) -> float:
    """Largest cell Reynolds number ``Re * |u| * h`` over the fluid."""
    fluid = grid.fluid_mask
    if not fluid.any():
        return 0.0
    dx, dy = grid.delta_space
    u = np.abs(grid.arrays.u[fluid]).max()
    v = np.abs(grid.arrays.v[fluid]).max()
    return float(reynolds * max(u * dx, v * dy))
