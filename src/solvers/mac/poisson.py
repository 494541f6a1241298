"""Pressure-Poisson equation: right-hand side, residual and SOR relaxation.

The discrete equation at every FLUID cell is

    (p[i+1] - 2p[i] + p[i-1]) / dx^2 + (p[j+1] - 2p[j] + p[j-1]) / dy^2 = rhs

with boundary pressures taken as the mean of adjacent FLUID pressures, which
is refreshed before every sweep. Relaxation is in-place SOR in raster order,
so each update already sees the new values of the cells before it.
"""

import logging
from dataclasses import dataclass

import numpy as np

from .boundary import resolve_boundary_pressures
from .grid import Grid

log = logging.getLogger(__name__)

OMEGA = 1.7  # 0 <= OMEGA <= 2
ITR_MAX = 100
POISSON_EPSILON = 0.001


@dataclass(frozen=True)
class PoissonResult:
    """Outcome of one pressure solve.

    ``residual`` is the last residual evaluated, i.e. the one that stopped
    the iteration or, when ``converged`` is False, the one measured before
    the final sweep.
    """

    iterations: int
    residual: float
    converged: bool


def assemble_rhs(grid: Grid, delta_time: float):
    """rhs = div(f, g) / dt on every FLUID cell."""
    a = grid.arrays
    dx, dy = grid.delta_space
    fluid = grid.fluid_mask

    f_left = np.zeros_like(a.f)
    f_left[1:, :] = a.f[:-1, :]
    g_below = np.zeros_like(a.g)
    g_below[:, 1:] = a.g[:, :-1]

    divergence = (a.f - f_left) / dx + (a.g - g_below) / dy
    a.rhs[fluid] = divergence[fluid] / delta_time


def laplacian(grid: Grid) -> np.ndarray:
    """Five-point Laplacian of p on interior cells, zero on the edge."""
    p = grid.arrays.p
    dx, dy = grid.delta_space
    lap = np.zeros_like(p)
    centre = p[1:-1, 1:-1]
    lap[1:-1, 1:-1] = (p[2:, 1:-1] - 2.0 * centre + p[:-2, 1:-1]) / dx**2 + (
        p[1:-1, 2:] - 2.0 * centre + p[1:-1, :-2]
    ) / dy**2
    return lap


def residual_norm(grid: Grid, fluid_cell_count: int) -> float:
    """RMS of (Laplacian(p) - rhs) over the FLUID cells."""
    if fluid_cell_count == 0:
        return 0.0
    fluid = grid.fluid_mask
    r = laplacian(grid)[fluid] - grid.arrays.rhs[fluid]
    return float(np.sqrt(np.sum(r**2) / fluid_cell_count))


def pressure_norm(grid: Grid):
    """RMS pressure over the FLUID cells and the number of FLUID cells."""
    count = grid.fluid_cell_count
    if count == 0:
        return 0.0, 0
    p = grid.arrays.p[grid.fluid_mask]
    return float(np.sqrt(np.sum(p**2) / count)), count


def sor_sweep(grid: Grid, omega: float = OMEGA):
    """One in-place SOR sweep over the FLUID cells in raster order."""
    a = grid.arrays
    p, rhs = a.p, a.rhs
    dx, dy = grid.delta_space
    dx2, dy2 = dx**2, dy**2
    inv_diag = 1.0 / (2.0 / dx2 + 2.0 / dy2)

    for x, y in grid.fluid_coordinates():
        p[x, y] = (1.0 - omega) * p[x, y] + omega * (
            (p[x + 1, y] + p[x - 1, y]) / dx2
            + (p[x, y + 1] + p[x, y - 1]) / dy2
            - rhs[x, y]
        ) * inv_diag


def solve_pressure(
    grid: Grid,
    initial_pressure_norm: float,
    fluid_cell_count: int,
    omega: float = OMEGA,
    itr_max: int = ITR_MAX,
    epsilon: float = POISSON_EPSILON,
) -> PoissonResult:
    """Relax the pressure field until the residual drops below the bound.

    Stops when ``r < epsilon`` or ``r < epsilon * initial_pressure_norm``.
    After ``itr_max`` sweeps the last iterate is kept and the result is
    flagged as not converged; this is never an error.
    """
    if fluid_cell_count == 0:
        return PoissonResult(iterations=0, residual=0.0, converged=True)

    residual = float("inf")
    for iteration in range(itr_max):
        residual = residual_norm(grid, fluid_cell_count)
        if residual < epsilon or residual < initial_pressure_norm * epsilon:
            return PoissonResult(iterations=iteration, residual=residual, converged=True)

        resolve_boundary_pressures(grid)
        sor_sweep(grid, omega)

    log.debug(f"SOR stopped after {itr_max} sweeps, residual={residual:.3e}")
    return PoissonResult(iterations=itr_max, residual=residual, converged=False)
