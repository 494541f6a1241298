"""Velocity correction: project the predictor onto the new pressure gradient."""

import numpy as np

from .cell import CellType
from .grid import Grid


def correct_velocity(grid: Grid, delta_time: float):
    """u = f - dt dp/dx and v = g - dt dp/dy on FLUID cells.

    A face shared with a BOUNDARY cell keeps the velocity the boundary
    resolver gave it. Only f, g and p are read, so repeating the call with
    the same inputs yields the same velocities.
    """
    a = grid.arrays
    dx, dy = grid.delta_space
    fluid = grid.fluid_mask
    boundary = a.cell_type == CellType.BOUNDARY

    right_open = np.zeros_like(fluid)
    right_open[:-1, :] = fluid[:-1, :] & ~boundary[1:, :]
    top_open = np.zeros_like(fluid)
    top_open[:, :-1] = fluid[:, :-1] & ~boundary[:, 1:]

    dpdx = np.zeros_like(a.p)
    dpdx[:-1, :] = (a.p[1:, :] - a.p[:-1, :]) / dx
    dpdy = np.zeros_like(a.p)
    dpdy[:, :-1] = (a.p[:, 1:] - a.p[:, :-1]) / dy

    a.u[right_open] = a.f[right_open] - delta_time * dpdx[right_open]
    a.v[top_open] = a.g[top_open] - delta_time * dpdy[top_open]
