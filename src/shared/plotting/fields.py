"""
Field visualization for the staggered-grid solver.

Generates pressure, speed and stream-function plots with non-fluid cells
masked out.
"""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from solvers.mac.cell import CellType

from .style import SOLID_CMAP, SOLID_NORM, solid_codes

log = logging.getLogger(__name__)


def _reshape(values, shape):
    return np.asarray(values).reshape(shape)


def plot_fields(simulation, output_dir: Path) -> Path:
    """Generate pressure, speed and stream-function plots.

    Parameters
    ----------
    simulation : Simulation
        Solver whose current state is plotted.
    output_dir : Path
        Directory for ``fields.png``; created if missing.

    Returns
    -------
    Path
        Path to the saved figure.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    shape = simulation.space_size
    dx, dy = simulation.delta_space
    snapshot = simulation.fields

    X = _reshape(snapshot.x, shape)
    Y = _reshape(snapshot.y, shape)
    cell_type = _reshape(snapshot.cell_type, shape)
    solid = cell_type != CellType.FLUID

    P = np.ma.masked_where(solid, _reshape(snapshot.p, shape))
    U = _reshape(snapshot.u, shape)
    V = _reshape(snapshot.v, shape)
    speed = np.ma.masked_where(solid, np.hypot(U, V))

    # psi sits on the top-right cell corners
    psi = np.ma.masked_where(cell_type == CellType.VOID, _reshape(snapshot.psi, shape))
    X_corner, Y_corner = X + 0.5 * dx, Y + 0.5 * dy

    nx, ny = shape
    aspect_width = 5.0 * max(nx / ny, 1.0)
    fig, axes = plt.subplots(3, 1, figsize=(aspect_width, 3 * aspect_width * ny / nx + 1.5))

    pm_p = axes[0].pcolormesh(X, Y, P, shading="nearest", cmap="viridis")
    axes[0].set_title("Pressure")
    plt.colorbar(pm_p, ax=axes[0], label=r"$p$")

    pm_s = axes[1].pcolormesh(X, Y, speed, shading="nearest", cmap="coolwarm")
    axes[1].set_title("Speed")
    plt.colorbar(pm_s, ax=axes[1], label=r"$|\mathbf{u}|$")

    levels = psi.compressed()
    if levels.size and np.ptp(levels) > 0:
        cs = axes[2].contour(X_corner, Y_corner, psi, levels=20, cmap="RdBu_r", linewidths=1.0)
        plt.colorbar(cs, ax=axes[2], label=r"$\psi$")
    else:
        log.warning("Stream function is constant, skipping contour lines")
    axes[2].set_title("Stream function")

    # Walls and obstacles colored by boundary kind
    codes = solid_codes(cell_type, simulation.grid.arrays.boundary_kind)
    for ax in axes:
        ax.pcolormesh(X, Y, codes, shading="nearest", cmap=SOLID_CMAP, norm=SOLID_NORM)
        ax.set_xlabel(r"$x$")
        ax.set_ylabel(r"$y$")
        ax.set_aspect("equal")

    fig.suptitle(
        rf"{simulation.params.preset}, $t={simulation.time:.3f}$, "
        rf"$\mathrm{{Re}}={simulation.reynolds:.0f}$"
    )
    plt.tight_layout()

    output_path = output_dir / "fields.png"
    fig.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)

    log.info(f"Saved field plot to {output_path}")
    return output_path
