"""
Plotting style for staggered-grid figures.

Importing the module applies a seaborn darkgrid theme with serif mathtext
labels (no LaTeX, so figures render without a TeX installation) and defines
how non-fluid cells are colored.
"""

import numpy as np
import seaborn as sns
from matplotlib.colors import BoundaryNorm, ListedColormap

from solvers.mac.cell import BoundaryKind, CellType

sns.set_theme(
    style="darkgrid",
    font="serif",
    rc={
        "text.usetex": False,
        "mathtext.fontset": "cm",
        "axes.labelsize": 12,
        "font.size": 11,
        "legend.fontsize": 10,
    },
)

# Boundary kinds in code order, VOID in the last slot
SOLID_COLORS = {
    BoundaryKind.NO_SLIP: "dimgray",
    BoundaryKind.FREE_SLIP: "silver",
    BoundaryKind.OUTFLOW: "tab:orange",
    BoundaryKind.INFLOW: "tab:green",
}
VOID_COLOR = "black"
VOID_CODE = len(SOLID_COLORS)

SOLID_CMAP = ListedColormap(list(SOLID_COLORS.values()) + [VOID_COLOR], name="solid_cells")
SOLID_NORM = BoundaryNorm(np.arange(-0.5, VOID_CODE + 1), SOLID_CMAP.N)


def solid_codes(cell_type: np.ndarray, boundary_kind: np.ndarray) -> np.ma.MaskedArray:
    """Color index per cell for ``SOLID_CMAP``.

    BOUNDARY cells map to their kind, VOID cells to ``VOID_CODE`` and FLUID
    cells are masked.
    """
    codes = np.where(cell_type == CellType.VOID, VOID_CODE, boundary_kind)
    return np.ma.masked_where(cell_type == CellType.FLUID, codes)
