"""Cell layouts and ready-made setups for the staggered-grid solver."""

from .staggered import (
    BoundarySpec,
    build_grid,
    create_staggered_grid_2d,
    enclose,
    place_circle,
    place_rectangle,
    set_boundary,
    set_void,
    void_unreachable,
)
from .presets import (
    PRESETS,
    SimulationPreset,
    backward_facing_step,
    cylinder_cross_flow,
    get_preset,
    lid_driven_cavity,
)

__all__ = [
    "BoundarySpec",
    "build_grid",
    "create_staggered_grid_2d",
    "enclose",
    "place_circle",
    "place_rectangle",
    "set_boundary",
    "set_void",
    "void_unreachable",
    "PRESETS",
    "SimulationPreset",
    "backward_facing_step",
    "cylinder_cross_flow",
    "get_preset",
    "lid_driven_cavity",
]
