"""Ready-made simulation setups.

Each factory returns a ``SimulationPreset`` bundling a validated ``Grid``
with the physical parameters it was designed for. Factories are plain
functions so Hydra can build them with ``_target_``.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from solvers.mac.cell import BoundaryKind
from solvers.mac.grid import Grid

from .staggered import (
    BoundarySpec,
    build_grid,
    create_staggered_grid_2d,
    enclose,
    place_circle,
    place_rectangle,
    set_boundary,
)

log = logging.getLogger(__name__)


@dataclass
class SimulationPreset:
    """A grid plus the parameters to run it with."""

    name: str
    grid: Grid
    delta_time: float
    reynolds: float
    acceleration: Tuple[float, float] = (0.0, 0.0)


def lid_driven_cavity(
    nx: int = 10,
    ny: int = 10,
    dx: float = 0.1,
    dy: float = 0.1,
    delta_time: float = 0.01,
    reynolds: float = 100.0,
    lid_velocity: float = 1.0,
) -> SimulationPreset:
    """Closed box with NoSlip walls; the top wall slides at ``lid_velocity``."""
    fields = create_staggered_grid_2d(nx, ny)
    wall = BoundarySpec(BoundaryKind.NO_SLIP)
    enclose(
        fields,
        left=wall,
        right=wall,
        bottom=wall,
        top=BoundarySpec(BoundaryKind.NO_SLIP, (lid_velocity, 0.0)),
    )

    log.info(f"Lid-driven cavity: {nx}x{ny}, lid velocity={lid_velocity}")
    return SimulationPreset(
        name="lid_driven_cavity",
        grid=build_grid(fields, dx, dy),
        delta_time=delta_time,
        reynolds=reynolds,
    )


def cylinder_cross_flow(
    nx: int = 100,
    ny: int = 40,
    dx: float = 0.05,
    dy: float = 0.05,
    delta_time: float = 0.005,
    reynolds: float = 100.0,
    inflow_velocity: float = 1.0,
    center=None,
    radius: float = None,
) -> SimulationPreset:
    """Channel flow past a NoSlip cylinder.

    Inflow on the left, Outflow on the right, FreeSlip top and bottom. The
    cylinder defaults to a quarter of the channel length downstream, on the
    centre line, with a radius of a tenth of the channel height. The fluid
    starts at the inflow velocity.
    """
    length, height = nx * dx, ny * dy
    if center is None:
        center = (0.25 * length, 0.5 * height)
    if radius is None:
        radius = 0.1 * height

    fields = create_staggered_grid_2d(nx, ny)
    fields.u[:, :] = inflow_velocity
    enclose(
        fields,
        left=BoundarySpec(BoundaryKind.INFLOW, (inflow_velocity, 0.0)),
        right=BoundarySpec(BoundaryKind.OUTFLOW),
        bottom=BoundarySpec(BoundaryKind.FREE_SLIP),
        top=BoundarySpec(BoundaryKind.FREE_SLIP),
    )
    place_circle(fields, tuple(center), radius, (dx, dy))

    log.info(
        f"Cylinder cross flow: {nx}x{ny}, center={tuple(center)}, "
        f"radius={radius}, inflow={inflow_velocity}"
    )
    return SimulationPreset(
        name="cylinder_cross_flow",
        grid=build_grid(fields, dx, dy),
        delta_time=delta_time,
        reynolds=reynolds,
    )


def backward_facing_step(
    nx: int = 60,
    ny: int = 20,
    dx: float = 0.1,
    dy: float = 0.1,
    delta_time: float = 0.01,
    reynolds: float = 100.0,
    inflow_velocity: float = 1.0,
    step_height: int = None,
    step_length: int = None,
) -> SimulationPreset:
    """Channel whose lower inlet half is blocked by a NoSlip step.

    ``step_height`` and ``step_length`` are in cells, measured from the
    bottom-left wall.
    """
    if step_height is None:
        step_height = ny // 2 - 1
    if step_length is None:
        step_length = nx // 5
    if not 1 <= step_height <= ny - 4 or not 1 <= step_length <= nx - 4:
        raise ValueError(
            f"Step {step_length}x{step_height} does not leave an open channel in {nx}x{ny}"
        )

    fields = create_staggered_grid_2d(nx, ny)
    wall = BoundarySpec(BoundaryKind.NO_SLIP)
    enclose(
        fields,
        left=BoundarySpec(BoundaryKind.INFLOW, (inflow_velocity, 0.0)),
        right=BoundarySpec(BoundaryKind.OUTFLOW),
        bottom=wall,
        top=wall,
    )
    # Inlet below the step is wall
    set_boundary(fields, 0, slice(1, step_height + 1), BoundaryKind.NO_SLIP)
    place_rectangle(fields, (1, step_length + 1), (1, step_height + 1))

    fields.u[:, step_height + 1 : ny - 1] = inflow_velocity

    log.info(
        f"Backward-facing step: {nx}x{ny}, step={step_length}x{step_height} cells, "
        f"inflow={inflow_velocity}"
    )
    return SimulationPreset(
        name="backward_facing_step",
        grid=build_grid(fields, dx, dy),
        delta_time=delta_time,
        reynolds=reynolds,
    )


PRESETS = {
    "lid_driven_cavity": lid_driven_cavity,
    "cylinder_cross_flow": cylinder_cross_flow,
    "backward_facing_step": backward_facing_step,
}


def get_preset(name: str, **kwargs) -> SimulationPreset:
    """Build the preset registered under ``name``."""
    try:
        factory = PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown preset '{name}', expected one of {sorted(PRESETS)}") from None
    return factory(**kwargs)
