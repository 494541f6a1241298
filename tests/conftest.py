"""Pytest configuration and fixtures for staggered-grid solver tests."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from meshing import BoundarySpec, build_grid, create_staggered_grid_2d, enclose  # noqa: E402
from meshing.presets import lid_driven_cavity  # noqa: E402
from solvers.mac.cell import BoundaryKind  # noqa: E402


@pytest.fixture
def cavity():
    """10x10 lid-driven cavity preset (8x8 fluid cells, lid velocity 1)."""
    return lid_driven_cavity()


@pytest.fixture
def cavity_grid(cavity):
    return cavity.grid


@pytest.fixture
def resting_cavity():
    """10x10 cavity whose lid does not move."""
    return lid_driven_cavity(lid_velocity=0.0)


@pytest.fixture
def box_fields():
    """Factory for enclosed storage; each side defaults to a NoSlip wall."""

    def make(nx=5, ny=5, left=None, right=None, bottom=None, top=None):
        wall = BoundarySpec(BoundaryKind.NO_SLIP)
        fields = create_staggered_grid_2d(nx, ny)
        enclose(
            fields,
            left=left or wall,
            right=right or wall,
            bottom=bottom or wall,
            top=top or wall,
        )
        return fields

    return make


@pytest.fixture
def make_box(box_fields):
    """Factory for an enclosed Grid with unit-spaced cells by default."""

    def make(nx=5, ny=5, dx=1.0, dy=1.0, **sides):
        return build_grid(box_fields(nx, ny, **sides), dx, dy)

    return make


@pytest.fixture
def small_params():
    """Solver parameters for quick runs on the 10x10 cavity."""
    return {
        "preset": "lid_driven_cavity",
        "n_steps": 3,
        "log_every": 1,
        "delta_time": 0.01,
        "reynolds": 100.0,
        "omega": 1.7,
        "gamma": 0.9,
        "itr_max": 100,
        "poisson_epsilon": 1e-3,
    }
