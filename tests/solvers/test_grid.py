"""Tests for the staggered Grid: construction, accessors, psi and ranges."""

import numpy as np
import pytest

from meshing import build_grid, create_staggered_grid_2d, set_boundary, set_void
from solvers.mac import Cell, CellType, ContractViolation, Side
from solvers.mac.cell import BoundaryKind


class TestGridConstruction:
    """Tests for layout validation."""

    def test_cavity_layout(self, cavity_grid):
        """10x10 cavity has a one-cell wall around 8x8 fluid cells."""
        assert cavity_grid.space_size == (10, 10)
        assert cavity_grid.delta_space == (0.1, 0.1)
        assert cavity_grid.fluid_cell_count == 64
        assert len(cavity_grid.boundary_coordinates()) == 36

    def test_fluid_coordinates_raster_order(self, cavity_grid):
        """Fluid cells are listed x outer, y inner."""
        coords = [tuple(int(c) for c in xy) for xy in cavity_grid.fluid_coordinates()]
        assert coords[:3] == [(1, 1), (1, 2), (1, 3)]
        assert coords == sorted(coords)

    def test_fluid_on_edge_rejected(self):
        """Unenclosed storage leaves fluid on the edge."""
        fields = create_staggered_grid_2d(5, 5)
        with pytest.raises(ValueError, match="edge"):
            build_grid(fields, 1.0, 1.0)

    def test_fluid_next_to_void_rejected(self, box_fields):
        fields = box_fields(7, 7)
        set_void(fields, 3, 3)
        with pytest.raises(ValueError, match="void"):
            build_grid(fields, 1.0, 1.0)

    def test_boundary_without_kind_rejected(self, box_fields):
        fields = box_fields(5, 5)
        fields.cell_type[2, 2] = CellType.BOUNDARY
        with pytest.raises(ValueError, match="boundary kind"):
            build_grid(fields, 1.0, 1.0)

    def test_nonpositive_spacing_rejected(self, box_fields):
        with pytest.raises(ValueError):
            build_grid(box_fields(5, 5), 0.0, 1.0)

    def test_too_small_rejected(self):
        with pytest.raises(ValueError):
            create_staggered_grid_2d(2, 5)

    def test_cell_types_frozen(self, cavity_grid):
        """Cell types cannot change after construction."""
        with pytest.raises(ValueError):
            cavity_grid.arrays.cell_type[1, 1] = CellType.BOUNDARY

    def test_inflow_cells_expose_velocity(self, make_box):
        """Inflow cells start at their prescribed velocity."""
        grid = make_box(left=(BoundaryKind.INFLOW, (1.5, 0.25)))
        assert grid.arrays.u[0, 2] == 1.5
        assert grid.arrays.v[0, 2] == 0.25

    def test_copy_shares_no_arrays(self, cavity_grid):
        """A copied grid has its own state and stays frozen."""
        cavity_grid.arrays.u[4, 4] = 0.5
        clone = cavity_grid.copy()

        assert clone.arrays.u[4, 4] == 0.5
        assert clone.space_size == cavity_grid.space_size
        assert clone.delta_space == cavity_grid.delta_space
        assert clone.fluid_coordinates() == cavity_grid.fluid_coordinates()

        clone.arrays.u[4, 4] = 1.0
        clone.arrays.p[2, 2] = 3.0
        assert cavity_grid.arrays.u[4, 4] == 0.5
        assert cavity_grid.arrays.p[2, 2] == 0.0
        with pytest.raises(ValueError):
            clone.arrays.cell_type[1, 1] = CellType.BOUNDARY


class TestGridAccessors:
    """Tests for cell queries and neighbor iteration."""

    def test_get_cell(self, cavity_grid):
        cell = cavity_grid.get_cell(0, 9)
        assert isinstance(cell, Cell)
        assert cell.is_boundary
        assert cell.boundary_kind == BoundaryKind.NO_SLIP
        assert cell.boundary_condition_velocity == (1.0, 0.0)

        inner = cavity_grid.get_cell(4, 4)
        assert inner.is_fluid
        assert inner.boundary_kind is None

    def test_try_get_cell_outside_is_none(self, cavity_grid):
        """No wrap-around at the edges."""
        assert cavity_grid.try_get_cell(-1, 0) is None
        assert cavity_grid.try_get_cell(0, -1) is None
        assert cavity_grid.try_get_cell(10, 3) is None
        assert cavity_grid.try_get_cell(3, 10) is None
        assert cavity_grid.try_get_cell(9, 9) is not None

    def test_get_cell_outside_is_fatal(self, cavity_grid):
        with pytest.raises(ContractViolation):
            cavity_grid.get_cell(-1, 0)
        with pytest.raises(ContractViolation):
            cavity_grid.get_cell(10, 0)

    def test_fluid_cell_contract(self, cavity_grid):
        with pytest.raises(ContractViolation):
            cavity_grid.fluid_cell(0, 0)
        assert cavity_grid.fluid_cell(1, 1).is_fluid

    def test_neighbors_at_corner(self, cavity_grid):
        """Corner cells only report in-range neighbors."""
        assert cavity_grid.neighbors(0, 0) == [(Side.RIGHT, 1, 0), (Side.TOP, 0, 1)]
        assert cavity_grid.neighbors(9, 9) == [(Side.LEFT, 8, 9), (Side.BOTTOM, 9, 8)]

    def test_neighbors_order(self, cavity_grid):
        sides = [side for side, _, _ in cavity_grid.neighbors(4, 4)]
        assert sides == [Side.LEFT, Side.RIGHT, Side.BOTTOM, Side.TOP]

    def test_centered_velocity(self, cavity_grid):
        """Average of the two faces straddling the cell centre."""
        a = cavity_grid.arrays
        a.u[4, 5], a.u[3, 5] = 2.0, 4.0
        a.v[4, 5], a.v[4, 4] = 1.0, -1.0
        assert cavity_grid.get_centered_velocity(4, 5) == pytest.approx((3.0, 0.0))

    def test_centered_velocity_non_fluid(self, cavity_grid):
        cavity_grid.arrays.u[0, 0] = 5.0
        assert cavity_grid.get_centered_velocity(0, 0) == (0.0, 0.0)
        assert cavity_grid.get_centered_velocity(-1, 4) == (0.0, 0.0)

    def test_centered_velocity_field_matches_pointwise(self, cavity_grid):
        rng = np.random.default_rng(0)
        a = cavity_grid.arrays
        a.u[:] = rng.standard_normal(a.u.shape)
        a.v[:] = rng.standard_normal(a.v.shape)

        uc, vc = cavity_grid.centered_velocity_field()
        for x, y in [(1, 1), (4, 7), (8, 8)]:
            assert (uc[x, y], vc[x, y]) == pytest.approx(cavity_grid.get_centered_velocity(x, y))
        assert uc[0, 4] == 0.0 and vc[0, 4] == 0.0


class TestStreamFunctionAndRanges:
    """Tests for psi integration and coloring ranges."""

    def test_psi_integrates_u(self, cavity_grid):
        """With u = 1 in the fluid, psi grows by dy per fluid row."""
        a = cavity_grid.arrays
        a.u[cavity_grid.fluid_mask] = 1.0
        cavity_grid.update_psi()

        expected = [0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.8]
        assert a.psi[3, :] == pytest.approx(expected)
        assert np.all(a.psi[0, :] == 0.0)

    def test_psi_zero_for_rest(self, cavity_grid):
        cavity_grid.update_psi()
        assert np.all(cavity_grid.arrays.psi == 0.0)

    def test_ranges_only_see_fluid(self, cavity_grid):
        a = cavity_grid.arrays
        fluid = cavity_grid.fluid_mask
        a.p[fluid] = np.linspace(-1.0, 2.0, fluid.sum())
        a.p[0, 4] = 100.0
        a.u[fluid] = 3.0
        a.v[fluid] = 4.0
        a.u[0, 0] = 50.0

        cavity_grid.update_ranges()

        assert cavity_grid.pressure_range == pytest.approx((-1.0, 2.0))
        assert cavity_grid.speed_range == pytest.approx((5.0, 5.0))
        assert cavity_grid.psi_range[0] <= cavity_grid.psi_range[1]

    def test_ranges_start_at_zero(self, cavity_grid):
        assert cavity_grid.pressure_range == (0.0, 0.0)
        assert cavity_grid.speed_range == (0.0, 0.0)
        assert cavity_grid.psi_range == (0.0, 0.0)

    def test_ranges_unchanged_without_fluid(self, box_fields):
        """A grid without fluid keeps its previous ranges."""
        fields = box_fields(3, 3)
        set_boundary(fields, 1, 1, BoundaryKind.NO_SLIP)
        grid = build_grid(fields, 1.0, 1.0)
        assert grid.fluid_cell_count == 0

        grid.pressure_range = (-2.0, 3.0)
        grid.update_ranges()
        assert grid.pressure_range == (-2.0, 3.0)
        assert grid.psi_range == (0.0, 0.0)
