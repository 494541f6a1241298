"""Tests for finite-difference stencils and the momentum predictor."""

import numpy as np
import pytest

from solvers.mac.cell import ContractViolation
from solvers.mac.momentum import (
    compute_predictor,
    d2udx2,
    d2udy2,
    d2vdx2,
    d2vdy2,
    du2dx,
    duvdx,
    duvdy,
    dv2dy,
    max_cell_reynolds,
)


def _coords(grid):
    nx, ny = grid.space_size
    dx, dy = grid.delta_space
    X, Y = np.meshgrid(np.arange(nx) * dx, np.arange(ny) * dy, indexing="ij")
    return X, Y


class TestDiffusiveStencils:
    """Second differences are exact on quadratics."""

    def test_quadratic_in_x(self, cavity_grid):
        X, _ = _coords(cavity_grid)
        cavity_grid.arrays.u[:] = X**2
        cavity_grid.arrays.v[:] = X**2

        assert d2udx2(cavity_grid, 4, 4) == pytest.approx(2.0)
        assert d2vdx2(cavity_grid, 4, 4) == pytest.approx(2.0)
        assert d2udy2(cavity_grid, 4, 4) == pytest.approx(0.0)

    def test_quadratic_in_y(self, cavity_grid):
        _, Y = _coords(cavity_grid)
        cavity_grid.arrays.u[:] = 3.0 * Y**2
        cavity_grid.arrays.v[:] = Y**2

        assert d2udy2(cavity_grid, 5, 3) == pytest.approx(6.0)
        assert d2vdy2(cavity_grid, 5, 3) == pytest.approx(2.0)
        assert d2vdx2(cavity_grid, 5, 3) == pytest.approx(0.0)


class TestConvectiveStencils:
    """Donor-cell terms on linear fields."""

    def test_uniform_flow_has_no_convection(self, cavity_grid):
        cavity_grid.arrays.u[:] = 1.0
        cavity_grid.arrays.v[:] = -2.0
        for term in (du2dx, dv2dy, duvdx, duvdy):
            assert term(cavity_grid, 4, 4) == pytest.approx(0.0)

    def test_du2dx_central(self, cavity_grid):
        """gamma = 0 reproduces d(x^2)/dx = 2x exactly."""
        X, _ = _coords(cavity_grid)
        cavity_grid.arrays.u[:] = X
        assert du2dx(cavity_grid, 4, 4, gamma=0.0) == pytest.approx(2 * 0.4)

    def test_du2dx_upwind_correction(self, cavity_grid):
        """Full upwinding adds -dx/2 for a positive linear field."""
        X, _ = _coords(cavity_grid)
        cavity_grid.arrays.u[:] = X
        assert du2dx(cavity_grid, 4, 4, gamma=1.0) == pytest.approx(0.8 - 0.05)
        assert du2dx(cavity_grid, 4, 4) == pytest.approx(0.8 - 0.9 * 0.05)

    def test_dv2dy_central(self, cavity_grid):
        _, Y = _coords(cavity_grid)
        cavity_grid.arrays.v[:] = Y
        assert dv2dy(cavity_grid, 3, 6, gamma=0.0) == pytest.approx(2 * 0.6)

    def test_mixed_terms_central(self, cavity_grid):
        """d(uv)/dx with u constant and v linear in x is u dv/dx."""
        X, Y = _coords(cavity_grid)
        cavity_grid.arrays.u[:] = 2.0
        cavity_grid.arrays.v[:] = X
        assert duvdx(cavity_grid, 4, 4, gamma=0.0) == pytest.approx(2.0)

        cavity_grid.arrays.u[:] = Y
        cavity_grid.arrays.v[:] = 3.0
        assert duvdy(cavity_grid, 4, 4, gamma=0.0) == pytest.approx(3.0)


class TestStencilContract:
    """Stencils fail fast on anything but a fluid cell."""

    @pytest.mark.parametrize(
        "term", [d2udx2, d2udy2, d2vdx2, d2vdy2, du2dx, dv2dy, duvdx, duvdy]
    )
    def test_boundary_centre_is_fatal(self, cavity_grid, term):
        with pytest.raises(ContractViolation, match="non fluid"):
            term(cavity_grid, 0, 4)

    def test_outside_is_fatal(self, cavity_grid):
        with pytest.raises(ContractViolation):
            du2dx(cavity_grid, -1, 4)


class TestPredictor:
    """Tests for compute_predictor."""

    def test_rest_state(self, resting_cavity):
        grid = resting_cavity.grid
        compute_predictor(grid, 0.01, 100.0)
        assert np.all(grid.arrays.f == 0.0)
        assert np.all(grid.arrays.g == 0.0)

    def test_body_force(self, resting_cavity):
        """At rest, gravity is the only contribution."""
        grid = resting_cavity.grid
        compute_predictor(grid, 0.01, 100.0, acceleration=(0.0, -9.81))

        assert grid.arrays.g[3, 4] == pytest.approx(-0.0981)
        assert grid.arrays.f[3, 4] == 0.0
        # Top fluid row faces touch the lid and are not predicted
        assert grid.arrays.g[3, 8] == 0.0

    def test_wall_faces_skipped(self, cavity_grid):
        a = cavity_grid.arrays
        a.f[8, 4] = 7.0
        a.g[4, 8] = 7.0
        compute_predictor(cavity_grid, 0.01, 100.0)
        assert a.f[8, 4] == 7.0
        assert a.g[4, 8] == 7.0

    def test_lid_shear_diffuses(self, cavity_grid):
        """Ghost u of 2 above the top row gives f = dt * 2 / (Re dy^2)."""
        a = cavity_grid.arrays
        a.u[1:9, 9] = 2.0
        compute_predictor(cavity_grid, 0.01, 100.0)
        assert a.f[4, 8] == pytest.approx(0.02)
        assert a.f[4, 4] == 0.0


def test_max_cell_reynolds(cavity_grid):
    cavity_grid.arrays.u[cavity_grid.fluid_mask] = -2.0
    cavity_grid.arrays.u[0, 0] = 50.0
    assert max_cell_reynolds(cavity_grid, 100.0) == pytest.approx(20.0)
