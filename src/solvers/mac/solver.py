"""Staggered-grid projection solver for incompressible 2-D flow.

One call to ``iterate_one_timestep`` performs, strictly in order:

1. boundary velocities, then boundary pressures and predictor faces
2. momentum predictor (f, g)
3. Poisson right-hand side from div(f, g)
4. SOR pressure solve
5. velocity correction
6. stream function and coloring ranges
7. time += delta_time

The Poisson right-hand side depends on the predictor faces the resolver
fixed in step 1, and the correction depends on the pressure of step 4.
"""

import logging
from typing import Optional, Tuple

from ..base import TimeSteppingSolver
from ..datastructures import Fields, MACParameters
from .boundary import resolve_boundaries
from .grid import Grid
from .momentum import compute_predictor, max_cell_reynolds
from .poisson import PoissonResult, assemble_rhs, pressure_norm, solve_pressure
from .projection import correct_velocity

log = logging.getLogger(__name__)


class Simulation(TimeSteppingSolver):
    """Explicit staggered-grid (MAC) Navier-Stokes solver.

    Parameters
    ----------
    grid : Grid
        Grid with cell layout, prescribed boundary velocities and initial state.
        The simulation takes exclusive ownership.
    params : MACParameters, optional
        Time step, Reynolds number, body force and solver numerics.
    **kwargs
        Used to build ``MACParameters`` when ``params`` is not given.
    """

    Parameters = MACParameters

    def __init__(self, grid: Grid, params=None, **kwargs):
        super().__init__(params=params, **kwargs)

        self.grid = grid
        self._time = 0.0

        # (initial_pressure_norm, fluid_cell_count), set by the first solve
        self._convergence_reference: Optional[Tuple[float, int]] = None

        self._unconverged_solves = 0
        self.last_poisson: Optional[PoissonResult] = None

        log.info(
            f"Simulation: grid={grid.space_size[0]}x{grid.space_size[1]}, "
            f"dt={self.params.delta_time}, Re={self.params.reynolds}, "
            f"fluid cells={grid.fluid_cell_count}"
        )

    @classmethod
    def from_preset(cls, preset, **overrides):
        """Build a simulation from a ``SimulationPreset``.

        Keyword overrides replace the preset's physical parameters or set
        solver numerics (omega, itr_max, ...). The simulation steps a copy
        of the preset's grid, so one preset can seed several runs.
        """
        kwargs = {
            "preset": preset.name,
            "delta_time": preset.delta_time,
            "reynolds": preset.reynolds,
            "acceleration_x": preset.acceleration[0],
            "acceleration_y": preset.acceleration[1],
        }
        kwargs.update(overrides)
        return cls(preset.grid.copy(), **kwargs)

    # =========================================================================
    # Read-only queries
    # =========================================================================

    @property
    def time(self) -> float:
        return self._time

    @property
    def delta_time(self) -> float:
        return self.params.delta_time

    @property
    def reynolds(self) -> float:
        return self.params.reynolds

    @property
    def acceleration(self) -> Tuple[float, float]:
        return self.params.acceleration

    @property
    def delta_space(self) -> Tuple[float, float]:
        return self.grid.delta_space

    @property
    def space_size(self) -> Tuple[int, int]:
        return self.grid.space_size

    @property
    def pressure_range(self) -> Tuple[float, float]:
        return self.grid.pressure_range

    @property
    def speed_range(self) -> Tuple[float, float]:
        return self.grid.speed_range

    @property
    def psi_range(self) -> Tuple[float, float]:
        return self.grid.psi_range

    @property
    def unconverged_solves(self) -> int:
        return self._unconverged_solves

    @property
    def initial_pressure_norm(self) -> Optional[float]:
        if self._convergence_reference is None:
            return None
        return self._convergence_reference[0]

    @property
    def fluid_cell_count(self) -> Optional[int]:
        if self._convergence_reference is None:
            return None
        return self._convergence_reference[1]

    def get_cell(self, x: int, y: int):
        return self.grid.get_cell(x, y)

    def try_get_cell(self, x: int, y: int):
        return self.grid.try_get_cell(x, y)

    def get_centered_velocity(self, x: int, y: int) -> Tuple[float, float]:
        return self.grid.get_centered_velocity(x, y)

    # =========================================================================
    # Time stepping
    # =========================================================================

    def _reference_norm(self) -> Tuple[float, int]:
        """RMS pressure and fluid count at the first solve, cached for the run."""
        if self._convergence_reference is None:
            self._convergence_reference = pressure_norm(self.grid)
            log.debug(
                f"Poisson reference: initial_pressure_norm="
                f"{self._convergence_reference[0]:.3e}, "
                f"fluid cells={self._convergence_reference[1]}"
            )
        return self._convergence_reference

    def _solve_poisson_pressure_equation(self) -> PoissonResult:
        initial_pressure_norm, fluid_cell_count = self._reference_norm()
        result = solve_pressure(
            self.grid,
            initial_pressure_norm,
            fluid_cell_count,
            omega=self.params.omega,
            itr_max=self.params.itr_max,
            epsilon=self.params.poisson_epsilon,
        )

        if not result.converged:
            if self._unconverged_solves == 0:
                log.warning(
                    f"Pressure solve did not converge within {self.params.itr_max} "
                    f"sweeps at t={self._time:.4f} (residual={result.residual:.3e}); "
                    "continuing with the last iterate"
                )
            self._unconverged_solves += 1
        return result

    def iterate_one_timestep(self) -> PoissonResult:
        """Advance the flow field by one ``delta_time``."""
        grid = self.grid

        # Boundary cells and fluid faces next to them: velocity, pressure, f, g
        resolve_boundaries(grid)

        # Fluid f, g
        compute_predictor(
            grid,
            self.params.delta_time,
            self.params.reynolds,
            self.params.acceleration,
            self.params.gamma,
        )

        # Fluid rhs
        assemble_rhs(grid, self.params.delta_time)

        # Fluid and boundary pressure
        result = self._solve_poisson_pressure_equation()

        # Fluid velocity
        correct_velocity(grid, self.params.delta_time)

        # For coloring
        grid.update_psi()
        grid.update_ranges()

        self._time += self.params.delta_time
        self.last_poisson = result
        return result

    def step(self) -> PoissonResult:
        return self.iterate_one_timestep()

    def _progress_message(self, step_index: int, result) -> str:
        return (
            super()._progress_message(step_index, result)
            + f", speed_max={self.speed_range[1]:.3e}"
            + f", cell_Re={max_cell_reynolds(self.grid, self.params.reynolds):.2f}"
        )

    def _collect_fields(self) -> Fields:
        x, y = self.grid.cell_centers()
        u, v = self.grid.centered_velocity_field()
        a = self.grid.arrays
        return Fields(
            x=x.ravel(),
            y=y.ravel(),
            u=u.ravel(),
            v=v.ravel(),
            p=a.p.ravel().copy(),
            psi=a.psi.ravel().copy(),
            cell_type=a.cell_type.ravel().copy(),
        )
