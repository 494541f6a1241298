"""Abstract base solver for explicit time-stepping flow simulations."""

from abc import ABC, abstractmethod
import logging
import time

import numpy as np
import mlflow

from .datastructures import Metrics, TimeSeries

log = logging.getLogger(__name__)


class TimeSteppingSolver(ABC):
    """Abstract base solver advancing a flow field one timestep per call.

    Handles:
    - Parameter management (input configuration)
    - Metrics tracking (output results)
    - Step loop with per-step history
    - Live MLflow logging when a run is active

    Subclasses must:
    - Set Parameters class attribute (e.g., MACParameters)
    - Implement step() - advance one timestep, return the pressure solve result
    - Provide time, unconverged_solves and the pressure/speed/psi ranges
    - Implement _collect_fields() for the plotting snapshot
    """

    Parameters = None  # Subclasses set this to e.g. MACParameters

    def __init__(self, params=None, **kwargs):
        """Initialize solver with parameters.

        Parameters
        ----------
        params : Parameters, optional
            Parameters object. If not provided, kwargs are used to create params.
        **kwargs
            Configuration parameters passed to Parameters class if params is None.
        """
        if params is None:
            if self.Parameters is None:
                raise ValueError("Subclass must define Parameters class attribute")
            params = self.Parameters(**kwargs)
        elif kwargs:
            raise ValueError(
                f"Pass either params or keyword arguments, not both: {sorted(kwargs)}"
            )

        self.params = params
        self.metrics = Metrics()
        self.time_series = None  # Populated after solve()

    @abstractmethod
    def step(self):
        """Advance one timestep.

        Returns
        -------
        PoissonResult
            Iterations, residual and convergence flag of the pressure solve.
        """

    @abstractmethod
    def _collect_fields(self):
        """Return a Fields snapshot of the current state."""

    @property
    def fields(self):
        """Cell-centred snapshot of the current state (for plotting)."""
        return self._collect_fields()

    def _progress_message(self, step_index: int, result) -> str:
        return (
            f"Step {step_index}: t={self.time:.4f}, "
            f"poisson_iter={result.iterations}, residual={result.residual:.3e}"
        )

    def _store_results(self, history, steps, wall_time, max_timeseries_points: int = 1000):
        """Store run results in self.time_series and self.metrics."""

        def downsample(data):
            if data is None or len(data) <= max_timeseries_points:
                return data
            indices = np.linspace(0, len(data) - 1, max_timeseries_points, dtype=int)
            return [data[i] for i in indices]

        self.time_series = TimeSeries(
            **{key: downsample(values) for key, values in history.items()}
        )

        last_iterations = history["poisson_iterations"]
        last_residuals = history["poisson_residual"]
        self.metrics = Metrics(
            steps=steps,
            simulated_time=self.time,
            wall_time_seconds=wall_time,
            unconverged_solves=self.unconverged_solves,
            final_poisson_iterations=last_iterations[-1] if last_iterations else 0,
            final_poisson_residual=last_residuals[-1] if last_residuals else 0.0,
            pressure_min=self.pressure_range[0],
            pressure_max=self.pressure_range[1],
            speed_min=self.speed_range[0],
            speed_max=self.speed_range[1],
            psi_min=self.psi_range[0],
            psi_max=self.psi_range[1],
        )

    def solve(self, n_steps: int = None):
        """Advance the simulation ``n_steps`` timesteps.

        Stores results in solver attributes:
        - self.time_series : TimeSeries dataclass with per-step history
        - self.metrics : Metrics dataclass with run metrics

        Parameters
        ----------
        n_steps : int, optional
            Number of timesteps. If None, uses params.n_steps.
        """
        if n_steps is None:
            n_steps = self.params.n_steps

        history = {
            "time": [],
            "poisson_iterations": [],
            "poisson_residual": [],
            "poisson_converged": [],
            "pressure_min": [],
            "pressure_max": [],
            "speed_max": [],
        }

        time_start = time.time()
        mlflow_time = 0.0  # Track time spent on MLflow logging

        for i in range(n_steps):
            result = self.step()

            history["time"].append(self.time)
            history["poisson_iterations"].append(result.iterations)
            history["poisson_residual"].append(result.residual)
            history["poisson_converged"].append(result.converged)
            history["pressure_min"].append(self.pressure_range[0])
            history["pressure_max"].append(self.pressure_range[1])
            history["speed_max"].append(self.speed_range[1])

            if i % self.params.log_every == 0 or i == n_steps - 1:
                log.info(self._progress_message(i, result))

                # Live MLflow logging (timed separately)
                if mlflow.active_run():
                    t_log_start = time.time()
                    mlflow.log_metrics(
                        {
                            "time": self.time,
                            "poisson_iterations": result.iterations,
                            "poisson_residual": result.residual,
                            "speed_max": self.speed_range[1],
                        },
                        step=i,
                    )
                    mlflow_time += time.time() - t_log_start

        wall_time = time.time() - time_start - mlflow_time
        log.info(
            f"Ran {n_steps} steps in {wall_time:.2f} seconds "
            f"(excl. {mlflow_time:.2f}s logging), "
            f"{self.unconverged_solves} unconverged pressure solves."
        )

        self._store_results(history, n_steps, wall_time)
