"""Data structures for solver configuration and results.

This module defines the configuration and result data structures
for the staggered-grid (MAC) flow solver.

Structure:
- Parameters: Input configuration (logged to MLflow at start)
- Metrics: Output results (logged to MLflow at end)
- Fields: Spatial solution data (cell-centred, for plotting)
- TimeSeries: Per-step history
- StaggeredGridFields: Internal per-cell storage owned by the grid
"""

import time
from dataclasses import dataclass, asdict
from typing import Optional, List

import numpy as np
import pandas as pd


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass
class Parameters:
    """Base solver parameters - input configuration for all solvers."""

    preset: str = "cylinder_cross_flow"
    n_steps: int = 100
    log_every: int = 50
    method: str = ""

    def __post_init__(self):
        if self.n_steps < 0:
            raise ValueError(f"n_steps must be non-negative, got {self.n_steps}")
        if self.log_every < 1:
            raise ValueError(f"log_every must be >= 1, got {self.log_every}")

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        """Flat dict of parameters for ``mlflow.log_params``."""
        return asdict(self)


@dataclass
class MACParameters(Parameters):
    """Staggered-grid projection solver parameters."""

    delta_time: float = 0.01  # seconds
    reynolds: float = 100.0
    acceleration_x: float = 0.0  # meters/seconds^2
    acceleration_y: float = 0.0
    omega: float = 1.7  # SOR relaxation, 0 <= omega <= 2
    gamma: float = 0.9  # donor-cell blending, 0 <= gamma <= 1
    itr_max: int = 100
    poisson_epsilon: float = 1e-3
    method: str = "MAC-SOR"

    def __post_init__(self):
        super().__post_init__()
        if self.delta_time <= 0:
            raise ValueError(f"delta_time must be positive, got {self.delta_time}")
        if self.reynolds <= 0:
            raise ValueError(f"reynolds must be positive, got {self.reynolds}")
        if not 0.0 <= self.omega <= 2.0:
            raise ValueError(f"omega must lie in [0, 2], got {self.omega}")
        if not 0.0 <= self.gamma <= 1.0:
            raise ValueError(f"gamma must lie in [0, 1], got {self.gamma}")
        if self.itr_max < 1:
            raise ValueError(f"itr_max must be >= 1, got {self.itr_max}")
        if self.poisson_epsilon <= 0:
            raise ValueError(
                f"poisson_epsilon must be positive, got {self.poisson_epsilon}"
            )

    @property
    def acceleration(self):
        return (self.acceleration_x, self.acceleration_y)


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class Metrics:
    """Solver metrics - output results computed during/after solving."""

    steps: int = 0
    simulated_time: float = 0.0
    wall_time_seconds: float = 0.0
    unconverged_solves: int = 0
    final_poisson_iterations: int = 0
    final_poisson_residual: float = 0.0
    pressure_min: float = 0.0
    pressure_max: float = 0.0
    speed_min: float = 0.0
    speed_max: float = 0.0
    psi_min: float = 0.0
    psi_max: float = 0.0

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        """Metrics as floats for ``mlflow.log_metrics``."""
        return {k: float(v) for k, v in asdict(self).items()}


# ========================================================
# Fields (Spatial Solution Data)
# ========================================================


@dataclass
class Fields:
    """Cell-centred solution snapshot on grid (x, y), one entry per cell."""

    x: np.ndarray
    y: np.ndarray
    u: np.ndarray
    v: np.ndarray
    p: np.ndarray
    psi: np.ndarray
    cell_type: np.ndarray

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per grid cell."""
        return pd.DataFrame(asdict(self))


# ========================================================
# Time Series (Per-step History)
# ========================================================


@dataclass
class TimeSeries:
    """Step history (one value per timestep)."""

    time: List[float]
    poisson_iterations: List[int]
    poisson_residual: List[float]
    poisson_converged: List[bool]
    pressure_min: Optional[List[float]] = None
    pressure_max: Optional[List[float]] = None
    speed_max: Optional[List[float]] = None

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per step."""
        df = pd.DataFrame({k: v for k, v in asdict(self).items() if v is not None})
        df.insert(0, "step", np.arange(1, len(df) + 1))
        return df

    def to_mlflow_batch(self) -> list:
        """Build ``mlflow.entities.Metric`` objects for ``MlflowClient.log_batch``."""
        from mlflow.entities import Metric

        timestamp = int(time.time() * 1000)
        batch = []
        for key, values in asdict(self).items():
            if values is None:
                continue
            for step, value in enumerate(values):
                batch.append(Metric(key, float(value), timestamp, step))
        return batch


# =============================================================
# Staggered Grid Storage
# ============================================================


@dataclass
class StaggeredGridFields:
    """Per-cell arrays of a staggered grid, all shaped (nx, ny) and indexed [x, y].

    u lives on the right face of a cell, v on its top face, p/rhs at the
    centre and psi at the top-right corner. f/g are the predictor
    velocities with the same staggering as u/v.
    """

    # Cell taxonomy
    cell_type: np.ndarray
    boundary_kind: np.ndarray

    # Velocity and predictor
    u: np.ndarray
    v: np.ndarray
    f: np.ndarray
    g: np.ndarray

    # Pressure equation
    p: np.ndarray
    rhs: np.ndarray

    # Visualisation only
    psi: np.ndarray

    # Prescribed boundary velocity
    bc_u: np.ndarray
    bc_v: np.ndarray

    @property
    def shape(self):
        return self.cell_type.shape

    def copy(self):
        """Independent, writeable copy of every array."""
        return StaggeredGridFields(**{name: array.copy() for name, array in vars(self).items()})

    @classmethod
    def allocate(cls, nx: int, ny: int):
        """Allocate all arrays; every cell starts as fluid (type code 0) at rest."""
        shape = (nx, ny)
        return cls(
            cell_type=np.zeros(shape, dtype=np.int8),
            boundary_kind=np.full(shape, -1, dtype=np.int8),
            u=np.zeros(shape),
            v=np.zeros(shape),
            f=np.zeros(shape),
            g=np.zeros(shape),
            p=np.zeros(shape),
            rhs=np.zeros(shape),
            psi=np.zeros(shape),
            bc_u=np.zeros(shape),
            bc_v=np.zeros(shape),
        )
