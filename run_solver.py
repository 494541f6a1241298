"""
Staggered-grid flow runner - Hydra + MLflow integration.

Single runs:
    uv run python run_solver.py
    uv run python run_solver.py preset=lid_driven_cavity n_steps=500
    uv run python run_solver.py preset=cylinder_cross_flow preset.reynolds=200

Sweeps (multirun mode):
    uv run python run_solver.py -m preset.reynolds=50,100,200 solver.omega=1.5,1.7

MLflow modes:
    local-files  - file-based ./mlruns (default)
    remote       - tracking server (requires .env with credentials)

Setup for remote MLflow:
    cp .env.template .env
    # Edit .env with your credentials
"""

import logging
import os
import sys
import tempfile
from pathlib import Path

import hydra
import mlflow
from dotenv import load_dotenv
from hydra.utils import instantiate
from mlflow.tracking import MlflowClient
from omegaconf import DictConfig, OmegaConf

# Load .env file (for MLflow credentials)
load_dotenv()

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from solvers import Simulation  # noqa: E402
from utilities.mlflow import configure_tracking  # noqa: E402

log = logging.getLogger(__name__)


# =============================================================================
# Simulation Factory
# =============================================================================


def create_simulation(cfg: DictConfig) -> Simulation:
    """Build the preset with Hydra's instantiate and wrap it in a Simulation.

    Solver numerics and run length from the root config override the
    preset's defaults.
    """
    preset = instantiate(cfg.preset, _convert_="partial")
    return Simulation.from_preset(
        preset,
        n_steps=cfg.n_steps,
        log_every=cfg.log_every,
        **OmegaConf.to_container(cfg.solver),
    )


# =============================================================================
# MLflow Logging
# =============================================================================


def log_params(simulation: Simulation):
    """Log simulation params to MLflow using dataclass to_mlflow method."""
    mlflow.log_params(simulation.params.to_mlflow())
    nx, ny = simulation.space_size
    dx, dy = simulation.delta_space
    mlflow.log_params({"nx": nx, "ny": ny, "dx": dx, "dy": dy})


def log_metrics_and_timeseries(simulation: Simulation, run_id: str):
    """Log final metrics and per-step time series to MLflow."""
    mlflow.log_metrics(simulation.metrics.to_mlflow())

    if simulation.time_series is not None:
        batch_metrics = simulation.time_series.to_mlflow_batch()
        if batch_metrics:
            MlflowClient().log_batch(run_id=run_id, metrics=batch_metrics)


def log_plots(simulation: Simulation):
    """Render field and step history plots and attach them as artifacts."""
    from shared.plotting import plot_fields, plot_step_history

    with tempfile.TemporaryDirectory() as tmpdir:
        output_dir = Path(tmpdir)
        paths = [plot_fields(simulation, output_dir)]
        if simulation.time_series is not None:
            paths.append(plot_step_history(simulation.time_series.to_dataframe(), output_dir))

        # plot_step_history returns None for an empty history
        paths = [path for path in paths if path is not None]
        for path in paths:
            mlflow.log_artifact(str(path), artifact_path="plots")

    log.info(f"Logged {len(paths)} plots")


# =============================================================================
# Main Entry Point
# =============================================================================


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Hydra entry point - runs the simulation with MLflow tracking."""
    simulation = create_simulation(cfg)
    preset_name = simulation.params.preset
    nx, ny = simulation.space_size
    log.info(f"Preset: {preset_name}, {nx}x{ny}, Re={simulation.reynolds}")

    if not cfg.mlflow.get("enabled", True):
        simulation.solve()
        if cfg.plots.enabled:
            from shared.plotting import plot_fields, plot_step_history

            output_dir = Path(hydra.core.hydra_config.HydraConfig.get().runtime.output_dir)
            plot_fields(simulation, output_dir)
            plot_step_history(simulation.time_series.to_dataframe(), output_dir)
        return

    experiment_name = configure_tracking(cfg)
    log.info(f"MLflow experiment: {experiment_name}")

    run_name = f"{preset_name}_{nx}x{ny}_Re{simulation.reynolds:g}"
    run_tags = {"preset": preset_name, "method": simulation.params.method}

    # Parent run from a sweep, if any
    parent_run_id = os.environ.get("MLFLOW_PARENT_RUN_ID")
    nested = False
    if parent_run_id:
        run_tags["mlflow.parentRunId"] = parent_run_id
        run_tags["parent_run_id"] = parent_run_id
        run_tags["sweep"] = "child"
        nested = True

    with mlflow.start_run(run_name=run_name, tags=run_tags, nested=nested) as run:
        log_params(simulation)
        mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")

        # Tag with HPC job info if available
        job_id = os.environ.get("LSB_JOBID")
        if job_id:
            mlflow.set_tag("lsf.job_id", job_id)
            mlflow.set_tag("lsf.job_name", os.environ.get("LSB_JOBNAME", ""))

        log.info("Starting simulation...")
        simulation.solve()

        log_metrics_and_timeseries(simulation, run.info.run_id)
        if cfg.plots.enabled:
            log_plots(simulation)

        log.info(
            f"Done: {simulation.metrics.steps} steps, t={simulation.metrics.simulated_time:.3f}, "
            f"unconverged solves={simulation.metrics.unconverged_solves}, "
            f"time={simulation.metrics.wall_time_seconds:.2f}s"
        )


if __name__ == "__main__":
    main()
