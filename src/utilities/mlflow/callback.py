"""Hydra callback for MLflow parent run management during sweeps."""

import logging
import os
from typing import Dict, Optional

from hydra.experimental.callback import Callback
from omegaconf import DictConfig, OmegaConf

log = logging.getLogger(__name__)


def preset_name(config: DictConfig) -> str:
    """Name of the preset a job runs, taken from its ``_target_``."""
    target = config.preset.get("_target_", "")
    return target.rsplit(".", 1)[-1] or "unknown"


def resolve_sweep_name(template: str, config: DictConfig) -> str:
    """Fill ``{preset}`` in a sweep name template with the job's preset."""
    return template.replace("{preset}", preset_name(config))


class MLflowSweepCallback(Callback):
    """Creates or reuses parent MLflow runs for Hydra multiruns.

    With a sweep name such as ``"reynolds-{preset}"`` every preset gets its
    own parent run and the jobs of that preset are nested under it. Jobs
    find their parent through ``MLFLOW_PARENT_RUN_ID``.
    """

    def __init__(self) -> None:
        self._parent_runs: Dict[str, str] = {}  # sweep_name -> run_id
        self._experiment_name: Optional[str] = None
        self._sweep_template: Optional[str] = None

    def _find_existing_parent(self, sweep_name: str) -> Optional[str]:
        import mlflow

        runs = mlflow.search_runs(
            experiment_names=[self._experiment_name],
            filter_string=f"tags.sweep = 'parent' AND tags.`mlflow.runName` = '{sweep_name}'",
            order_by=["start_time DESC"],
            max_results=1,
        )
        if runs.empty:
            return None
        return runs.iloc[0]["run_id"]

    def _get_or_create_parent(self, sweep_name: str, config: DictConfig) -> str:
        import mlflow

        if sweep_name in self._parent_runs:
            return self._parent_runs[sweep_name]

        existing_id = self._find_existing_parent(sweep_name)
        if existing_id:
            self._parent_runs[sweep_name] = existing_id
            log.info(f"Reusing existing parent run '{sweep_name}': {existing_id}")
            return existing_id

        with mlflow.start_run(run_name=sweep_name) as parent_run:
            mlflow.log_dict(OmegaConf.to_container(config), "sweep_config.yaml")
            mlflow.set_tag("sweep", "parent")
            mlflow.set_tag("preset", preset_name(config))

            job_id = os.environ.get("LSB_JOBID")
            if job_id:
                mlflow.set_tag("lsf.job_id", job_id)
                mlflow.set_tag("lsf.job_name", os.environ.get("LSB_JOBNAME", ""))

        parent_id = parent_run.info.run_id
        self._parent_runs[sweep_name] = parent_id
        log.info(f"Created parent run '{sweep_name}': {parent_id}")
        return parent_id

    def on_multirun_start(self, config: DictConfig, **kwargs) -> None:
        """Setup MLflow tracking before sweep starts."""
        from dotenv import load_dotenv

        from utilities.mlflow.tracking import configure_tracking

        load_dotenv()
        if not config.mlflow.get("enabled", True):
            return

        self._experiment_name = configure_tracking(config)
        self._sweep_template = config.get("sweep_name", "sweep-{preset}")

        # Jobs run in Hydra RUN mode, so flag the sweep through the environment
        os.environ["MLFLOW_SWEEP_ACTIVE"] = "1"
        log.info(f"MLflow sweep callback initialized for experiment: {self._experiment_name}")

    def on_job_start(self, config: DictConfig, **kwargs) -> None:
        """Point the job at the parent run of its preset."""
        if os.environ.get("MLFLOW_SWEEP_ACTIVE") != "1":
            return

        sweep_name = resolve_sweep_name(self._sweep_template, config)
        os.environ["MLFLOW_PARENT_RUN_ID"] = self._get_or_create_parent(sweep_name, config)

    def on_multirun_end(self, config: DictConfig, **kwargs) -> None:
        if os.environ.get("MLFLOW_SWEEP_ACTIVE") != "1":
            return

        os.environ.pop("MLFLOW_PARENT_RUN_ID", None)
        os.environ.pop("MLFLOW_SWEEP_ACTIVE", None)
        log.info(f"Multirun sweep completed: {len(self._parent_runs)} parent runs")
