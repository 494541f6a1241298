"""MLflow tracking setup from the Hydra config."""

import logging
import os

import mlflow
from omegaconf import DictConfig

log = logging.getLogger(__name__)


def experiment_name_for(cfg: DictConfig) -> str:
    """Experiment name with the optional project prefix."""
    experiment_name = cfg.experiment_name
    project_prefix = cfg.mlflow.get("project_prefix", "")
    if project_prefix and not experiment_name.startswith("/"):
        experiment_name = f"{project_prefix}/{experiment_name}"
    return experiment_name


def configure_tracking(cfg: DictConfig) -> str:
    """Point MLflow at the configured backend and select the experiment.

    Returns the experiment name actually in use.
    """
    tracking_uri = cfg.mlflow.get("tracking_uri", "./mlruns")
    # If defaulting to local file backend, clear any env override
    if str(cfg.mlflow.get("mode", "")).lower() in ("files", "local"):
        os.environ.pop("MLFLOW_TRACKING_URI", None)
    os.environ["MLFLOW_TRACKING_URI"] = str(tracking_uri)
    mlflow.set_tracking_uri(tracking_uri)

    experiment_name = experiment_name_for(cfg)
    try:
        mlflow.set_experiment(experiment_name)
    except Exception as exc:
        # A deleted experiment blocks its name; fall back to a new one
        fallback = f"{experiment_name}-restored"
        log.warning(
            "MLflow set_experiment failed for '%s' (%s); falling back to '%s'",
            experiment_name,
            exc,
            fallback,
        )
        experiment_name = fallback
        mlflow.set_experiment(experiment_name)
    return experiment_name
