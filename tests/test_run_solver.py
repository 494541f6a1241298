"""Tests for the runner's MLflow artifact logging."""

import logging
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

# Runner lives at the repository root
sys.path.insert(0, str(Path(__file__).parent.parent))

import run_solver  # noqa: E402
import shared.plotting  # noqa: E402
from solvers import Simulation  # noqa: E402


@pytest.fixture
def logged_artifacts(monkeypatch):
    logged = []
    monkeypatch.setattr(
        run_solver.mlflow,
        "log_artifact",
        lambda path, artifact_path=None: logged.append((Path(path).name, artifact_path)),
    )
    return logged


class TestLogPlots:
    """Tests for plot artifact logging."""

    def test_logs_field_and_history_plots(self, cavity, logged_artifacts, caplog):
        sim = Simulation.from_preset(cavity)
        sim.solve(n_steps=2)

        with caplog.at_level(logging.INFO, logger="run_solver"):
            run_solver.log_plots(sim)

        assert logged_artifacts == [("fields.png", "plots"), ("step_history.png", "plots")]
        assert "Logged 2 plots" in caplog.text

    def test_missing_history_plot_not_counted(self, cavity, logged_artifacts, caplog, monkeypatch):
        """An empty step history produces no artifact and is not counted."""
        monkeypatch.setattr(shared.plotting, "plot_step_history", lambda df, output_dir: None)
        sim = Simulation.from_preset(cavity)
        sim.solve(n_steps=1)

        with caplog.at_level(logging.INFO, logger="run_solver"):
            run_solver.log_plots(sim)

        assert logged_artifacts == [("fields.png", "plots")]
        assert "Logged 1 plots" in caplog.text
