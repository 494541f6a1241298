"""
Step history plots.

Shows the pressure solve effort and residual for every timestep.
"""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

log = logging.getLogger(__name__)


def plot_step_history(time_series_df: pd.DataFrame, output_dir: Path) -> Path:
    """Plot Poisson iterations and residual per timestep."""
    if time_series_df is None or time_series_df.empty:
        log.warning("No time series data available for step history plot")
        return None

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    sns.set_style("darkgrid")
    fig, (ax_iter, ax_res) = plt.subplots(2, 1, sharex=True, figsize=(7, 6))

    sns.lineplot(data=time_series_df, x="time", y="poisson_iterations", ax=ax_iter)
    ax_iter.set_ylabel("SOR sweeps")

    unconverged = time_series_df[~time_series_df["poisson_converged"].astype(bool)]
    if not unconverged.empty:
        ax_iter.scatter(
            unconverged["time"],
            unconverged["poisson_iterations"],
            color="tab:red",
            marker="x",
            label="not converged",
            zorder=3,
        )
        ax_iter.legend(frameon=True)

    residual = time_series_df["poisson_residual"].clip(lower=1e-16)
    ax_res.semilogy(time_series_df["time"], residual)
    ax_res.set_xlabel(r"$t$")
    ax_res.set_ylabel("Residual")

    fig.suptitle("Pressure solve per step")
    fig.patch.set_alpha(0.0)

    output_path = output_dir / "step_history.png"
    fig.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)

    log.info(f"Saved step history plot to {output_path}")
    return output_path
