"""Figure generation for a gene view: track figures plus QC plots."""

import logging
from pathlib import Path

import matplotlib
import polars as pl

# Use Agg backend (non-interactive, safe for headless/CLI use)
matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import seaborn as sns  # noqa: E402

from methtracks.config.schema import DisplayConfig  # noqa: E402
from methtracks.output.renderer import render_gene_views  # noqa: E402
from methtracks.output.writers import output_basename  # noqa: E402

logger = logging.getLogger(__name__)


def plot_beta_distribution(measurements: pl.DataFrame, output_path: Path) -> Path:
    """
    Histogram of beta values per sample for the probes in the gene window.

    Args:
        measurements: Joined measurements (probe_id, sample, beta, ...)
        output_path: Path where PNG will be saved

    Returns:
        Path to the saved PNG file

    Notes:
        - Converts to pandas for seaborn compatibility
        - Bins fixed on [0, 1] so figures of different genes are comparable
    """
    sns.set_theme(style="whitegrid", context="paper")
    fig, ax = plt.subplots(figsize=(8, 5))

    if measurements.height == 0:
        ax.text(0.5, 0.5, "no measurements", transform=ax.transAxes,
                ha="center", va="center", color="gray")
    else:
        pdf = measurements.select(["sample", "beta"]).to_pandas()
        sns.histplot(
            data=pdf,
            x="beta",
            hue="sample",
            bins=20,
            binrange=(0.0, 1.0),
            element="step",
            fill=False,
            ax=ax,
        )

    ax.set_xlim(0.0, 1.0)
    ax.set_xlabel("Beta value")
    ax.set_ylabel("Probe count")
    ax.set_title("Beta-value distribution per sample")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=300, bbox_inches="tight")
    plt.close(fig)

    logger.info(f"Saved beta distribution plot to {output_path}")
    return output_path


def generate_all_plots(
    result: "GeneViewResult",
    output_dir: Path,
    display: DisplayConfig | None = None,
) -> dict[str, Path]:
    """
    Render both track views and, when measurements exist, the QC histogram.

    Args:
        result: GeneViewResult to render
        output_dir: Directory where plots will be saved
        display: Display options for the track figures

    Returns:
        Dictionary mapping plot name to file path

    Notes:
        - Track figure failures propagate; the QC plot is best-effort
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    plots = render_gene_views(result, output_dir, display=display)

    base = output_basename(result.gene, result.genome)
    if result.measurements.height > 0:
        try:
            plots["beta_distribution"] = plot_beta_distribution(
                result.measurements,
                output_dir / f"{base}_beta_distribution.png",
            )
        except Exception as e:
            logger.warning(f"Failed to create beta distribution plot: {e}")

    logger.info(f"Generated {len(plots)} plots in {output_dir}")
    return plots
