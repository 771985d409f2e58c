"""Attach genomic coordinates to beta values via probe ID."""

import polars as pl
import structlog

from methtracks.tracks.models import GenomicWindow

logger = structlog.get_logger()

MEASUREMENT_COLUMNS = ["probe_id", "chromosome", "position", "sample", "beta"]


def map_measurements(
    betas: pl.DataFrame,
    probes: pl.DataFrame,
    window: GenomicWindow,
) -> pl.DataFrame:
    """Join beta values to probe coordinates inside a window.

    The probe subset is first restricted to the window's chromosome and
    range; the wide matrix is melted to one row per probe x sample and
    inner-joined on probe_id. Probes without coordinates in the subset are
    dropped, as are null beta values.

    Args:
        betas: Wide matrix from load_beta_matrix
        probes: Probe annotation rows (typically select_gene_probes output)
        window: Window restricting chromosome and positions

    Returns:
        DataFrame with MEASUREMENT_COLUMNS sorted by position, probe_id, sample
    """
    coords = probes.filter(
        (pl.col("chromosome") == window.chromosome)
        & (pl.col("position") >= window.start)
        & (pl.col("position") <= window.end)
    ).select(["probe_id", "chromosome", "position"])

    long = betas.unpivot(
        index="probe_id",
        variable_name="sample",
        value_name="beta",
    ).filter(pl.col("beta").is_not_null())

    joined = (
        long.join(coords, on="probe_id", how="inner")
        .select(MEASUREMENT_COLUMNS)
        .sort(["position", "probe_id", "sample"])
    )

    logger.debug(
        "measurement_join_dropped",
        unmatched_rows=long.height - joined.height,
    )
    logger.info(
        "measurement_mapping_complete",
        window=str(window),
        probe_count=joined["probe_id"].n_unique(),
        sample_count=joined["sample"].n_unique(),
        row_count=joined.height,
    )
    return joined


def summarize_by_probe(measurements: pl.DataFrame) -> pl.DataFrame:
    """Per-probe beta summary across samples.

    Returns:
        DataFrame with probe_id, chromosome, position, mean_beta, min_beta,
        max_beta, sample_count sorted by position
    """
    return (
        measurements.group_by(["probe_id", "chromosome", "position"])
        .agg(
            pl.col("beta").mean().alias("mean_beta"),
            pl.col("beta").min().alias("min_beta"),
            pl.col("beta").max().alias("max_beta"),
            pl.col("sample").n_unique().alias("sample_count"),
        )
        .sort(["position", "probe_id"])
    )
