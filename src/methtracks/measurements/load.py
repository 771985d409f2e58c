"""Load sample-by-probe beta-value matrices."""

from pathlib import Path

import polars as pl
import structlog

from methtracks.annotation.load import separator_for

logger = structlog.get_logger()


def load_beta_matrix(path: Path | str) -> pl.DataFrame:
    """Read a beta-value matrix with probes as rows and samples as columns.

    The first column holds probe IDs, whatever its header (minfi writes an
    empty header, other tools "ID_REF" or "probe"); it is renamed probe_id.
    Every other column is treated as a sample and cast to Float64.

    Args:
        path: CSV or TSV matrix (``.gz`` accepted)

    Returns:
        Wide DataFrame: probe_id plus one Float64 column per sample

    Raises:
        FileNotFoundError: If the matrix file is absent
        ValueError: If the matrix has no sample columns
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Beta matrix not found: {path}")

    logger.info("beta_matrix_load_start", path=str(path))

    raw = pl.read_csv(
        path,
        separator=separator_for(path),
        infer_schema_length=0,
        null_values=["NA", "NaN", ""],
    )
    if raw.width < 2:
        raise ValueError(f"Beta matrix {path} has no sample columns")

    id_column = raw.columns[0]
    samples = raw.columns[1:]
    df = raw.rename({id_column: "probe_id"}).with_columns(
        [pl.col(s).cast(pl.Float64, strict=False) for s in samples]
    )

    out_of_range = df.select(
        pl.sum_horizontal(
            [((pl.col(s) < 0.0) | (pl.col(s) > 1.0)).sum() for s in samples]
        )
    ).item()
    if out_of_range:
        logger.warning(
            "beta_matrix_out_of_range",
            value_count=out_of_range,
            message="Beta values are expected in [0, 1]; M-values supplied?",
        )

    logger.info(
        "beta_matrix_load_complete",
        probe_count=df.height,
        sample_count=len(samples),
    )
    return df
