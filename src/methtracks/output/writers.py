"""Dual-format TSV+Parquet table writer with provenance sidecar."""

import re
from datetime import datetime, timezone
from pathlib import Path

import polars as pl
import yaml


def output_basename(gene: str, genome: str) -> str:
    """File name stem for a gene view, safe for any gene query."""
    return "_".join(re.sub(r"[^A-Za-z0-9_.-]+", "_", part) for part in (gene, genome))


def write_table(
    df: pl.DataFrame,
    output_dir: Path,
    filename_base: str,
    metadata: dict | None = None,
) -> dict:
    """
    Write a table to TSV and Parquet with a YAML provenance sidecar.

    Args:
        df: Table to write (written in its current row order)
        output_dir: Directory to write output files (created if needed)
        filename_base: Base filename without extension
        metadata: Extra entries for the sidecar (gene, window, ...)

    Returns:
        {"tsv": Path, "parquet": Path, "provenance": Path}

    Notes:
        - List columns (gene model exons) are joined with "," in the TSV only
        - Parquet uses snappy compression
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    tsv_path = output_dir / f"{filename_base}.tsv"
    parquet_path = output_dir / f"{filename_base}.parquet"
    provenance_path = output_dir / f"{filename_base}.provenance.yaml"

    list_columns = [name for name, dtype in df.schema.items() if isinstance(dtype, pl.List)]
    flat = df.with_columns(
        [pl.col(c).cast(pl.List(pl.Utf8)).list.join(",") for c in list_columns]
    )
    flat.write_csv(tsv_path, separator="\t", include_header=True)
    df.write_parquet(parquet_path, compression="snappy")

    provenance = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "output_files": [tsv_path.name, parquet_path.name],
        "row_count": df.height,
        "column_count": len(df.columns),
        "column_names": df.columns,
    }
    if metadata:
        provenance.update(metadata)

    with open(provenance_path, "w") as f:
        yaml.dump(provenance, f, default_flow_style=False, sort_keys=False)

    return {
        "tsv": tsv_path,
        "parquet": parquet_path,
        "provenance": provenance_path,
    }


def write_gene_tables(result: "GeneViewResult", output_dir: Path) -> dict[str, dict]:
    """
    Write selected probes, gene models and measurements of a gene view.

    Returns:
        Mapping of table name to the paths returned by write_table
    """
    metadata = {
        "gene": result.gene,
        "genome": result.genome,
        "window": result.window.model_dump(),
        "promoter": result.promoter.model_dump(),
    }
    base = output_basename(result.gene, result.genome)
    tables = {
        "probes": result.probes,
        "gene_models": result.gene_models,
        "measurements": result.measurements,
    }
    return {
        name: write_table(df, output_dir, f"{base}_{name}", metadata)
        for name, df in tables.items()
    }
