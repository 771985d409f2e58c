"""Load Illumina probe annotation tables into polars."""

from pathlib import Path

import polars as pl
import structlog

from methtracks.annotation.models import COLUMN_VARIANTS, REQUIRED_COLUMNS

logger = structlog.get_logger()


def separator_for(path: Path) -> str:
    """Tab for .tsv/.txt (optionally gzipped), comma otherwise."""
    suffixes = [s.lower() for s in path.suffixes if s.lower() != ".gz"]
    if suffixes and suffixes[-1] in (".tsv", ".txt"):
        return "\t"
    return ","


def normalize_chromosome(expr: pl.Expr) -> pl.Expr:
    """Prefix bare chromosome names (``2``, ``X``) with ``chr``."""
    as_str = expr.cast(pl.Utf8).str.strip_chars()
    return (
        pl.when(as_str.str.starts_with("chr"))
        .then(as_str)
        .otherwise(pl.lit("chr") + as_str)
    )


def load_probe_annotation(path: Path | str) -> pl.DataFrame:
    """Read a probe annotation table and standardise its columns.

    Header variants listed in COLUMN_VARIANTS are renamed to the standard
    names. Missing optional columns are added as empty strings so that
    downstream selection never has to branch on them.

    Args:
        path: CSV or TSV annotation file (``.gz`` accepted)

    Returns:
        DataFrame with columns probe_id, chromosome, position, gene_names,
        gene_group, transcript_accessions, island_relation

    Raises:
        FileNotFoundError: If the annotation resource is absent
        ValueError: If probe_id, chromosome or position cannot be located
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Probe annotation not found: {path}")

    logger.info("probe_annotation_load_start", path=str(path))

    raw = pl.read_csv(
        path,
        separator=separator_for(path),
        infer_schema_length=0,
        null_values=["NA", ""],
    )
    # Illumina manifests sometimes ship an unnamed leading index column
    if raw.columns and raw.columns[0] in ("", "__UNNAMED__0"):
        raw = raw.drop(raw.columns[0])

    column_mapping = {}
    for our_name, variants in COLUMN_VARIANTS.items():
        for variant in variants:
            if variant in raw.columns:
                column_mapping[variant] = our_name
                break

    missing = [c for c in REQUIRED_COLUMNS if c not in column_mapping.values()]
    if missing:
        raise ValueError(
            f"Annotation table {path} lacks required columns {missing}; "
            f"found {raw.columns[:10]}"
        )

    df = raw.select([pl.col(old).alias(new) for old, new in column_mapping.items()])

    for optional in ("gene_names", "gene_group", "transcript_accessions"):
        if optional not in df.columns:
            df = df.with_columns(pl.lit("").alias(optional))
    if "island_relation" not in df.columns:
        df = df.with_columns(pl.lit(None, dtype=pl.Utf8).alias("island_relation"))

    before = df.height
    df = (
        df.with_columns(
            normalize_chromosome(pl.col("chromosome")).alias("chromosome"),
            pl.col("position").cast(pl.Int64, strict=False),
            pl.col("gene_names").fill_null(""),
            pl.col("gene_group").fill_null(""),
            pl.col("transcript_accessions").fill_null(""),
        )
        .filter(pl.col("chromosome").is_not_null() & pl.col("position").is_not_null())
        .unique(subset="probe_id", keep="first", maintain_order=True)
        .select([
            "probe_id",
            "chromosome",
            "position",
            "gene_names",
            "gene_group",
            "transcript_accessions",
            "island_relation",
        ])
    )

    logger.info(
        "probe_annotation_load_complete",
        probe_count=df.height,
        dropped=before - df.height,
        chromosome_count=df["chromosome"].n_unique(),
    )

    return df
