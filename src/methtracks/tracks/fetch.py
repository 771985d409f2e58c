"""Fetch annotation tracks from the UCSC Genome Browser REST API."""

import polars as pl
import structlog

from methtracks.api_clients.ucsc import UCSCClient
from methtracks.config.schema import GenomeConfig, TrackStyles
from methtracks.tracks.models import (
    GENE_MODEL_COLUMNS,
    GeneModelRecord,
    GenomicWindow,
    Track,
)

logger = structlog.get_logger()

GENE_MODEL_SCHEMA = {
    "transcript": pl.Utf8,
    "gene_symbol": pl.Utf8,
    "chromosome": pl.Utf8,
    "strand": pl.Utf8,
    "tx_start": pl.Int64,
    "tx_end": pl.Int64,
    "cds_start": pl.Int64,
    "cds_end": pl.Int64,
    "exon_starts": pl.List(pl.Int64),
    "exon_ends": pl.List(pl.Int64),
}

INTERVAL_SCHEMA = {
    "chromosome": pl.Utf8,
    "start": pl.Int64,
    "end": pl.Int64,
    "name": pl.Utf8,
}


def parse_gene_models(rows: list[dict]) -> pl.DataFrame:
    """Convert UCSC genePred rows into a gene model table.

    Each row is validated through GeneModelRecord; the result is sorted by
    transcript start, then accession, for deterministic output.

    Returns:
        DataFrame with GENE_MODEL_COLUMNS (empty with that schema if no rows)
    """
    records = [GeneModelRecord.from_ucsc(row).model_dump() for row in rows]
    if not records:
        return pl.DataFrame(schema=GENE_MODEL_SCHEMA)
    return (
        pl.DataFrame(records, schema=GENE_MODEL_SCHEMA)
        .select(GENE_MODEL_COLUMNS)
        .sort(["tx_start", "transcript"])
    )


def parse_intervals(rows: list[dict], extra: dict[str, tuple[str, pl.DataType]] | None = None) -> pl.DataFrame:
    """Convert UCSC bed-like rows (chrom/chromStart/chromEnd/name) into intervals.

    Args:
        rows: UCSC JSON rows
        extra: Mapping of output column -> (UCSC field, dtype) to carry along

    Returns:
        DataFrame with chromosome, start, end, name and any extra columns
    """
    extra = extra or {}
    schema = dict(INTERVAL_SCHEMA)
    schema.update({col: dtype for col, (_, dtype) in extra.items()})

    records = []
    for row in rows:
        record = {
            "chromosome": row["chrom"],
            "start": row["chromStart"],
            "end": row["chromEnd"],
            "name": row.get("name"),
        }
        for col, (ucsc_field, _) in extra.items():
            record[col] = row.get(ucsc_field)
        records.append(record)

    if not records:
        return pl.DataFrame(schema=schema)
    return pl.DataFrame(records, schema=schema).sort(["start", "end"])


def fetch_gene_models(
    client: UCSCClient,
    genome: str,
    window: GenomicWindow,
    table: str = "refGene",
) -> pl.DataFrame:
    """Fetch gene-model transcripts intersecting a window."""
    logger.info("fetch_gene_models_start", genome=genome, table=table, window=str(window))
    rows = client.get_track(genome, table, window.chromosome, window.start, window.end)
    df = parse_gene_models(rows)
    logger.info(
        "fetch_gene_models_complete",
        transcript_count=df.height,
        genes=df["gene_symbol"].unique().sort().to_list(),
    )
    return df


def fetch_cpg_islands(
    client: UCSCClient,
    genome: str,
    window: GenomicWindow,
    table: str = "cpgIslandExt",
) -> pl.DataFrame:
    """Fetch CpG islands intersecting a window."""
    rows = client.get_track(genome, table, window.chromosome, window.start, window.end)
    df = parse_intervals(rows, extra={
        "cpg_count": ("cpgNum", pl.Int64),
        "gc_percent": ("perGc", pl.Float64),
        "obs_exp": ("obsExp", pl.Float64),
    })
    logger.info("fetch_cpg_islands_complete", genome=genome, table=table, island_count=df.height)
    return df


def fetch_snps(
    client: UCSCClient,
    genome: str,
    window: GenomicWindow,
    table: str = "snp147Common",
) -> pl.DataFrame:
    """Fetch common SNPs intersecting a window."""
    rows = client.get_track(genome, table, window.chromosome, window.start, window.end)
    df = parse_intervals(rows, extra={
        "snp_class": ("class", pl.Utf8),
        "observed": ("observed", pl.Utf8),
    })
    logger.info("fetch_snps_complete", genome=genome, table=table, snp_count=df.height)
    return df


def fetch_cytobands(
    client: UCSCClient,
    genome: str,
    chromosome: str,
    table: str = "cytoBandIdeo",
) -> pl.DataFrame:
    """Fetch the cytoband layout of a whole chromosome for the ideogram."""
    rows = client.get_track(genome, table, chromosome)
    df = parse_intervals(rows, extra={"stain": ("gieStain", pl.Utf8)})
    logger.info("fetch_cytobands_complete", genome=genome, chromosome=chromosome, band_count=df.height)
    return df


def gene_model_features(models: pl.DataFrame) -> pl.DataFrame:
    """Add start/end (transcript bounds) so gene models behave as track features."""
    return models.with_columns(
        pl.col("tx_start").alias("start"),
        pl.col("tx_end").alias("end"),
    )


def fetch_annotation_tracks(
    client: UCSCClient,
    genome: GenomeConfig,
    styles: TrackStyles,
    window: GenomicWindow,
) -> list[Track]:
    """Fetch the gene model, CpG island and SNP tracks for a window.

    Returns:
        Tracks in display order: gene model, CpG islands, SNPs
    """
    models = fetch_gene_models(client, genome.build, window, genome.gene_model)
    islands = fetch_cpg_islands(client, genome.build, window, genome.cpg_islands)
    snps = fetch_snps(client, genome.build, window, genome.snps)

    return [
        Track("RefSeq genes", "gene_model", gene_model_features(models), styles.for_kind("gene_model")),
        Track("CpG islands", "cpg_islands", islands, styles.for_kind("cpg_islands")),
        Track("Common SNPs", "snps", snps, styles.for_kind("snps")),
    ]
