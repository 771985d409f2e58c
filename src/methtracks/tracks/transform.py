"""Derive gene and promoter windows from gene-model records."""

import polars as pl
import structlog

from methtracks.annotation.models import EmptySelectionError
from methtracks.tracks.models import GenomicWindow

logger = structlog.get_logger()


def filter_gene_models(models: pl.DataFrame, gene: str) -> pl.DataFrame:
    """Keep transcripts whose gene symbol equals ``gene`` (case-insensitive).

    Alternative haplotype and unplaced contigs (chromosome names containing
    "_", e.g. chr6_cox_hap2) are dropped whenever the gene also sits on a
    primary chromosome.

    Raises:
        EmptySelectionError: If no transcript carries the symbol
    """
    matched = models.filter(
        pl.col("gene_symbol").str.to_uppercase() == gene.strip().upper()
    )
    primary = matched.filter(~pl.col("chromosome").str.contains("_", literal=True))
    if primary.height > 0:
        matched = primary

    if matched.height == 0:
        logger.warning("gene_model_selection_empty", gene=gene)
        raise EmptySelectionError(gene, what="gene-model rows")

    logger.info(
        "gene_model_selection_complete",
        gene=gene,
        transcript_count=matched.height,
        transcripts=matched["transcript"].to_list(),
    )
    return matched


def compute_gene_window(models: pl.DataFrame, padding: int = 5000) -> GenomicWindow:
    """Padded window spanning a gene's transcripts.

    window = [min(tx_start) - padding, max(cds_end) + padding]

    Non-coding transcripts (cds_start == cds_end, where UCSC stores the
    transcript end in both fields) contribute tx_end in place of cds_end.
    The start is clamped at zero.

    Args:
        models: Gene-model rows of a single gene (see filter_gene_models)
        padding: Bases added on each side

    Returns:
        GenomicWindow on the models' chromosome

    Raises:
        EmptySelectionError: If models is empty
        ValueError: If the models span more than one chromosome
    """
    if models.height == 0:
        raise EmptySelectionError("<unknown>", what="gene-model rows")

    chromosomes = models["chromosome"].unique().sort().to_list()
    if len(chromosomes) > 1:
        raise ValueError(f"Gene models span several chromosomes: {chromosomes}")

    coding_end = pl.when(pl.col("cds_start") < pl.col("cds_end")).then(
        pl.col("cds_end")
    ).otherwise(pl.col("tx_end"))

    bounds = models.select(
        pl.col("tx_start").min().alias("start"),
        coding_end.max().alias("end"),
    )
    start = int(bounds["start"][0])
    end = int(bounds["end"][0])

    window = GenomicWindow(
        chromosome=chromosomes[0],
        start=max(start - padding, 0),
        end=end + padding,
    )
    logger.info("gene_window_computed", window=str(window), padding=padding)
    return window


def transcription_start_site(models: pl.DataFrame) -> tuple[int, str]:
    """Most upstream TSS across transcripts and the strand it was taken from.

    On "+" the TSS is min(tx_start); on "-" it is max(tx_end). Where a gene
    carries transcripts on both strands the majority strand wins.
    """
    strands = models.group_by("strand").len().sort(["len", "strand"], descending=[True, False])
    strand = strands["strand"][0]
    on_strand = models.filter(pl.col("strand") == strand)
    if strand == "-":
        return int(on_strand["tx_end"].max()), strand
    return int(on_strand["tx_start"].min()), strand


def promoter_window(
    models: pl.DataFrame,
    flank: int = 2000,
    clip_to: GenomicWindow | None = None,
) -> GenomicWindow:
    """Close-up window of +/- flank bases around the gene's TSS.

    The window is clipped to ``clip_to`` only when the two overlap. On the
    minus strand the TSS is max(tx_end), which lies past a cds_end-based gene
    window whenever the 5' UTR is longer than padding + flank; the unclipped
    range is kept in that case.

    Args:
        models: Gene-model rows of a single gene
        flank: Bases on each side of the TSS
        clip_to: Optional enclosing window to clip against

    Returns:
        GenomicWindow centred on the TSS
    """
    tss, strand = transcription_start_site(models)
    chromosome = models["chromosome"][0]
    start = max(tss - flank, 0)
    end = tss + flank
    if clip_to is not None:
        clipped_start = max(start, clip_to.start)
        clipped_end = min(end, clip_to.end)
        if clipped_start < clipped_end:
            start, end = clipped_start, clipped_end
        else:
            logger.warning(
                "promoter_outside_gene_window",
                tss=tss,
                strand=strand,
                gene_window=str(clip_to),
            )

    window = GenomicWindow(chromosome=chromosome, start=start, end=end)
    logger.info("promoter_window_computed", window=str(window), tss=tss, strand=strand)
    return window
