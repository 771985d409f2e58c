"""Select the probes annotated to a gene."""

from collections.abc import Iterator

import polars as pl
import structlog

from methtracks.annotation.models import EmptySelectionError, ProbeRecord
from methtracks.tracks.models import GenomicWindow

logger = structlog.get_logger()


def select_gene_probes(
    annotation: pl.DataFrame,
    gene: str,
    exact: bool = False,
) -> pl.DataFrame:
    """Filter the annotation to probes whose gene-name field matches ``gene``.

    Default matching is a case-insensitive literal substring test on the
    ``gene_names`` field, so "HOXD1" also selects HOXD10/HOXD11 probes.
    ``exact=True`` instead requires one of the ';'-separated symbols to equal
    the query (still case-insensitive).

    Args:
        annotation: Full probe annotation from load_probe_annotation
        gene: Gene symbol to select
        exact: Match whole symbols rather than substrings

    Returns:
        Matching probe rows sorted by chromosome and position

    Raises:
        EmptySelectionError: If no probe matches
    """
    query = gene.strip()
    if not query:
        raise EmptySelectionError(gene)

    names = pl.col("gene_names").fill_null("").str.to_uppercase()
    if exact:
        condition = names.str.split(";").list.contains(pl.lit(query.upper()))
    else:
        condition = names.str.contains(query.upper(), literal=True)

    selected = annotation.filter(condition).sort(["chromosome", "position", "probe_id"])

    if selected.height == 0:
        logger.warning("probe_selection_empty", gene=gene, exact=exact)
        raise EmptySelectionError(gene)

    logger.info(
        "probe_selection_complete",
        gene=gene,
        exact=exact,
        probe_count=selected.height,
        chromosomes=selected["chromosome"].unique().sort().to_list(),
    )
    return selected


def probe_locus(probes: pl.DataFrame, flank: int = 0, gene: str | None = None) -> GenomicWindow:
    """Span of the selected probes on their dominant chromosome.

    Substring matches can pull in probes of similarly named genes on other
    chromosomes (TP53 also matches TP53BP1). When ``gene`` is given, probes
    whose ';'-separated symbols equal it exactly are used if there are any;
    otherwise all probes count. The chromosome carrying the most of them
    wins (ties broken alphabetically).

    Args:
        probes: Output of select_gene_probes
        flank: Bases added on each side of the span
        gene: Queried symbol, used to prefer exact symbol matches

    Returns:
        GenomicWindow covering the probes plus flank
    """
    if probes.height == 0:
        raise ValueError("Cannot derive a locus from an empty probe set")

    if gene is not None and gene.strip():
        exact = probes.filter(
            pl.col("gene_names")
            .fill_null("")
            .str.to_uppercase()
            .str.split(";")
            .list.contains(pl.lit(gene.strip().upper()))
        )
        if exact.height > 0:
            probes = exact

    counts = (
        probes.group_by("chromosome")
        .len()
        .sort(["len", "chromosome"], descending=[True, False])
    )
    chromosome = counts["chromosome"][0]
    on_chrom = probes.filter(pl.col("chromosome") == chromosome)

    start = max(int(on_chrom["position"].min()) - flank, 0)
    end = int(on_chrom["position"].max()) + flank + 1
    return GenomicWindow(chromosome=chromosome, start=start, end=end)


def iter_probe_records(probes: pl.DataFrame) -> Iterator[ProbeRecord]:
    """Yield validated ProbeRecord objects for each row."""
    for row in probes.iter_rows(named=True):
        yield ProbeRecord.model_validate(row)
