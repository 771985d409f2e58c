"""Gene view pipeline: probes -> window -> tracks -> measurements.

All state a run needs (configuration, UCSC client, loaded annotation) lives
on a GeneViewContext passed in explicitly; run_gene_view performs no
rendering and touches nothing but the UCSC API.
"""

from dataclasses import dataclass, field
from pathlib import Path

import polars as pl
import structlog

from methtracks.annotation import load_probe_annotation, probe_locus, select_gene_probes
from methtracks.api_clients.ucsc import UCSCClient
from methtracks.config.schema import PipelineConfig
from methtracks.measurements import MEASUREMENT_COLUMNS, load_beta_matrix, map_measurements
from methtracks.persistence.provenance import ProvenanceTracker
from methtracks.tracks import (
    GenomicWindow,
    Track,
    compute_gene_window,
    fetch_annotation_tracks,
    fetch_cytobands,
    fetch_gene_models,
    filter_gene_models,
    promoter_window,
)

logger = structlog.get_logger()

MEASUREMENT_SCHEMA = {
    "probe_id": pl.Utf8,
    "chromosome": pl.Utf8,
    "position": pl.Int64,
    "sample": pl.Utf8,
    "beta": pl.Float64,
}


@dataclass
class GeneViewContext:
    """Explicit run context.

    Attributes:
        config: Validated pipeline configuration
        client: UCSC REST client
        annotation: Full probe annotation table
    """

    config: PipelineConfig
    client: UCSCClient
    annotation: pl.DataFrame

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "GeneViewContext":
        """Load the annotation and build the UCSC client.

        Raises:
            FileNotFoundError: If config.annotation_path does not exist
        """
        return cls(
            config=config,
            client=UCSCClient.from_config(config),
            annotation=load_probe_annotation(config.annotation_path),
        )


@dataclass
class GeneViewResult:
    """Everything derived for one gene, ready to render or snapshot."""

    gene: str
    genome: str
    probes: pl.DataFrame
    gene_models: pl.DataFrame
    window: GenomicWindow
    promoter: GenomicWindow
    tracks: list[Track]
    measurements: pl.DataFrame = field(
        default_factory=lambda: pl.DataFrame(schema=MEASUREMENT_SCHEMA)
    )
    provenance: dict = field(default_factory=dict)

    def track(self, kind: str) -> Track | None:
        """First track of the given kind, if present."""
        for t in self.tracks:
            if t.kind == kind:
                return t
        return None


def window_probe_features(
    annotation: pl.DataFrame,
    window: GenomicWindow,
    selected_ids: list[str],
) -> pl.DataFrame:
    """Probe positions inside a window as track features.

    ``selected`` marks probes annotated to the queried gene.
    """
    return (
        annotation.filter(
            (pl.col("chromosome") == window.chromosome)
            & (pl.col("position") >= window.start)
            & (pl.col("position") <= window.end)
        )
        .select(
            "chromosome",
            pl.col("position").alias("start"),
            pl.col("position").alias("end"),
            pl.col("probe_id").alias("name"),
            "gene_group",
            "island_relation",
            pl.col("probe_id").is_in(selected_ids).alias("selected"),
        )
        .sort(["start", "name"])
    )


def methylation_features(measurements: pl.DataFrame) -> pl.DataFrame:
    """Measurements with start/end columns for the methylation track."""
    return measurements.with_columns(
        pl.col("position").alias("start"),
        pl.col("position").alias("end"),
    )


def run_gene_view(
    ctx: GeneViewContext,
    gene: str,
    betas: pl.DataFrame | Path | str | None = None,
    exact: bool = False,
    provenance: ProvenanceTracker | None = None,
) -> GeneViewResult:
    """Derive probes, windows, tracks and measurements for one gene.

    Steps:
    1. Select probes annotated to the gene
    2. Fetch gene models around the probes and keep the gene's transcripts
    3. Compute the padded gene window and the promoter close-up window
    4. Fetch cytoband, gene model, CpG island and SNP tracks for the window
    5. Join beta values (if given) to probe coordinates in the window

    Args:
        ctx: Run context
        gene: Gene symbol
        betas: Beta matrix (DataFrame or path); methylation track omitted if None
        exact: Match whole gene symbols when selecting probes
        provenance: Tracker to record steps on (one is created if None)

    Returns:
        GeneViewResult

    Raises:
        EmptySelectionError: If the gene matches no probes or no transcripts
        requests.HTTPError, UCSCError: On remote fetch failures
    """
    config = ctx.config
    genome = config.genome
    styles = config.styles
    provenance = provenance or ProvenanceTracker.from_config(config)

    logger.info("gene_view_start", gene=gene, genome=genome.build, exact=exact)

    probes = select_gene_probes(ctx.annotation, gene, exact=exact)
    provenance.record_step("select_gene_probes", {
        "gene": gene,
        "exact": exact,
        "probe_count": probes.height,
    })

    locus = probe_locus(probes, flank=config.window.locus_flank, gene=gene)
    candidates = fetch_gene_models(ctx.client, genome.build, locus, genome.gene_model)
    models = filter_gene_models(candidates, gene)
    window = compute_gene_window(models, padding=config.window.padding)
    promoter = promoter_window(models, flank=config.window.promoter_flank, clip_to=window)
    provenance.record_step("compute_gene_window", {
        "locus": str(locus),
        "transcripts": models["transcript"].to_list(),
        "window": window.model_dump(),
        "promoter": promoter.model_dump(),
        "padding": config.window.padding,
    })

    cytobands = fetch_cytobands(ctx.client, genome.build, window.chromosome, genome.cytobands)
    annotation_tracks = fetch_annotation_tracks(ctx.client, genome, styles, window)
    provenance.record_step("fetch_annotation_tracks", {
        "genome": genome.build,
        "feature_counts": {t.kind: t.features.height for t in annotation_tracks},
    })

    probe_features = window_probe_features(
        ctx.annotation, window, probes["probe_id"].to_list()
    )

    tracks = [
        Track(window.chromosome, "ideogram", cytobands, styles.for_kind("ideogram")),
        Track(genome.build, "axis", pl.DataFrame(), styles.for_kind("axis")),
        *annotation_tracks,
        Track("Array probes", "probes", probe_features, styles.for_kind("probes")),
    ]

    measurements = pl.DataFrame(schema=MEASUREMENT_SCHEMA)
    if betas is not None:
        if not isinstance(betas, pl.DataFrame):
            betas = load_beta_matrix(betas)
        measurements = map_measurements(betas, ctx.annotation, window).select(MEASUREMENT_COLUMNS)
        tracks.append(
            Track("Beta value", "methylation", methylation_features(measurements),
                  styles.for_kind("methylation"))
        )
        provenance.record_step("map_measurements", {
            "row_count": measurements.height,
            "probe_count": measurements["probe_id"].n_unique(),
            "sample_count": measurements["sample"].n_unique(),
        })

    logger.info(
        "gene_view_complete",
        gene=gene,
        window=str(window),
        track_count=len(tracks),
        measurement_rows=measurements.height,
    )

    return GeneViewResult(
        gene=gene,
        genome=genome.build,
        probes=probes,
        gene_models=models,
        window=window,
        promoter=promoter,
        tracks=tracks,
        measurements=measurements,
        provenance=provenance.create_metadata(),
    )
