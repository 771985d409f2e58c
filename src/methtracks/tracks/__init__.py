"""Genome annotation tracks: windows, gene models, UCSC fetchers."""

from methtracks.tracks.models import (
    GENE_MODEL_COLUMNS,
    TRACK_KINDS,
    GeneModelRecord,
    GenomicWindow,
    Track,
)
from methtracks.tracks.fetch import (
    fetch_annotation_tracks,
    fetch_cpg_islands,
    fetch_cytobands,
    fetch_gene_models,
    fetch_snps,
    gene_model_features,
    parse_gene_models,
    parse_intervals,
)
from methtracks.tracks.transform import (
    compute_gene_window,
    filter_gene_models,
    promoter_window,
    transcription_start_site,
)

__all__ = [
    "GENE_MODEL_COLUMNS",
    "TRACK_KINDS",
    "GeneModelRecord",
    "GenomicWindow",
    "Track",
    "fetch_annotation_tracks",
    "fetch_cpg_islands",
    "fetch_cytobands",
    "fetch_gene_models",
    "fetch_snps",
    "gene_model_features",
    "parse_gene_models",
    "parse_intervals",
    "compute_gene_window",
    "filter_gene_models",
    "promoter_window",
    "transcription_start_site",
]
