"""Pydantic models for pipeline configuration."""

import hashlib
import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class GenomeConfig(BaseModel):
    """Genome build and UCSC table names for annotation tracks."""

    build: str = Field(
        default="hg19",
        min_length=1,
        description="UCSC genome assembly identifier",
    )
    gene_model: str = Field(
        default="refGene",
        description="UCSC table holding gene models (genePred format)",
    )
    cpg_islands: str = Field(
        default="cpgIslandExt",
        description="UCSC table holding CpG island intervals",
    )
    snps: str = Field(
        default="snp147Common",
        description="UCSC table holding common SNPs",
    )
    cytobands: str = Field(
        default="cytoBandIdeo",
        description="UCSC table holding chromosome bands for the ideogram",
    )


class WindowConfig(BaseModel):
    """Coordinate window derivation settings."""

    padding: int = Field(
        default=5000,
        ge=0,
        description="Bases added on each side of the gene (txStart / cdsEnd)",
    )
    promoter_flank: int = Field(
        default=2000,
        gt=0,
        description="Bases on each side of the TSS for the promoter close-up",
    )
    locus_flank: int = Field(
        default=100000,
        ge=0,
        description="Bases around the selected probes searched for gene models",
    )


class APIConfig(BaseModel):
    """Configuration for the UCSC REST API client."""

    base_url: str = Field(
        default="https://api.genome.ucsc.edu",
        description="UCSC Genome Browser REST API root",
    )
    rate_limit_per_second: int = Field(
        default=5,
        ge=1,
        description="Maximum API requests per second",
    )
    max_retries: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum retry attempts for failed requests",
    )
    cache_ttl_seconds: int = Field(
        default=86400,
        ge=0,
        description="Cache time-to-live in seconds (0 = infinite)",
    )
    timeout_seconds: int = Field(
        default=30,
        ge=1,
        description="Request timeout in seconds",
    )
    max_items: int = Field(
        default=100000,
        ge=1,
        description="maxItemsOutput passed to getData/track",
    )


class TrackStyle(BaseModel):
    """Visual style of a single track."""

    fill: str = Field(default="#8282d2", description="Feature fill colour")
    stacking: Literal["dense", "squish", "full"] = Field(
        default="squish",
        description="dense: one row; squish/full: non-overlapping rows (full adds labels)",
    )
    height: float = Field(
        default=1.0,
        gt=0.0,
        description="Relative panel height",
    )


class TrackStyles(BaseModel):
    """Per-track styles, keyed by track kind."""

    ideogram: TrackStyle = TrackStyle(fill="#d62728", stacking="dense", height=0.5)
    axis: TrackStyle = TrackStyle(fill="#333333", stacking="dense", height=0.5)
    gene_model: TrackStyle = TrackStyle(fill="#8282d2", stacking="full", height=1.5)
    cpg_islands: TrackStyle = TrackStyle(fill="#b8860b", stacking="dense", height=0.5)
    snps: TrackStyle = TrackStyle(fill="#e74c3c", stacking="dense", height=0.5)
    probes: TrackStyle = TrackStyle(fill="#2e8b57", stacking="dense", height=0.5)
    methylation: TrackStyle = TrackStyle(fill="#1f77b4", stacking="dense", height=2.0)

    def for_kind(self, kind: str) -> TrackStyle:
        """Return the style configured for a track kind."""
        if kind not in type(self).model_fields:
            raise ValueError(f"No style for track kind: {kind}")
        return getattr(self, kind)


class DisplayConfig(BaseModel):
    """Figure-level display options."""

    background_panel: str = Field(
        default="#ffffff",
        description="Background colour of the data panels",
    )
    background_title: str = Field(
        default="#4a5a7a",
        description="Background colour of the track title strips",
    )
    reverse_strand: bool = Field(
        default=False,
        description="Draw coordinates right-to-left",
    )
    dpi: int = Field(default=150, ge=50, le=1200)
    width: float = Field(default=12.0, gt=0.0, description="Figure width in inches")


class PipelineConfig(BaseModel):
    """Main pipeline configuration."""

    data_dir: Path = Field(
        ...,
        description="Directory holding input tables",
    )
    cache_dir: Path = Field(
        ...,
        description="Directory for API response caching",
    )
    annotation_path: Path = Field(
        ...,
        description="Illumina probe annotation table (CSV/TSV)",
    )
    output_dir: Path = Field(
        default=Path("output"),
        description="Directory for rendered figures and tables",
    )
    genome: GenomeConfig = Field(
        default_factory=GenomeConfig,
        description="Genome build and track tables",
    )
    window: WindowConfig = Field(
        default_factory=WindowConfig,
        description="Window derivation settings",
    )
    api: APIConfig = Field(
        default_factory=APIConfig,
        description="API client configuration",
    )
    styles: TrackStyles = Field(
        default_factory=TrackStyles,
        description="Per-track styles",
    )
    display: DisplayConfig = Field(
        default_factory=DisplayConfig,
        description="Figure display options",
    )

    @field_validator("data_dir", "cache_dir")
    @classmethod
    def create_directory(cls, v: Path) -> Path:
        """Create directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values,
        useful for tracking config changes between runs.
        """
        config_dict = self.model_dump(mode="python")
        config_json = json.dumps(
            config_dict,
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()
