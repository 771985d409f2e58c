"""Data models for genomic windows, gene models and renderable tracks."""

from dataclasses import dataclass, field

import polars as pl
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from methtracks.config.schema import TrackStyle

# Track kinds in default display order
TRACK_KINDS = [
    "ideogram",
    "axis",
    "gene_model",
    "cpg_islands",
    "snps",
    "probes",
    "methylation",
]

# Columns of the gene model table produced by parse_gene_models
GENE_MODEL_COLUMNS = [
    "transcript",
    "gene_symbol",
    "chromosome",
    "strand",
    "tx_start",
    "tx_end",
    "cds_start",
    "cds_end",
    "exon_starts",
    "exon_ends",
]


class GenomicWindow(BaseModel):
    """Chromosome range being visualised.

    Attributes:
        chromosome: Chromosome in UCSC form (e.g., chr2)
        start: Range start (>= 0)
        end: Range end (> start)
    """

    model_config = ConfigDict(frozen=True)

    chromosome: str
    start: int
    end: int

    @model_validator(mode="after")
    def check_bounds(self) -> "GenomicWindow":
        if self.start < 0:
            raise ValueError(f"Window start must be >= 0, got {self.start}")
        if self.start >= self.end:
            raise ValueError(
                f"Window start must be < end, got {self.start} >= {self.end}"
            )
        return self

    @property
    def width(self) -> int:
        return self.end - self.start

    def contains(self, position: int) -> bool:
        return self.start <= position <= self.end

    def __str__(self) -> str:
        return f"{self.chromosome}:{self.start:,}-{self.end:,}"


class GeneModelRecord(BaseModel):
    """One transcript from a UCSC genePred table (refGene and friends).

    Built from UCSC JSON rows via from_ucsc. Coordinates are 0-based
    half-open as delivered.

    Attributes:
        transcript: RefSeq accession (UCSC ``name``)
        gene_symbol: Gene symbol (UCSC ``name2``)
        chromosome: Chromosome (UCSC ``chrom``)
        strand: "+" or "-"
        tx_start, tx_end: Transcript bounds
        cds_start, cds_end: Coding bounds (equal for non-coding transcripts)
        exon_starts, exon_ends: Exon bounds parsed from comma-terminated lists
    """

    transcript: str = ""
    gene_symbol: str
    chromosome: str
    strand: str
    tx_start: int
    tx_end: int
    cds_start: int
    cds_end: int
    exon_starts: list[int]
    exon_ends: list[int]

    @field_validator("exon_starts", "exon_ends", mode="before")
    @classmethod
    def parse_exon_list(cls, v):
        if isinstance(v, str):
            return [int(x) for x in v.split(",") if x.strip()]
        return v

    @model_validator(mode="after")
    def check_exons(self) -> "GeneModelRecord":
        if len(self.exon_starts) != len(self.exon_ends):
            raise ValueError(
                f"{self.transcript}: {len(self.exon_starts)} exon starts "
                f"but {len(self.exon_ends)} exon ends"
            )
        return self

    @property
    def is_coding(self) -> bool:
        return self.cds_start < self.cds_end

    @classmethod
    def from_ucsc(cls, row: dict) -> "GeneModelRecord":
        """Build a record from a UCSC genePred JSON row."""
        return cls(
            transcript=row.get("name", ""),
            gene_symbol=row.get("name2") or row.get("name", ""),
            chromosome=row["chrom"],
            strand=row["strand"],
            tx_start=row["txStart"],
            tx_end=row["txEnd"],
            cds_start=row["cdsStart"],
            cds_end=row["cdsEnd"],
            exon_starts=row["exonStarts"],
            exon_ends=row["exonEnds"],
        )


@dataclass
class Track:
    """A horizontal layer of the figure.

    Attributes:
        name: Title shown beside the panel
        kind: One of TRACK_KINDS; selects the drawing routine
        features: Feature table with at least ``start`` and ``end`` columns
            (empty for the axis track)
        style: Fill colour, stacking mode and relative height
    """

    name: str
    kind: str
    features: pl.DataFrame = field(default_factory=pl.DataFrame)
    style: TrackStyle = field(default_factory=TrackStyle)

    def __post_init__(self):
        if self.kind not in TRACK_KINDS:
            raise ValueError(f"Unknown track kind '{self.kind}'; expected one of {TRACK_KINDS}")

    def in_window(self, window: GenomicWindow) -> pl.DataFrame:
        """Features overlapping a window (all features for column-less tracks)."""
        if self.features.height == 0 or "start" not in self.features.columns:
            return self.features
        mask = (pl.col("end") >= window.start) & (pl.col("start") <= window.end)
        if "chromosome" in self.features.columns:
            mask = mask & (pl.col("chromosome") == window.chromosome)
        return self.features.filter(mask)
