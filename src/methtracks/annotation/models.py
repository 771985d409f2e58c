"""Data models for Illumina methylation-array probe annotation."""

from pydantic import BaseModel

# Table name for DuckDB storage
PROBE_TABLE_NAME = "probe_annotation"

# Column name variants across Illumina manifest releases and minfi exports.
# Illumina manifest CSVs use IlmnID / CHR / MAPINFO; minfi annotation exports
# use Name / chr / pos.
COLUMN_VARIANTS = {
    "probe_id": ["Name", "IlmnID", "probe_id", "ID"],
    "chromosome": ["chr", "CHR", "chromosome", "Chromosome"],
    "position": ["pos", "MAPINFO", "position", "Position"],
    "gene_names": ["UCSC_RefGene_Name", "gene_names", "GeneName"],
    "gene_group": ["UCSC_RefGene_Group", "gene_group"],
    "transcript_accessions": ["UCSC_RefGene_Accession", "transcript_accessions"],
    "island_relation": [
        "Relation_to_Island",
        "Relation_to_UCSC_CpG_Island",
        "island_relation",
    ],
}

REQUIRED_COLUMNS = ["probe_id", "chromosome", "position"]


class EmptySelectionError(ValueError):
    """A gene query matched no probes or no gene-model rows."""

    def __init__(self, gene: str, what: str = "probes"):
        self.gene = gene
        self.what = what
        super().__init__(f"Gene '{gene}' matched zero {what}")


class ProbeRecord(BaseModel):
    """Annotation for a single array probe.

    Attributes:
        probe_id: Array probe identifier (e.g., cg00000029)
        chromosome: Chromosome in UCSC form (e.g., chr2)
        position: 1-based genomic coordinate of the CpG
        gene_names: ';'-separated RefGene symbols (empty for intergenic probes)
        gene_group: ';'-separated genomic context (TSS1500, TSS200, 5'UTR, 1stExon, Body, 3'UTR)
        transcript_accessions: ';'-separated RefSeq accessions
        island_relation: Relation to CpG island (Island, N_Shore, S_Shelf, OpenSea, ...)
    """

    probe_id: str
    chromosome: str
    position: int
    gene_names: str = ""
    gene_group: str = ""
    transcript_accessions: str = ""
    island_relation: str | None = None

    @property
    def gene_symbols(self) -> list[str]:
        """Distinct gene symbols in annotation order."""
        seen: list[str] = []
        for symbol in self.gene_names.split(";"):
            if symbol and symbol not in seen:
                seen.append(symbol)
        return seen
