"""Tests for TSV/Parquet table writers."""

import polars as pl
import pytest
import yaml

from methtracks.output.writers import output_basename, write_gene_tables, write_table
from methtracks.pipeline import MEASUREMENT_SCHEMA, GeneViewResult
from methtracks.tracks import GenomicWindow, parse_gene_models

from conftest import HOXD1_ROW


@pytest.fixture
def gene_models():
    return parse_gene_models([HOXD1_ROW])


def test_write_table_creates_files(gene_models, tmp_path):
    """Test that TSV, Parquet and the YAML sidecar are written."""
    paths = write_table(gene_models, tmp_path / "tables", "HOXD1_hg19_gene_models",
                        metadata={"gene": "HOXD1"})

    assert set(paths) == {"tsv", "parquet", "provenance"}
    for path in paths.values():
        assert path.exists()


def test_write_table_flattens_lists_in_tsv(gene_models, tmp_path):
    """Test that exon lists are comma-joined in TSV but kept in Parquet."""
    paths = write_table(gene_models, tmp_path, "models")

    tsv = pl.read_csv(paths["tsv"], separator="\t", infer_schema_length=0)
    assert tsv["exon_starts"][0] == "177053306,177054979"

    parquet = pl.read_parquet(paths["parquet"])
    assert parquet["exon_starts"].to_list() == [[177053306, 177054979]]


def test_write_table_sidecar_contents(gene_models, tmp_path):
    """Test the provenance sidecar fields."""
    paths = write_table(gene_models, tmp_path, "models", metadata={"gene": "HOXD1"})

    with open(paths["provenance"]) as f:
        sidecar = yaml.safe_load(f)

    assert sidecar["row_count"] == 1
    assert sidecar["column_names"] == gene_models.columns
    assert sidecar["output_files"] == ["models.tsv", "models.parquet"]
    assert sidecar["gene"] == "HOXD1"
    assert "generated_at" in sidecar


def test_write_gene_tables(gene_models, tmp_path):
    """Test the per-gene table set."""
    window = GenomicWindow(chromosome="chr2", start=177048306, end=177060440)
    result = GeneViewResult(
        gene="HOXD1",
        genome="hg19",
        probes=pl.DataFrame({"probe_id": ["cg00000001"], "position": [177053000]}),
        gene_models=gene_models,
        window=window,
        promoter=GenomicWindow(chromosome="chr2", start=177051306, end=177055306),
        tracks=[],
        measurements=pl.DataFrame(schema=MEASUREMENT_SCHEMA),
    )

    written = write_gene_tables(result, tmp_path)

    assert set(written) == {"probes", "gene_models", "measurements"}
    assert written["probes"]["tsv"] == tmp_path / "HOXD1_hg19_probes.tsv"
    assert pl.read_parquet(written["measurements"]["parquet"]).height == 0

    with open(written["gene_models"]["provenance"]) as f:
        sidecar = yaml.safe_load(f)
    assert sidecar["window"] == {"chromosome": "chr2", "start": 177048306, "end": 177060440}


def test_output_basename_replaces_unsafe_characters():
    """Test file name stems for gene queries with separators and spaces."""
    assert output_basename("HOXD1", "hg19") == "HOXD1_hg19"
    assert output_basename("HOXD1/AS1", "hg19") == "HOXD1_AS1_hg19"
    assert output_basename("../etc passwd", "hg38") == ".._etc_passwd_hg38"
