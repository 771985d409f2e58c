"""Tests for persistence layer (DuckDB store and provenance tracking)."""

import json

import polars as pl
import pytest

from methtracks.persistence import PipelineStore, ProvenanceTracker


# ============================================================================
# DuckDB Store Tests
# ============================================================================

def test_store_creates_database(tmp_path):
    """Test that PipelineStore creates .duckdb file at specified path."""
    db_path = tmp_path / "nested" / "test.duckdb"
    assert not db_path.exists()

    store = PipelineStore(db_path)
    store.close()

    assert db_path.exists()


def test_save_and_load_polars(tmp_path):
    """Test saving and loading polars DataFrame."""
    store = PipelineStore(tmp_path / "test.duckdb")

    df = pl.DataFrame({
        "probe_id": ["cg00000001", "cg00000002", "cg00000003"],
        "chromosome": ["chr2", "chr2", "chr2"],
        "position": [177053000, 177053400, 177054500],
    })

    store.save_dataframe(df, "probes", "test probes")
    loaded = store.load_dataframe("probes")

    assert loaded.shape == df.shape
    assert loaded.columns == df.columns
    assert loaded["probe_id"].to_list() == df["probe_id"].to_list()
    assert loaded["position"].to_list() == df["position"].to_list()

    store.close()


def test_save_list_columns(tmp_path):
    """Test that exon list columns survive a round trip."""
    store = PipelineStore(tmp_path / "test.duckdb")

    df = pl.DataFrame({
        "transcript": ["NM_024501"],
        "exon_starts": [[177053306, 177054979]],
    })
    store.save_dataframe(df, "gene_models")

    loaded = store.load_dataframe("gene_models")
    assert loaded["exon_starts"].to_list() == [[177053306, 177054979]]

    store.close()


def test_save_rejects_non_polars(tmp_path):
    """Test that only polars frames are accepted."""
    store = PipelineStore(tmp_path / "test.duckdb")

    with pytest.raises(ValueError, match="polars"):
        store.save_dataframe({"col": [1]}, "bad")

    store.close()


def test_invalid_table_name(tmp_path):
    """Test that table names are restricted to SQL identifiers."""
    store = PipelineStore(tmp_path / "test.duckdb")
    df = pl.DataFrame({"col": [1]})

    with pytest.raises(ValueError, match="Invalid table name"):
        store.save_dataframe(df, "probes; DROP TABLE x")

    store.close()


def test_checkpoint_lifecycle(tmp_path):
    """Test checkpoint lifecycle: not has -> save -> has."""
    store = PipelineStore(tmp_path / "test.duckdb")

    df = pl.DataFrame({"col": [1, 2, 3]})

    assert not store.has_checkpoint("test_table")

    store.save_dataframe(df, "test_table", "test")
    assert store.has_checkpoint("test_table")

    assert not store.has_checkpoint("other_table")
    assert store.load_dataframe("other_table") is None

    store.close()


def test_list_checkpoints(tmp_path):
    """Test listing checkpoints returns metadata ordered by name."""
    store = PipelineStore(tmp_path / "test.duckdb")

    for name, rows in (("measurements", 4), ("gene_models", 1), ("probes", 3)):
        store.save_dataframe(pl.DataFrame({"col": list(range(rows))}), name, f"{name} table")

    checkpoints = store.list_checkpoints()

    assert [c["table_name"] for c in checkpoints] == ["gene_models", "measurements", "probes"]
    assert [c["row_count"] for c in checkpoints] == [1, 4, 3]
    assert checkpoints[0]["description"] == "gene_models table"

    store.close()


def test_append_mode(tmp_path):
    """Test that replace=False appends rows."""
    store = PipelineStore(tmp_path / "test.duckdb")
    df = pl.DataFrame({"col": [1, 2]})

    store.save_dataframe(df, "rows")
    store.save_dataframe(df, "rows", replace=False)

    assert store.load_dataframe("rows").height == 4

    store.close()


def test_export_parquet(tmp_path):
    """Test Parquet export."""
    store = PipelineStore(tmp_path / "test.duckdb")

    df = pl.DataFrame({
        "probe_id": ["cg00000001", "cg00000002"],
        "beta": [0.1, 0.9],
    })
    store.save_dataframe(df, "measurements")

    parquet_path = tmp_path / "export" / "measurements.parquet"
    store.export_parquet("measurements", parquet_path)

    assert parquet_path.exists()
    assert pl.read_parquet(parquet_path)["beta"].to_list() == [0.1, 0.9]

    store.close()


def test_export_parquet_quoted_path(tmp_path):
    """Test Parquet export to a directory name containing a quote."""
    with PipelineStore(tmp_path / "test.duckdb") as store:
        store.save_dataframe(pl.DataFrame({"col": [1, 2]}), "rows")
        parquet_path = tmp_path / "o'brien" / "rows.parquet"
        store.export_parquet("rows", parquet_path)

    assert pl.read_parquet(parquet_path)["col"].to_list() == [1, 2]


def test_context_manager(tmp_path):
    """Test context manager support."""
    db_path = tmp_path / "test.duckdb"

    with PipelineStore(db_path) as store:
        store.save_dataframe(pl.DataFrame({"col": [1, 2, 3]}), "test_table")
        assert store.has_checkpoint("test_table")

    assert store.conn is None

    with PipelineStore(db_path) as store2:
        assert store2.load_dataframe("test_table")["col"].to_list() == [1, 2, 3]


# ============================================================================
# Provenance Tests
# ============================================================================

def test_provenance_metadata_structure(test_config):
    """Test that provenance metadata has all required keys."""
    tracker = ProvenanceTracker("0.1.0", test_config)

    metadata = tracker.create_metadata()

    assert set(metadata) == {
        "pipeline_version",
        "data_sources",
        "config_hash",
        "created_at",
        "processing_steps",
    }
    assert metadata["pipeline_version"] == "0.1.0"
    assert metadata["config_hash"] == test_config.config_hash()
    assert metadata["data_sources"]["genome"]["build"] == "hg19"
    assert metadata["data_sources"]["ucsc_api"] == "https://api.genome.ucsc.edu"


def test_provenance_records_steps(test_config):
    """Test recording processing steps with details."""
    tracker = ProvenanceTracker("0.1.0", test_config)

    tracker.record_step("select_gene_probes", {"gene": "HOXD1", "probe_count": 3})
    tracker.record_step("render")

    steps = tracker.processing_steps
    assert [s["step_name"] for s in steps] == ["select_gene_probes", "render"]
    assert steps[0]["details"] == {"gene": "HOXD1", "probe_count": 3}
    assert "details" not in steps[1]
    assert "timestamp" in steps[0]


def test_provenance_sidecar(tmp_path, test_config):
    """Test sidecar JSON creation next to an output file."""
    tracker = ProvenanceTracker("0.1.0", test_config)
    tracker.record_step("render", {"window": "chr2:1-2"})

    sidecar = tracker.save_sidecar(tmp_path / "out" / "HOXD1_hg19.json")

    assert sidecar == tmp_path / "out" / "HOXD1_hg19.provenance.json"
    with open(sidecar) as f:
        data = json.load(f)
    assert data["processing_steps"][0]["step_name"] == "render"
    assert data["pipeline_version"] == "0.1.0"


def test_provenance_store_round_trip(tmp_path, test_config):
    """Test saving provenance to the store and reading it back."""
    tracker = ProvenanceTracker("0.1.0", test_config)
    tracker.record_step("save_snapshot")

    with PipelineStore(tmp_path / "test.duckdb") as store:
        assert ProvenanceTracker.load_from_store(store) is None

        tracker.save_to_store(store)
        loaded = ProvenanceTracker.load_from_store(store)

    assert loaded["config_hash"] == test_config.config_hash()
    assert loaded["processing_steps"][0]["step_name"] == "save_snapshot"


def test_provenance_from_config_uses_package_version(test_config):
    """Test that the package version is used by default."""
    from methtracks import __version__

    tracker = ProvenanceTracker.from_config(test_config)

    assert tracker.pipeline_version == __version__
