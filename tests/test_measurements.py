"""Unit tests for beta matrix loading and measurement mapping."""

import polars as pl
import pytest

from methtracks.measurements import (
    MEASUREMENT_COLUMNS,
    load_beta_matrix,
    map_measurements,
    summarize_by_probe,
)
from methtracks.tracks import GenomicWindow

HOXD1_WINDOW = GenomicWindow(chromosome="chr2", start=177048306, end=177060440)


@pytest.fixture
def betas():
    return pl.DataFrame({
        "probe_id": ["cg00000001", "cg00000002", "cg00000004", "cg00000006", "cg99999999"],
        "S1": [0.10, 0.05, 0.50, 0.30, 0.40],
        "S2": [0.20, None, 0.55, 0.35, 0.45],
    })


# ============================================================================
# Loading
# ============================================================================


def test_load_beta_matrix(betas_csv):
    """Test that the first column becomes probe_id and samples become floats."""
    df = load_beta_matrix(betas_csv)

    assert df.columns == ["probe_id", "S1", "S2"]
    assert df.schema["S1"] == pl.Float64
    assert df.height == 7
    assert df.filter(pl.col("probe_id") == "cg00000002")["S2"][0] is None


def test_load_beta_matrix_tsv(tmp_path):
    """Test tab-separated matrices with an arbitrary id header."""
    path = tmp_path / "betas.tsv"
    path.write_text("probe\tS1\ncg00000001\t0.5\ncg00000002\tNaN\n")

    df = load_beta_matrix(path)

    assert df["probe_id"].to_list() == ["cg00000001", "cg00000002"]
    assert df["S1"].to_list() == [0.5, None]


def test_load_beta_matrix_no_samples(tmp_path):
    """Test that a matrix with only an id column is rejected."""
    path = tmp_path / "betas.csv"
    path.write_text("ID_REF\ncg00000001\n")

    with pytest.raises(ValueError, match="no sample columns"):
        load_beta_matrix(path)


def test_load_beta_matrix_missing(tmp_path):
    """Test that an absent matrix raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_beta_matrix(tmp_path / "missing.csv")


# ============================================================================
# Mapping
# ============================================================================


def test_map_measurements_inner_join(betas, window_probes):
    """Test that only probes present on both sides and inside the window remain."""
    result = map_measurements(betas, window_probes, HOXD1_WINDOW)

    assert result.columns == MEASUREMENT_COLUMNS
    # cg00000004 lies outside the window, cg00000006 on chr7, cg99999999 is unannotated
    assert result["probe_id"].unique().sort().to_list() == ["cg00000001", "cg00000002"]
    # cg00000002 has no S2 value
    assert result.height == 3


def test_map_measurements_contract(betas, window_probes):
    """Test that every output row matches a probe coordinate and an input beta."""
    result = map_measurements(betas, window_probes, HOXD1_WINDOW)

    long = betas.unpivot(index="probe_id", variable_name="sample", value_name="beta")
    for row in result.iter_rows(named=True):
        probe = window_probes.filter(pl.col("probe_id") == row["probe_id"]).row(0, named=True)
        assert (row["chromosome"], row["position"]) == (probe["chromosome"], probe["position"])
        assert HOXD1_WINDOW.contains(row["position"])
        source = long.filter(
            (pl.col("probe_id") == row["probe_id"]) & (pl.col("sample") == row["sample"])
        )
        assert source["beta"][0] == row["beta"]


def test_map_measurements_sorted(betas, window_probes):
    """Test ordering by position, probe and sample."""
    result = map_measurements(betas, window_probes, HOXD1_WINDOW)

    assert result.select(["probe_id", "sample"]).rows() == [
        ("cg00000001", "S1"),
        ("cg00000001", "S2"),
        ("cg00000002", "S1"),
    ]


def test_map_measurements_idempotent(betas, window_probes):
    """Test that identical inputs give identical outputs."""
    first = map_measurements(betas, window_probes, HOXD1_WINDOW)
    second = map_measurements(betas, window_probes, HOXD1_WINDOW)

    assert first.equals(second)


def test_map_measurements_no_overlap(window_probes):
    """Test that disjoint probe sets give an empty, well-formed table."""
    betas = pl.DataFrame({"probe_id": ["cg12345678"], "S1": [0.5]})

    result = map_measurements(betas, window_probes, HOXD1_WINDOW)

    assert result.height == 0
    assert result.columns == MEASUREMENT_COLUMNS


def test_summarize_by_probe(betas, window_probes):
    """Test per-probe mean/min/max and sample counts."""
    measurements = map_measurements(betas, window_probes, HOXD1_WINDOW)

    summary = summarize_by_probe(measurements)

    assert summary["probe_id"].to_list() == ["cg00000001", "cg00000002"]
    assert summary["mean_beta"].to_list() == pytest.approx([0.15, 0.05])
    assert summary["min_beta"].to_list() == pytest.approx([0.10, 0.05])
    assert summary["max_beta"].to_list() == pytest.approx([0.20, 0.05])
    assert summary["sample_count"].to_list() == [2, 1]
