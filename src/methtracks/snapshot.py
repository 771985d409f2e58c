"""Save and reload the full state of a gene view run.

A snapshot is a DuckDB file holding every table of a GeneViewResult, plus a
``_view`` table (gene, genome, windows) and a ``_tracks`` table (track order
and styles). Reloading needs neither the annotation file nor the network.
"""

from pathlib import Path

import polars as pl
import structlog

from methtracks.config.schema import TrackStyle
from methtracks.output.writers import output_basename
from methtracks.persistence import PipelineStore, ProvenanceTracker
from methtracks.pipeline import MEASUREMENT_SCHEMA, GeneViewResult
from methtracks.tracks.models import GenomicWindow, Track

logger = structlog.get_logger()


def _track_table(index: int, kind: str) -> str:
    return f"track_{index:02d}_{kind}"


def save_snapshot(
    result: GeneViewResult,
    path: Path,
    provenance: ProvenanceTracker | None = None,
) -> Path:
    """
    Write a GeneViewResult to a DuckDB snapshot, replacing earlier contents.

    Args:
        result: Run state to persist
        path: Snapshot file (created with parent directories)
        provenance: Optional tracker whose metadata is stored alongside

    Returns:
        Path of the snapshot file
    """
    path = Path(path)
    if path.exists():
        path.unlink()

    with PipelineStore(path) as store:
        view = pl.DataFrame({
            "gene": [result.gene],
            "genome": [result.genome],
            "chromosome": [result.window.chromosome],
            "window_start": [result.window.start],
            "window_end": [result.window.end],
            "promoter_start": [result.promoter.start],
            "promoter_end": [result.promoter.end],
        })
        store.save_dataframe(view, "_view", "Gene, genome and windows")
        store.save_dataframe(result.probes, "probes", f"Probes annotated to {result.gene}")
        store.save_dataframe(result.gene_models, "gene_models", f"{result.gene} transcripts")
        store.save_dataframe(result.measurements, "measurements", "Beta values joined to coordinates")

        track_rows = []
        for i, track in enumerate(result.tracks):
            table = _track_table(i, track.kind)
            if track.features.width > 0:
                store.save_dataframe(track.features, table, track.name)
            track_rows.append({
                "position": i,
                "name": track.name,
                "kind": track.kind,
                "table_name": table if track.features.width > 0 else None,
                "fill": track.style.fill,
                "stacking": track.style.stacking,
                "height": track.style.height,
            })
        store.save_dataframe(
            pl.DataFrame(track_rows, schema={
                "position": pl.Int64,
                "name": pl.Utf8,
                "kind": pl.Utf8,
                "table_name": pl.Utf8,
                "fill": pl.Utf8,
                "stacking": pl.Utf8,
                "height": pl.Float64,
            }),
            "_tracks",
            "Track order and styles",
        )

        if provenance is not None:
            provenance.record_step("save_snapshot", {"path": str(path)})
            provenance.save_to_store(store)

    logger.info("snapshot_saved", path=str(path), gene=result.gene, track_count=len(result.tracks))
    return path


def load_snapshot(path: Path) -> GeneViewResult:
    """
    Rebuild a GeneViewResult from a snapshot written by save_snapshot.

    Raises:
        FileNotFoundError: If the snapshot file is absent
        ValueError: If the file is not a gene view snapshot
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot not found: {path}")

    with PipelineStore(path) as store:
        if not (store.has_checkpoint("_view") and store.has_checkpoint("_tracks")):
            raise ValueError(f"{path} is not a gene view snapshot")
        view = store.load_dataframe("_view")
        track_rows = store.load_dataframe("_tracks")
        if view.height != 1:
            raise ValueError(f"{path} holds {view.height} gene views, expected one")

        meta = view.row(0, named=True)
        tracks = []
        for row in track_rows.sort("position").iter_rows(named=True):
            features = pl.DataFrame()
            if row["table_name"]:
                features = store.load_dataframe(row["table_name"])
            tracks.append(Track(
                name=row["name"],
                kind=row["kind"],
                features=features,
                style=TrackStyle(fill=row["fill"], stacking=row["stacking"], height=row["height"]),
            ))

        measurements = store.load_dataframe("measurements")
        if measurements is None:
            measurements = pl.DataFrame(schema=MEASUREMENT_SCHEMA)

        result = GeneViewResult(
            gene=meta["gene"],
            genome=meta["genome"],
            probes=store.load_dataframe("probes"),
            gene_models=store.load_dataframe("gene_models"),
            window=GenomicWindow(
                chromosome=meta["chromosome"],
                start=meta["window_start"],
                end=meta["window_end"],
            ),
            promoter=GenomicWindow(
                chromosome=meta["chromosome"],
                start=meta["promoter_start"],
                end=meta["promoter_end"],
            ),
            tracks=tracks,
            measurements=measurements,
            provenance=ProvenanceTracker.load_from_store(store) or {},
        )

    logger.info("snapshot_loaded", path=str(path), gene=result.gene, track_count=len(tracks))
    return result


def describe_snapshot(path: Path) -> list[dict]:
    """Table listing (name, rows, description) of a snapshot."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot not found: {path}")
    with PipelineStore(path) as store:
        return store.list_checkpoints()


def export_snapshot(path: Path, output_dir: Path) -> dict[str, Path]:
    """
    Export the data tables of a snapshot to Parquet files.

    Metadata tables (``_view``, ``_tracks``, ``_provenance``) are skipped.
    Files are named ``<gene>_<genome>_<table>.parquet``.

    Returns:
        Mapping of table name to the written Parquet path
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot not found: {path}")

    output_dir = Path(output_dir)
    with PipelineStore(path) as store:
        if not store.has_checkpoint("_view"):
            raise ValueError(f"{path} is not a gene view snapshot")
        meta = store.load_dataframe("_view").row(0, named=True)
        base = output_basename(meta["gene"], meta["genome"])

        exported = {}
        for checkpoint in store.list_checkpoints():
            table = checkpoint["table_name"]
            if table.startswith("_"):
                continue
            exported[table] = output_dir / f"{base}_{table}.parquet"
            store.export_parquet(table, exported[table])

    logger.info("snapshot_exported", path=str(path), output_dir=str(output_dir), table_count=len(exported))
    return exported
