"""Persistence layer for run snapshots and provenance tracking."""

from methtracks.persistence.duckdb_store import PipelineStore
from methtracks.persistence.provenance import ProvenanceTracker

__all__ = ["PipelineStore", "ProvenanceTracker"]
