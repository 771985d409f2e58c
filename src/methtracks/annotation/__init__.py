"""Probe annotation layer: load the array manifest and select gene probes."""

from methtracks.annotation.models import (
    COLUMN_VARIANTS,
    PROBE_TABLE_NAME,
    EmptySelectionError,
    ProbeRecord,
)
from methtracks.annotation.load import load_probe_annotation, normalize_chromosome
from methtracks.annotation.select import (
    iter_probe_records,
    probe_locus,
    select_gene_probes,
)

__all__ = [
    "COLUMN_VARIANTS",
    "PROBE_TABLE_NAME",
    "EmptySelectionError",
    "ProbeRecord",
    "load_probe_annotation",
    "normalize_chromosome",
    "iter_probe_records",
    "probe_locus",
    "select_gene_probes",
]
