"""Methylation measurements: beta matrices joined to probe coordinates."""

from methtracks.measurements.load import load_beta_matrix
from methtracks.measurements.mapper import (
    MEASUREMENT_COLUMNS,
    map_measurements,
    summarize_by_probe,
)

__all__ = [
    "load_beta_matrix",
    "MEASUREMENT_COLUMNS",
    "map_measurements",
    "summarize_by_probe",
]
