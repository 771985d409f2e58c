"""Output generation: track figures, QC plots and tables."""

from methtracks.output.renderer import (
    DRAWERS,
    STAIN_COLORS,
    format_position,
    pack_rows,
    render_gene_views,
    render_tracks,
)
from methtracks.output.visualizations import generate_all_plots, plot_beta_distribution
from methtracks.output.writers import output_basename, write_gene_tables, write_table

__all__ = [
    "DRAWERS",
    "STAIN_COLORS",
    "format_position",
    "pack_rows",
    "render_gene_views",
    "render_tracks",
    "generate_all_plots",
    "plot_beta_distribution",
    "output_basename",
    "write_gene_tables",
    "write_table",
]
