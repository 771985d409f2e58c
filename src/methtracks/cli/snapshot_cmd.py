"""Snapshot commands: inspect, re-render and export saved gene views offline."""

import logging
import sys
from pathlib import Path

import click

from methtracks.config.loader import load_config
from methtracks.output import render_gene_views
from methtracks.snapshot import describe_snapshot, export_snapshot, load_snapshot

logger = logging.getLogger(__name__)


@click.group('snapshot')
def snapshot():
    """Inspect, re-render or export a saved gene view snapshot."""
    pass


@snapshot.command('show')
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
def show(path):
    """List the tables stored in the snapshot at PATH."""
    try:
        result = load_snapshot(path)
        tables = describe_snapshot(path)
    except Exception as e:
        click.echo(click.style(f"Cannot read snapshot: {e}", fg='red'), err=True)
        logger.exception("Cannot read snapshot")
        sys.exit(1)

    click.echo(click.style(f"=== {result.gene} ({result.genome}) ===", bold=True))
    click.echo(f"Window:   {result.window}")
    click.echo(f"Promoter: {result.promoter}")
    if result.provenance:
        click.echo(f"Created:  {result.provenance.get('created_at')} "
                   f"(v{result.provenance.get('pipeline_version')})")
    click.echo()
    for table in tables:
        click.echo(f"  {table['table_name']:<28} {table['row_count']:>8}  {table['description']}")


@snapshot.command('render')
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    '--output-dir',
    type=click.Path(path_type=Path),
    default=None,
    help='Output directory (default: output_dir from config)'
)
@click.pass_context
def render(ctx, path, output_dir):
    """Re-render the figures of the snapshot at PATH without network access."""
    try:
        config = load_config(ctx.obj['config_path'])
        result = load_snapshot(path)
        paths = render_gene_views(result, output_dir or config.output_dir, display=config.display)
    except Exception as e:
        click.echo(click.style(f"Render failed: {e}", fg='red'), err=True)
        logger.exception("Snapshot render failed")
        sys.exit(1)

    for name, figure in paths.items():
        click.echo(click.style(f"{name}: {figure}", fg='green'))


@snapshot.command('export')
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    '--output-dir',
    type=click.Path(path_type=Path),
    default=None,
    help='Output directory (default: output_dir from config)'
)
@click.pass_context
def export(ctx, path, output_dir):
    """Write the data tables of the snapshot at PATH as Parquet files."""
    try:
        config = load_config(ctx.obj['config_path'])
        exported = export_snapshot(path, output_dir or config.output_dir)
    except Exception as e:
        click.echo(click.style(f"Export failed: {e}", fg='red'), err=True)
        logger.exception("Snapshot export failed")
        sys.exit(1)

    for table, parquet in exported.items():
        click.echo(click.style(f"{table}: {parquet}", fg='green'))
