"""Plot command: run the full gene view pipeline and render figures.

Orchestrates:
1. Load config (with CLI overrides)
2. Load probe annotation and build the UCSC client
3. Select probes, derive windows, fetch tracks, map beta values
4. Render the gene window and promoter figures
5. Optionally write tables and a DuckDB snapshot
6. Save provenance sidecar
"""

import logging
import sys
from pathlib import Path

import click

from methtracks.annotation import EmptySelectionError
from methtracks.config.loader import load_config_with_overrides
from methtracks.output import generate_all_plots, output_basename, write_gene_tables
from methtracks.persistence import ProvenanceTracker
from methtracks.pipeline import GeneViewContext, run_gene_view
from methtracks.snapshot import save_snapshot

logger = logging.getLogger(__name__)


@click.command('plot')
@click.argument('gene')
@click.option(
    '--betas',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='Beta-value matrix (probes x samples, CSV/TSV); omit for annotation-only figures'
)
@click.option(
    '--output-dir',
    type=click.Path(path_type=Path),
    default=None,
    help='Output directory (default: output_dir from config)'
)
@click.option(
    '--genome',
    default=None,
    help='Override the genome build from config (e.g. hg38)'
)
@click.option(
    '--padding',
    type=int,
    default=None,
    help='Override window padding in bases'
)
@click.option(
    '--exact',
    is_flag=True,
    help='Match whole gene symbols instead of substrings'
)
@click.option(
    '--reverse-strand/--forward-strand',
    default=None,
    help='Draw coordinates right-to-left / left-to-right (default: from config)'
)
@click.option(
    '--tables',
    is_flag=True,
    help='Also write probes, gene models and measurements as TSV + Parquet'
)
@click.option(
    '--snapshot',
    'snapshot_path',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Save the full run state to this DuckDB file'
)
@click.option(
    '--refresh',
    is_flag=True,
    help='Clear the UCSC response cache before fetching'
)
@click.pass_context
def plot(ctx, gene, betas, output_dir, genome, padding, exact, reverse_strand,
         tables, snapshot_path, refresh):
    """Render methylation track figures for GENE.

    Produces GENE_<build>_window.png (padded gene window) and
    GENE_<build>_promoter.png (TSS close-up) in the output directory.

    Examples:

        # Annotation tracks only
        methtracks plot HOXD1

        # With beta values, tables and a snapshot
        methtracks plot HOXD1 --betas data/betas.csv --tables --snapshot out/hoxd1.duckdb
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style(f"=== Gene view: {gene} ===", bold=True))
    click.echo()

    try:
        click.echo("Loading configuration...")
        config = load_config_with_overrides(config_path, {
            "genome.build": genome,
            "window.padding": padding,
            "display.reverse_strand": reverse_strand,
        })
        output_dir = output_dir or config.output_dir
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))
        click.echo(f"  Genome: {config.genome.build}")
        click.echo()

        click.echo("Loading probe annotation...")
        context = GeneViewContext.from_config(config)
        click.echo(click.style(f"  {context.annotation.height} probes loaded", fg='green'))
        click.echo()

        if refresh:
            context.client.clear_cache()

        provenance = ProvenanceTracker.from_config(config)

        click.echo("Selecting probes and fetching tracks...")
        result = run_gene_view(context, gene, betas=betas, exact=exact, provenance=provenance)
        click.echo(click.style(f"  Probes selected: {result.probes.height}", fg='green'))
        click.echo(f"  Window: {result.window} ({result.window.width:,} bp)")
        click.echo(f"  Promoter: {result.promoter}")
        if betas is not None:
            click.echo(f"  Measurements: {result.measurements.height} rows")
        click.echo()

        click.echo("Rendering figures...")
        plots = generate_all_plots(result, output_dir, display=config.display)
        for name, path in plots.items():
            click.echo(click.style(f"  {name}: {path}", fg='green'))
        provenance.record_step('render', {name: str(path) for name, path in plots.items()})
        click.echo()

        if tables:
            click.echo("Writing tables...")
            written = write_gene_tables(result, output_dir)
            for name, paths in written.items():
                click.echo(f"  {name}: {paths['tsv']}")
            provenance.record_step('write_tables', {
                name: str(paths['parquet']) for name, paths in written.items()
            })
            click.echo()

        if snapshot_path is not None:
            click.echo("Saving snapshot...")
            save_snapshot(result, snapshot_path, provenance=provenance)
            click.echo(click.style(f"  Snapshot saved: {snapshot_path}", fg='green'))
            click.echo()

        base = output_basename(result.gene, result.genome)
        sidecar = provenance.save_sidecar(Path(output_dir) / f"{base}.json")
        click.echo(f"Provenance: {sidecar}")
        click.echo()
        click.echo(click.style("Gene view complete!", fg='green', bold=True))

    except EmptySelectionError as e:
        click.echo(click.style(f"Nothing to plot: {e}", fg='yellow'), err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(click.style(f"Plot command failed: {e}", fg='red'), err=True)
        logger.exception("Plot command failed")
        sys.exit(1)
