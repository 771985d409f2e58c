"""Gene inspection commands: list a gene's probes and its coordinate window.

Neither command renders anything; both are quick checks before `plot`.
"""

import logging
import sys

import click

from methtracks.annotation import (
    EmptySelectionError,
    iter_probe_records,
    load_probe_annotation,
    probe_locus,
    select_gene_probes,
)
from methtracks.api_clients.ucsc import UCSCClient
from methtracks.config.loader import load_config
from methtracks.tracks import (
    compute_gene_window,
    fetch_gene_models,
    filter_gene_models,
    promoter_window,
)

logger = logging.getLogger(__name__)


@click.command('probes')
@click.argument('gene')
@click.option(
    '--exact',
    is_flag=True,
    help='Match whole gene symbols instead of substrings'
)
@click.pass_context
def probes(ctx, gene, exact):
    """List the array probes annotated to GENE."""
    config_path = ctx.obj['config_path']

    try:
        config = load_config(config_path)
        annotation = load_probe_annotation(config.annotation_path)
        selected = select_gene_probes(annotation, gene, exact=exact)
    except EmptySelectionError as e:
        click.echo(click.style(str(e), fg='yellow'), err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(click.style(f"Probe lookup failed: {e}", fg='red'), err=True)
        logger.exception("Probe lookup failed")
        sys.exit(1)

    click.echo(click.style(f"=== {gene}: {selected.height} probes ===", bold=True))
    for record in iter_probe_records(selected):
        click.echo(
            f"{record.probe_id}\t{record.chromosome}:{record.position}\t"
            f"{';'.join(record.gene_symbols)}\t{record.gene_group}\t"
            f"{record.island_relation or ''}"
        )


@click.command('window')
@click.argument('gene')
@click.option(
    '--exact',
    is_flag=True,
    help='Match whole gene symbols instead of substrings'
)
@click.pass_context
def window(ctx, gene, exact):
    """Show the padded gene window and promoter window of GENE."""
    config_path = ctx.obj['config_path']

    try:
        config = load_config(config_path)
        annotation = load_probe_annotation(config.annotation_path)
        selected = select_gene_probes(annotation, gene, exact=exact)
        client = UCSCClient.from_config(config)

        locus = probe_locus(selected, flank=config.window.locus_flank, gene=gene)
        candidates = fetch_gene_models(
            client, config.genome.build, locus, config.genome.gene_model
        )
        models = filter_gene_models(candidates, gene)
        gene_window = compute_gene_window(models, padding=config.window.padding)
        promoter = promoter_window(
            models, flank=config.window.promoter_flank, clip_to=gene_window
        )
    except EmptySelectionError as e:
        click.echo(click.style(str(e), fg='yellow'), err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(click.style(f"Window lookup failed: {e}", fg='red'), err=True)
        logger.exception("Window lookup failed")
        sys.exit(1)

    click.echo(click.style(f"=== {gene} ({config.genome.build}) ===", bold=True))
    click.echo(f"Transcripts: {', '.join(models['transcript'].to_list())}")
    click.echo(f"Window:   {gene_window} ({gene_window.width:,} bp)")
    click.echo(f"Promoter: {promoter} ({promoter.width:,} bp)")
