"""Main CLI entry point for methtracks.

Provides command group with global options and subcommands for gene views.
"""

import logging
from pathlib import Path

import click

from methtracks import __version__
from methtracks.api_clients.ucsc import UCSCClient
from methtracks.config.loader import load_config
from methtracks.cli.gene_cmd import probes, window
from methtracks.cli.plot_cmd import plot
from methtracks.cli.snapshot_cmd import snapshot


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@click.group()
@click.option(
    '--config',
    type=click.Path(exists=True, path_type=Path),
    default='config/default.yaml',
    help='Path to configuration YAML file'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable verbose logging (DEBUG level)'
)
@click.pass_context
def cli(ctx, config, verbose):
    """methtracks: DNA methylation beta values drawn over gene structure.

    Selects the array probes of a gene, fetches gene models, CpG islands and
    SNPs from the UCSC Genome Browser, and renders genome-browser style
    track figures of the gene window and its promoter.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Verbose logging enabled")


@cli.command()
@click.pass_context
def info(ctx):
    """Display version and configuration summary."""
    config_path = ctx.obj['config_path']

    click.echo(f"methtracks v{__version__}")
    click.echo(f"Config: {config_path}")
    click.echo()

    try:
        config = load_config(config_path)

        click.echo(f"Config Hash: {config.config_hash()[:16]}...")
        click.echo()

        click.echo(click.style("Genome:", bold=True))
        click.echo(f"  Build:       {config.genome.build}")
        click.echo(f"  Gene models: {config.genome.gene_model}")
        click.echo(f"  CpG islands: {config.genome.cpg_islands}")
        click.echo(f"  SNPs:        {config.genome.snps}")
        click.echo(f"  Cytobands:   {config.genome.cytobands}")
        click.echo()

        click.echo(click.style("Window:", bold=True))
        click.echo(f"  Padding:        {config.window.padding} bp")
        click.echo(f"  Promoter flank: {config.window.promoter_flank} bp")
        click.echo()

        click.echo(click.style("Paths:", bold=True))
        click.echo(f"  Annotation: {config.annotation_path}")
        click.echo(f"  Output Directory: {config.output_dir}")
        click.echo(f"  Cache Directory: {config.cache_dir}")
        click.echo()

        click.echo(click.style("API Configuration:", bold=True))
        click.echo(f"  Base URL: {config.api.base_url}")
        click.echo(f"  Rate Limit: {config.api.rate_limit_per_second} req/s")
        click.echo(f"  Max Retries: {config.api.max_retries}")
        click.echo(f"  Cache TTL: {config.api.cache_ttl_seconds}s")
        click.echo(f"  Timeout: {config.api.timeout_seconds}s")

        stats = UCSCClient.from_config(config).cache_stats()
        if stats["cache_exists"]:
            click.echo(f"  Cache Size: {stats['cache_size_bytes'] / 1024:.1f} KiB")

    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        ctx.exit(1)


# Register commands
cli.add_command(probes)
cli.add_command(window)
cli.add_command(plot)
cli.add_command(snapshot)


if __name__ == '__main__':
    cli()
