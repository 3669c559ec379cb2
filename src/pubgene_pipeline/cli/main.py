"""Main CLI entry point for pubgene-pipeline.

Provides command group with global options and subcommands.
"""

import logging
from pathlib import Path

import click

from pubgene_pipeline import __version__
from pubgene_pipeline.config.loader import load_config
from pubgene_pipeline.cli.run_cmd import run


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
    help='Path to pipeline configuration YAML file'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable verbose logging (DEBUG level)'
)
@click.version_option(__version__, prog_name='pubgene-pipeline')
@click.pass_context
def cli(ctx, config, verbose):
    """pubgene-pipeline: gene mention frequency and term enrichment for a PubMed search.

    Searches PubMed for a term, joins the matching articles against a
    gene2pubmed-style mapping, counts gene mentions, and renders frequency
    charts plus an enrichment dot plot for the top-ranked genes.
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
    """Display pipeline information and configuration summary."""
    config_path = ctx.obj['config_path']

    click.echo(f"pubgene-pipeline v{__version__}")
    click.echo(f"Config: {config_path}")
    click.echo()

    try:
        config = load_config(config_path)

        config_hash = config.config_hash()
        click.echo(f"Config Hash: {config_hash[:16]}...")
        click.echo()

        click.echo(click.style("Reference Files:", bold=True))
        click.echo(f"  Mapping:   {config.mapping.path} (organism {config.mapping.organism_code})")
        click.echo(f"  Cross-ref: {config.crossref.path}")
        click.echo()

        click.echo(click.style("Paths:", bold=True))
        click.echo(f"  Output Directory: {config.output_dir}")
        click.echo(f"  Cache Directory: {config.cache_dir}")
        click.echo()

        click.echo(click.style("Search:", bold=True))
        click.echo(f"  Database: {config.search.database}")
        click.echo(f"  Page Size: {config.search.page_size}")
        click.echo(f"  API Key: {'set' if config.search.api_key else 'not set'}")
        click.echo()

        click.echo(click.style("API Configuration:", bold=True))
        click.echo(f"  Rate Limit: {config.api.rate_limit_per_second} req/s")
        click.echo(f"  Max Retries: {config.api.max_retries}")
        click.echo(f"  Cache: {'enabled' if config.api.cache_enabled else 'disabled'} "
                   f"(TTL {config.api.cache_ttl_seconds}s)")
        click.echo(f"  Timeout: {config.api.timeout_seconds}s")
        click.echo()

        click.echo(click.style("Report:", bold=True))
        click.echo(f"  Top N: {config.report.top_n}")
        click.echo(f"  Enrichment Top N: {config.report.enrichment_top_n}")
        click.echo(f"  Enrichment Backend: {config.enrichment.backend} "
                   f"({config.enrichment.annotation_db}, {config.enrichment.ontology})")

    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        ctx.exit(1)


cli.add_command(run)


if __name__ == '__main__':
    cli()
