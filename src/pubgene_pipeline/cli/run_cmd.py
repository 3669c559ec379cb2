"""Run command: search PubMed, count gene mentions and render the report.

Orchestrates the full pipeline for one search term:
- Loads the mapping and cross-reference tables
- Fetches matching PubMed IDs (count, then fetch all)
- Joins, filters and counts gene mentions
- Runs enrichment over the top-ranked genes
- Writes charts, TSV tables and provenance
"""

import logging
import sys
from pathlib import Path

import click

from pubgene_pipeline.aggregation import top_n
from pubgene_pipeline.config.loader import load_config_with_overrides
from pubgene_pipeline.errors import PipelineError
from pubgene_pipeline.mapping.models import SYMBOL_COLUMN
from pubgene_pipeline.pipeline import run_pipeline

logger = logging.getLogger(__name__)


def _collect_overrides(**options) -> dict:
    """Map CLI option values onto dotted config keys, skipping unset ones."""
    keys = {
        'mapping_file': 'mapping.path',
        'crossref_file': 'crossref.path',
        'organism': 'mapping.organism_code',
        'top_n': 'report.top_n',
        'enrichment_top_n': 'report.enrichment_top_n',
        'output_dir': 'output_dir',
        'backend': 'enrichment.backend',
        'gmt_file': 'enrichment.gmt_path',
        'ontology': 'enrichment.ontology',
        'cache': 'api.cache_enabled',
    }
    return {
        keys[name]: value
        for name, value in options.items()
        if value is not None and name in keys
    }


@click.command('run')
@click.argument('term')
@click.option(
    '--mapping-file',
    type=click.Path(path_type=Path),
    default=None,
    help='Record-to-gene mapping file (overrides config mapping.path)'
)
@click.option(
    '--crossref-file',
    type=click.Path(path_type=Path),
    default=None,
    help='Gene-ID-to-symbol file (overrides config crossref.path)'
)
@click.option(
    '--organism',
    default=None,
    help='Organism code kept from the mapping file (default: 9606)'
)
@click.option(
    '--top-n',
    type=click.IntRange(min=1),
    default=None,
    help='Entries per frequency chart (default: 9)'
)
@click.option(
    '--enrichment-top-n',
    type=click.IntRange(min=1),
    default=None,
    help='Top genes submitted for enrichment (default: 100)'
)
@click.option(
    '--output-dir',
    type=click.Path(path_type=Path),
    default=None,
    help='Directory for charts and tables (overrides config output_dir)'
)
@click.option(
    '--backend',
    type=click.Choice(['gprofiler', 'gmt', 'none']),
    default=None,
    help='Enrichment backend'
)
@click.option(
    '--gmt-file',
    type=click.Path(path_type=Path),
    default=None,
    help='Gene set library for the gmt backend'
)
@click.option(
    '--ontology',
    type=click.Choice(['BP', 'MF', 'CC', 'ALL']),
    default=None,
    help='GO sub-ontology for enrichment'
)
@click.option(
    '--skip-enrichment',
    is_flag=True,
    help='Skip the enrichment step'
)
@click.option(
    '--skip-viz',
    is_flag=True,
    help='Skip chart generation'
)
@click.option(
    '--cache/--no-cache',
    default=None,
    help='Reuse cached esearch responses (off unless enabled in config)'
)
@click.pass_context
def run(ctx, term, skip_enrichment, skip_viz, **options):
    """Count gene mentions in PubMed articles matching TERM.

    Pipeline steps:
    1. Load the mapping (filtered to one organism) and cross-reference tables
    2. Search PubMed for TERM and collect every matching PubMed ID
    3. Join the tables, deduplicate, and keep the matched articles
    4. Count mentions per gene and per article
    5. Run enrichment over the top-ranked genes (unless --skip-enrichment)
    6. Write charts (unless --skip-viz), TSV tables and provenance

    Examples:

        # Default config
        pubgene-pipeline run "usher syndrome"

        # Explicit reference files and a smaller chart
        pubgene-pipeline run "cilia" --mapping-file gene2pubmed --crossref-file genes.csv --top-n 5

        # Offline enrichment against a GMT library
        pubgene-pipeline run "hearing loss" --backend gmt --gmt-file go_bp.gmt
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== PubMed Gene Mention Report ===", bold=True))
    click.echo()

    try:
        click.echo("Loading configuration...")
        config = load_config_with_overrides(config_path, _collect_overrides(**options))
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))
        click.echo()
    except (FileNotFoundError, ValueError) as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        sys.exit(1)

    click.echo(f"Searching {config.search.database} for: {term}")

    try:
        result = run_pipeline(
            term,
            config,
            skip_enrichment=skip_enrichment,
            skip_viz=skip_viz,
        )
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg='red'), err=True)
        sys.exit(1)
    except PipelineError as e:
        click.echo(click.style(f"Pipeline failed ({type(e).__name__}): {e}", fg='red'), err=True)
        logger.debug("Pipeline failure", exc_info=True)
        sys.exit(1)

    click.echo(click.style(f"  Matching articles: {len(result.record_ids)}", fg='green'))
    if result.is_empty:
        click.echo(click.style(
            "  No articles matched; outputs contain empty placeholders.",
            fg='yellow'
        ))
    click.echo()

    for message in result.join_validation.messages:
        colour = 'yellow' if message.startswith('WARNING') else 'green'
        click.echo(click.style(f"  {message}", fg=colour))
    click.echo(f"  Genes mentioned: {result.symbol_counts.height}")
    click.echo(f"  Articles with gene links: {result.record_counts.height}")
    click.echo()

    if result.symbol_counts.height:
        click.echo(click.style(f"Top {config.report.top_n} genes:", bold=True))
        ranked = top_n(result.symbol_counts, SYMBOL_COLUMN, config.report.top_n)
        for row in reversed(ranked.to_dicts()):
            click.echo(f"  {row[SYMBOL_COLUMN]:<12} {row['count']}")
        click.echo()

    if result.enrichment_error:
        click.echo(click.style(
            f"Enrichment failed: {result.enrichment_error}", fg='yellow'
        ))
    elif result.enrichment is not None:
        click.echo(f"Enriched terms: {result.enrichment.height}")

    click.echo()
    click.echo(click.style("Outputs:", bold=True))
    for name, path in {**result.plots, **result.tables}.items():
        click.echo(f"  {name}: {path}")
    click.echo(f"  run_provenance: {result.provenance_path}")
    click.echo()
    click.echo(click.style("=== Report Complete ===", fg='green', bold=True))
