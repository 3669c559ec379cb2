"""End-to-end run: search, load, join, count, enrich, render.

Data flows in one direction. The search and the reference table loads are
independent; the join consumes both, and the report consumes the counts.
Nothing is kept between runs apart from the optional HTTP response cache.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import polars as pl
import structlog

from pubgene_pipeline.aggregation import (
    JoinValidator,
    ValidationResult,
    filter_and_count,
    join_mapping,
    summarize_join,
    top_symbols,
)
from pubgene_pipeline.api_clients.base import CachedAPIClient
from pubgene_pipeline.config.schema import PipelineConfig
from pubgene_pipeline.enrichment import (
    EnrichmentBackend,
    empty_enrichment_frame,
    get_backend,
)
from pubgene_pipeline.errors import EnrichmentError
from pubgene_pipeline.mapping import load_crossref_from_config, load_mapping_from_config
from pubgene_pipeline.output import (
    ProvenanceTracker,
    generate_all_plots,
    write_count_tables,
)
from pubgene_pipeline.search import encode_term, fetch_record_ids

logger = structlog.get_logger()


@dataclass
class PipelineResult:
    """Everything a run produced.

    Attributes:
        term: Search term
        record_ids: Identifiers returned by the search
        joined_rows: Rows in the (record_id, symbol) table before filtering
        symbol_counts: Per-symbol counts over the matched records
        record_counts: Per-record counts over the matched records
        join_validation: Outcome of the join quality gate
        enrichment: Enrichment terms (None when skipped or failed)
        enrichment_error: Message when the enrichment backend failed
        plots: Plot name -> PNG path
        tables: Table name -> output path
        provenance_path: JSON provenance sidecar
    """
    term: str
    record_ids: frozenset[str]
    joined_rows: int
    symbol_counts: pl.DataFrame
    record_counts: pl.DataFrame
    join_validation: ValidationResult
    enrichment: Optional[pl.DataFrame] = None
    enrichment_error: Optional[str] = None
    plots: dict[str, Path] = field(default_factory=dict)
    tables: dict[str, Path] = field(default_factory=dict)
    provenance_path: Optional[Path] = None

    @property
    def is_empty(self) -> bool:
        return len(self.record_ids) == 0


def run_pipeline(
    term: str,
    config: PipelineConfig,
    client: Optional[CachedAPIClient] = None,
    backend: Optional[EnrichmentBackend] = None,
    skip_enrichment: bool = False,
    skip_viz: bool = False,
) -> PipelineResult:
    """Run the full pipeline for one search term.

    Args:
        term: Free-text PubMed search term
        config: Pipeline configuration
        client: HTTP client for esearch (built from config when None)
        backend: Enrichment backend (built from config when None)
        skip_enrichment: Do not run enrichment
        skip_viz: Do not render plots

    Returns:
        PipelineResult

    Raises:
        ValueError: If the term is empty
        FileLoadError: If a reference table cannot be loaded
        TransportError: If the search request fails
        ResponseFormatError: If the search response cannot be parsed
        JoinIntegrityError: If too few mapping rows resolve to a symbol
    """
    # Fail on an unusable term before touching files or the network
    encode_term(term)

    provenance = ProvenanceTracker.from_config(config)
    output_dir = Path(config.output_dir)

    logger.info("pipeline_start", term=term, output_dir=str(output_dir))

    # Step 1: reference tables
    mapping = load_mapping_from_config(config.mapping)
    crossref = load_crossref_from_config(config.crossref)
    provenance.record_step("load_reference_tables", {
        "mapping_rows": mapping.height,
        "crossref_rows": crossref.height,
    })

    # Step 2: search
    if client is None:
        client = CachedAPIClient.from_config(config)
    record_ids = fetch_record_ids(term, client, config.search)
    provenance.record_step("search", {
        "term": term,
        "database": config.search.database,
        "record_count": len(record_ids),
    })

    # Step 3: join with quality gate
    report = summarize_join(mapping, crossref)
    validator = JoinValidator(
        min_mapped_fraction=config.validation.min_mapped_fraction,
        warn_mapped_fraction=config.validation.warn_mapped_fraction,
    )
    validation = validator.enforce(report)
    joined = join_mapping(mapping, crossref)
    provenance.record_step("join", {
        "mapped_fraction": round(report.mapped_fraction, 4),
        "unmapped_entities": len(report.unmapped_ids),
        "joined_rows": joined.height,
    })

    # Step 4: filter and count
    symbol_counts, record_counts = filter_and_count(joined, record_ids)
    provenance.record_step("count", {
        "genes": symbol_counts.height,
        "articles_with_genes": record_counts.height,
    })

    result = PipelineResult(
        term=term,
        record_ids=record_ids,
        joined_rows=joined.height,
        symbol_counts=symbol_counts,
        record_counts=record_counts,
        join_validation=validation,
    )

    # Step 5: enrichment over the top-ranked symbols
    if not skip_enrichment:
        if backend is None:
            backend = get_backend(config.enrichment, config.api)

        if backend is not None:
            symbols = (
                top_symbols(symbol_counts, config.report.enrichment_top_n)
                if symbol_counts.height
                else []
            )
            try:
                result.enrichment = backend.enrich(
                    symbols,
                    annotation_db=config.enrichment.annotation_db,
                    ontology=config.enrichment.ontology,
                    key_type=config.enrichment.key_type,
                )
                provenance.record_step("enrichment", {
                    "backend": backend.name,
                    "submitted_genes": len(symbols),
                    "terms": result.enrichment.height,
                })
            except EnrichmentError as e:
                result.enrichment_error = str(e)
                logger.error("enrichment_failed", backend=backend.name, error=str(e))

    # Step 6: outputs
    if not skip_viz:
        # A failed backend still gets a placeholder dot plot
        plotted_enrichment = result.enrichment
        if plotted_enrichment is None and result.enrichment_error is not None:
            plotted_enrichment = empty_enrichment_frame()

        result.plots = generate_all_plots(
            symbol_counts,
            record_counts,
            plotted_enrichment,
            output_dir,
            n=config.report.top_n,
            show_categories=config.enrichment.show_categories,
            dpi=config.report.dpi,
        )

    result.tables = write_count_tables(
        symbol_counts,
        record_counts,
        output_dir,
        enrichment=result.enrichment,
        term=term,
        record_total=len(record_ids),
    )

    provenance.record_step("write_outputs", {
        "plots": sorted(result.plots),
        "tables": sorted(result.tables),
    })
    result.provenance_path = provenance.save_sidecar(output_dir / "run.json")

    logger.info(
        "pipeline_complete",
        term=term,
        record_count=len(record_ids),
        genes=symbol_counts.height,
        enrichment_terms=result.enrichment.height if result.enrichment is not None else None,
    )

    return result
