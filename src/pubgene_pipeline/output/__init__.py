"""Output generation: frequency charts, enrichment dot plot, count tables and provenance."""

from pubgene_pipeline.output.provenance import ProvenanceTracker
from pubgene_pipeline.output.visualizations import (
    generate_all_plots,
    plot_enrichment_dotplot,
    plot_record_counts,
    plot_symbol_counts,
)
from pubgene_pipeline.output.writers import write_count_tables

__all__ = [
    "generate_all_plots",
    "plot_symbol_counts",
    "plot_record_counts",
    "plot_enrichment_dotplot",
    "write_count_tables",
    "ProvenanceTracker",
]
