"""TSV writer for count tables and enrichment results with a YAML provenance sidecar."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import polars as pl
import yaml

from pubgene_pipeline.aggregation.transform import COUNT_COLUMN
from pubgene_pipeline.mapping.models import RECORD_ID_COLUMN, SYMBOL_COLUMN


def write_count_tables(
    symbol_counts: pl.DataFrame,
    record_counts: pl.DataFrame,
    output_dir: Path,
    enrichment: Optional[pl.DataFrame] = None,
    term: Optional[str] = None,
    record_total: Optional[int] = None,
) -> dict:
    """
    Write count tables (and enrichment results) as TSV with a provenance sidecar.

    Args:
        symbol_counts: DataFrame with symbol and count columns
        record_counts: DataFrame with record_id and count columns
        output_dir: Directory to write output files (created if doesn't exist)
        enrichment: Optional enrichment result in ENRICHMENT_SCHEMA
        term: Search term, recorded in the sidecar
        record_total: Number of records returned by the search

    Returns:
        Dictionary with output file paths:
        {
            "gene_counts": Path,
            "article_counts": Path,
            "enrichment": Path (only when enrichment is given),
            "provenance": Path to YAML provenance sidecar
        }

    Notes:
        - Sorted by count DESC, key ASC for deterministic output
        - Provenance YAML includes the search term, timestamp, file list and row counts
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = {
        "gene_counts": output_dir / "gene_counts.tsv",
        "article_counts": output_dir / "article_counts.tsv",
    }

    symbol_counts.sort([COUNT_COLUMN, SYMBOL_COLUMN], descending=[True, False]).write_csv(
        paths["gene_counts"], separator="\t", include_header=True
    )
    record_counts.sort([COUNT_COLUMN, RECORD_ID_COLUMN], descending=[True, False]).write_csv(
        paths["article_counts"], separator="\t", include_header=True
    )

    statistics = {
        "search_records": record_total,
        "genes": symbol_counts.height,
        "articles_with_genes": record_counts.height,
    }

    if enrichment is not None:
        paths["enrichment"] = output_dir / "enrichment.tsv"
        enrichment.write_csv(paths["enrichment"], separator="\t", include_header=True)
        statistics["enriched_terms"] = enrichment.height

    provenance_path = output_dir / "run.provenance.yaml"
    provenance = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "search_term": term,
        "output_files": [path.name for path in paths.values()],
        "statistics": statistics,
    }

    with open(provenance_path, "w") as f:
        yaml.dump(provenance, f, default_flow_style=False, sort_keys=False)

    paths["provenance"] = provenance_path
    return paths
