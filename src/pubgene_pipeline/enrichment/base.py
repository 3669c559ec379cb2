"""Pluggable interface for term-enrichment backends."""

from abc import ABC, abstractmethod
from typing import Sequence

import polars as pl
import structlog

logger = structlog.get_logger()

# p_value holds the multiple-testing adjusted p-value reported by the backend
ENRICHMENT_SCHEMA = {
    "term_id": pl.Utf8,
    "term_name": pl.Utf8,
    "category": pl.Utf8,
    "p_value": pl.Float64,
    "gene_count": pl.Int64,
    "query_size": pl.Int64,
    "gene_ratio": pl.Float64,
}


def empty_enrichment_frame() -> pl.DataFrame:
    """Enrichment result with no terms."""
    return pl.DataFrame(schema=ENRICHMENT_SCHEMA)


class EnrichmentBackend(ABC):
    """Base class for enrichment adapters.

    Subclasses implement _run and return rows in ENRICHMENT_SCHEMA order or
    any superset of it; enrich() handles deduplication, empty input and the
    final column selection and ordering.
    """

    name = "base"

    def enrich(
        self,
        symbols: Sequence[str],
        annotation_db: str,
        ontology: str = "BP",
        key_type: str = "SYMBOL",
    ) -> pl.DataFrame:
        """Find annotation terms over-represented among `symbols`.

        Args:
            symbols: Gene identifiers to test
            annotation_db: Organism annotation database identifier
            ontology: GO sub-ontology selector (BP, MF, CC or ALL)
            key_type: Identifier type of `symbols` (SYMBOL or ENTREZID)

        Returns:
            DataFrame in ENRICHMENT_SCHEMA, sorted by p_value ascending

        Raises:
            EnrichmentError: If the backend fails
        """
        genes = list(dict.fromkeys(s for s in symbols if s))

        if not genes:
            logger.info("enrichment_skipped_empty", backend=self.name)
            return empty_enrichment_frame()

        logger.info(
            "enrichment_start",
            backend=self.name,
            gene_count=len(genes),
            annotation_db=annotation_db,
            ontology=ontology,
        )

        result = self._run(genes, annotation_db, ontology, key_type)

        if result.height == 0:
            result = empty_enrichment_frame()
        else:
            result = (
                result.select(list(ENRICHMENT_SCHEMA))
                .cast(ENRICHMENT_SCHEMA)
                .sort(["p_value", "term_id"])
            )

        logger.info("enrichment_complete", backend=self.name, term_count=result.height)

        return result

    @abstractmethod
    def _run(
        self,
        genes: list[str],
        annotation_db: str,
        ontology: str,
        key_type: str,
    ) -> pl.DataFrame:
        """Run the backend on a non-empty, deduplicated gene list."""
