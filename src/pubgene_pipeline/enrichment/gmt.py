"""Offline enrichment against a local GMT gene set library."""

from pathlib import Path

import numpy as np
import polars as pl
import structlog
from scipy.stats import false_discovery_control, hypergeom

from pubgene_pipeline.enrichment.base import EnrichmentBackend
from pubgene_pipeline.errors import EnrichmentError

logger = structlog.get_logger()


def read_gmt(path: Path | str) -> dict[str, tuple[str, frozenset[str]]]:
    """Parse a GMT file: term <tab> description <tab> gene1 <tab> gene2 ...

    Returns:
        Mapping of term -> (description, genes)

    Raises:
        EnrichmentError: If the file is missing or holds no gene sets
    """
    path = Path(path)
    if not path.is_file():
        raise EnrichmentError(f"GMT file not found: {path}")

    gene_sets = {}
    with open(path) as f:
        for line in f:
            parts = line.rstrip("\n").split("\t")
            if len(parts) < 3:
                continue
            genes = frozenset(g.strip() for g in parts[2:] if g.strip())
            if genes:
                gene_sets[parts[0]] = (parts[1], genes)

    if not gene_sets:
        raise EnrichmentError(f"No gene sets found in {path}")

    return gene_sets


class GmtBackend(EnrichmentBackend):
    """Hypergeometric over-representation test against a GMT library.

    The background is the union of all genes in the library. p-values are
    adjusted with Benjamini-Hochberg; terms above the threshold are dropped.
    annotation_db, ontology and key_type are implied by the library itself.
    """

    name = "gmt"

    def __init__(self, gmt_path: Path | str, significance_threshold: float = 0.05):
        self.gmt_path = Path(gmt_path)
        self.significance_threshold = significance_threshold
        self._gene_sets = None

    @property
    def gene_sets(self) -> dict[str, tuple[str, frozenset[str]]]:
        if self._gene_sets is None:
            self._gene_sets = read_gmt(self.gmt_path)
        return self._gene_sets

    def _run(
        self,
        genes: list[str],
        annotation_db: str,
        ontology: str,
        key_type: str,
    ) -> pl.DataFrame:
        gene_sets = self.gene_sets
        background = frozenset().union(*(members for _, members in gene_sets.values()))
        query = set(genes) & background

        logger.info(
            "gmt_enrichment_universe",
            library=self.gmt_path.name,
            background_size=len(background),
            query_size=len(query),
            unrecognized=len(genes) - len(query),
        )

        if not query:
            return pl.DataFrame()

        rows = []
        for term, (description, members) in gene_sets.items():
            overlap = len(query & members)
            if overlap == 0:
                continue
            # P(X >= overlap) drawing len(query) genes from the background
            p = hypergeom.sf(overlap - 1, len(background), len(members), len(query))
            rows.append({
                "term_id": term,
                "term_name": description or term,
                "category": self.gmt_path.stem,
                "raw_p_value": float(p),
                "gene_count": overlap,
                "query_size": len(query),
                "gene_ratio": overlap / len(query),
            })

        if not rows:
            return pl.DataFrame()

        adjusted = false_discovery_control(
            np.array([row["raw_p_value"] for row in rows]), method="bh"
        )
        for row, p_adj in zip(rows, adjusted):
            row["p_value"] = float(p_adj)

        return pl.DataFrame(rows).filter(
            pl.col("p_value") <= self.significance_threshold
        )
