"""g:Profiler g:GOSt adapter for over-representation analysis."""

import httpx
import polars as pl
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pubgene_pipeline.enrichment.base import EnrichmentBackend
from pubgene_pipeline.errors import EnrichmentError

logger = structlog.get_logger()

GPROFILER_URL = "https://biit.cs.ut.ee/gprofiler/api/gost/profile/"

ONTOLOGY_SOURCES = {
    "BP": ["GO:BP"],
    "MF": ["GO:MF"],
    "CC": ["GO:CC"],
    "ALL": ["GO:BP", "GO:MF", "GO:CC"],
}

# Namespace used to interpret purely numeric identifiers
NUMERIC_NAMESPACES = {
    "ENTREZID": "ENTREZGENE_ACC",
}


class GProfilerBackend(EnrichmentBackend):
    """Enrichment via the g:Profiler REST API.

    Uses Benjamini-Hochberg FDR as the significance threshold method, so the
    reported p_value is the adjusted p-value.
    """

    name = "gprofiler"

    def __init__(
        self,
        significance_threshold: float = 0.05,
        timeout: float = 60.0,
        max_retries: int = 5,
        url: str = GPROFILER_URL,
    ):
        self.significance_threshold = significance_threshold
        self.timeout = timeout
        self.max_retries = max_retries
        self.url = url

    def _create_retry_decorator(self):
        return retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            retry=retry_if_exception_type(
                (httpx.HTTPStatusError, httpx.ConnectError, httpx.TimeoutException)
            ),
            reraise=True,
        )

    def _post(self, payload: dict) -> dict:
        @self._create_retry_decorator()
        def _post_with_retry():
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.url, json=payload)
                response.raise_for_status()
                return response.json()

        return _post_with_retry()

    def build_payload(
        self,
        genes: list[str],
        annotation_db: str,
        ontology: str,
        key_type: str,
    ) -> dict:
        if ontology not in ONTOLOGY_SOURCES:
            raise EnrichmentError(
                f"Unknown ontology {ontology!r}; expected one of {list(ONTOLOGY_SOURCES)}"
            )

        payload = {
            "organism": annotation_db,
            "query": genes,
            "sources": ONTOLOGY_SOURCES[ontology],
            "user_threshold": self.significance_threshold,
            "significance_threshold_method": "fdr",
            "no_evidences": True,
        }
        if key_type in NUMERIC_NAMESPACES:
            payload["numeric_ns"] = NUMERIC_NAMESPACES[key_type]
        return payload

    def _run(
        self,
        genes: list[str],
        annotation_db: str,
        ontology: str,
        key_type: str,
    ) -> pl.DataFrame:
        payload = self.build_payload(genes, annotation_db, ontology, key_type)

        try:
            data = self._post(payload)
        except httpx.HTTPError as e:
            raise EnrichmentError(f"g:Profiler request failed: {e}") from e
        except ValueError as e:
            raise EnrichmentError(f"g:Profiler returned invalid JSON: {e}") from e

        results = data.get("result") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise EnrichmentError("g:Profiler response has no 'result' list")

        rows = []
        for term in results:
            query_size = term.get("query_size") or 0
            intersection = term.get("intersection_size") or 0
            rows.append({
                "term_id": term.get("native"),
                "term_name": term.get("name"),
                "category": term.get("source"),
                "p_value": term.get("p_value"),
                "gene_count": intersection,
                "query_size": query_size,
                "gene_ratio": intersection / query_size if query_size else None,
            })

        logger.debug("gprofiler_response", term_count=len(rows))

        return pl.DataFrame(rows)
