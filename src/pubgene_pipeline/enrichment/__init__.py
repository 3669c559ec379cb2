"""Term enrichment over the most frequently mentioned genes.

Key exports:
- base: EnrichmentBackend, ENRICHMENT_SCHEMA, empty_enrichment_frame
- gprofiler: GProfilerBackend (g:Profiler REST API)
- gmt: GmtBackend (local GMT library, hypergeometric test)
- get_backend: build the backend selected in EnrichmentConfig
"""

from typing import Optional

from pubgene_pipeline.config.schema import APIConfig, EnrichmentConfig
from pubgene_pipeline.enrichment.base import (
    ENRICHMENT_SCHEMA,
    EnrichmentBackend,
    empty_enrichment_frame,
)
from pubgene_pipeline.enrichment.gmt import GmtBackend, read_gmt
from pubgene_pipeline.enrichment.gprofiler import GProfilerBackend


def get_backend(
    config: EnrichmentConfig,
    api: Optional[APIConfig] = None,
) -> Optional[EnrichmentBackend]:
    """Build the configured enrichment backend (None when disabled)."""
    if config.backend == "none":
        return None
    if config.backend == "gmt":
        return GmtBackend(
            config.gmt_path,
            significance_threshold=config.significance_threshold,
        )

    api = api or APIConfig()
    return GProfilerBackend(
        significance_threshold=config.significance_threshold,
        timeout=float(api.timeout_seconds),
        max_retries=api.max_retries,
    )


__all__ = [
    "ENRICHMENT_SCHEMA",
    "EnrichmentBackend",
    "empty_enrichment_frame",
    "GProfilerBackend",
    "GmtBackend",
    "read_gmt",
    "get_backend",
]
