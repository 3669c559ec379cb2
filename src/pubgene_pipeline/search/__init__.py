"""Identifier fetcher: PubMed esearch for records matching a free-text term.

Key exports:
- fetch: encode_term, build_search_url, parse_result_count, parse_id_list, fetch_record_ids
- models: ESEARCH_URL
"""

from pubgene_pipeline.search.fetch import (
    build_search_url,
    encode_term,
    fetch_record_ids,
    parse_id_list,
    parse_result_count,
)
from pubgene_pipeline.search.models import ESEARCH_URL

__all__ = [
    "ESEARCH_URL",
    "encode_term",
    "build_search_url",
    "parse_result_count",
    "parse_id_list",
    "fetch_record_ids",
]
