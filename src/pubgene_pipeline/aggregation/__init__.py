"""Joiner/aggregator: record-to-symbol join, filtering and mention counts.

Key exports:
- transform: join_mapping, filter_and_count, top_n, top_symbols
- validator: summarize_join, JoinValidator, JoinReport, ValidationResult
"""

from pubgene_pipeline.aggregation.transform import (
    COUNT_COLUMN,
    filter_and_count,
    join_mapping,
    top_n,
    top_symbols,
)
from pubgene_pipeline.aggregation.validator import (
    JoinReport,
    JoinValidator,
    ValidationResult,
    summarize_join,
)

__all__ = [
    "COUNT_COLUMN",
    "join_mapping",
    "filter_and_count",
    "top_n",
    "top_symbols",
    "summarize_join",
    "JoinReport",
    "JoinValidator",
    "ValidationResult",
]
