"""Join reference tables, restrict to matched records, and count mentions."""

import polars as pl
import structlog

from pubgene_pipeline.mapping.models import (
    ENTITY_ID_COLUMN,
    RECORD_ID_COLUMN,
    SYMBOL_COLUMN,
)

logger = structlog.get_logger()

COUNT_COLUMN = "count"


def _has_symbol() -> pl.Expr:
    return pl.col(SYMBOL_COLUMN).is_not_null() & (pl.col(SYMBOL_COLUMN) != "")


def join_mapping(mapping: pl.DataFrame, crossref: pl.DataFrame) -> pl.DataFrame:
    """Translate mapping rows to (record_id, symbol) pairs.

    Left-joins the mapping onto the cross-reference table by entity_id, then
    drops rows without a symbol, drops the entity_id column and removes
    exact duplicate pairs. Unlike a SQL LEFT JOIN, unmapped entities are
    discarded rather than kept with a null symbol.

    Args:
        mapping: DataFrame with record_id and entity_id columns
        crossref: DataFrame with entity_id and symbol columns

    Returns:
        DataFrame with columns record_id, symbol; first-seen order preserved
    """
    joined = (
        mapping.select([RECORD_ID_COLUMN, ENTITY_ID_COLUMN])
        .with_row_index("_row")
        .join(
            crossref.select([ENTITY_ID_COLUMN, SYMBOL_COLUMN]),
            on=ENTITY_ID_COLUMN,
            how="left",
        )
        .filter(_has_symbol())
        .sort("_row", maintain_order=True)
        .select([RECORD_ID_COLUMN, SYMBOL_COLUMN])
        .unique(maintain_order=True)
    )

    logger.info(
        "join_complete",
        mapping_rows=mapping.height,
        joined_rows=joined.height,
        unique_symbols=joined[SYMBOL_COLUMN].n_unique(),
    )

    return joined


def filter_and_count(
    joined: pl.DataFrame,
    record_ids: set[str] | frozenset[str],
) -> tuple[pl.DataFrame, pl.DataFrame]:
    """Keep rows for the matched records and count them per symbol and per record.

    Args:
        joined: Output of join_mapping
        record_ids: Identifiers returned by the search

    Returns:
        Tuple (symbol_counts, record_counts):
        - symbol_counts: columns symbol, count
        - record_counts: columns record_id, count
        Both are empty (with the same schema) when record_ids is empty.
    """
    ids = sorted(str(record_id) for record_id in record_ids)

    if ids:
        filtered = joined.filter(pl.col(RECORD_ID_COLUMN).is_in(ids))
    else:
        filtered = joined.clear()

    symbol_counts = filtered.group_by(SYMBOL_COLUMN, maintain_order=True).agg(
        pl.len().alias(COUNT_COLUMN)
    )
    record_counts = filtered.group_by(RECORD_ID_COLUMN, maintain_order=True).agg(
        pl.len().alias(COUNT_COLUMN)
    )

    logger.info(
        "filter_and_count_complete",
        search_records=len(ids),
        filtered_rows=filtered.height,
        symbols=symbol_counts.height,
        records_with_genes=record_counts.height,
    )

    return symbol_counts, record_counts


def top_n(counts: pl.DataFrame, key: str, n: int) -> pl.DataFrame:
    """Select the n entries with the highest count, ordered ascending by count.

    Ties are resolved deterministically: among equal counts the
    lexicographically smaller key is selected first, and the output is
    sorted by (count, key) ascending. Fewer than n rows returns all rows.

    Args:
        counts: DataFrame with `key` and count columns
        key: Name of the key column (symbol or record_id)
        n: Number of entries to keep

    Raises:
        ValueError: If n < 1
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")

    return (
        counts.sort([COUNT_COLUMN, key], descending=[True, False])
        .head(n)
        .sort([COUNT_COLUMN, key])
    )


def top_symbols(symbol_counts: pl.DataFrame, n: int) -> list[str]:
    """Symbols of the n most frequently mentioned genes, most frequent first."""
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")

    return (
        symbol_counts.sort([COUNT_COLUMN, SYMBOL_COLUMN], descending=[True, False])
        .head(n)[SYMBOL_COLUMN]
        .to_list()
    )
