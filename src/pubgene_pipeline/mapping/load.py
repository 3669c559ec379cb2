"""Load the record-to-entity mapping and entity-to-symbol cross-reference tables.

Every column is read as a string and stripped of surrounding whitespace. This
is the only normalization step before joining, so numeric-looking identifiers
from the two files always compare as identical strings.
"""

from pathlib import Path

import polars as pl
import structlog

from pubgene_pipeline.config.schema import CrossRefFileConfig, MappingFileConfig
from pubgene_pipeline.errors import FileLoadError
from pubgene_pipeline.mapping.models import (
    CROSSREF_COLUMNS,
    ENTITY_ID_COLUMN,
    MAPPING_COLUMNS,
    ORGANISM_COLUMN,
    RECORD_ID_COLUMN,
    SYMBOL_COLUMN,
)

logger = structlog.get_logger()


def _read_table(
    path: Path,
    delimiter: str,
    columns: dict[str, str],
) -> pl.DataFrame:
    """Read a delimited file as strings, keeping and renaming `columns`.

    Args:
        path: File to read
        delimiter: Field separator
        columns: Mapping of source column name -> normalized name

    Raises:
        FileLoadError: If the file is missing, unreadable, or lacks a column
    """
    path = Path(path)
    if not path.is_file():
        raise FileLoadError(f"Reference file not found: {path}")

    try:
        df = pl.read_csv(
            path,
            separator=delimiter,
            infer_schema_length=0,
            quote_char='"',
        )
    except (pl.exceptions.PolarsError, OSError) as e:
        raise FileLoadError(f"Could not read {path}: {e}") from e

    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise FileLoadError(
            f"{path} is missing expected column(s) {missing}; "
            f"found {df.columns}"
        )

    return df.select([
        pl.col(source).str.strip_chars().alias(target)
        for source, target in columns.items()
    ])


def load_mapping(
    path: Path | str,
    organism_code: str | int,
    delimiter: str = "\t",
    organism_column: str = "#tax_id",
    record_column: str = "PubMed_ID",
    entity_column: str = "GeneID",
) -> pl.DataFrame:
    """Load the record-to-entity mapping, restricted to one organism.

    Args:
        path: Mapping file (gene2pubmed layout by default)
        organism_code: Organism kept after load (e.g. 9606 for human)
        delimiter: Field separator
        organism_column: Source column holding the organism code
        record_column: Source column holding the record identifier
        entity_column: Source column holding the entity identifier

    Returns:
        DataFrame with string columns: organism, record_id, entity_id

    Raises:
        FileLoadError: If the file is missing, unreadable, or lacks a column
    """
    organism_code = str(organism_code).strip()

    df = _read_table(
        Path(path),
        delimiter,
        {
            organism_column: ORGANISM_COLUMN,
            record_column: RECORD_ID_COLUMN,
            entity_column: ENTITY_ID_COLUMN,
        },
    )
    total_rows = df.height

    df = df.filter(pl.col(ORGANISM_COLUMN) == organism_code).select(MAPPING_COLUMNS)

    logger.info(
        "mapping_load_complete",
        path=str(path),
        organism_code=organism_code,
        total_rows=total_rows,
        organism_rows=df.height,
    )

    return df


def load_crossref(
    path: Path | str,
    delimiter: str = ",",
    entity_column: str = "GeneID",
    symbol_column: str = "Symbol",
) -> pl.DataFrame:
    """Load the entity-to-symbol cross-reference table.

    The entity identifier is kept as an opaque string key.

    Returns:
        DataFrame with string columns: entity_id, symbol

    Raises:
        FileLoadError: If the file is missing, unreadable, or lacks a column
    """
    df = _read_table(
        Path(path),
        delimiter,
        {
            entity_column: ENTITY_ID_COLUMN,
            symbol_column: SYMBOL_COLUMN,
        },
    ).select(CROSSREF_COLUMNS)

    logger.info(
        "crossref_load_complete",
        path=str(path),
        row_count=df.height,
        unique_entities=df[ENTITY_ID_COLUMN].n_unique(),
    )

    return df


def load_mapping_from_config(config: MappingFileConfig) -> pl.DataFrame:
    """Load the mapping table described by a MappingFileConfig."""
    return load_mapping(
        config.path,
        organism_code=config.organism_code,
        delimiter=config.delimiter,
        organism_column=config.organism_column,
        record_column=config.record_column,
        entity_column=config.entity_column,
    )


def load_crossref_from_config(config: CrossRefFileConfig) -> pl.DataFrame:
    """Load the cross-reference table described by a CrossRefFileConfig."""
    return load_crossref(
        config.path,
        delimiter=config.delimiter,
        entity_column=config.entity_column,
        symbol_column=config.symbol_column,
    )
