"""Mapping loader: reference tables linking records to genes and genes to symbols.

Key exports:
- load: load_mapping, load_crossref, load_mapping_from_config, load_crossref_from_config
- models: normalized column names
"""

from pubgene_pipeline.mapping.load import (
    load_crossref,
    load_crossref_from_config,
    load_mapping,
    load_mapping_from_config,
)
from pubgene_pipeline.mapping.models import (
    CROSSREF_COLUMNS,
    ENTITY_ID_COLUMN,
    MAPPING_COLUMNS,
    ORGANISM_COLUMN,
    RECORD_ID_COLUMN,
    SYMBOL_COLUMN,
)

__all__ = [
    "load_mapping",
    "load_crossref",
    "load_mapping_from_config",
    "load_crossref_from_config",
    "ORGANISM_COLUMN",
    "RECORD_ID_COLUMN",
    "ENTITY_ID_COLUMN",
    "SYMBOL_COLUMN",
    "MAPPING_COLUMNS",
    "CROSSREF_COLUMNS",
]
