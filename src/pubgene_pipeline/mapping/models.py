"""Normalized column names for the reference tables."""

# Mapping table (record -> entity), after renaming
ORGANISM_COLUMN = "organism"
RECORD_ID_COLUMN = "record_id"
ENTITY_ID_COLUMN = "entity_id"

# Cross-reference table (entity -> symbol), after renaming
SYMBOL_COLUMN = "symbol"

MAPPING_COLUMNS = [ORGANISM_COLUMN, RECORD_ID_COLUMN, ENTITY_ID_COLUMN]
CROSSREF_COLUMNS = [ENTITY_ID_COLUMN, SYMBOL_COLUMN]
