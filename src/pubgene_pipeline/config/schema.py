"""Pydantic models for pipeline configuration."""

import hashlib
import json
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class SearchConfig(BaseModel):
    """Settings for the PubMed esearch query."""

    database: str = Field(
        default="pubmed",
        description="Entrez database searched by esearch",
    )
    email: Optional[str] = Field(
        default=None,
        description="Contact email sent to NCBI E-utilities",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="Optional NCBI API key (raises the rate limit to 10 req/s)",
    )
    page_size: int = Field(
        default=10000,
        ge=1,
        le=10000,
        description="Maximum identifiers requested per esearch call",
    )


class APIConfig(BaseModel):
    """Configuration for API clients."""

    rate_limit_per_second: int = Field(
        default=3,
        ge=1,
        description="Maximum API requests per second",
    )
    max_retries: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum retry attempts for failed requests",
    )
    cache_ttl_seconds: int = Field(
        default=86400,
        ge=0,
        description="Cache time-to-live in seconds (0 = infinite)",
    )
    timeout_seconds: int = Field(
        default=30,
        ge=1,
        description="Request timeout in seconds",
    )
    cache_enabled: bool = Field(
        default=False,
        description="Reuse esearch responses from a SQLite cache under cache_dir (results may be stale)",
    )


class MappingFileConfig(BaseModel):
    """Layout of the record-to-gene mapping table (gene2pubmed)."""

    path: Path = Field(
        ...,
        description="Path to the record-to-entity mapping file",
    )
    delimiter: str = Field(
        default="\t",
        min_length=1,
        max_length=1,
        description="Field delimiter",
    )
    organism_column: str = Field(default="#tax_id")
    record_column: str = Field(default="PubMed_ID")
    entity_column: str = Field(default="GeneID")
    organism_code: str = Field(
        default="9606",
        description="Organism code kept after load (9606 = Homo sapiens)",
    )

    @field_validator("organism_code", mode="before")
    @classmethod
    def coerce_organism_code(cls, v):
        """Accept integer taxonomy IDs from YAML."""
        return str(v).strip()


class CrossRefFileConfig(BaseModel):
    """Layout of the entity-identifier to symbol cross-reference table."""

    path: Path = Field(
        ...,
        description="Path to the entity-to-symbol cross-reference file",
    )
    delimiter: str = Field(
        default=",",
        min_length=1,
        max_length=1,
        description="Field delimiter",
    )
    entity_column: str = Field(default="GeneID")
    symbol_column: str = Field(default="Symbol")


class ReportConfig(BaseModel):
    """Ranking and rendering options."""

    top_n: int = Field(
        default=9,
        ge=1,
        description="Entries shown in each frequency bar chart",
    )
    enrichment_top_n: int = Field(
        default=100,
        ge=1,
        description="Top-ranked symbols submitted for enrichment",
    )
    dpi: int = Field(
        default=300,
        ge=50,
        description="Resolution of saved figures",
    )


class EnrichmentConfig(BaseModel):
    """Selection and parameters of the enrichment backend."""

    backend: Literal["gprofiler", "gmt", "none"] = Field(
        default="gprofiler",
        description="Enrichment adapter to use ('none' skips enrichment)",
    )
    annotation_db: str = Field(
        default="hsapiens",
        description="Organism annotation database identifier",
    )
    ontology: Literal["BP", "MF", "CC", "ALL"] = Field(
        default="BP",
        description="GO sub-ontology selector",
    )
    key_type: Literal["SYMBOL", "ENTREZID"] = Field(
        default="SYMBOL",
        description="Identifier type of submitted genes",
    )
    significance_threshold: float = Field(
        default=0.05,
        gt=0.0,
        le=1.0,
        description="Adjusted p-value cutoff for reported terms",
    )
    gmt_path: Optional[Path] = Field(
        default=None,
        description="Gene set library for the offline 'gmt' backend",
    )
    show_categories: int = Field(
        default=10,
        ge=1,
        description="Terms drawn in the enrichment dot plot",
    )

    @model_validator(mode="after")
    def check_gmt_path(self) -> "EnrichmentConfig":
        if self.backend == "gmt" and self.gmt_path is None:
            raise ValueError("gmt_path is required when backend is 'gmt'")
        return self


class ValidationConfig(BaseModel):
    """Join quality gates."""

    min_mapped_fraction: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Abort when fewer mapping rows than this resolve to a symbol (0 disables)",
    )
    warn_mapped_fraction: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Log a warning below this mapped fraction",
    )


class PipelineConfig(BaseModel):
    """Main pipeline configuration."""

    output_dir: Path = Field(
        ...,
        description="Directory for charts and count tables",
    )
    cache_dir: Path = Field(
        ...,
        description="Directory for API response caching",
    )
    search: SearchConfig = Field(default_factory=SearchConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    mapping: MappingFileConfig = Field(
        ...,
        description="Record-to-entity mapping file",
    )
    crossref: CrossRefFileConfig = Field(
        ...,
        description="Entity-to-symbol cross-reference file",
    )
    report: ReportConfig = Field(default_factory=ReportConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)

    @field_validator("output_dir", "cache_dir")
    @classmethod
    def create_directory(cls, v: Path) -> Path:
        """Create directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values,
        useful for tracking config changes between runs.
        """
        config_dict = self.model_dump(mode="python")
        config_json = json.dumps(
            config_dict,
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()
