from .loader import load_config, load_config_with_overrides
from .schema import (
    APIConfig,
    CrossRefFileConfig,
    EnrichmentConfig,
    MappingFileConfig,
    PipelineConfig,
    ReportConfig,
    SearchConfig,
    ValidationConfig,
)

__all__ = [
    "load_config",
    "load_config_with_overrides",
    "PipelineConfig",
    "SearchConfig",
    "APIConfig",
    "MappingFileConfig",
    "CrossRefFileConfig",
    "ReportConfig",
    "EnrichmentConfig",
    "ValidationConfig",
]
