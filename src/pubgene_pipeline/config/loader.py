"""Read the pipeline YAML config and layer CLI overrides on top of it."""

from pathlib import Path
from typing import Any

import pydantic_yaml

from .schema import PipelineConfig


def load_config(config_path: Path | str) -> PipelineConfig:
    """
    Parse and validate a YAML config file.

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If a value is missing or out of range
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    return pydantic_yaml.parse_yaml_raw_as(PipelineConfig, config_path.read_text())


def _set_dotted(values: dict[str, Any], key: str, value: Any) -> None:
    """Assign `value` at a dotted path such as "mapping.organism_code"."""
    *sections, field = key.split(".")
    target = values
    for section in sections:
        if not isinstance(target.get(section), dict):
            raise ValueError(f"Unknown config section in override {key!r}")
        target = target[section]
    target[field] = value


def load_config_with_overrides(
    config_path: Path | str,
    overrides: dict[str, Any],
) -> PipelineConfig:
    """
    Load a config file, then apply overrides keyed by dotted path.

    The merged values are validated again, so an override is held to the
    same constraints as the file (e.g. top_n >= 1).

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If an override names a section the config lacks
        pydantic.ValidationError: If the merged config is invalid
    """
    values = load_config(config_path).model_dump()
    for key, value in overrides.items():
        _set_dotted(values, key, value)
    return PipelineConfig.model_validate(values)
