from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_OUTPUT_DIRECTORY,
    DEFAULT_PREFERRED_SHEET,
    ImportConfig,
)
from ..normalize.fields import MappingError, validate_mapping

"""Config loader.

Responsibilities:
- Load YAML config (default config/import.yml, CLIENT_IMPORT_CONFIG overrides)
- Validate against config_schema.json (shipped next to this module)
- Validate that the column mapping only targets known field keys
- Apply defaults (output_directory, preferred_sheet)
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")
CONFIG_ENV_VAR = "CLIENT_IMPORT_CONFIG"


class ConfigError(Exception):
    pass


def resolve_config_path(explicit: str | Path | None = None) -> Path:
    """CLI argument > CLIENT_IMPORT_CONFIG > config/import.yml."""
    if explicit:
        return Path(explicit)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def _validate_config_schema(data: Any) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing/invalid, or data fails validation
            (missing required keys, wrong types, unknown top-level keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    # YAML may hand back non-string keys (e.g. a numeric header "2024")
    mapping = {str(header): field for header, field in data["column_mapping"].items()}
    try:
        validate_mapping(mapping)
    except MappingError as e:
        raise ConfigError(f"config validation failed: {e}") from e

    return ImportConfig(
        source_directory=data["source_directory"],
        column_mapping=mapping,
        output_directory=data.get("output_directory", DEFAULT_OUTPUT_DIRECTORY),
        preferred_sheet=data.get("preferred_sheet", DEFAULT_PREFERRED_SHEET),
        sheet_name=data.get("sheet_name"),
    )
