from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.structure import StructureDefinition
from ..services.structure_source import FALLBACK_STRUCTURES, fallback_from_records

"""Config loader.

Responsibilities:
- Load the YAML config (default config/tableform.yml)
- Validate it against config_schema.json (shipped next to this module)
- Apply defaults (request_timeout=30, built-in fallback structures)
- Apply environment overrides for the two webhook URLs
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")

DEFAULT_CONFIG_PATH = Path("config/tableform.yml")
DEFAULT_TIMEOUT = 30.0

ENV_STRUCTURE_URL = "TABLEFORM_STRUCTURE_URL"
ENV_SUBMISSION_URL = "TABLEFORM_SUBMISSION_URL"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class AppConfig:
    structure_source_url: str
    submission_url: str
    request_timeout: float
    fallback_structures: tuple[StructureDefinition, ...]


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or the config fails
            validation (missing required keys, wrong types, extra keys).
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


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    fallback_raw = data.get("fallback_structures")
    fallback = fallback_from_records(fallback_raw) if fallback_raw else FALLBACK_STRUCTURES

    # 環境変数 (.env 読込後) が設定ファイルより優先
    return AppConfig(
        structure_source_url=os.getenv(ENV_STRUCTURE_URL) or data["structure_source_url"],
        submission_url=os.getenv(ENV_SUBMISSION_URL) or data["submission_url"],
        request_timeout=float(data.get("request_timeout", DEFAULT_TIMEOUT)),
        fallback_structures=tuple(fallback),
    )
