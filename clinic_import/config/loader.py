from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from clinic_import.models.config_models import (
    DEFAULT_PACE_SECONDS,
    DEFAULT_TECHNOLOGY,
    ImportConfig,
    StoreConfig,
)

"""Config loader for config/import.yml.

Steps: read YAML, check it against config_schema.json (shipped next to this
module), verify the timezone name, then build ImportConfig with defaults.
CLINIC_OPERATOR_ID in the environment replaces operator_id from the file.
Store connection variables (DATABASE_URL, PG*) are resolved later, by
clinic_import.db.postgres.build_dsn.
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")
OPERATOR_ENV = "CLINIC_OPERATOR_ID"


class ConfigError(Exception):
    """Config file missing, unreadable or invalid."""


@lru_cache(maxsize=1)
def _schema() -> dict[str, Any]:
    try:
        return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e


def _check_schema(data: dict[str, Any]) -> None:
    try:
        jsonschema.validate(data, _schema())
    except ValidationError as e:
        where = ".".join(str(p) for p in e.absolute_path)
        prefix = f"config validation failed at {where}" if where else "config validation failed"
        raise ConfigError(f"{prefix}: {e.message}") from e


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")
    return data


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    data = _read_yaml(path)
    _check_schema(data)

    tz = data.get("timezone", "UTC")
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"unknown timezone: {tz}") from e

    store = data.get("store") or {}
    return ImportConfig(
        store=StoreConfig(
            host=store.get("host"),
            port=store.get("port"),
            user=store.get("user"),
            password=store.get("password"),
            database=store.get("database"),
            dsn=store.get("dsn"),
        ),
        operator_id=os.getenv(OPERATOR_ENV) or data.get("operator_id"),
        pace_seconds=float(data.get("pace_seconds", DEFAULT_PACE_SECONDS)),
        default_technology=data.get("default_technology", DEFAULT_TECHNOLOGY),
        timezone=tz,
        error_log_dir=data.get("error_log_dir", "./logs"),
    )
