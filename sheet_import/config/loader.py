from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from dotenv import load_dotenv
from jsonschema.exceptions import ValidationError

from ..errors import ConfigError
from ..excel.coercion import normalize_sentinels
from ..models.config_models import DEFAULT_DATABASE_KEY, AppConfig, ImportSettings

"""Config loader.

Responsibilities:
- Load YAML config (config/import.yml, or SHEET_IMPORT_CONFIG)
- Validate against the packaged JSON schema (config_schema.json)
- Apply defaults (every key is optional)
- Load .env so DATABASE_URL / DATABASE_URL_<NAME> are visible to the registry

Connection strings should come from the environment; the databases section
exists for local setups and may hold empty values.
"""

__all__ = [
    "ConfigError",
    "CONFIG_ENV",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "load_app_config",
    "load_env_file",
]

logger = logging.getLogger(__name__)

CONFIG_ENV = "SHEET_IMPORT_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/import.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or the data violates it
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


def _build_settings(raw: dict[str, Any]) -> ImportSettings:
    defaults = ImportSettings()
    extensions = raw.get("allowed_extensions")
    return ImportSettings(
        allowed_extensions=tuple(e.lower() for e in extensions) if extensions else defaults.allowed_extensions,
        max_file_size=raw.get("max_file_size", defaults.max_file_size),
        batch_size=raw.get("batch_size", defaults.batch_size),
        command_timeout=raw.get("command_timeout", defaults.command_timeout),
        truncate_on_import=raw.get("truncate_on_import", defaults.truncate_on_import),
        fail_if_table_missing=raw.get("fail_if_table_missing", defaults.fail_if_table_missing),
        has_headers=raw.get("has_headers", defaults.has_headers),
        progress_interval=raw.get("progress_interval", defaults.progress_interval),
        null_sentinels=normalize_sentinels(raw.get("null_sentinels")),
    )


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    databases = {k: v for k, v in (data.get("databases") or {}).items() if v}
    return AppConfig(
        databases=databases,
        default_database=data.get("default_database", DEFAULT_DATABASE_KEY),
        database_mappings=dict(data.get("database_mappings") or {}),
        table_mappings=dict(data.get("table_mappings") or {}),
        settings=_build_settings(data.get("import") or {}),
        error_log_dir=data.get("error_log_dir", "./logs"),
    )


def load_env_file(path: Path = Path(".env"), override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True lets .env win over variables already set in the process.
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def load_app_config(path: Path | None = None) -> AppConfig:
    """Resolve the config path (argument > SHEET_IMPORT_CONFIG > default) and load it.

    Only the implicit default path may be absent, in which case built-in
    defaults are used.
    """
    load_env_file()
    if path is None and os.getenv(CONFIG_ENV):
        path = Path(os.environ[CONFIG_ENV])
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    logger.warning("config file %s not found, using defaults", DEFAULT_CONFIG_PATH)
    return AppConfig()
