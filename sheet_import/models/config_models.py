from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the spreadsheet import service.

These are the typed form of config/import.yml after schema validation
(see sheet_import/config/loader.py). The core pipeline consumes them only as
plain parameters: limits, batch size, timeouts and the two table policies.
"""

__all__ = [
    "DEFAULT_DATABASE_KEY",
    "ImportSettings",
    "AppConfig",
]

DEFAULT_DATABASE_KEY = "default"


@dataclass(frozen=True)
class ImportSettings:
    """Per-import limits and policies.

    truncate_on_import is the default for callers that don't say; the upload form
    and CLI flag override it per request. fail_if_table_missing=False switches the
    loader to create-if-missing.
    """
    allowed_extensions: tuple[str, ...] = (".xlsx", ".xls", ".csv")
    max_file_size: int = 50 * 1024 * 1024  # 50MB
    batch_size: int = 100
    command_timeout: int = 300  # seconds (statement_timeout)
    truncate_on_import: bool = False
    fail_if_table_missing: bool = True
    has_headers: bool = True
    progress_interval: int = 100  # rows between progress log lines
    null_sentinels: frozenset[str] = frozenset()  # upper-cased strings read as NULL

    def is_allowed(self, file_name: str) -> bool:
        lower = file_name.lower()
        return any(lower.endswith(ext.lower()) for ext in self.allowed_extensions)


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object for the service and CLI."""
    databases: dict[str, str] = field(default_factory=dict)  # logical name -> DSN
    default_database: str = DEFAULT_DATABASE_KEY
    database_mappings: dict[str, str] = field(default_factory=dict)  # filename keyword -> database
    table_mappings: dict[str, str] = field(default_factory=dict)  # filename keyword -> table
    settings: ImportSettings = field(default_factory=ImportSettings)
    error_log_dir: str = "./logs"
