from __future__ import annotations

from collections.abc import Mapping
from pathlib import PurePath

from ..models.config_models import AppConfig

"""Target detection from the uploaded filename.

Keyword maps come from config (database_mappings / table_mappings). Matching is a
case-insensitive substring test on the filename without extension; the first
keyword in config order wins.
"""

__all__ = [
    "filename_stem",
    "match_keyword",
    "detect_database",
    "detect_table",
    "resolve_targets",
]


def filename_stem(file_name: str) -> str:
    # ブラウザによってはパス付きで来るので basename のみ使う
    return PurePath(file_name.replace("\\", "/")).stem


def match_keyword(file_name: str, mapping: Mapping[str, str]) -> str | None:
    stem = filename_stem(file_name).lower()
    for keyword, target in mapping.items():
        if keyword and keyword.lower() in stem:
            return target
    return None


def detect_database(file_name: str, config: AppConfig) -> str:
    return match_keyword(file_name, config.database_mappings) or config.default_database


def detect_table(file_name: str, config: AppConfig) -> str:
    return match_keyword(file_name, config.table_mappings) or filename_stem(file_name)


def resolve_targets(
    file_name: str, table: str | None, database: str | None, config: AppConfig
) -> tuple[str, str]:
    """Return (table, database); blank inputs are detected from the filename."""
    resolved_table = (table or "").strip() or detect_table(file_name, config)
    resolved_database = (database or "").strip() or detect_database(file_name, config)
    return resolved_table, resolved_database
