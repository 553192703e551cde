from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from .coercion import coerce_cell

"""Column name derivation from worksheet header cells.

Names must be usable as SQL identifiers without further escaping tricks, so the
header text is reduced to word characters. sanitize_column_name is idempotent.
"""

__all__ = [
    "sanitize_column_name",
    "placeholder_name",
    "build_column_names",
]

_NON_WORD = re.compile(r"[^\w]")
_VALID_START = re.compile(r"^[a-zA-Z_]")
_UNDERSCORES = re.compile(r"_+")


def sanitize_column_name(name: str) -> str:
    """Replace non-word characters with '_', force a valid leading char, collapse '__'.

    >>> sanitize_column_name("Order Date (UTC)")
    'Order_Date_UTC_'
    >>> sanitize_column_name("2024 total")
    '_2024_total'
    """
    if name is None or not str(name).strip():
        return "Column"
    sanitized = _NON_WORD.sub("_", str(name))
    if not _VALID_START.match(sanitized):
        sanitized = "_" + sanitized
    return _UNDERSCORES.sub("_", sanitized)


def placeholder_name(position: int) -> str:
    """Positional name for a header-less or blank header column (1-based)."""
    return f"Column{position}"


def _header_text(cell: Any) -> str:
    # ヘッダセルも値と同じ規則で正規化 (2024.0 -> "2024")
    return str(coerce_cell(cell)).strip()


def _dedupe(names: list[str]) -> list[str]:
    taken = set(names)
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        candidate = name
        if candidate in seen:
            n = 2
            while f"{name}_{n}" in taken or f"{name}_{n}" in seen:
                n += 1
            candidate = f"{name}_{n}"
        seen.add(candidate)
        result.append(candidate)
    return result


def build_column_names(
    header_cells: Sequence[Any] | None, column_count: int, has_headers: bool = True
) -> list[str]:
    """Derive ordered, unique column names for a worksheet.

    Parameters
    ----------
    header_cells: raw cells of row 1 (ignored when has_headers is False)
    column_count: worksheet column count
    has_headers: False -> Column1..ColumnN
    """
    names: list[str] = []
    for idx in range(column_count):
        position = idx + 1
        if not has_headers or header_cells is None or idx >= len(header_cells):
            names.append(placeholder_name(position))
            continue
        text = _header_text(header_cells[idx])
        names.append(sanitize_column_name(text) if text else placeholder_name(position))
    return _dedupe(names)
