from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ..models.cell_value import CellKind
from ..models.record import Record
from .reader import WorksheetData

"""Per-column profiling of extracted records.

Used by the detect endpoint to describe an upload and by the loader when it has
to create a missing table.
"""

__all__ = [
    "ColumnProfile",
    "infer_column_kind",
    "column_kinds",
    "describe_columns",
]

_NUMERIC = {CellKind.INT, CellKind.FLOAT, CellKind.DECIMAL}


@dataclass(frozen=True)
class ColumnProfile:
    name: str
    kind: CellKind
    has_nulls: bool
    sample_value: str | None
    max_length: int  # longest rendered value


def infer_column_kind(kinds: Counter[CellKind] | set[CellKind]) -> CellKind:
    """Pick one kind able to hold every non-null value of a column."""
    present = {k for k in kinds if k is not CellKind.NULL}
    if not present:
        return CellKind.TEXT
    if len(present) == 1:
        return next(iter(present))
    if present <= _NUMERIC:
        if CellKind.DECIMAL in present:
            return CellKind.DECIMAL
        return CellKind.FLOAT
    return CellKind.TEXT


def column_kinds(columns: Sequence[str], records: Iterable[Record]) -> dict[str, CellKind]:
    """Inferred kind per column across all records."""
    counters: dict[str, Counter[CellKind]] = {c: Counter() for c in columns}
    for record in records:
        for column in columns:
            counters[column][record.get(column).kind] += 1
    return {c: infer_column_kind(k) for c, k in counters.items()}


def describe_columns(data: WorksheetData) -> list[ColumnProfile]:
    profiles: list[ColumnProfile] = []
    for column in data.columns:
        kinds: Counter[CellKind] = Counter()
        sample: str | None = None
        max_length = 0
        for record in data.records:
            cell = record.get(column)
            kinds[cell.kind] += 1
            if cell.is_null:
                continue
            rendered = str(cell)
            if sample is None:
                sample = rendered
            max_length = max(max_length, len(rendered))
        profiles.append(
            ColumnProfile(
                name=column,
                kind=infer_column_kind(kinds),
                has_nulls=kinds[CellKind.NULL] > 0,
                sample_value=sample,
                max_length=max_length,
            )
        )
    return profiles
