from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .cell_value import NULL, CellValue

"""Record model: one extracted worksheet row.

A Record maps sanitized column names to coerced CellValues in sheet column order.
The row_number is the 1-based row in the source worksheet, so row failures can be
reported against what the user sees in the spreadsheet.
"""

__all__ = [
    "Record",
]


@dataclass(frozen=True)
class Record:
    """Immutable, ordered column name -> CellValue mapping for one source row."""
    row_number: int  # 1-based worksheet row number
    values: Mapping[str, CellValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze a private copy so callers can't mutate the row after extraction
        if not isinstance(self.values, MappingProxyType):
            object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    @classmethod
    def from_pairs(cls, row_number: int, pairs: Iterable[tuple[str, CellValue]]) -> Record:
        return cls(row_number=row_number, values=dict(pairs))

    @property
    def columns(self) -> list[str]:
        return list(self.values.keys())

    @property
    def is_blank(self) -> bool:
        return all(v.is_null for v in self.values.values())

    def get(self, column: str) -> CellValue:
        return self.values.get(column, NULL)

    def params(self, columns: Sequence[str]) -> list[Any]:
        """Driver-native values in the given column order (missing columns -> None)."""
        return [self.get(c).value for c in columns]

    def to_plain(self) -> dict[str, Any]:
        return {k: v.value for k, v in self.values.items()}
