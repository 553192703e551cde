from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

"""Tagged scalar variant produced by cell coercion.

Every extracted cell is one of a closed set of kinds. The kind decides which
native Python type is handed to the database driver and, for tables created on
the fly, which column type is used.
"""

__all__ = [
    "CellKind",
    "CellValue",
    "NULL",
]


class CellKind(Enum):
    """Closed set of scalar kinds a cell can coerce to."""
    NULL = "null"
    INT = "int"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOL = "bool"
    DATETIME = "datetime"
    TEXT = "text"


_EXPECTED_TYPES: dict[CellKind, tuple[type, ...]] = {
    CellKind.NULL: (type(None),),
    CellKind.INT: (int,),
    CellKind.FLOAT: (float,),
    CellKind.DECIMAL: (Decimal,),
    CellKind.BOOL: (bool,),
    CellKind.DATETIME: (datetime, date, time),
    CellKind.TEXT: (str,),
}


@dataclass(frozen=True)
class CellValue:
    """A coerced cell: its kind plus the native value passed to the driver."""
    kind: CellKind
    value: Any = None

    def __post_init__(self) -> None:
        expected = _EXPECTED_TYPES[self.kind]
        if not isinstance(self.value, expected):
            raise TypeError(
                f"{self.kind.name} cell cannot hold {type(self.value).__name__}"
            )
        # bool は int のサブクラスなので明示的に弾く
        if self.kind is CellKind.INT and isinstance(self.value, bool):
            raise TypeError("INT cell cannot hold bool")

    @property
    def is_null(self) -> bool:
        return self.kind is CellKind.NULL

    def __str__(self) -> str:
        if self.is_null:
            return ""
        if isinstance(self.value, (datetime, date, time)):
            return self.value.isoformat()
        return str(self.value)


NULL = CellValue(CellKind.NULL)
