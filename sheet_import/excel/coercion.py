from __future__ import annotations

import math
import sys
from collections.abc import Iterable
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

import numpy as np
import pandas as pd

from ..models.cell_value import NULL, CellKind, CellValue

"""Cell coercion rules: raw worksheet value -> CellValue.

The rule set is closed and ordered; the first matching rule wins:

1. missing (None / NaN / NaT)           -> NULL
2. datetime / date / time               -> DATETIME (unchanged)
3. bool                                 -> BOOL
4. int                                  -> INT
5. Decimal                              -> DECIMAL
6. float within epsilon of an integer   -> INT (rounded), else FLOAT
7. str                                  -> NULL if blank or a null sentinel, else trimmed TEXT
8. anything else                        -> TEXT of str(value)

numpy / pandas scalars are unwrapped to plain Python values first so the driver
receives native types.
"""

__all__ = [
    "INTEGRAL_EPSILON",
    "coerce_cell",
    "normalize_sentinels",
]

INTEGRAL_EPSILON = sys.float_info.epsilon


def normalize_sentinels(values: Iterable[str] | None) -> frozenset[str]:
    """Upper-case and trim configured null sentinel strings."""
    if not values:
        return frozenset()
    return frozenset(v.strip().upper() for v in values if isinstance(v, str) and v.strip())


def _unwrap(value: Any) -> Any:
    if isinstance(value, np.datetime64):
        value = pd.Timestamp(value)
    if value is pd.NaT or value is pd.NA:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        return value.item()
    return value


def _coerce_float(value: float) -> CellValue:
    if math.isnan(value):
        return NULL
    if math.isinf(value):
        return CellValue(CellKind.FLOAT, value)
    # fmod keeps the sign of value
    if abs(math.fmod(value, 1.0)) <= INTEGRAL_EPSILON:
        return CellValue(CellKind.INT, int(round(value)))
    return CellValue(CellKind.FLOAT, value)


def coerce_cell(value: Any, null_sentinels: frozenset[str] | None = None) -> CellValue:
    """Coerce one raw cell value to a CellValue."""
    value = _unwrap(value)
    if value is None:
        return NULL
    if isinstance(value, (datetime, date, time)):
        return CellValue(CellKind.DATETIME, value)
    if isinstance(value, bool):
        return CellValue(CellKind.BOOL, value)
    if isinstance(value, int):
        return CellValue(CellKind.INT, value)
    if isinstance(value, Decimal):
        return CellValue(CellKind.DECIMAL, value)
    if isinstance(value, float):
        return _coerce_float(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return NULL
        if null_sentinels and stripped.upper() in null_sentinels:
            return NULL
        return CellValue(CellKind.TEXT, stripped)
    return CellValue(CellKind.TEXT, str(value))
