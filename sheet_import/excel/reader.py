from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Any, BinaryIO

import pandas as pd

from ..errors import EmptyWorksheetError, ParseError
from ..models.record import Record
from .coercion import coerce_cell, normalize_sentinels
from .columns import build_column_names

"""Worksheet reader and record extraction.

Row 1 is the header row (unless has_headers=False); every following row becomes
a Record after cell coercion. Rows where every cell coerces to NULL are dropped.

Raw cells are read with pandas (header=None, no NA-string conversion) so the
coercion rules see what the user typed: "NA" stays text unless configured as a
null sentinel.
"""

__all__ = [
    "WorksheetData",
    "read_worksheet",
    "extract_records",
    "read_records",
]

CSV_SUFFIXES = {".csv"}


@dataclass
class WorksheetData:
    sheet_name: str
    columns: list[str]
    records: list[Record]  # blank rows already dropped
    row_count: int = 0  # worksheet dimension (including header row)
    column_count: int = 0

    @property
    def total_rows(self) -> int:
        return len(self.records)


def _as_buffer(source: bytes | Path | BinaryIO) -> Any:
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(source)
    return source


def _read_csv(source: bytes | Path | BinaryIO, file_name: str) -> tuple[str, pd.DataFrame]:
    try:
        df = pd.read_csv(
            _as_buffer(source),
            header=None,
            dtype=object,
            keep_default_na=False,
            skip_blank_lines=False,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError as e:
        raise EmptyWorksheetError(f"'{file_name}' is empty") from e
    except Exception as e:
        raise ParseError(f"cannot read '{file_name}' as CSV: {e}") from e
    return PurePath(file_name).stem, df


def read_worksheet(
    source: bytes | Path | BinaryIO, file_name: str, sheet_name: str | None = None
) -> tuple[str, pd.DataFrame]:
    """Read one worksheet as a raw DataFrame (no header applied).

    Parameters
    ----------
    source: file content, path or binary stream
    file_name: original filename (decides CSV vs workbook, used in messages)
    sheet_name: worksheet to read; None reads the first one

    Returns
    -------
    (worksheet name, raw DataFrame)
    """
    if PurePath(file_name).suffix.lower() in CSV_SUFFIXES:
        return _read_csv(source, file_name)

    try:
        xls = pd.ExcelFile(_as_buffer(source))
    except Exception as e:
        raise ParseError(f"cannot open '{file_name}' as a workbook: {e}") from e

    with xls:
        names = [str(n) for n in xls.sheet_names]
        if not names:
            raise EmptyWorksheetError(f"'{file_name}' has no worksheets")
        if sheet_name is None:
            target = names[0]
        elif sheet_name in names:
            target = sheet_name
        else:
            raise ParseError(f"worksheet '{sheet_name}' not found in '{file_name}' (sheets: {names})")
        try:
            df = xls.parse(target, header=None, keep_default_na=False)
        except Exception as e:
            raise ParseError(f"cannot read worksheet '{target}' of '{file_name}': {e}") from e
    return target, df


def extract_records(
    df: pd.DataFrame,
    sheet_name: str,
    has_headers: bool = True,
    null_sentinels: frozenset[str] | None = None,
) -> WorksheetData:
    """Turn a raw worksheet DataFrame into sanitized columns + coerced records.

    Raises
    ------
    EmptyWorksheetError: no data region, or every data row is blank
    """
    row_count, column_count = df.shape
    if row_count == 0 or column_count == 0:
        raise EmptyWorksheetError(f"worksheet '{sheet_name}' is empty")

    raw_rows = list(df.itertuples(index=False, name=None))
    header = raw_rows[0] if has_headers else None
    columns = build_column_names(header, column_count, has_headers)

    start = 1 if has_headers else 0
    records: list[Record] = []
    for idx in range(start, row_count):
        cells = [coerce_cell(v, null_sentinels) for v in raw_rows[idx]]
        if all(c.is_null for c in cells):
            continue  # 空行スキップ
        records.append(Record.from_pairs(idx + 1, zip(columns, cells, strict=True)))

    if not records:
        raise EmptyWorksheetError(f"no data found in worksheet '{sheet_name}'")

    return WorksheetData(
        sheet_name=sheet_name,
        columns=columns,
        records=records,
        row_count=row_count,
        column_count=column_count,
    )


def read_records(
    source: bytes | Path | BinaryIO,
    file_name: str,
    has_headers: bool = True,
    sheet_name: str | None = None,
    null_sentinels: frozenset[str] | set[str] | None = None,
) -> WorksheetData:
    """read_worksheet + extract_records in one call."""
    name, df = read_worksheet(source, file_name, sheet_name=sheet_name)
    return extract_records(
        df, name, has_headers=has_headers, null_sentinels=normalize_sentinels(null_sentinels)
    )
