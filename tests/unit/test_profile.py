from __future__ import annotations

from collections import Counter
from decimal import Decimal

from sheet_import.excel.profile import column_kinds, describe_columns, infer_column_kind
from sheet_import.excel.reader import WorksheetData
from sheet_import.models.cell_value import NULL, CellKind, CellValue
from sheet_import.models.record import Record


def _record(row: int, **values: CellValue) -> Record:
    return Record.from_pairs(row, values.items())


def test_infer_single_kind():
    assert infer_column_kind({CellKind.INT}) is CellKind.INT
    assert infer_column_kind(Counter({CellKind.DATETIME: 3, CellKind.NULL: 1})) is CellKind.DATETIME


def test_infer_mixed_numeric():
    assert infer_column_kind({CellKind.INT, CellKind.FLOAT}) is CellKind.FLOAT
    assert infer_column_kind({CellKind.INT, CellKind.DECIMAL, CellKind.FLOAT}) is CellKind.DECIMAL


def test_infer_mixed_falls_back_to_text():
    assert infer_column_kind({CellKind.INT, CellKind.TEXT}) is CellKind.TEXT
    assert infer_column_kind({CellKind.BOOL, CellKind.INT}) is CellKind.TEXT


def test_infer_all_null_is_text():
    assert infer_column_kind({CellKind.NULL}) is CellKind.TEXT
    assert infer_column_kind(set()) is CellKind.TEXT


def test_column_kinds_over_records():
    records = [
        _record(2, id=CellValue(CellKind.INT, 1), price=CellValue(CellKind.DECIMAL, Decimal("1.5"))),
        _record(3, id=CellValue(CellKind.INT, 2), price=NULL),
    ]
    assert column_kinds(["id", "price", "missing"], records) == {
        "id": CellKind.INT,
        "price": CellKind.DECIMAL,
        "missing": CellKind.TEXT,
    }


def test_describe_columns():
    records = [
        _record(2, id=CellValue(CellKind.INT, 1), name=CellValue(CellKind.TEXT, "Alice")),
        _record(3, id=CellValue(CellKind.INT, 22), name=NULL),
    ]
    data = WorksheetData(sheet_name="S", columns=["id", "name"], records=records)
    id_profile, name_profile = describe_columns(data)

    assert id_profile.name == "id"
    assert id_profile.kind is CellKind.INT
    assert id_profile.has_nulls is False
    assert id_profile.sample_value == "1"
    assert id_profile.max_length == 2

    assert name_profile.kind is CellKind.TEXT
    assert name_profile.has_nulls is True
    assert name_profile.sample_value == "Alice"
