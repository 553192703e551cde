from __future__ import annotations

from datetime import datetime

import pandas as pd
import pytest

from sheet_import.errors import EmptyWorksheetError, ParseError
from sheet_import.excel.coercion import normalize_sentinels
from sheet_import.excel.reader import extract_records, read_records, read_worksheet
from sheet_import.models.cell_value import NULL, CellKind, CellValue


def test_read_records_from_workbook(excel_factory):
    path = excel_factory(
        "orders.xlsx",
        {
            "Orders": [
                ["id", "Customer Name", "Amount", "Ordered At"],
                [1, "Alice", 10.5, datetime(2024, 1, 2, 9, 30)],
                [2, "Bob", 3.0, datetime(2024, 1, 3, 10, 0)],
            ]
        },
    )
    data = read_records(path.read_bytes(), "orders.xlsx")

    assert data.sheet_name == "Orders"
    assert data.columns == ["id", "Customer_Name", "Amount", "Ordered_At"]
    assert data.total_rows == 2
    first, second = data.records
    assert first.row_number == 2
    assert first.get("id") == CellValue(CellKind.INT, 1)
    assert first.get("Customer_Name") == CellValue(CellKind.TEXT, "Alice")
    assert first.get("Amount") == CellValue(CellKind.FLOAT, 10.5)
    assert first.get("Ordered_At") == CellValue(CellKind.DATETIME, datetime(2024, 1, 2, 9, 30))
    assert second.get("Amount") == CellValue(CellKind.INT, 3)


def test_blank_rows_are_dropped_from_workbook(excel_factory):
    path = excel_factory(
        "blank.xlsx",
        {"Sheet1": [["id", "name"], [1, "a"], [None, None], [2, "b"], [None, "  "]]},
    )
    data = read_records(path, "blank.xlsx")
    assert [r.get("id").value for r in data.records] == [1, 2]


def test_missing_cells_become_null(excel_factory):
    path = excel_factory("gaps.xlsx", {"Sheet1": [["id", "note"], [1, None], [2, "x"]]})
    data = read_records(path, "gaps.xlsx")
    assert data.records[0].get("note") == NULL


def test_first_sheet_is_default_and_named_sheet_is_selectable(excel_factory):
    path = excel_factory(
        "multi.xlsx",
        {"First": [["a"], [1]], "Second": [["b"], [2], [3]]},
    )
    assert read_records(path, "multi.xlsx").sheet_name == "First"
    data = read_records(path, "multi.xlsx", sheet_name="Second")
    assert data.sheet_name == "Second"
    assert data.columns == ["b"]
    assert data.total_rows == 2


def test_unknown_sheet_is_parse_error(excel_factory):
    path = excel_factory("one.xlsx", {"Only": [["a"], [1]]})
    with pytest.raises(ParseError, match="worksheet 'Missing' not found"):
        read_records(path, "one.xlsx", sheet_name="Missing")


def test_header_only_sheet_is_empty(excel_factory):
    path = excel_factory("header.xlsx", {"Sheet1": [["id", "name"]]})
    with pytest.raises(EmptyWorksheetError):
        read_records(path, "header.xlsx")


def test_corrupt_workbook_is_parse_error():
    with pytest.raises(ParseError):
        read_records(b"this is not a zip archive", "broken.xlsx")


def test_without_headers_first_row_is_data(excel_factory):
    path = excel_factory("nohdr.xlsx", {"Sheet1": [[1, "a"], [2, "b"]]})
    data = read_records(path, "nohdr.xlsx", has_headers=False)
    assert data.columns == ["Column1", "Column2"]
    assert [r.row_number for r in data.records] == [1, 2]


def test_csv_values_are_text_and_row_numbers_follow_lines():
    content = "id,name\n1,Alice\n,\n2,Bob\n".encode("utf-8")
    data = read_records(content, "people.csv")
    assert data.sheet_name == "people"
    assert data.columns == ["id", "name"]
    assert [r.row_number for r in data.records] == [2, 4]
    assert data.records[0].get("id") == CellValue(CellKind.TEXT, "1")


def test_csv_with_bom_and_sentinels():
    content = "\ufeffcode,value\nA,NULL\nB,n/a\nC,1\n".encode("utf-8")
    data = read_records(content, "codes.csv", null_sentinels={"null", "N/A"})
    assert data.columns == ["code", "value"]
    assert [r.get("value") for r in data.records] == [NULL, NULL, CellValue(CellKind.TEXT, "1")]


def test_empty_csv_is_empty_worksheet():
    with pytest.raises(EmptyWorksheetError):
        read_records(b"", "empty.csv")


def test_read_worksheet_returns_raw_frame(excel_factory):
    path = excel_factory("raw.xlsx", {"Data": [["h1", "h2"], ["x", "y"]]})
    name, df = read_worksheet(path.read_bytes(), "raw.xlsx")
    assert name == "Data"
    assert df.shape == (2, 2)


def test_extract_records_empty_frame():
    with pytest.raises(EmptyWorksheetError):
        extract_records(pd.DataFrame(), "Sheet1")


def test_extract_records_applies_sentinels():
    df = pd.DataFrame([["id", "v"], [1, "N/A"], [2, "ok"]])
    data = extract_records(df, "S", null_sentinels=normalize_sentinels(["n/a"]))
    assert data.records[0].get("v") == NULL
    assert data.row_count == 3
    assert data.column_count == 2
