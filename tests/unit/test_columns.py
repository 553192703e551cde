from __future__ import annotations

import doctest

import pytest

import sheet_import.excel.columns as columns_module
from sheet_import.excel.columns import build_column_names, placeholder_name, sanitize_column_name


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Order Date (UTC)", "Order_Date_UTC_"),
        ("2024 total", "_2024_total"),
        ("customer-id", "customer_id"),
        ("a  --  b", "a_b"),
        ("Amount", "Amount"),
        ("_private", "_private"),
        ("名前", "_名前"),
        ("", "Column"),
        ("   ", "Column"),
    ],
)
def test_sanitize_column_name(raw, expected):
    assert sanitize_column_name(raw) == expected


@pytest.mark.parametrize(
    "raw", ["Order Date (UTC)", "2024 total", "__x__", "a.b.c", "Ünïcödé name", "%%%", "Tbl_VariyaLog"]
)
def test_sanitize_is_idempotent(raw):
    once = sanitize_column_name(raw)
    assert sanitize_column_name(once) == once


def test_docstring_examples():
    result = doctest.testmod(columns_module)
    assert result.failed == 0


def test_placeholder_name_is_one_based():
    assert placeholder_name(1) == "Column1"


def test_build_column_names_with_headers():
    assert build_column_names(["id", "Customer Name", "Amount ($)"], 3) == ["id", "Customer_Name", "Amount_"]


def test_build_column_names_blank_header_cells_get_placeholders():
    assert build_column_names(["id", None, "  "], 3) == ["id", "Column2", "Column3"]


def test_build_column_names_numeric_header_is_normalized():
    assert build_column_names([2024.0, 7], 2) == ["_2024", "_7"]


def test_build_column_names_without_headers():
    assert build_column_names(["id", "name"], 2, has_headers=False) == ["Column1", "Column2"]


def test_build_column_names_short_header_row():
    assert build_column_names(["id"], 3) == ["id", "Column2", "Column3"]


def test_duplicate_names_are_suffixed():
    assert build_column_names(["id", "id", "ID"], 3) == ["id", "id_2", "ID"]
    assert build_column_names(["a b", "a-b", "a_b"], 3) == ["a_b", "a_b_2", "a_b_3"]


def test_duplicate_suffix_skips_taken_names():
    names = build_column_names(["a", "a", "a_2"], 3)
    assert len(set(names)) == 3
    assert names[0] == "a"
    assert names[2] == "a_2"
