from __future__ import annotations

from pathlib import Path

import pytest

from sheet_import.config.loader import load_config
from sheet_import.models.config_models import AppConfig
from sheet_import.services.naming import (
    detect_database,
    detect_table,
    filename_stem,
    match_keyword,
    resolve_targets,
)

CONFIG = AppConfig(
    default_database="gtb_wallet",
    database_mappings={
        "Variya": "gtb_wallet",
        "WalletTranLog": "gtb_wallet",
        "BillPaymentLog": "gtb_wallet_log",
    },
    table_mappings={
        "Variya": "Tbl_VariyaLog",
        "WalletTranLog": "Tbl_WalletTranLog",
        "BillPaymentLog": "Tbl_BillPaymentLog",
    },
)


@pytest.mark.parametrize(
    "name, stem",
    [
        ("report.xlsx", "report"),
        ("C:\\Users\\ops\\Downloads\\BillPaymentLog_2024.xlsx", "BillPaymentLog_2024"),
        ("/tmp/data.v2.csv", "data.v2"),
    ],
)
def test_filename_stem(name, stem):
    assert filename_stem(name) == stem


def test_match_keyword_is_case_insensitive():
    assert match_keyword("export_billpaymentlog_march.xlsx", CONFIG.table_mappings) == "Tbl_BillPaymentLog"


def test_match_keyword_first_wins():
    mapping = {"Log": "first", "BillPaymentLog": "second"}
    assert match_keyword("BillPaymentLog.xlsx", mapping) == "first"


def test_match_keyword_ignores_extension():
    assert match_keyword("data.xlsx", {"xlsx": "nope"}) is None


def test_detect_bill_payment_log():
    assert detect_database("Daily_BillPaymentLog_20240101.xlsx", CONFIG) == "gtb_wallet_log"
    assert detect_table("Daily_BillPaymentLog_20240101.xlsx", CONFIG) == "Tbl_BillPaymentLog"


def test_detect_falls_back():
    assert detect_database("customers.xlsx", CONFIG) == "gtb_wallet"
    assert detect_table("customers.xlsx", CONFIG) == "customers"


def test_resolve_targets_explicit_values_win():
    assert resolve_targets("BillPaymentLog.xlsx", "Manual", "other", CONFIG) == ("Manual", "other")


def test_resolve_targets_blank_values_are_detected():
    assert resolve_targets("VariyaLog.xlsx", "  ", "", CONFIG) == ("Tbl_VariyaLog", "gtb_wallet")


@pytest.mark.parametrize(
    "file_name, expected",
    [
        ("WalletTranLog_BillPaymentLog.xlsx", ("Tbl_WalletTranLog", "gtb_wallet")),
        ("Variya_BillPaymentLog.xlsx", ("Tbl_VariyaLog", "gtb_wallet")),
        ("BillPaymentLog_2024.xlsx", ("Tbl_BillPaymentLog", "gtb_wallet_log")),
    ],
)
def test_shipped_config_pairs_table_and_database(file_name, expected):
    # wallet 系キーワードは BillPaymentLog より優先
    config = load_config(Path(__file__).resolve().parents[2] / "config" / "import.yml")
    assert resolve_targets(file_name, None, None, config) == expected
