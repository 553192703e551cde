from __future__ import annotations

"""Error kinds raised by the import pipeline.

Every failure that can reach a caller derives from SheetImportError so the HTTP
layer and the CLI can report it as a single import failure. RowInsertError is the
only kind recovered locally (the loader records it and moves on to the next row).
"""

__all__ = [
    "SheetImportError",
    "ConfigError",
    "InvalidInputError",
    "ParseError",
    "EmptyWorksheetError",
    "SchemaError",
    "DatabaseConnectionError",
    "RowInsertError",
    "TransactionError",
]


class SheetImportError(Exception):
    """Base class for import failures."""

    error_type = "IMPORT_ERROR"  # UPPER_SNAKE label used in the error log


class ConfigError(SheetImportError):
    error_type = "CONFIG_ERROR"


class InvalidInputError(SheetImportError):
    """Missing file, table or database name, or an upload that breaks the limits."""

    error_type = "INVALID_INPUT"


class ParseError(SheetImportError):
    """The uploaded file could not be read as a worksheet."""

    error_type = "PARSE_ERROR"


class EmptyWorksheetError(ParseError):
    """Worksheet has no data region, or every data row is blank."""

    error_type = "EMPTY_WORKSHEET"


class SchemaError(SheetImportError):
    error_type = "MISSING_TABLE"


class DatabaseConnectionError(SheetImportError):
    error_type = "CONNECTION_ERROR"


class RowInsertError(SheetImportError):
    """A single row was rejected by the database (constraint or type failure)."""

    error_type = "ROW_INSERT_ERROR"

    def __init__(self, row_number: int, message: str) -> None:
        super().__init__(f"row {row_number}: {message}")
        self.row_number = row_number
        self.db_message = message


class TransactionError(SheetImportError):
    """Commit, rollback or savepoint level failure. Always fatal."""

    error_type = "TRANSACTION_ERROR"
