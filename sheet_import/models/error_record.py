from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .import_outcome import RowOutcome

"""One line of the JSON Lines error log.

Key set and order are fixed:
    timestamp, file, sheet, table, row, error_type, db_message

row is the 1-based worksheet row for a skipped row, or -1 when the whole file
failed (unreadable upload, missing table, lost connection). File-level lines
use sheet "<FILE_LEVEL>" until the worksheet is known.
"""

__all__ = [
    "FILE_LEVEL_SHEET",
    "FILE_LEVEL_ROW",
    "ErrorRecord",
]

FILE_LEVEL_SHEET = "<FILE_LEVEL>"
FILE_LEVEL_ROW = -1


def _utc_stamp() -> str:
    # 2024-01-02T03:04:05.123456Z
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ErrorRecord:
    timestamp: str
    file: str
    sheet: str
    table: str  # "" when the target was never resolved
    row: int
    error_type: str  # UPPER_SNAKE, e.g. ROW_INSERT_ERROR / MISSING_TABLE
    db_message: str

    @classmethod
    def create(
        cls,
        file: str,
        sheet: str,
        row: int,
        error_type: str,
        db_message: str,
        table: str = "",
    ) -> ErrorRecord:
        return cls(_utc_stamp(), file, sheet, table, row, error_type, db_message)

    @classmethod
    def for_row(cls, file: str, sheet: str, table: str, outcome: RowOutcome) -> ErrorRecord:
        """Line for a row the database refused."""
        return cls.create(file, sheet, outcome.row_number, outcome.error_type, outcome.message, table)

    @classmethod
    def for_file(
        cls, file: str, error_type: str, message: str, table: str = "", sheet: str = FILE_LEVEL_SHEET
    ) -> ErrorRecord:
        """Line for a failure that aborted the whole file."""
        return cls.create(file, sheet, FILE_LEVEL_ROW, error_type, message, table)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
