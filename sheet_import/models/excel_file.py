from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from .import_outcome import ImportOutcome

"""ExcelFile domain model and FileStatus enum.

ExcelFile is the processing context for one local file in a CLI run, tracking its
status through the import lifecycle from pending to success/failed.
"""

__all__ = [
    "FileStatus",
    "ExcelFile",
]


class FileStatus(Enum):
    """pending -> (success | failed). SUCCESS may still carry skipped rows."""
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"  # rolled back


@dataclass(frozen=True)
class ExcelFile:
    """Processing context and result for a single spreadsheet file."""
    path: Path
    name: str
    table: str | None = None  # resolved target table
    database: str | None = None  # resolved logical database
    start_time: datetime | None = None  # UTC
    end_time: datetime | None = None  # UTC
    status: FileStatus = FileStatus.PENDING
    outcome: ImportOutcome | None = None  # set on success
    error: str | None = None  # failure reason summary

    @property
    def inserted_rows(self) -> int:
        return self.outcome.inserted_rows if self.outcome else 0

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()
