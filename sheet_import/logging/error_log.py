from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord
from ..models.import_outcome import RowOutcome

"""Error log file writer.

Failures of one import (or one CLI run) are buffered in memory and appended as
JSON Lines to `<error_log_dir>/errors-YYYYMMDD-HHMMSS.log`, named after the UTC
time of the first write. Nothing is created on disk while the buffer is empty.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

DEFAULT_LOG_DIR = Path("./logs")
FILE_NAME_FMT = "errors-%Y%m%d-%H%M%S.log"


class ErrorLogBuffer:
    """Buffered JSON Lines error log. One instance per import call or CLI run."""

    def __init__(self, directory: Path | str | None = None) -> None:
        self.directory = Path(directory) if directory is not None else DEFAULT_LOG_DIR
        self._pending: list[ErrorRecord] = []
        self._path: Path | None = None

    @property
    def file_path(self) -> Path:
        """Target file; the directory is created and the name fixed on first use."""
        if self._path is None:
            self.directory.mkdir(parents=True, exist_ok=True)
            self._path = self.directory / datetime.now(UTC).strftime(FILE_NAME_FMT)
        return self._path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def add_row_failures(self, file: str, sheet: str, table: str, failures: Iterable[RowOutcome]) -> None:
        self._pending.extend(ErrorRecord.for_row(file, sheet, table, f) for f in failures)

    def flush(self) -> Path | None:
        """Append pending lines; returns the file written, or None if there was nothing."""
        if not self._pending:
            return None
        path = self.file_path
        lines = "".join(r.to_json_line() + "\n" for r in self._pending)
        with path.open("a", encoding="utf-8") as f:
            f.write(lines)
        self._pending = []
        return path
