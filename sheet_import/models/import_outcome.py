from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

"""Import outcome models.

RowOutcome records a row the database refused. The loader never aborts on such a
row; instead it collects the outcome so callers can see exactly which rows were
skipped and why. ImportOutcome is the aggregate returned for one file.
"""

__all__ = [
    "RowOutcome",
    "ImportOutcome",
    "ImportReport",
]


@dataclass(frozen=True)
class RowOutcome:
    """A single row the loader could not insert."""
    row_number: int  # worksheet row number (1-based)
    error_type: str  # UPPER_SNAKE (e.g. ROW_INSERT_ERROR)
    message: str  # driver message
    sqlstate: str | None = None  # PostgreSQL SQLSTATE when available
    inserted: bool = False


@dataclass(frozen=True)
class ImportOutcome:
    """Aggregate result of loading one worksheet into one table."""
    table: str
    total_rows: int  # rows extracted
    inserted_rows: int  # rows committed
    failures: list[RowOutcome] = field(default_factory=list)
    truncated: bool = False
    table_created: bool = False
    # batch timing statistics (BatchStatsAccumulator.get_stats)
    total_batches: int = 0
    avg_batch_seconds: float = 0.0
    p95_batch_seconds: float = 0.0

    @property
    def skipped_rows(self) -> int:
        return self.total_rows - self.inserted_rows

    @property
    def complete(self) -> bool:
        return not self.failures


@dataclass(frozen=True)
class ImportReport:
    """What one import call did, with the targets it resolved."""
    file_name: str
    sheet_name: str
    table: str
    database: str
    outcome: ImportOutcome
    elapsed_seconds: float
    error_log_path: Path | None = None  # set when row failures were written
