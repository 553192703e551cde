from __future__ import annotations

import statistics
from dataclasses import dataclass
from datetime import datetime

"""Processing result models for multi-file (CLI) imports.

FileStat carries per-file numbers, ProcessingResult the aggregate used for the
SUMMARY line. BatchStatsAccumulator collects batch insert timings for one file.
"""

__all__ = [
    "FileStat",
    "ProcessingResult",
    "BatchStatsAccumulator",
]


@dataclass(frozen=True)
class FileStat:
    """Per-file processing statistics."""
    file_name: str
    status: str  # success/failed
    inserted_rows: int
    elapsed_seconds: float
    skipped_rows: int = 0  # rows the database refused
    table: str | None = None
    database: str | None = None
    error: str | None = None
    total_batches: int = 0
    avg_batch_seconds: float = 0.0
    p95_batch_seconds: float = 0.0  # performance monitoring


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results over every file of one run."""
    success_files: int
    failed_files: int
    total_inserted_rows: int
    total_skipped_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float  # total_inserted / elapsed
    file_stats: list[FileStat] | None = None


class BatchStatsAccumulator:
    """Timings of the execute_values batches of one load.

    p95 uses the nearest-rank method, so it is always one of the observed
    batch durations.
    """

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """(total_batches, avg_batch_seconds, p95_batch_seconds); zeros when nothing ran."""
        count = len(self.batch_times)
        if count == 0:
            return (0, 0.0, 0.0)
        ordered = sorted(self.batch_times)
        rank = -(-95 * count // 100)  # ceil(0.95 * count)
        return (count, statistics.fmean(ordered), ordered[rank - 1])
