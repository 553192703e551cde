from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm

"""File-level progress bar for multi-file CLI runs (tqdm).

The bar is drawn only when stdout is a terminal; under CI, containers or the
HTTP service the log lines are the only progress signal. The tracker counts
imported/failed files and committed rows itself and shows them after the bar.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """One tick per file. Every method is a no-op while the bar is disabled."""

    def __init__(self, total: int, *, description: str = "Importing files") -> None:
        self.total = total
        self.description = description
        self.current = 0
        self.succeeded = 0
        self.failed = 0
        self.rows = 0
        self.bar: Any | None = None
        if is_tty_enabled():
            self.bar = tqdm(
                total=total,
                desc=description,
                unit="file",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def start(self, file_name: str) -> None:
        self.current += 1
        if self.bar is not None:
            self.bar.set_description(f"{self.description} ({file_name})")

    def finish(self, success: bool, rows: int = 0) -> None:
        """Count one finished file and the rows it committed."""
        if success:
            self.succeeded += 1
            self.rows += rows
        else:
            self.failed += 1
        if self.bar is not None:
            self.bar.set_description(self.description)
            self.bar.set_postfix(ok=self.succeeded, failed=self.failed, rows=self.rows)
            self.bar.update(1)

    def close(self) -> None:
        if self.bar is not None:
            self.bar.close()
            self.bar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
