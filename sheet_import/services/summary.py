from __future__ import annotations

from ..models.processing_result import ProcessingResult

"""SUMMARY line for CLI runs.

One line of space separated key=value pairs, always in this order:
files, success, failed, rows, skipped_rows, elapsed_sec, throughput_rps.
"""

__all__ = [
    "render_summary_line",
]


def _num(value: float) -> str:
    """Plain decimal, no exponent, no trailing zeros (3 places, 6 below 0.01)."""
    if value == int(value):
        return str(int(value))
    places = 6 if abs(value) < 0.01 else 3
    return f"{value:.{places}f}".rstrip("0").rstrip(".")


def render_summary_line(total_files: int, result: ProcessingResult) -> str:
    """
    >>> from datetime import datetime, timezone
    >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
    >>> r = ProcessingResult(
    ...     success_files=1, failed_files=1, total_inserted_rows=250,
    ...     total_skipped_rows=2, start_time=t, end_time=t,
    ...     elapsed_seconds=0.5, throughput_rows_per_sec=500.0,
    ... )
    >>> render_summary_line(2, r)
    'SUMMARY files=2/2 success=1 failed=1 rows=250 skipped_rows=2 elapsed_sec=0.5 throughput_rps=500'
    """
    pairs = [
        ("files", f"{total_files}/{total_files}"),
        ("success", result.success_files),
        ("failed", result.failed_files),
        ("rows", result.total_inserted_rows),
        ("skipped_rows", result.total_skipped_rows),
        ("elapsed_sec", _num(result.elapsed_seconds)),
        ("throughput_rps", _num(result.throughput_rows_per_sec)),
    ]
    return "SUMMARY " + " ".join(f"{k}={v}" for k, v in pairs)
