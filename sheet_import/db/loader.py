from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

import psycopg2

from ..errors import (
    DatabaseConnectionError,
    InvalidInputError,
    RowInsertError,
    SchemaError,
    SheetImportError,
    TransactionError,
)
from ..excel.profile import column_kinds
from ..models.import_outcome import ImportOutcome, RowOutcome
from ..models.processing_result import BatchStatsAccumulator
from ..models.record import Record
from .batch_insert import BatchInsertError, batch_insert, insert_row
from .connection import is_connection_error
from .schema import create_table, find_table, truncate_table

"""Transactional loader: records -> one table, one transaction.

    verify table (or create) -> [truncate] -> insert loop -> COMMIT | ROLLBACK

Rows go out in pages of batch_size, each page under a SAVEPOINT. When a page is
rejected it is rolled back to its savepoint and its rows are inserted one by one
(each under its own savepoint) so only the offending rows are skipped. A skipped
row becomes a RowOutcome in ImportOutcome.failures; it never aborts the load.

Everything else (missing table, truncate failure, lost connection, savepoint or
commit failure) rolls back the whole transaction and is raised to the caller.
"""

__all__ = [
    "LoadOptions",
    "load_records",
]

logger = logging.getLogger(__name__)

_BATCH_SAVEPOINT = "sheet_import_batch"
_ROW_SAVEPOINT = "sheet_import_row"


@dataclass(frozen=True)
class LoadOptions:
    truncate: bool = False
    fail_if_table_missing: bool = True
    batch_size: int = 100
    progress_interval: int = 100  # 0 disables progress lines


def _chunks(records: Sequence[Record], size: int) -> Iterator[Sequence[Record]]:
    size = max(1, size)
    for i in range(0, len(records), size):
        yield records[i:i + size]


def _execute(cursor: Any, statement: str) -> None:
    """Run a transaction-control statement; any failure here is fatal."""
    try:
        cursor.execute(statement)
    except psycopg2.Error as e:
        if is_connection_error(e):
            raise DatabaseConnectionError(f"connection lost during '{statement}': {e}") from e
        raise TransactionError(f"'{statement}' failed: {e}") from e


def _undo_to(cursor: Any, savepoint: str) -> None:
    # ROLLBACK TO keeps the savepoint open; release it so the next one does not nest
    _execute(cursor, f"ROLLBACK TO SAVEPOINT {savepoint}")
    _execute(cursor, f"RELEASE SAVEPOINT {savepoint}")


def _aborted(e: BatchInsertError, action: str) -> SheetImportError:
    if e.connection_lost:
        return DatabaseConnectionError(f"connection lost while {action}: {e}")
    return TransactionError(f"transaction aborted while {action}: {e}")


def _rollback(connection: Any, table: str) -> None:
    try:
        connection.rollback()
        logger.error("transaction rolled back table=%s", table)
    except psycopg2.Error as e:
        # 元の例外を優先 (rollback 失敗で上書きしない)
        logger.error("rollback failed table=%s: %s", table, e)


class _InsertLoop:
    """Insert state for one load call."""

    def __init__(self, cursor: Any, table: str, columns: Sequence[str], options: LoadOptions) -> None:
        self.cursor = cursor
        self.table = table
        self.columns = list(columns)
        self.options = options
        self.stats = BatchStatsAccumulator()
        self.failures: list[RowOutcome] = []
        self.inserted = 0
        self.processed = 0

    def run(self, records: Sequence[Record]) -> None:
        total = len(records)
        for batch in _chunks(records, self.options.batch_size):
            if len(batch) == 1:
                self._insert_rows(batch)
            else:
                self._insert_batch(batch)
            self._report_progress(len(batch), total)

    def _insert_batch(self, batch: Sequence[Record]) -> None:
        rows = [r.params(self.columns) for r in batch]
        _execute(self.cursor, f"SAVEPOINT {_BATCH_SAVEPOINT}")
        try:
            result = batch_insert(
                self.cursor,
                self.table,
                self.columns,
                rows,
                page_size=len(rows),
                metrics_callback=lambda m: self.stats.add_batch_time(m.elapsed_seconds),
            )
        except BatchInsertError as e:
            if e.fatal:
                raise _aborted(e, f"inserting into '{self.table}'") from e
            _undo_to(self.cursor, _BATCH_SAVEPOINT)
            logger.debug(
                "batch rows=%d-%d rejected, inserting row by row: %s",
                batch[0].row_number,
                batch[-1].row_number,
                e,
            )
            self._insert_rows(batch)
            return
        _execute(self.cursor, f"RELEASE SAVEPOINT {_BATCH_SAVEPOINT}")
        self.inserted += result.inserted_rows

    def _insert_rows(self, batch: Sequence[Record]) -> None:
        for record in batch:
            _execute(self.cursor, f"SAVEPOINT {_ROW_SAVEPOINT}")
            try:
                insert_row(self.cursor, self.table, self.columns, record.params(self.columns))
            except BatchInsertError as e:
                if e.fatal:
                    raise _aborted(e, f"inserting row {record.row_number}") from e
                _undo_to(self.cursor, _ROW_SAVEPOINT)
                self._record_failure(record, e)
                continue
            _execute(self.cursor, f"RELEASE SAVEPOINT {_ROW_SAVEPOINT}")
            self.inserted += 1

    def _record_failure(self, record: Record, e: BatchInsertError) -> None:
        outcome = RowOutcome(
            row_number=record.row_number,
            error_type=RowInsertError.error_type,
            message=str(e),
            sqlstate=e.sqlstate,
        )
        self.failures.append(outcome)
        logger.warning("error inserting row %d into %s: %s", record.row_number, self.table, e)

    def _report_progress(self, batch_len: int, total: int) -> None:
        interval = self.options.progress_interval
        before = self.processed
        self.processed += batch_len
        if interval > 0 and self.processed // interval > before // interval:
            logger.info(
                "inserted %d rows to %s (%d/%d processed)",
                self.inserted,
                self.table,
                self.processed,
                total,
            )


def load_records(
    connection: Any,
    table: str,
    columns: Sequence[str],
    records: Sequence[Record],
    options: LoadOptions | None = None,
) -> ImportOutcome:
    """Insert every record into table inside a single transaction.

    Parameters
    ----------
    connection: open psycopg2 connection (autocommit off)
    table: target table ("table" or "schema.table")
    columns: sanitized column names (insert column order)
    records: extracted records
    options: truncate / missing-table policy / batch size / progress cadence

    Returns
    -------
    ImportOutcome with inserted count and per-row failures (transaction committed)

    Raises
    ------
    InvalidInputError: nothing to insert
    SchemaError: table missing and fail_if_table_missing is set
    DatabaseConnectionError: session lost at any point
    TransactionError: truncate / savepoint / commit level failure
    """
    options = options or LoadOptions()
    if not records:
        raise InvalidInputError("no data to import")
    if not columns:
        raise InvalidInputError("no columns to import")

    truncated = False
    created = False
    try:
        with connection.cursor() as cursor:
            found = find_table(cursor, table)
            if found is None:
                if options.fail_if_table_missing:
                    raise SchemaError(
                        f"table '{table}' does not exist in the database. Please create it first."
                    )
                create_table(cursor, table, columns, column_kinds(columns, records))
                created = True
            elif found != table:
                logger.info("table %s stored as %s", table, found)
                table = found
            if options.truncate:
                truncate_table(cursor, table)
                truncated = True

            loop = _InsertLoop(cursor, table, columns, options)
            loop.run(records)

        connection.commit()
    except SheetImportError:
        _rollback(connection, table)
        raise
    except psycopg2.Error as e:
        _rollback(connection, table)
        if is_connection_error(e):
            raise DatabaseConnectionError(f"database error on '{table}': {e}") from e
        raise TransactionError(f"transaction failed on '{table}': {e}") from e
    except Exception:
        _rollback(connection, table)
        raise

    total_batches, avg_batch, p95_batch = loop.stats.get_stats()
    logger.info(
        "transaction committed table=%s inserted=%d skipped=%d",
        table,
        loop.inserted,
        len(loop.failures),
    )
    return ImportOutcome(
        table=table,
        total_rows=len(records),
        inserted_rows=loop.inserted,
        failures=loop.failures,
        truncated=truncated,
        table_created=created,
        total_batches=total_batches,
        avg_batch_seconds=avg_batch,
        p95_batch_seconds=p95_batch,
    )
