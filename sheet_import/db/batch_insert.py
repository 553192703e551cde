from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

from .connection import is_connection_error
from .schema import qualified_table, quote_ident

"""Parameterized INSERT helpers.

batch_insert sends a page of rows with psycopg2.extras.execute_values; insert_row
sends exactly one row. Both wrap driver errors in BatchInsertError, which tells
the loader whether the failure belongs to the rows (recoverable) or to the
session (fatal).

Values are passed as native Python types (int/float/Decimal/bool/datetime/str);
psycopg2 adapts each one, so nothing is forced to text.
"""

__all__ = [
    "BatchInsertError",
    "BatchMetrics",
    "InsertResult",
    "build_insert_sql",
    "batch_insert",
    "insert_row",
]


class BatchInsertError(Exception):
    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        # OperationalError / InterfaceError leave the transaction unusable
        self.fatal = isinstance(cause, (psycopg2.OperationalError, psycopg2.InterfaceError))
        self.connection_lost = cause is not None and is_connection_error(cause)
        self.sqlstate: str | None = getattr(cause, "pgcode", None)

    @classmethod
    def wrap(cls, e: psycopg2.Error) -> BatchInsertError:
        return cls((getattr(e, "pgerror", None) or str(e)).strip(), cause=e)


@dataclass(frozen=True)
class BatchMetrics:
    batch_size: int
    elapsed_seconds: float  # wall time of the execute_values call, failed calls included


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int


def build_insert_sql(table: str, columns: Sequence[str], placeholders: str = "%s") -> str:
    cols_sql = ",".join(quote_ident(c) for c in columns)
    return f"INSERT INTO {qualified_table(table)} ({cols_sql}) VALUES {placeholders}"


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    page_size: int = 1000,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> InsertResult:
    """INSERT rows with one execute_values call.

    table may be "table" or "schema.table"; columns are already sanitized.
    metrics_callback gets one BatchMetrics per call, unless rows is empty, in
    which case nothing is sent and nothing is reported.

    Raises:
        BatchInsertError
    """
    page = list(rows)
    if not page:
        return InsertResult(inserted_rows=0)

    sql = build_insert_sql(table, columns)
    began = time.perf_counter()
    try:
        execute_values(cursor, sql, page, page_size=page_size)
    except psycopg2.Error as e:
        raise BatchInsertError.wrap(e) from e
    finally:
        if metrics_callback is not None:
            metrics_callback(BatchMetrics(len(page), time.perf_counter() - began))

    return InsertResult(inserted_rows=len(page))


def insert_row(cursor: Any, table: str, columns: Sequence[str], row: Sequence[Any]) -> None:
    """INSERT a single row with one placeholder per column."""
    placeholders = "(" + ",".join(["%s"] * len(columns)) + ")"
    try:
        cursor.execute(build_insert_sql(table, columns, placeholders), list(row))
    except psycopg2.Error as e:
        raise BatchInsertError.wrap(e) from e
