from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from ..models.cell_value import CellKind

"""Identifier quoting and catalog/DDL helpers for the target table.

Identifiers are always double-quoted, so they must match the stored name exactly.
find_table resolves the configured name to the stored one: an exact match wins,
otherwise the lower-cased name (how PostgreSQL stores a table created without
quotes, e.g. Tbl_VariyaLog -> tbl_variyalog).

A table may be given as "schema.table"; without a schema the connection's
current_schema() is used.
"""

__all__ = [
    "SQL_TYPES",
    "quote_ident",
    "split_table_name",
    "qualified_table",
    "find_table",
    "create_table",
    "truncate_table",
]

logger = logging.getLogger(__name__)

SQL_TYPES: dict[CellKind, str] = {
    CellKind.INT: "BIGINT",
    CellKind.FLOAT: "DOUBLE PRECISION",
    CellKind.DECIMAL: "NUMERIC",
    CellKind.BOOL: "BOOLEAN",
    CellKind.DATETIME: "TIMESTAMP",
    CellKind.TEXT: "TEXT",
    CellKind.NULL: "TEXT",
}

_FIND_TABLE_SQL = (
    "SELECT table_name FROM information_schema.tables "
    "WHERE table_schema = COALESCE(%s, current_schema()) AND table_name IN (%s, %s) "
    "ORDER BY table_name = %s DESC LIMIT 1"
)


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def split_table_name(table: str) -> tuple[str | None, str]:
    if "." in table:
        schema, name = table.split(".", 1)
        return schema or None, name
    return None, table


def qualified_table(table: str) -> str:
    schema, name = split_table_name(table)
    if schema:
        return f"{quote_ident(schema)}.{quote_ident(name)}"
    return quote_ident(name)


def find_table(cursor: Any, table: str) -> str | None:
    """Stored name of table ("schema.name" kept as given), or None if absent."""
    schema, name = split_table_name(table)
    cursor.execute(_FIND_TABLE_SQL, (schema, name, name.lower(), name))
    row = cursor.fetchone()
    if row is None:
        return None
    stored = row[0]
    return f"{schema}.{stored}" if schema else stored


def create_table(cursor: Any, table: str, columns: Sequence[str], kinds: Mapping[str, CellKind]) -> str:
    """CREATE TABLE with one nullable column per worksheet column. Returns the DDL."""
    cols_sql = ", ".join(
        f"{quote_ident(c)} {SQL_TYPES[kinds.get(c, CellKind.TEXT)]}" for c in columns
    )
    ddl = f"CREATE TABLE {qualified_table(table)} ({cols_sql})"
    logger.info("creating table %s", table)
    logger.debug("ddl=%s", ddl)
    cursor.execute(ddl)
    return ddl


def truncate_table(cursor: Any, table: str) -> None:
    logger.info("truncating table %s", table)
    cursor.execute(f"TRUNCATE TABLE {qualified_table(table)}")
