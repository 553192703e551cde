from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import psycopg2
import psycopg2.errors
import psycopg2.extensions

from ..errors import ConfigError, DatabaseConnectionError
from ..models.config_models import DEFAULT_DATABASE_KEY

"""Connection string lookup and psycopg2 connection handling.

Connection strings are keyed by logical database name and never embedded in
code. Resolution order for a logical name NAME:

    1. env DATABASE_URL_<NAME>      (NAME upper-cased, non-word chars -> '_')
    2. config databases[NAME]
    3. env DATABASE_URL             (service-wide fallback)
    4. config databases[default_database]

Anything logged goes through mask_dsn first.
"""

__all__ = [
    "ENV_PREFIX",
    "Connector",
    "ConnectionRegistry",
    "mask_dsn",
    "env_key",
    "is_connection_error",
    "connect_database",
    "open_connection",
]

logger = logging.getLogger(__name__)

ENV_PREFIX = "DATABASE_URL_"
FALLBACK_ENV = "DATABASE_URL"

# psycopg2.connect compatible callable (injectable for tests)
Connector = Callable[..., Any]

# OperationalError subclasses raised while the connection is still usable
_SESSION_ALIVE = (
    psycopg2.extensions.TransactionRollbackError,  # 40001 / 40P01
    psycopg2.extensions.QueryCanceledError,  # 57014 statement_timeout
    psycopg2.errors.LockNotAvailable,  # 55P03
)
_CONNECTION_SQLSTATES = ("08", "57P0")

_KV_PASSWORD = re.compile(r"(password\s*=\s*)('[^']*'|[^\s;]+)", re.IGNORECASE)
_URL_PASSWORD = re.compile(r"(://[^:/@\s]+:)([^@\s]+)(@)")


def mask_dsn(dsn: str | None) -> str | None:
    """Hide passwords in key=value and URL style connection strings."""
    if not dsn:
        return dsn
    masked = _KV_PASSWORD.sub(r"\1***", dsn)
    return _URL_PASSWORD.sub(r"\1***\3", masked)


def env_key(database: str) -> str:
    return ENV_PREFIX + re.sub(r"\W", "_", database).upper()


class ConnectionRegistry:
    """Resolve logical database names to connection strings."""

    def __init__(
        self,
        databases: Mapping[str, str] | None = None,
        default_database: str = DEFAULT_DATABASE_KEY,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._databases = dict(databases or {})
        self.default_database = default_database
        self._environ = environ if environ is not None else os.environ

    def names(self) -> list[str]:
        """Configured logical names (env-only names are not discoverable)."""
        names = list(self._databases.keys())
        if self.default_database not in names:
            names.insert(0, self.default_database)
        return names

    def resolve(self, database: str | None) -> str:
        name = (database or "").strip() or self.default_database
        candidates = (
            self._environ.get(env_key(name)),
            self._databases.get(name),
            self._environ.get(FALLBACK_ENV),
            self._databases.get(self.default_database),
        )
        for dsn in candidates:
            if dsn:
                logger.debug("database=%s dsn=%s", name, mask_dsn(dsn))
                return dsn
        available = ", ".join(self._databases.keys()) or "<none>"
        raise ConfigError(
            f"connection string not found for '{name}'. Available connections: {available}"
        )


def is_connection_error(exc: BaseException) -> bool:
    """True for driver errors that mean the session itself is gone.

    OperationalError also covers serialization failures, deadlocks, lock and
    statement timeouts; those keep the connection and are transaction errors.
    A lost session has SQLSTATE class 08 (or 57P0x shutdown) or none at all.
    """
    if isinstance(exc, psycopg2.InterfaceError):
        return True
    if not isinstance(exc, psycopg2.OperationalError) or isinstance(exc, _SESSION_ALIVE):
        return False
    code = getattr(exc, "pgcode", None)
    return code is None or code.startswith(_CONNECTION_SQLSTATES)


def connect_database(
    dsn: str, command_timeout: int | None = None, connect: Connector | None = None
) -> Any:
    """Open a connection with an explicit transaction boundary.

    command_timeout is applied as PostgreSQL statement_timeout (seconds).
    """
    connect = connect or psycopg2.connect
    kwargs: dict[str, Any] = {}
    if command_timeout:
        kwargs["options"] = f"-c statement_timeout={int(command_timeout) * 1000}"
    try:
        conn = connect(dsn, **kwargs)
    except psycopg2.Error as e:
        raise DatabaseConnectionError(f"cannot connect to database: {e}") from e
    conn.autocommit = False  # BEGIN は最初の文で暗黙に開始
    return conn


@contextmanager
def open_connection(
    dsn: str, command_timeout: int | None = None, connect: Connector | None = None
) -> Iterator[Any]:
    """Context manager around connect_database that always closes the connection.

    Commit/rollback is the loader's job; a transaction still open here was
    abandoned by an exception and is rolled back by close().
    """
    conn = connect_database(dsn, command_timeout=command_timeout, connect=connect)
    try:
        yield conn
    finally:
        try:
            conn.close()
        except psycopg2.Error as e:  # pragma: no cover
            logger.warning("failed to close connection: %s", e)
