"""Relational storage connections.

SQL in this package is written once with ``?`` placeholders and runs on
either backend:

- ``SqliteDatabase``: embedded file database (default)
- ``PostgresDatabase``: PostgreSQL through psycopg 3

Both run in autocommit mode outside ``transaction()`` blocks, so ledger
updates are durable immediately while each file's inserts commit or roll
back as one unit. Driver errors surface as ``StorageError``; a unique
violation on the sale natural key surfaces as ``DuplicateSaleError``.
"""

from __future__ import annotations

import itertools
import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Sequence

import psycopg
from psycopg import errors as pg_errors

from sales_ingest.config import DatabaseConfig
from sales_ingest.exceptions import DuplicateSaleError, StorageError

logger = logging.getLogger(__name__)

SALES_TABLE = "property_sales"
NATURAL_KEY_CONSTRAINT = "uq_property_sales_natural_key"

Params = Sequence[Any]

_PG_COLUMNS_SQL = """
SELECT c.column_name, c.data_type, c.is_nullable, c.column_default,
       c.column_name IN (
           SELECT k.column_name
           FROM information_schema.table_constraints t
           JOIN information_schema.key_column_usage k
             ON t.constraint_name = k.constraint_name AND t.table_schema = k.table_schema
           WHERE t.constraint_type = 'PRIMARY KEY'
             AND t.table_schema = current_schema() AND t.table_name = ?
       )
FROM information_schema.columns c
WHERE c.table_schema = current_schema() AND c.table_name = ?
ORDER BY c.ordinal_position
"""


class Database(ABC):
    """Backend-neutral connection wrapper."""

    dialect: str = ""

    @abstractmethod
    def execute(self, sql: str, params: Params = ()) -> Any:
        """Execute one statement and return the driver cursor."""

    @abstractmethod
    def insert_returning_id(self, sql: str, params: Params = ()) -> int:
        """Execute an INSERT and return the generated ``id``."""

    @abstractmethod
    def transaction(self) -> Any:
        """Context manager: commit on success, roll back on exception."""

    @abstractmethod
    def savepoint(self) -> Any:
        """Context manager: undo only the enclosed statements on exception."""

    @abstractmethod
    def table_columns(self, table: str) -> list[dict[str, Any]]:
        """Column name, type, nullability, default and primary-key flag for ``table``."""

    @abstractmethod
    def close(self) -> None:
        """Close the connection."""

    def fetchone(self, sql: str, params: Params = ()) -> tuple | None:
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Params = ()) -> list[tuple]:
        return list(self.execute(sql, params).fetchall())

    def fetchall_dicts(self, sql: str, params: Params = ()) -> list[dict[str, Any]]:
        """Run a query and return rows as column-name dicts."""
        cursor = self.execute(sql, params)
        columns = [col[0] for col in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def scalar(self, sql: str, params: Params = ()) -> Any:
        row = self.fetchone(sql, params)
        return row[0] if row else None

    def count(self, table: str) -> int:
        return int(self.scalar(f"SELECT COUNT(*) FROM {table}"))  # noqa: S608

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class SqliteDatabase(Database):
    """SQLite storage in a local file (or ``:memory:``)."""

    dialect = "sqlite"

    def __init__(self, path: str | Path) -> None:
        """Open (and create if needed) a SQLite database.

        Parameters
        ----------
        path : str | Path
            Database file path; parent directories are created.
        """
        self.path = str(path)
        if self.path != ":memory:":
            parent = Path(self.path).parent
            if not parent.exists():
                parent.mkdir(parents=True, exist_ok=True)
                logger.info("Created data directory: %s", parent)

        # isolation_level=None: statements autocommit unless inside BEGIN.
        self._conn = sqlite3.connect(self.path, isolation_level=None)
        self._conn.execute("PRAGMA foreign_keys = ON")
        if self.path != ":memory:":
            self._conn.execute("PRAGMA journal_mode = WAL")
        self._savepoint_ids = itertools.count(1)

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, tuple(params))
        except sqlite3.Error as e:
            raise self._translate(e) from e

    def insert_returning_id(self, sql: str, params: Params = ()) -> int:
        cursor = self.execute(sql, params)
        return int(cursor.lastrowid)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        self.execute("BEGIN")
        try:
            yield
        except BaseException:
            self._conn.execute("ROLLBACK")
            raise
        self.execute("COMMIT")

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        name = f"sp_{next(self._savepoint_ids)}"
        self.execute(f"SAVEPOINT {name}")
        try:
            yield
        except BaseException:
            self.execute(f"ROLLBACK TO SAVEPOINT {name}")
            self.execute(f"RELEASE SAVEPOINT {name}")
            raise
        self.execute(f"RELEASE SAVEPOINT {name}")

    def table_columns(self, table: str) -> list[dict[str, Any]]:
        rows = self.fetchall(f"PRAGMA table_info({table})")
        return [
            {
                "name": name,
                "type": col_type,
                "nullable": not notnull,
                "defaultValue": default,
                "isPrimaryKey": bool(pk),
            }
            for _, name, col_type, notnull, default, pk in rows
        ]

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _translate(error: sqlite3.Error) -> StorageError:
        message = str(error)
        # Expression indexes are reported by name, not by column list.
        if isinstance(error, sqlite3.IntegrityError) and (
            message.startswith(f"UNIQUE constraint failed: {SALES_TABLE}.")
            or NATURAL_KEY_CONSTRAINT in message
        ):
            return DuplicateSaleError(message)
        return StorageError(message)


class PostgresDatabase(Database):
    """PostgreSQL storage via psycopg 3."""

    dialect = "postgres"

    def __init__(self, connection_string: str) -> None:
        try:
            self._conn = psycopg.connect(connection_string, autocommit=True)
        except psycopg.Error as e:
            raise StorageError(f"Cannot connect to PostgreSQL: {e}") from e

    @staticmethod
    def _prepare(sql: str) -> str:
        return sql.replace("?", "%s")

    def execute(self, sql: str, params: Params = ()) -> Any:
        try:
            return self._conn.execute(self._prepare(sql), tuple(params))
        except psycopg.Error as e:
            raise self._translate(e) from e

    def insert_returning_id(self, sql: str, params: Params = ()) -> int:
        row = self.execute(f"{sql} RETURNING id", params).fetchone()
        return int(row[0])

    @contextmanager
    def transaction(self) -> Iterator[None]:
        # Nested psycopg transactions become savepoints.
        try:
            with self._conn.transaction():
                yield
        except psycopg.Error as e:
            raise self._translate(e) from e

    def savepoint(self) -> Any:
        return self.transaction()

    def table_columns(self, table: str) -> list[dict[str, Any]]:
        rows = self.fetchall(_PG_COLUMNS_SQL, (table, table))
        return [
            {
                "name": name,
                "type": col_type,
                "nullable": nullable == "YES",
                "defaultValue": default,
                "isPrimaryKey": bool(pk),
            }
            for name, col_type, nullable, default, pk in rows
        ]

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _translate(error: psycopg.Error) -> StorageError:
        if isinstance(error, pg_errors.UniqueViolation):
            constraint = getattr(error.diag, "constraint_name", None)
            if constraint == NATURAL_KEY_CONSTRAINT:
                return DuplicateSaleError(str(error))
        return StorageError(str(error))


def connect(url: str | DatabaseConfig) -> Database:
    """Open a database from a URL or ``DatabaseConfig``.

    ``postgresql://...`` opens PostgreSQL; ``sqlite:///path`` or a bare
    path opens SQLite.
    """
    config = url if isinstance(url, DatabaseConfig) else DatabaseConfig(url=url)
    if config.is_postgres:
        return PostgresDatabase(config.url)
    return SqliteDatabase(config.sqlite_path)
