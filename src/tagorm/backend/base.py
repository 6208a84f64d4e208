"""DB-API 2.0 session base class.

Manifesto:
    Every reference backend shares the same lifecycle (connect/close), the
    same statement and row-set wrappers over DB-API cursors, and the same
    generic ``update`` helper.  Subclasses only supply the driver
    connection and whatever bind translation their driver needs.

Features:
    - Abstract ``connect()`` / ``close()``
    - ``prepare`` / ``prepare_and_execute`` / ``update`` over DB-API cursors
    - Context-manager protocol for connection lifecycle

Tags:
    backend, dbapi, abstract-base, adapter-pattern, tagorm
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from tagorm.errors import BackendError
from tagorm.types import ColumnType

from .protocols import OutParam
from .types import BackendConfig, BackendType


class CursorRowSet:
    """Forward-only :class:`~tagorm.backend.protocols.RowSet` over a cursor."""

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor
        self._row: Sequence[Any] | None = None

    def next(self) -> bool:
        self._row = self._cursor.fetchone()
        return self._row is not None

    def current_row(self) -> Sequence[Any]:
        if self._row is None:
            raise BackendError("No current row; call next() first.")
        return tuple(self._row)


class CursorStatement:
    """A statement prepared against a :class:`DBAPISession`."""

    def __init__(
        self,
        session: DBAPISession,
        sql: str,
        column_types: Sequence[ColumnType] = (),
    ) -> None:
        self.session = session
        self.sql = sql
        self.column_types = tuple(column_types)
        self._cursors: list[Any] = []

    def _cursor(self) -> Any:
        cursor = self.session.connection.cursor()
        self._cursors.append(cursor)
        return cursor

    def execute(self, *params: Any) -> int:
        return self.session.run(self._cursor(), self.sql, list(params))

    def query(self, *params: Any) -> CursorRowSet:
        cursor = self._cursor()
        self.session.prepare_cursor(cursor, self.column_types)
        cursor.execute(self.sql, [self.session.bind_value(p) for p in params])
        return CursorRowSet(cursor)

    def close(self) -> None:
        while self._cursors:
            self._cursors.pop().close()


class DBAPISession(ABC):
    """
    Abstract base class for DB-API backed sessions.

    Generated SQL uses Oracle-style binds (``:1``, ``:2``, ``:RET_VAL``);
    drivers with another paramstyle override :meth:`translate`.
    """

    def __init__(self, config: BackendConfig):
        self._config = config
        self._conn: Any = None

    @property
    def backend_type(self) -> BackendType:
        return self._config.backend_type

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @abstractmethod
    def connect(self) -> None:
        """Open the driver connection."""
        ...

    def close(self) -> None:
        """Close the driver connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @property
    def connection(self) -> Any:
        if self._conn is None:
            self.connect()
        return self._conn

    # -- Hooks ---------------------------------------------------------------

    def translate(self, sql: str) -> str:
        """Rewrite generated SQL into the driver's bind syntax."""
        return sql

    def bind_value(self, value: Any) -> Any:
        """Convert one parameter value before binding."""
        return value

    def prepare_cursor(self, cursor: Any, column_types: Sequence[ColumnType]) -> None:
        """Set up a query cursor for the column types the caller expects."""

    def run(self, cursor: Any, sql: str, params: list[Any]) -> int:
        """Execute ``sql`` on ``cursor``; fill any :class:`OutParam`."""
        if any(isinstance(p, OutParam) for p in params):
            raise BackendError(
                f"{type(self).__name__} does not support output parameters."
            ).with_context(sql=sql)
        cursor.execute(sql, [self.bind_value(p) for p in params])
        return cursor.rowcount

    # -- Session protocol ----------------------------------------------------

    def prepare(self, sql: str, *column_types: ColumnType) -> CursorStatement:
        return CursorStatement(self, self.translate(sql), column_types)

    def prepare_and_execute(self, sql: str, *params: Any) -> int:
        stmt = self.prepare(sql)
        try:
            return stmt.execute(*params)
        finally:
            stmt.close()

    def update(self, table: str, pairs: Sequence[tuple[str, Any]]) -> None:
        """Update one row; the last pair is the WHERE predicate."""
        if len(pairs) < 2:
            raise BackendError(
                f"Update of {table} needs at least one column besides the key."
            ).with_context(table=table)
        *assignments, (where_column, where_value) = pairs
        sets = ", ".join(f"{column} = :{n}" for n, (column, _) in enumerate(assignments, start=1))
        sql = f"UPDATE {table} SET {sets} WHERE {where_column} = :{len(pairs)}"
        self.prepare_and_execute(sql, *[value for _, value in assignments], where_value)

    def __enter__(self) -> DBAPISession:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = [
    "CursorRowSet",
    "CursorStatement",
    "DBAPISession",
]
