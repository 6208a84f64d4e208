"""SQLite session.

Uses the built-in sqlite3 module.  Suitable for:
- Development and testing
- Single-process applications

Generated statements use Oracle bind syntax; this session rewrites them
for SQLite before preparing:

- ``:1``, ``:WHERE_VAL`` ... become ``?`` (quoted text is left alone)
- ``RETURNING ID INTO :RET_VAL`` becomes ``RETURNING ID`` and the returned
  row fills the statement's :class:`~tagorm.backend.protocols.OutParam`
"""

from __future__ import annotations

import datetime
import re
import sqlite3
from typing import Any

from tagorm.errors import ConfigError

from .base import DBAPISession
from .protocols import OutParam
from .types import BackendConfig, BackendType

_BIND = re.compile(r"'(?:[^']|'')*'|\"[^\"]*\"|(?<![:\w]):(\w+)")
_RETURNING_INTO = re.compile(r"(\bRETURNING\s+[\w.]+)\s+INTO\s+:\w+\s*$", re.IGNORECASE)


def translate_binds(sql: str) -> str:
    """Rewrite Oracle-style binds as qmark binds.

    >>> translate_binds("SELECT A FROM T WHERE B = :1 AND C = 'x:y'")
    "SELECT A FROM T WHERE B = ? AND C = 'x:y'"
    """
    sql = _RETURNING_INTO.sub(r"\1", sql)
    return _BIND.sub(lambda m: "?" if m.group(1) else m.group(0), sql)


class SQLiteSession(DBAPISession):
    """
    SQLite backend session.

    The connection runs in autocommit mode; every statement is its own
    transaction.
    """

    def __init__(self, path: str = ":memory:", *, timeout: float = 5.0, **kwargs: Any):
        config = BackendConfig(
            backend_type=BackendType.SQLITE,
            path=path,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout

    def connect(self) -> None:
        """Connect to SQLite database."""
        if self._conn is not None:
            return
        path = self._config.to_connection_string()
        try:
            self._conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                isolation_level=None,
                check_same_thread=False,
                uri=path.startswith("file:"),
            )
        except sqlite3.Error as e:
            raise ConfigError(f"Failed to connect to SQLite: {e}", cause=e) from e

    def execute_script(self, script: str) -> None:
        """Run DDL or other multi-statement SQL as-is."""
        self.connection.executescript(script)

    def translate(self, sql: str) -> str:
        return translate_binds(sql)

    def bind_value(self, value: Any) -> Any:
        if isinstance(value, datetime.datetime):
            return value.isoformat(sep=" ")
        if isinstance(value, bytearray):
            return bytes(value)
        return value

    def run(self, cursor: Any, sql: str, params: list[Any]) -> int:
        out = [p for p in params if isinstance(p, OutParam)]
        cursor.execute(sql, [self.bind_value(p) for p in params if not isinstance(p, OutParam)])
        if not out:
            return cursor.rowcount
        row = cursor.fetchone()
        out[0].value = row[0] if row else None
        return 1 if row else 0


__all__ = [
    "SQLiteSession",
    "translate_binds",
]
