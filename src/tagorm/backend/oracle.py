"""Oracle session.

Uses ``oracledb`` (python-oracledb).  Oracle uses the **numeric**
(``:1``, ``:2``) bind style the mapper generates, so statements are sent
unchanged; ``OutParam`` binds become ``cursor.var`` output variables and
queries that expect ``str`` or ``bytes`` columns fetch CLOB and BLOB values
inline through an output type handler.

Install the driver::

    pip install oracledb
    # or:  pip install tagorm[oracle]

This session is import-guarded: if ``oracledb`` is not installed a
clear :class:`~tagorm.errors.ConfigError` is raised at ``connect()`` time.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from tagorm.errors import BackendError, ConfigError
from tagorm.types import ColumnType

from .base import DBAPISession
from .protocols import OutParam
from .types import BackendConfig, BackendType


class OracleSession(DBAPISession):
    """Oracle backend session (autocommit)."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 1521,
        database: str = "",  # service name
        username: str | None = None,
        password: str | None = None,
        **kwargs: Any,
    ):
        config = BackendConfig(
            backend_type=BackendType.ORACLE,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            options=kwargs or {},
        )
        super().__init__(config)

    def connect(self) -> None:
        """Connect to Oracle database."""
        if self._conn is not None:
            return
        try:
            import oracledb
        except ImportError:
            raise ConfigError(
                "oracledb is required for Oracle. "
                "Install with: pip install oracledb"
            ) from None

        try:
            self._conn = oracledb.connect(
                user=self._config.username,
                password=self._config.password,
                dsn=self._config.to_connection_string(),
                **self._config.options,
            )
            self._conn.autocommit = True
        except oracledb.Error as e:
            raise BackendError(f"Failed to connect to Oracle: {e}", cause=e) from e

    def run(self, cursor: Any, sql: str, params: list[Any]) -> int:
        binds: list[Any] = []
        outputs: list[tuple[OutParam, Any]] = []
        for param in params:
            if isinstance(param, OutParam):
                var = cursor.var(param.column_type.python_type or str)
                outputs.append((param, var))
                binds.append(var)
            else:
                binds.append(self.bind_value(param))
        cursor.execute(sql, binds)
        for param, var in outputs:
            value = var.getvalue()
            # DML RETURNING yields one value per affected row.
            param.value = value[0] if isinstance(value, list) and value else value
        return cursor.rowcount

    def prepare_cursor(self, cursor: Any, column_types: Sequence[ColumnType]) -> None:
        """Fetch LOB columns inline when the caller expects ``str`` or ``bytes``.

        Without a handler python-oracledb returns CLOB, NCLOB and BLOB values
        as ``oracledb.LOB`` objects.
        """
        import oracledb

        expected = {column_type.base() for column_type in column_types}
        fetch_as: dict[Any, Any] = {}
        if ColumnType.STRING in expected:
            fetch_as[oracledb.DB_TYPE_CLOB] = oracledb.DB_TYPE_LONG
            fetch_as[oracledb.DB_TYPE_NCLOB] = oracledb.DB_TYPE_LONG_NVARCHAR
        if ColumnType.BINARY in expected:
            fetch_as[oracledb.DB_TYPE_BLOB] = oracledb.DB_TYPE_LONG_RAW
        if not fetch_as:
            return

        def output_type_handler(cursor: Any, metadata: Any) -> Any:
            fetch_type = fetch_as.get(metadata.type_code)
            if fetch_type is None:
                return None
            return cursor.var(fetch_type, arraysize=cursor.arraysize)

        cursor.outputtypehandler = output_type_handler

    def bind_value(self, value: Any) -> Any:
        if isinstance(value, bool):
            return int(value)
        return value


__all__ = [
    "OracleSession",
]
