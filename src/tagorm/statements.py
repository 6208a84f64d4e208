"""SQL text and bind parameters for the four mapped operations.

Builders are pure: they read a :class:`~tagorm.metadata.TableMetadata` and
the live record and return SQL plus an ordered parameter list.  Nothing here
talks to a backend.

Bind syntax is Oracle's: numbered ``:1 .. :N`` for values, named ``:RET_VAL``
for the RETURNING output and ``:WHERE_VAL`` for the delete key.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from tagorm.backend.protocols import OutParam
from tagorm.errors import MetadataError, MissingRoleError
from tagorm.metadata import ColumnMetadata, TableMetadata
from tagorm.types import Role

RETURNING_BIND = ":RET_VAL"
WHERE_BIND = ":WHERE_VAL"

_WHERE_TOKEN = re.compile(r"\bWHERE\b", re.IGNORECASE)


@dataclass
class SqlStatement:
    """Generated SQL plus its positional parameters."""

    sql: str
    params: list[Any] = field(default_factory=list)


@dataclass
class InsertStatement(SqlStatement):
    """Insert SQL; ``out_param`` receives the identity value, if any."""

    identity: ColumnMetadata | None = None
    out_param: OutParam | None = None


def _require_key(table: TableMetadata, operation: str) -> ColumnMetadata:
    key = table.key_column
    if key is None:
        raise MissingRoleError(table.record_name, Role.PRIMARY_KEY.token, operation)
    return key


def insert_columns(table: TableMetadata) -> tuple[ColumnMetadata, ...]:
    """Columns listed in the VALUES clause (all but a trailing identity)."""
    if table.has(Role.IDENTITY):
        return table.columns[:-1]
    return table.columns


def render_insert_sql(table: TableMetadata, schema: str = "") -> str:
    """``INSERT INTO t (A, B) VALUES (:1, :2) [RETURNING ID INTO :RET_VAL]``."""
    columns = insert_columns(table)
    names = ", ".join(col.name for col in columns)
    binds = ", ".join(f":{n}" for n in range(1, len(columns) + 1))
    sql = f"INSERT INTO {table.qualified_name(schema)} ({names}) VALUES ({binds})"
    identity = table.identity_column
    if identity is not None:
        sql += f" RETURNING {identity.name} INTO {RETURNING_BIND}"
    return sql


def insert_statement(table: TableMetadata, record: Any, schema: str = "") -> InsertStatement:
    """Build the INSERT for ``record``.

    With an identity column the last parameter is an :class:`OutParam` the
    backend fills; the caller copies it back onto the record.

    Raises:
        MetadataError: The identity field of a frozen record cannot be set.
    """
    identity = table.identity_column
    if identity is not None and _is_frozen(record):
        raise MetadataError(
            f"Record '{table.record_name}' is frozen; identity field "
            f"'{identity.attribute}' cannot receive the generated value."
        ).with_context(record_type=table.record_name, field=identity.attribute, role="id")

    params: list[Any] = [col.get(record) for col in insert_columns(table)]
    out_param = None
    if identity is not None:
        out_param = OutParam(column_type=identity.column_type)
        params.append(out_param)

    return InsertStatement(
        sql=render_insert_sql(table, schema),
        params=params,
        identity=identity,
        out_param=out_param,
    )


def _is_frozen(record: Any) -> bool:
    params = getattr(type(record), "__dataclass_params__", None)
    return bool(params is not None and params.frozen)


def update_pairs(table: TableMetadata, record: Any) -> list[tuple[str, Any]]:
    """``(column, value)`` for every column; the key pair comes last.

    Raises:
        MissingRoleError: The table has no primary key.
        MetadataError: The key is the only column, leaving nothing to SET.
    """
    _require_key(table, "update")
    if len(table.columns) < 2:
        raise MetadataError(
            f"Record '{table.record_name}' has no columns to update besides its primary key."
        ).with_context(record_type=table.record_name, table=table.name)
    return [(col.name, col.get(record)) for col in table.columns]


def render_update_sql(table: TableMetadata, schema: str = "") -> str:
    """The UPDATE reference backends render from :func:`update_pairs`."""
    key = _require_key(table, "update")
    sets = ", ".join(f"{col.name} = :{n}" for n, col in enumerate(table.columns[:-1], start=1))
    return (
        f"UPDATE {table.qualified_name(schema)} SET {sets} "
        f"WHERE {key.name} = :{len(table.columns)}"
    )


def render_delete_sql(table: TableMetadata, schema: str = "") -> str:
    key = _require_key(table, "delete")
    return f"DELETE FROM {table.qualified_name(schema)} WHERE {key.name} = {WHERE_BIND}"


def delete_statement(table: TableMetadata, record: Any, schema: str = "") -> SqlStatement:
    """``DELETE FROM t WHERE PK = :WHERE_VAL`` bound to the record's key."""
    sql = render_delete_sql(table, schema)
    return SqlStatement(sql=sql, params=[table.columns[-1].get(record)])


def render_select_sql(table: TableMetadata, schema: str = "", where: str = "") -> str:
    """``SELECT <columns> FROM t [WHERE ...]``.

    ``where`` gets a ``WHERE`` prefix unless it already contains the keyword.
    """
    sql = f"SELECT {', '.join(table.column_names)} FROM {table.qualified_name(schema)}"
    where = where.strip()
    if where:
        if not _WHERE_TOKEN.search(where):
            where = f"WHERE {where}"
        sql = f"{sql} {where}"
    return sql


def select_statement(
    table: TableMetadata,
    schema: str = "",
    where: str = "",
    where_params: tuple[Any, ...] = (),
) -> SqlStatement:
    return SqlStatement(sql=render_select_sql(table, schema, where), params=list(where_params))


__all__ = [
    "RETURNING_BIND",
    "WHERE_BIND",
    "SqlStatement",
    "InsertStatement",
    "insert_columns",
    "render_insert_sql",
    "insert_statement",
    "update_pairs",
    "render_update_sql",
    "render_delete_sql",
    "delete_statement",
    "render_select_sql",
    "select_statement",
]
