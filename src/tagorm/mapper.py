"""
Mapper: the four record operations against a backend session.

Manifesto:
    Callers hand a record and a session to :meth:`Mapper.insert`,
    :meth:`Mapper.update`, :meth:`Mapper.delete` or :meth:`Mapper.select`.
    Each call resolves the record type's metadata, validates everything it
    can before any SQL runs, builds the statement, and drives the backend.

    - **Eager:** Metadata and shape errors are raised before ``prepare``
    - **Wrapped:** Backend failures surface as :class:`BackendError`
    - **Serialized:** Each operation holds its own lock end to end

Architecture:
    ::

        Mapper
        ├── registry: MetadataRegistry   (per-mapper cache, own RLock)
        ├── schema:   "SALES" → SALES.ITEM
        ├── insert(record, session)  ─▶ prepare + execute, identity write-back
        ├── update(record, session)  ─▶ session.update(table, pairs)
        ├── delete(record, session)  ─▶ session.prepare_and_execute(sql, pk)
        └── select(type, shape, session, where, *params)
                                     ─▶ prepare(sql, *types).query(...) ─▶ materialize

Examples:
    >>> from tagorm import Mapper, ResultShape
    >>> from tagorm.backend import SQLiteSession
    >>> mapper = Mapper()
    >>> with SQLiteSession() as session:                       # doctest: +SKIP
    ...     mapper.insert(item, session)
    ...     items = mapper.select(Item, ResultShape.LIST_OF_VALUES, session, "ID = :1", item.id)

Tags:
    mapper, orm, crud, tagorm
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from tagorm.backend.protocols import Session
from tagorm.errors import BackendError, NotARecordError, TagormError, UnknownShapeError
from tagorm.logging import get_logger
from tagorm.materialize import ResultShape, check_shape, coerce_value, materialize
from tagorm.metadata import TableMetadata
from tagorm.registry import MetadataRegistry
from tagorm.settings import OrmSettings, get_settings
from tagorm.statements import (
    delete_statement,
    insert_statement,
    render_update_sql,
    select_statement,
    update_pairs,
)

logger = get_logger(__name__)


class Mapper:
    """Maps dataclass records to table rows through a backend session.

    Parameters:
        schema: Prefix for every table reference.  Defaults to
                ``settings.schema_name``.
        settings: Logging switches and defaults.  Defaults to
                  :func:`~tagorm.settings.get_settings`.
        registry: Metadata cache.  A new one is created per mapper.
    """

    def __init__(
        self,
        schema: str | None = None,
        *,
        settings: OrmSettings | None = None,
        registry: MetadataRegistry | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.schema = self.settings.schema_name if schema is None else schema
        self.registry = (
            registry if registry is not None else MetadataRegistry(tag_key=self.settings.tag_key)
        )

        self._insert_lock = threading.Lock()
        self._update_lock = threading.Lock()
        self._delete_lock = threading.Lock()
        self._select_lock = threading.Lock()
        self._register_lock = threading.Lock()

    # -- Metadata --------------------------------------------------------------

    def table_for(self, record: Any) -> TableMetadata:
        """Resolved metadata for a record type or instance."""
        return self.registry.resolve(record)

    def register_table(self, record_type: type, table_name: str) -> TableMetadata:
        """Map ``record_type`` to ``table_name`` before its first use.

        Raises:
            RegistrationError: The type's metadata is already cached.
        """
        with self._register_lock:
            table = self.registry.register(record_type, table_name)
            if self.settings.log_register:
                logger.info(
                    "orm.register_table",
                    record_type=table.record_name,
                    table=table.qualified_name(self.schema),
                )
            return table

    def _instance_table(self, record: Any) -> TableMetadata:
        if isinstance(record, type):
            raise NotARecordError(
                f"Expected a record instance, received the type {record.__name__}."
            ).with_context(record_type=record.__name__)
        return self.registry.resolve(record)

    # -- Backend ---------------------------------------------------------------

    @contextmanager
    def _backend(self, table: TableMetadata, sql: str) -> Iterator[None]:
        try:
            yield
        except TagormError:
            raise
        except Exception as e:
            raise BackendError(
                f"Backend failed on table {table.name}: {e}", cause=e
            ).with_context(record_type=table.record_name, table=table.name, sql=sql) from e

    def _log(self, enabled: bool, event: str, table: TableMetadata, sql: str, **kwargs: Any) -> None:
        if enabled:
            logger.info(event, table=table.qualified_name(self.schema), sql=sql, **kwargs)

    # -- Operations ------------------------------------------------------------

    def insert(self, record: Any, session: Session) -> int:
        """Insert ``record``; an identity field receives the generated value.

        Returns:
            Rows affected as reported by the backend.
        """
        with self._insert_lock:
            table = self._instance_table(record)
            stmt = insert_statement(table, record, self.schema)
            self._log(self.settings.log_insert, "orm.insert", table, stmt.sql, params=len(stmt.params))

            with self._backend(table, stmt.sql):
                prepared = session.prepare(stmt.sql)
                try:
                    affected = prepared.execute(*stmt.params)
                finally:
                    prepared.close()

            if stmt.identity is not None and stmt.out_param is not None:
                value = coerce_value(stmt.identity, stmt.out_param.value, table.record_name)
                stmt.identity.set(record, value)
            return affected

    def update(self, record: Any, session: Session) -> None:
        """Update the row whose primary key matches ``record``'s.

        Raises:
            MissingRoleError: The record type has no ``pk`` field.
        """
        with self._update_lock:
            table = self._instance_table(record)
            pairs = update_pairs(table, record)
            sql = render_update_sql(table, self.schema)
            self._log(self.settings.log_update, "orm.update", table, sql, params=len(pairs))

            with self._backend(table, sql):
                session.update(table.qualified_name(self.schema), pairs)

    def delete(self, record: Any, session: Session) -> int:
        """Delete the row whose primary key matches ``record``'s.

        Raises:
            MissingRoleError: The record type has no ``pk`` field.
        """
        with self._delete_lock:
            table = self._instance_table(record)
            stmt = delete_statement(table, record, self.schema)
            self._log(self.settings.log_delete, "orm.delete", table, stmt.sql)

            with self._backend(table, stmt.sql):
                return session.prepare_and_execute(stmt.sql, *stmt.params)

    def select(
        self,
        record_type: Any,
        shape: ResultShape,
        session: Session,
        where: str = "",
        *where_params: Any,
    ) -> list[Any] | dict[Any, Any]:
        """Select rows into the container ``shape`` names.

        ``where`` may be a bare predicate (``"ID = :1"``) or a clause that
        already starts with ``WHERE``.

        Raises:
            ShapeError: A keyed shape names a role the type lacks.
            UnknownShapeError: ``shape`` is not a :class:`ResultShape` value.
        """
        with self._select_lock:
            table = self.registry.resolve(record_type)
            try:
                shape = ResultShape(shape)
            except ValueError:
                raise UnknownShapeError(table.record_name, shape) from None
            check_shape(table, shape)
            stmt = select_statement(table, self.schema, where, where_params)
            self._log(
                self.settings.log_select,
                "orm.select",
                table,
                stmt.sql,
                shape=shape.value,
                params=len(stmt.params),
            )

            with self._backend(table, stmt.sql):
                prepared = session.prepare(stmt.sql, *table.column_types)
                try:
                    rows = prepared.query(*stmt.params)
                    return materialize(table, shape, rows)
                finally:
                    prepared.close()


__all__ = [
    "Mapper",
]
