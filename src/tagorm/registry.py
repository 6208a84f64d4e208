"""Metadata registry: one resolution per record type.

The registry is an explicit object owned by a :class:`~tagorm.mapper.Mapper`
rather than module state.  It is created with the mapper, synchronizes its own
reads and writes, and is never reset implicitly.  Entries are keyed by the
record type object; classes that share a qualified name (two ``Row``
classes built by one factory) get separate entries.
"""

from __future__ import annotations

import threading

from tagorm.errors import RegistrationError
from tagorm.logging import get_logger
from tagorm.metadata import DEFAULT_TAG_KEY, TableMetadata, build_table_metadata, record_type_of

logger = get_logger(__name__)


def _type_name(record_type: type) -> str:
    return f"{record_type.__module__}.{record_type.__qualname__}"


class MetadataRegistry:
    """Thread-safe cache of :class:`TableMetadata` by record type."""

    def __init__(self, *, tag_key: str = DEFAULT_TAG_KEY) -> None:
        self.tag_key = tag_key
        self._tables: dict[type, TableMetadata] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tables)

    def __contains__(self, record: object) -> bool:
        record_type = record_type_of(record)
        with self._lock:
            return record_type in self._tables

    def get(self, record: object) -> TableMetadata | None:
        """Cached metadata for a record type or instance, without resolving."""
        record_type = record_type_of(record)
        with self._lock:
            return self._tables.get(record_type)

    def resolve(self, record: object) -> TableMetadata:
        """Metadata for a record type or instance, building it on first use."""
        record_type = record_type_of(record)
        with self._lock:
            table = self._tables.get(record_type)
            if table is None:
                table = build_table_metadata(record_type, tag_key=self.tag_key)
                self._tables[record_type] = table
                logger.debug(
                    "metadata.resolved",
                    record_type=_type_name(record_type),
                    table=table.name,
                    columns=table.column_names,
                )
            return table

    def register(self, record: object, table_name: str) -> TableMetadata:
        """Resolve a record type under an explicit table name.

        Raises:
            RegistrationError: Metadata for the type is already cached.
        """
        record_type = record_type_of(record)
        with self._lock:
            existing = self._tables.get(record_type)
            if existing is not None:
                raise RegistrationError(
                    f"Record '{record_type.__name__}' is already mapped to table "
                    f"'{existing.name}'; register table names before first use."
                ).with_context(record_type=record_type.__name__, table=existing.name)
            table = build_table_metadata(record_type, table_name, tag_key=self.tag_key)
            self._tables[record_type] = table
            logger.debug(
                "metadata.registered", record_type=_type_name(record_type), table=table.name
            )
            return table

    def clear(self) -> None:
        """Drop every cached entry.  Intended for test isolation only."""
        with self._lock:
            self._tables.clear()


__all__ = [
    "MetadataRegistry",
]
