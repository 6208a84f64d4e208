"""
Table metadata derived from a record type.

Manifesto:
    A record class is the single description of its table.  Resolution turns
    the dataclass fields and their ``db`` annotations into an immutable
    :class:`TableMetadata` once; every statement builder and the materializer
    work from that object and never look at the class again.

Architecture:
    ::

        @dataclass Item                      TableMetadata("ITEM")
        ├── ID: int   {"db": "id,pk"}  ──┐   ├── NAME     S
        ├── Name: str                    ├─▶ ├── OWNERID  I64  {fk1}
        └── OwnerID: int {"db": "fk1"} ──┘   └── ID       I64  {id, pk}   ← last

Guardrails:
    ❌ DON'T: Rely on declaration order for the key column
    ✅ DO: Use ``TableMetadata.key_column`` (validated to be last)

Tags:
    metadata, record-mapping, dataclasses, tagorm
"""

from __future__ import annotations

import dataclasses
import inspect
import sys
import typing
from dataclasses import dataclass
from typing import Any

from tagorm.errors import (
    DuplicateRoleError,
    EmptyTagError,
    MaterializationError,
    MetadataError,
    NoColumnsError,
    NotARecordError,
)
from tagorm.tags import InvalidTagError, parse_tag
from tagorm.type_mapper import column_type_for
from tagorm.types import SINGLE_ROLES, ColumnType, Role

DEFAULT_TAG_KEY = "db"


@dataclass(frozen=True)
class ColumnMetadata:
    """One mapped field.

    ``attribute`` is the descriptor used to read and write the field;
    ``position`` is its index among the record's dataclass fields.
    """

    position: int
    attribute: str
    name: str
    column_type: ColumnType
    roles: Role = Role.NONE

    def has(self, role: Role) -> bool:
        return bool(self.roles & role)

    def get(self, record: Any) -> Any:
        """Read this column's field from ``record``."""
        try:
            return getattr(record, self.attribute)
        except AttributeError as e:
            raise MaterializationError(
                f"Record '{type(record).__name__}' has no value for field '{self.attribute}'.",
                cause=e,
            ).with_context(field=self.attribute, column=self.name) from e

    def set(self, record: Any, value: Any) -> None:
        """Write ``value`` to this column's field on ``record``."""
        try:
            object.__setattr__(record, self.attribute, value)
        except (AttributeError, TypeError) as e:
            raise MaterializationError(
                f"Unable to set field '{self.attribute}' on record '{type(record).__name__}'.",
                cause=e,
            ).with_context(field=self.attribute, column=self.name) from e


@dataclass(frozen=True)
class TableMetadata:
    """Relational shape of one record type.

    Immutable once built; the primary-key column, when present, is always
    the last entry of ``columns``.
    """

    record_type: type
    name: str
    columns: tuple[ColumnMetadata, ...]
    flags: Role = Role.NONE

    @property
    def record_name(self) -> str:
        return self.record_type.__name__

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    @property
    def column_types(self) -> list[ColumnType]:
        return [col.column_type for col in self.columns]

    def has(self, role: Role) -> bool:
        return bool(self.flags & role)

    def column_for(self, role: Role) -> ColumnMetadata | None:
        """The column carrying ``role``, if any."""
        for col in self.columns:
            if col.has(role):
                return col
        return None

    def last_column_role(self) -> Role:
        return self.columns[-1].roles

    @property
    def key_column(self) -> ColumnMetadata | None:
        """The trailing primary-key column, or None if the table has no key."""
        if not self.has(Role.PRIMARY_KEY):
            return None
        return self.columns[-1]

    @property
    def identity_column(self) -> ColumnMetadata | None:
        if not self.has(Role.IDENTITY):
            return None
        return self.columns[-1]

    def qualified_name(self, schema: str = "") -> str:
        """``<schema>.<table>`` when a schema prefix is set."""
        if schema:
            return f"{schema}.{self.name}"
        return self.name


def record_type_of(value: Any) -> type:
    """The dataclass type for a dataclass type or instance.

    Raises:
        NotARecordError: ``value`` is neither.
    """
    if value is None:
        raise NotARecordError("Unable to determine record type from None.")
    record_type = value if isinstance(value, type) else type(value)
    if not dataclasses.is_dataclass(record_type):
        raise NotARecordError(
            f"Expected a dataclass record, received type of {record_type.__name__}."
        ).with_context(record_type=record_type.__name__)
    return record_type


def _field_annotations(record_type: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(record_type)
    except (NameError, TypeError):
        pass

    # Field by field: an annotation that does not resolve falls back to its
    # raw ``field.type`` without affecting the others.
    hints: dict[str, Any] = {}
    for klass in reversed(record_type.__mro__):
        module = sys.modules.get(klass.__module__)
        globalns = dict(vars(module)) if module is not None else {}
        localns = dict(vars(klass))
        try:
            annotations = inspect.get_annotations(klass)
        except NameError:
            continue
        for name, annotation in annotations.items():
            if isinstance(annotation, str):
                try:
                    annotation = eval(annotation, globalns, localns)  # noqa: S307
                except (NameError, AttributeError, SyntaxError, TypeError):
                    hints.pop(name, None)
                    continue
            hints[name] = annotation
    return hints


def build_table_metadata(
    record_type: type,
    table_name: str = "",
    *,
    tag_key: str = DEFAULT_TAG_KEY,
) -> TableMetadata:
    """Resolve ``record_type`` into validated table metadata.

    Args:
        record_type: A dataclass type.
        table_name: Explicit table name; defaults to the class name.
        tag_key: Field-metadata key holding the annotation.

    Raises:
        MetadataError: Any invariant is violated; nothing is returned.
    """
    record_type = record_type_of(record_type)
    type_name = record_type.__name__
    hints = _field_annotations(record_type)

    columns: list[ColumnMetadata] = []
    flags = Role.NONE
    for position, f in enumerate(dataclasses.fields(record_type)):
        if f.name.startswith("_"):
            continue
        try:
            tag = parse_tag(f.metadata.get(tag_key), f.name)
        except InvalidTagError as e:
            raise EmptyTagError(type_name, f.name) from e
        if tag.ignored:
            continue

        for role in SINGLE_ROLES:
            if role in tag.roles and role in flags:
                raise DuplicateRoleError(type_name, role.token)
        flags |= tag.roles

        columns.append(
            ColumnMetadata(
                position=position,
                attribute=f.name,
                name=tag.name.upper(),
                column_type=column_type_for(hints.get(f.name, f.type)),
                roles=tag.roles,
            )
        )

    if not columns:
        raise NoColumnsError(type_name)

    identity = next((col for col in columns if col.has(Role.IDENTITY)), None)
    if identity is not None and Role.PRIMARY_KEY in flags and not identity.has(Role.PRIMARY_KEY):
        raise MetadataError(
            f"Record '{type_name}' marks '{identity.attribute}' with `db:\"id\"` "
            "but a different field with `db:\"pk\"`; the identity field must be the primary key."
        ).with_context(record_type=type_name, field=identity.attribute, role="id")

    # Insert, Update and Delete all address the key through the last column.
    trailing_role = Role.PRIMARY_KEY if Role.PRIMARY_KEY in flags else Role.IDENTITY
    trailing = next((col for col in columns if col.has(trailing_role)), None)
    if trailing is not None:
        columns.remove(trailing)
        columns.append(trailing)

    table = TableMetadata(
        record_type=record_type,
        name=(table_name or type_name).upper(),
        columns=tuple(columns),
        flags=flags,
    )
    if flags & (Role.PRIMARY_KEY | Role.IDENTITY) and not (
        table.last_column_role() & (Role.PRIMARY_KEY | Role.IDENTITY)
    ):
        raise MetadataError(f"Record '{type_name}' key column is not last.").with_context(
            record_type=type_name
        )
    return table


__all__ = [
    "DEFAULT_TAG_KEY",
    "ColumnMetadata",
    "TableMetadata",
    "build_table_metadata",
    "record_type_of",
]
