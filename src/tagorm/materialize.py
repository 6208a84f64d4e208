"""
Result materialization: backend rows into records.

Manifesto:
    A row from the backend is a sequence of raw driver values in table
    column order.  Each one is coerced to the Python type its
    :class:`~tagorm.types.ColumnType` promises and written to the field named
    by the column's descriptor.  Anything that does not fit is a
    :class:`~tagorm.errors.MaterializationError` at the point of failure.

Architecture:
    ::

        RowSet ──next()/current_row()──▶ coerce_value() per column
                                                │
                                                ▼
                                       build_record(table, row)
                                                │
                     ┌──────────────────────────┴──────────────────────┐
                     ▼                                                 ▼
              list[record]                              dict[key, record]
        (LIST_OF_VALUES / LIST_OF_REFS)      (MAP_OF_*_BY_PK / _BY_FK1.._FK4)

Guardrails:
    ❌ DON'T: Resolve shape roles after the statement has run
    ✅ DO: Call :func:`check_shape` before preparing the SELECT

Tags:
    materialization, coercion, result-shape, tagorm
"""

from __future__ import annotations

import dataclasses
import datetime
import numbers
from collections.abc import Callable, Sequence
from decimal import Decimal
from enum import Enum
from typing import Any

from tagorm.backend.protocols import RowSet
from tagorm.errors import MaterializationError, ShapeError
from tagorm.logging import get_logger
from tagorm.metadata import ColumnMetadata, TableMetadata
from tagorm.types import INTEGER_RANGES, ColumnType, Role

logger = get_logger(__name__)


class ResultShape(str, Enum):
    """Container a SELECT fills.

    Value and reference variants build the same fresh records; both exist so
    callers can state which one they mean.
    """

    LIST_OF_VALUES = "list_of_values"
    LIST_OF_REFS = "list_of_refs"
    MAP_OF_VALUES_BY_PK = "map_of_values_by_pk"
    MAP_OF_VALUES_BY_FK1 = "map_of_values_by_fk1"
    MAP_OF_VALUES_BY_FK2 = "map_of_values_by_fk2"
    MAP_OF_VALUES_BY_FK3 = "map_of_values_by_fk3"
    MAP_OF_VALUES_BY_FK4 = "map_of_values_by_fk4"
    MAP_OF_REFS_BY_PK = "map_of_refs_by_pk"
    MAP_OF_REFS_BY_FK1 = "map_of_refs_by_fk1"
    MAP_OF_REFS_BY_FK2 = "map_of_refs_by_fk2"
    MAP_OF_REFS_BY_FK3 = "map_of_refs_by_fk3"
    MAP_OF_REFS_BY_FK4 = "map_of_refs_by_fk4"

    @property
    def role(self) -> Role | None:
        """Key role of a map shape; None for list shapes."""
        return _SHAPE_ROLES.get(self)

    @property
    def kind(self) -> str:
        return "references" if "REFS" in self.name else "values"

    @property
    def is_map(self) -> bool:
        return self.role is not None


_SHAPE_ROLES: dict[ResultShape, Role] = {
    ResultShape.MAP_OF_VALUES_BY_PK: Role.PRIMARY_KEY,
    ResultShape.MAP_OF_VALUES_BY_FK1: Role.FK1,
    ResultShape.MAP_OF_VALUES_BY_FK2: Role.FK2,
    ResultShape.MAP_OF_VALUES_BY_FK3: Role.FK3,
    ResultShape.MAP_OF_VALUES_BY_FK4: Role.FK4,
    ResultShape.MAP_OF_REFS_BY_PK: Role.PRIMARY_KEY,
    ResultShape.MAP_OF_REFS_BY_FK1: Role.FK1,
    ResultShape.MAP_OF_REFS_BY_FK2: Role.FK2,
    ResultShape.MAP_OF_REFS_BY_FK3: Role.FK3,
    ResultShape.MAP_OF_REFS_BY_FK4: Role.FK4,
}


def check_shape(table: TableMetadata, shape: ResultShape) -> None:
    """Raise :class:`ShapeError` if ``shape`` is keyed by a role ``table`` lacks."""
    role = shape.role
    if role is not None and not table.has(role):
        raise ShapeError(table.record_name, role.token, shape.kind).with_context(
            table=table.name
        )


# =============================================================================
# VALUE COERCION
# =============================================================================


def _to_int(value: Any, column_type: ColumnType) -> int:
    if isinstance(value, numbers.Integral):
        result = int(value)
    elif isinstance(value, (float, Decimal)):
        if value != int(value):
            raise ValueError(f"{value!r} is not integral")
        result = int(value)
    elif isinstance(value, str):
        result = int(value.strip())
    else:
        raise TypeError(f"cannot convert {type(value).__name__} to int")

    low, high = INTEGER_RANGES[column_type]
    if not low <= result <= high:
        raise ValueError(f"{result} out of range for {column_type.name}")
    return result


def _to_float(value: Any, column_type: ColumnType) -> float:
    if isinstance(value, (numbers.Real, Decimal, str)):
        return float(value)
    raise TypeError(f"cannot convert {type(value).__name__} to float")


def _to_bool(value: Any, column_type: ColumnType) -> bool:
    if isinstance(value, bool):
        return value
    # NUMBER(1) flag columns.
    if isinstance(value, (numbers.Integral, Decimal)) and value in (0, 1):
        return bool(value)
    raise TypeError(f"cannot convert {value!r} to bool")


def _to_str(value: Any, column_type: ColumnType) -> str:
    if isinstance(value, str):
        return value
    raise TypeError(f"cannot convert {type(value).__name__} to str")


def _to_bytes(value: Any, column_type: ColumnType) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"cannot convert {type(value).__name__} to bytes")


def _to_datetime(value: Any, column_type: ColumnType) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str):
        return datetime.datetime.fromisoformat(value)
    raise TypeError(f"cannot convert {type(value).__name__} to datetime")


_COERCERS: dict[ColumnType, Callable[[Any, ColumnType], Any]] = {
    **{ct: _to_int for ct in INTEGER_RANGES},
    ColumnType.FLOAT64: _to_float,
    ColumnType.FLOAT32: _to_float,
    ColumnType.BOOL: _to_bool,
    ColumnType.STRING: _to_str,
    ColumnType.BINARY: _to_bytes,
    ColumnType.TIME: _to_datetime,
}


def coerce_value(column: ColumnMetadata, value: Any, record_name: str = "") -> Any:
    """Convert a raw backend value for ``column``.

    ``DEFAULT`` columns pass values through untouched.  ``None`` is only
    accepted for ``NULLABLE_*`` columns.

    Raises:
        MaterializationError: The value does not fit the column type.
    """
    column_type = column.column_type
    if column_type is ColumnType.DEFAULT:
        return value
    if value is None:
        if column_type.nullable:
            return None
        raise MaterializationError(
            f"Column {column.name} of record '{record_name}' is not nullable but the backend returned NULL."
        ).with_context(record_type=record_name, column=column.name, field=column.attribute)

    base = column_type.base()
    try:
        return _COERCERS[base](value, base)
    except (TypeError, ValueError, ArithmeticError) as e:
        raise MaterializationError(
            f"Unable to store {type(value).__name__} value in field '{column.attribute}' "
            f"({column_type.name}) of record '{record_name}': {e}",
            cause=e,
        ).with_context(record_type=record_name, column=column.name, field=column.attribute) from e


# =============================================================================
# RECORD CONSTRUCTION
# =============================================================================


def build_record(table: TableMetadata, row: Sequence[Any]) -> Any:
    """Build one new record from a row in ``table.columns`` order.

    Init fields are passed to the constructor; required init fields with no
    column get ``None``.  Mapped ``init=False`` fields are set afterwards.
    """
    record_type = table.record_type
    name = table.record_name
    if len(row) != len(table.columns):
        raise MaterializationError(
            f"Row for record '{name}' has {len(row)} values; expected {len(table.columns)}."
        ).with_context(record_type=name, table=table.name)

    values = {
        col.attribute: coerce_value(col, raw, name) for col, raw in zip(table.columns, row)
    }

    kwargs: dict[str, Any] = {}
    deferred: list[ColumnMetadata] = []
    by_attribute = {col.attribute: col for col in table.columns}
    for f in dataclasses.fields(record_type):
        if not f.init:
            if f.name in by_attribute:
                deferred.append(by_attribute[f.name])
            continue
        if f.name in values:
            kwargs[f.name] = values[f.name]
        elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            kwargs[f.name] = None

    try:
        record = record_type(**kwargs)
    except (TypeError, ValueError) as e:
        raise MaterializationError(
            f"Unable to construct record '{name}': {e}", cause=e
        ).with_context(record_type=name, table=table.name) from e

    for col in deferred:
        col.set(record, values[col.attribute])
    return record


def materialize(table: TableMetadata, shape: ResultShape, rows: RowSet) -> list[Any] | dict[Any, Any]:
    """Drain ``rows`` into the container ``shape`` names.

    Map shapes key each record by the value of the shape's role column.  When
    two rows share a key the later row replaces the earlier one.
    """
    check_shape(table, shape)

    if shape.role is None:
        records: list[Any] = []
        while rows.next():
            records.append(build_record(table, rows.current_row()))
        return records

    key_column = table.column_for(shape.role)
    mapped: dict[Any, Any] = {}
    while rows.next():
        record = build_record(table, rows.current_row())
        key = key_column.get(record)
        try:
            duplicate = key in mapped
        except TypeError as e:
            raise MaterializationError(
                f"Key column {key_column.name} of record '{table.record_name}' "
                f"holds an unhashable {type(key).__name__}.",
                cause=e,
            ).with_context(record_type=table.record_name, column=key_column.name) from e
        if duplicate:
            logger.warning(
                "duplicate_map_key",
                table=table.name,
                column=key_column.name,
                key=repr(key),
            )
        mapped[key] = record
    return mapped


__all__ = [
    "ResultShape",
    "check_shape",
    "coerce_value",
    "build_record",
    "materialize",
]
