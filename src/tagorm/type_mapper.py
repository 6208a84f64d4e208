"""Native field type → backend :class:`~tagorm.types.ColumnType`.

Unrecognised annotations map to ``ColumnType.DEFAULT`` so a record with an
unusual field type still resolves; the backend decodes such columns with its
own default conversion.
"""

from __future__ import annotations

import datetime
import types
from typing import Any, Union, get_args, get_origin

from tagorm.types import (
    ColumnType,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
)

# Checked by identity before the plain builtins: NewType markers are not classes.
_MARKERS: dict[Any, ColumnType] = {
    Int64: ColumnType.INT64,
    Int32: ColumnType.INT32,
    Int16: ColumnType.INT16,
    Int8: ColumnType.INT8,
    UInt64: ColumnType.UINT64,
    UInt32: ColumnType.UINT32,
    UInt16: ColumnType.UINT16,
    UInt8: ColumnType.UINT8,
    Float64: ColumnType.FLOAT64,
    Float32: ColumnType.FLOAT32,
}

_BUILTINS: dict[Any, ColumnType] = {
    bool: ColumnType.BOOL,
    str: ColumnType.STRING,
    bytes: ColumnType.BINARY,
    bytearray: ColumnType.BINARY,
    int: ColumnType.INT64,
    float: ColumnType.FLOAT64,
    datetime.datetime: ColumnType.TIME,
}


def _unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Return ``(inner, True)`` for ``Optional[X]`` / ``X | None``."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1 and len(args) != len(get_args(annotation)):
            return args[0], True
    return annotation, False


def column_type_for(annotation: Any) -> ColumnType:
    """Map a field annotation to its column type tag.

    >>> column_type_for(int)
    <ColumnType.INT64: 'I64'>
    >>> column_type_for(Int16 | None)
    <ColumnType.NULLABLE_INT16: 'OraI16'>
    """
    inner, nullable = _unwrap_optional(annotation)

    try:
        column_type = _MARKERS.get(inner) or _BUILTINS.get(inner, ColumnType.DEFAULT)
    except TypeError:  # unhashable annotation objects
        column_type = ColumnType.DEFAULT

    return column_type.as_nullable() if nullable else column_type


__all__ = [
    "column_type_for",
]
