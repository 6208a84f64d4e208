"""Column types, role flags and fixed-width field markers.

``ColumnType`` is the backend's decoding vocabulary: one tag per native field
type, plus a ``NULLABLE_*`` twin for every tag so a backend knows a column may
come back as ``NULL``.  ``Role`` holds the per-column role flags parsed from
``db`` annotations.

Python has a single ``int`` and a single ``float``; the ``Int8`` ... ``Float32``
markers below let a record declare the width its column really has::

    @dataclass
    class Reading:
        sensor: Int16 = 0
        value: Float32 = 0.0
"""

from __future__ import annotations

import datetime
from enum import Enum, Flag
from typing import NewType

Int8 = NewType("Int8", int)
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
UInt8 = NewType("UInt8", int)
UInt16 = NewType("UInt16", int)
UInt32 = NewType("UInt32", int)
UInt64 = NewType("UInt64", int)
Float32 = NewType("Float32", float)
Float64 = NewType("Float64", float)


class ColumnType(str, Enum):
    """Backend column decoding tags."""

    DEFAULT = "D"

    INT64 = "I64"
    INT32 = "I32"
    INT16 = "I16"
    INT8 = "I8"
    UINT64 = "U64"
    UINT32 = "U32"
    UINT16 = "U16"
    UINT8 = "U8"
    FLOAT64 = "F64"
    FLOAT32 = "F32"
    TIME = "T"
    STRING = "S"
    BOOL = "B"
    BINARY = "Bin"

    NULLABLE_INT64 = "OraI64"
    NULLABLE_INT32 = "OraI32"
    NULLABLE_INT16 = "OraI16"
    NULLABLE_INT8 = "OraI8"
    NULLABLE_UINT64 = "OraU64"
    NULLABLE_UINT32 = "OraU32"
    NULLABLE_UINT16 = "OraU16"
    NULLABLE_UINT8 = "OraU8"
    NULLABLE_FLOAT64 = "OraF64"
    NULLABLE_FLOAT32 = "OraF32"
    NULLABLE_TIME = "OraT"
    NULLABLE_STRING = "OraS"
    NULLABLE_BOOL = "OraB"
    NULLABLE_BINARY = "OraBin"

    @property
    def nullable(self) -> bool:
        return self.name.startswith("NULLABLE_")

    def as_nullable(self) -> ColumnType:
        """The ``NULLABLE_*`` twin of this tag (DEFAULT has none)."""
        if self is ColumnType.DEFAULT or self.nullable:
            return self
        return ColumnType[f"NULLABLE_{self.name}"]

    def base(self) -> ColumnType:
        """The non-nullable tag for this column type."""
        if self.nullable:
            return ColumnType[self.name.removeprefix("NULLABLE_")]
        return self

    @property
    def python_type(self) -> type | None:
        """Python value type stored in fields of this column type."""
        return _PYTHON_TYPES.get(self.base())


_PYTHON_TYPES: dict[ColumnType, type] = {
    ColumnType.INT64: int,
    ColumnType.INT32: int,
    ColumnType.INT16: int,
    ColumnType.INT8: int,
    ColumnType.UINT64: int,
    ColumnType.UINT32: int,
    ColumnType.UINT16: int,
    ColumnType.UINT8: int,
    ColumnType.FLOAT64: float,
    ColumnType.FLOAT32: float,
    ColumnType.TIME: datetime.datetime,
    ColumnType.STRING: str,
    ColumnType.BOOL: bool,
    ColumnType.BINARY: bytes,
}

# Inclusive value ranges of the fixed-width integer tags.
INTEGER_RANGES: dict[ColumnType, tuple[int, int]] = {
    ColumnType.INT8: (-(2**7), 2**7 - 1),
    ColumnType.INT16: (-(2**15), 2**15 - 1),
    ColumnType.INT32: (-(2**31), 2**31 - 1),
    ColumnType.INT64: (-(2**63), 2**63 - 1),
    ColumnType.UINT8: (0, 2**8 - 1),
    ColumnType.UINT16: (0, 2**16 - 1),
    ColumnType.UINT32: (0, 2**32 - 1),
    ColumnType.UINT64: (0, 2**64 - 1),
}


class Role(Flag):
    """Per-column role flags; a table's flags are the union of its columns'."""

    NONE = 0
    IDENTITY = 1
    PRIMARY_KEY = 2
    FK1 = 4
    FK2 = 8
    FK3 = 16
    FK4 = 32

    @property
    def token(self) -> str:
        """The ``db`` tag token for a single role."""
        return _ROLE_TOKENS[self]


_ROLE_TOKENS: dict[Role, str] = {
    Role.IDENTITY: "id",
    Role.PRIMARY_KEY: "pk",
    Role.FK1: "fk1",
    Role.FK2: "fk2",
    Role.FK3: "fk3",
    Role.FK4: "fk4",
}

ROLE_BY_TOKEN: dict[str, Role] = {token: role for role, token in _ROLE_TOKENS.items()}

# Roles each limited to one column per table, in validation order.
SINGLE_ROLES: tuple[Role, ...] = tuple(_ROLE_TOKENS)


__all__ = [
    "ColumnType",
    "Role",
    "ROLE_BY_TOKEN",
    "SINGLE_ROLES",
    "INTEGER_RANGES",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Float32",
    "Float64",
]
