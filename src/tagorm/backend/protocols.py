"""
Backend protocol definitions.

The mapper never opens connections or binds parameters itself.  It talks to
a backend through the three structural protocols below; any object with the
right shape works, which keeps the mapping core testable with in-memory
doubles and portable across drivers.

Architecture:
    ::

        Session
        ├── prepare(sql, *column_types)      → Statement
        ├── prepare_and_execute(sql, *params)→ rows affected
        └── update(table, pairs)             → None   (last pair = WHERE)

        Statement
        ├── execute(*params)                 → rows affected
        ├── query(*params)                   → RowSet
        └── close()

        RowSet
        ├── next()                           → bool
        └── current_row()                    → Sequence[Any]

    ``OutParam`` is passed among ``execute`` parameters for a
    ``RETURNING ... INTO :RET_VAL`` clause; the backend stores the returned
    value on it.

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts; implementations live in backend/*

Tags:
    protocol, backend, session, statement, rowset, tagorm
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from tagorm.types import ColumnType


@dataclass
class OutParam:
    """Output bind parameter filled by the backend after execution."""

    column_type: ColumnType = ColumnType.DEFAULT
    value: Any = None


@runtime_checkable
class RowSet(Protocol):
    """Forward-only row stream returned by :meth:`Statement.query`."""

    def next(self) -> bool:
        """Advance to the next row; False when exhausted."""
        ...

    def current_row(self) -> Sequence[Any]:
        """Values of the current row, in select-list order."""
        ...


@runtime_checkable
class Statement(Protocol):
    """A prepared statement."""

    def execute(self, *params: Any) -> int:
        """Execute with positional parameters, returning rows affected."""
        ...

    def query(self, *params: Any) -> RowSet:
        """Execute a query with positional parameters."""
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class Session(Protocol):
    """An open backend session."""

    def prepare(self, sql: str, *column_types: ColumnType) -> Statement:
        """Prepare ``sql``; ``column_types`` describe the select list, if any."""
        ...

    def prepare_and_execute(self, sql: str, *params: Any) -> int:
        ...

    def update(self, table: str, pairs: Sequence[tuple[str, Any]]) -> None:
        """``UPDATE table SET <pairs[:-1]> WHERE <pairs[-1]>``."""
        ...


__all__ = [
    "OutParam",
    "RowSet",
    "Statement",
    "Session",
]
