"""
Structured error types for tagorm.

Every failure the mapper reports is a :class:`TagormError`.  Errors carry a
category, a structured :class:`ErrorContext` (record type, table, column,
role, SQL) and an optional chained cause, so a single ``except TagormError``
at the call site sees everything needed to log or report the failure.

Manifesto:
    - **Typed Error Hierarchy:** One subclass per failure kind
    - **Eager Validation:** Metadata and shape errors surface before SQL runs
    - **Rich Context:** Errors carry the record type and table they concern
    - **Error Chaining:** Backend exceptions are wrapped, never swallowed

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                       TagormError                            │
        │            (category, context, cause)                        │
        ├─────────────────────────────────────────────────────────────┤
        │  MetadataError (METADATA)       ShapeError (SHAPE)           │
        │    DuplicateRoleError             UnknownShapeError          │
        │    EmptyTagError                BackendError (BACKEND)       │
        │    NotARecordError              ConfigError (CONFIG)         │
        │    NoColumnsError                                            │
        │    MissingRoleError                                          │
        │    RegistrationError                                         │
        │    MaterializationError (MATERIALIZATION)                    │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = NoColumnsError("Empty")
    >>> error.category
    <ErrorCategory.METADATA: 'METADATA'>

    >>> try:
    ...     raise RuntimeError("ORA-00942: table or view does not exist")
    ... except RuntimeError as e:
    ...     raise BackendError("Insert failed", cause=e)
    Traceback (most recent call last):
    ...
    BackendError: Insert failed

Tags:
    error-handling, exception-hierarchy, error-context, tagorm

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        METADATA: Invalid tags, duplicate roles, non-record types
        SHAPE: Requested result shape has no backing column
        BACKEND: Statement preparation or execution failed
        MATERIALIZATION: A row value could not be stored on a record field
        CONFIG: Missing driver, invalid settings
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    METADATA = "METADATA"
    SHAPE = "SHAPE"
    BACKEND = "BACKEND"
    MATERIALIZATION = "MATERIALIZATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Only the fields relevant to a failure are set; :meth:`to_dict` drops the
    rest so log lines stay short.

    Examples:
        >>> ctx = ErrorContext(record_type="Item", role="fk2")
        >>> ctx.to_dict()
        {'record_type': 'Item', 'role': 'fk2'}

    Attributes:
        record_type: Name of the record class involved
        table: Resolved table name
        column: Column name
        field: Python attribute name of the field
        role: Role token (``pk``, ``fk1`` ...)
        sql: Generated SQL text
        metadata: Additional key-value pairs
    """

    record_type: str | None = None
    table: str | None = None
    column: str | None = None
    field: str | None = None
    role: str | None = None
    sql: str | None = None

    metadata: dict[str, Any] = dataclasses.field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["record_type", "table", "column", "field", "role", "sql"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TagormError(Exception):
    """
    Base exception for all tagorm errors.

    Subclasses set ``default_category``; callers may still override it.

    Examples:
        >>> error = TagormError("boom").with_context(table="ITEM")
        >>> error.to_dict()["context"]
        {'table': 'ITEM'}
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TagormError:
        """Set context fields in place and return self for chaining."""
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "context": self.context.to_dict(),
        }
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# METADATA ERRORS
# =============================================================================


class MetadataError(TagormError):
    """
    Record type cannot be mapped to a table.

    Raised while resolving metadata or validating a record before any SQL
    is generated.
    """

    default_category = ErrorCategory.METADATA


class DuplicateRoleError(MetadataError):
    """More than one field carries the same role tag."""

    def __init__(self, record_type: str, role: str):
        self.role = role
        super().__init__(
            f"Record '{record_type}' has more than one field marked with a `db:\"{role}\"` tag.",
            context=ErrorContext(record_type=record_type, role=role),
        )


class EmptyTagError(MetadataError):
    """A field carries a ``db`` annotation with no value."""

    def __init__(self, record_type: str, field_name: str):
        super().__init__(
            f"Record '{record_type}' field '{field_name}' has a `db` tag but no value.",
            context=ErrorContext(record_type=record_type, field=field_name),
        )


class NotARecordError(MetadataError):
    """Value passed where a dataclass type or instance was expected."""


class NoColumnsError(MetadataError):
    """Record type has no mappable fields."""

    def __init__(self, record_type: str):
        super().__init__(
            f"Record '{record_type}' has no db columns.",
            context=ErrorContext(record_type=record_type),
        )


class MissingRoleError(MetadataError):
    """An operation needs a role (usually ``pk``) the record type lacks."""

    def __init__(self, record_type: str, role: str, operation: str):
        self.role = role
        self.operation = operation
        super().__init__(
            f"Unable to {operation} record '{record_type}'. "
            f"'{record_type}' doesn't have a field marked with a `db:\"{role}\"` tag.",
            context=ErrorContext(record_type=record_type, role=role),
        )


class RegistrationError(MetadataError):
    """Table name registered for a type whose metadata already exists."""


class MaterializationError(MetadataError):
    """
    A value could not be read from or written to a record field.

    Reported like a metadata error: the record's declared field type and
    the backend's value do not agree.
    """

    default_category = ErrorCategory.MATERIALIZATION


# =============================================================================
# SHAPE / BACKEND / CONFIG ERRORS
# =============================================================================


class ShapeError(TagormError):
    """Requested result shape is keyed by a role no column carries."""

    default_category = ErrorCategory.SHAPE

    def __init__(self, record_type: str, role: str, kind: str):
        self.role = role
        super().__init__(
            f"Unable to make a map of {role} to {kind} for record '{record_type}'. "
            f"'{record_type}' doesn't have a field marked with a `db:\"{role}\"` tag.",
            context=ErrorContext(record_type=record_type, role=role),
        )


class UnknownShapeError(ShapeError):
    """The requested shape is not a :class:`~tagorm.materialize.ResultShape` member."""

    def __init__(self, record_type: str, shape: object):
        self.role = None
        self.shape = shape
        TagormError.__init__(
            self,
            f"Unknown result shape {shape!r} requested for record '{record_type}'.",
            context=ErrorContext(record_type=record_type, metadata={"shape": str(shape)}),
        )


class BackendError(TagormError):
    """
    The backend failed to prepare or execute a statement.

    The original exception is kept as ``cause``.
    """

    default_category = ErrorCategory.BACKEND


class ConfigError(TagormError):
    """Configuration error, e.g. an optional driver is not installed."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, TagormError):
        return error.category
    if isinstance(error, (TypeError, ValueError)):
        return ErrorCategory.MATERIALIZATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TagormError",
    "MetadataError",
    "DuplicateRoleError",
    "EmptyTagError",
    "NotARecordError",
    "NoColumnsError",
    "MissingRoleError",
    "RegistrationError",
    "MaterializationError",
    "ShapeError",
    "UnknownShapeError",
    "BackendError",
    "ConfigError",
    "categorize_error",
]
