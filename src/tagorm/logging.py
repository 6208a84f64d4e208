"""
Structured logging for tagorm.

Manifesto:
    Generated SQL is the first thing anyone asks for when a mapping goes
    wrong.  The mapper logs one structured event per operation (table, SQL,
    parameter count) so statements can be traced without a debugger.

    Log lines go to stderr.  Standard output belongs to the caller, which
    for the CLI means the ``--json`` document stays parseable.

    - **Structures:** One JSON object per line when output is piped
    - **Flexes:** Colored console output on a terminal
    - **Opt-in:** Per-operation switches in :class:`~tagorm.settings.OrmSettings`

Examples:
    >>> from tagorm.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.info("orm.insert", table="ITEM")

Tags:
    logging, structlog, observability, tagorm

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import IO, TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

if TYPE_CHECKING:
    from tagorm.settings import OrmSettings

COMPONENT = "tagorm"


def _add_component(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("component", COMPONENT)
    return event_dict


def _level_number(level: str) -> int:
    number = logging.getLevelName(level.upper())
    if not isinstance(number, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return number


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    *,
    stream: IO[str] | None = None,
    timestamps: bool = True,
) -> None:
    """Route tagorm's structlog events to ``stream`` (stderr by default).

    Args:
        level: Lowest level written (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON lines, False for console, None picks JSON
            unless ``stream`` is a terminal
        stream: Text stream to write to
        timestamps: Add a UTC ISO ``timestamp`` key
    """
    out = stream if stream is not None else sys.stderr
    tty = bool(getattr(out, "isatty", None) and out.isatty())
    if json_format is None:
        json_format = not tty

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _add_component,
    ]
    if timestamps:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))

    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=tty))

    # Loggers are not cached: module-level loggers must follow a later reconfigure.
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=False,
    )


def configure_from_settings(settings: OrmSettings | None = None) -> None:
    """Apply ``log_level`` and ``log_json`` from :class:`~tagorm.settings.OrmSettings`."""
    if settings is None:
        from tagorm.settings import get_settings

        settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)


def get_logger(name: str | None = None) -> Any:
    """Logger for a module, usually ``get_logger(__name__)``.

    The name is carried on every event as ``logger_name``.
    """
    if name:
        return structlog.get_logger(name, logger_name=name)
    return structlog.get_logger()


def bind_context(**kwargs: Any) -> None:
    """Add keys to every event logged from the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind keys for the duration of a ``with`` block.

    Example:
        with LogContext(record_type="Item"):
            mapper.insert(item, session)
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
