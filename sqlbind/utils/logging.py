"""Logging for sqlbind.

Every logger lives under the ``sqlbind`` namespace. Library records carry their
statement context (compiled SQL, parameter counts, page offsets, rows read) in
an ``extra_fields`` mapping, which both formatters below render next to the
message. A correlation ID set with :func:`set_correlation_id` is attached to
each record emitted in the same context.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

import msgspec

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from logging import LogRecord
    from typing import TextIO

__all__ = (
    "CorrelationIDFilter",
    "KeyValueFormatter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_id_var",
    "get_correlation_id",
    "get_logger",
    "record_fields",
    "set_correlation_id",
)

ROOT_LOGGER_NAME = "sqlbind"

correlation_id_var: ContextVar[str | None] = ContextVar("sqlbind_correlation_id", default=None)

_json_encoder = msgspec.json.Encoder(enc_hook=repr)


def set_correlation_id(correlation_id: str | None) -> None:
    """Tag records emitted in the current context with ``correlation_id``; ``None`` clears it."""
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


def record_fields(record: LogRecord) -> dict[str, Any]:
    """Statement context attached to ``record`` through ``extra={"extra_fields": ...}``."""
    fields: Mapping[str, Any] | None = getattr(record, "extra_fields", None)
    return dict(fields) if fields else {}


class StructuredFormatter(logging.Formatter):
    """Render each record as one JSON object.

    Statement context from ``extra_fields`` is merged into the top level, so a
    statement execution renders as
    ``{"message": "Executing statement with 2 parameters", "sql": "...", "parameter_count": 2, ...}``.
    """

    def format(self, record: LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if correlation_id := get_correlation_id():
            log_entry["correlation_id"] = correlation_id
        log_entry.update(record_fields(record))
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return _json_encoder.encode(log_entry).decode("utf-8")


class KeyValueFormatter(logging.Formatter):
    """Plain text formatter that appends statement context as ``key=value`` pairs."""

    def __init__(self, fmt: str | None = "%(asctime)s - %(name)s - %(levelname)s - %(message)s") -> None:
        super().__init__(fmt)

    def format(self, record: LogRecord) -> str:
        text = super().format(record)
        fields = record_fields(record)
        if correlation_id := get_correlation_id():
            fields["correlation_id"] = correlation_id
        if not fields:
            return text
        pairs = " ".join(f"{key}={value!r}" for key, value in fields.items())
        head, sep, tail = text.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


class CorrelationIDFilter(logging.Filter):
    """Copy the current correlation ID onto records passing through."""

    def filter(self, record: LogRecord) -> bool:
        if correlation_id := get_correlation_id():
            record.correlation_id = correlation_id  # type: ignore[attr-defined]
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``sqlbind`` namespace.

    Args:
        name: Dotted name, prefixed with ``sqlbind.`` when it is not already.
            ``None`` returns the namespace root.

    Returns:
        The logger, carrying a single :class:`CorrelationIDFilter`.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)

    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIDFilter) for f in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def configure_logging(
    level: str = "INFO",
    format_style: str = "structured",
    stream: TextIO | None = None,
    extra_handlers: Iterable[logging.Handler] | None = None,
) -> None:
    """Install handlers on the ``sqlbind`` root logger.

    Existing handlers are replaced and records stop propagating to the Python
    root logger. Statement preparation, execution, streaming and paging all log
    at ``DEBUG``.

    Args:
        level: Logging level name, case-insensitive.
        format_style: ``"structured"`` for JSON lines, ``"simple"`` for
            :class:`KeyValueFormatter` text.
        stream: Output stream of the console handler, ``sys.stdout`` by default.
        extra_handlers: Additional handlers, used with their own formatters.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    formatter: logging.Formatter = StructuredFormatter() if format_style == "structured" else KeyValueFormatter()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for handler in extra_handlers or ():
        root_logger.addHandler(handler)

    root_logger.propagate = False
    root_logger.info(
        "sqlbind logging configured",
        extra={
            "extra_fields": {
                "level": level,
                "format_style": format_style,
                "handlers_count": len(root_logger.handlers),
            }
        },
    )
