"""Structured logging configuration for WarrantyWatch.

Provides JSON and text formatters, a tick-context filter that
guarantees every record carries ``tick_id``/``user_id``/``record_id``,
and a one-call ``configure_logging`` function driven by config
settings.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from warrantywatch.config.settings import LoggingSettings

# Attributes that are part of the standard LogRecord; everything
# else is considered "extra" and gets included in structured output.
_STANDARD_ATTRS = frozenset(
    {
        "args",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
        # Our own well-known context attributes (handled explicitly):
        "tick_id",
        "user_id",
        "record_id",
    }
)


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class StructuredFormatter(logging.Formatter):
    """JSON-lines formatter for production logging.

    Every record becomes a single JSON object on one line containing
    the standard fields plus any *extra* attributes passed by the
    caller or injected by filters.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()

        data: dict = {
            "timestamp": datetime.fromtimestamp(
                record.created,
                tz=UTC,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.message,
            "thread": record.threadName,
        }

        for attr in ("tick_id", "user_id", "record_id"):
            value = getattr(record, attr, None)
            if value is not None and value != "-":
                data[attr] = value

        # Caller-supplied extra fields
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                data.setdefault(key, value)

        if record.exc_info and record.exc_info[0] is not None:
            data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            data["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for development / console use."""

    _FMT = "%(asctime)s %(levelname)-8s [%(tick_id)s] %(threadName)s %(name)s: %(message)s"

    def __init__(self) -> None:
        super().__init__(fmt=self._FMT, datefmt="%Y-%m-%d %H:%M:%S")


# ---------------------------------------------------------------------------
# Filter
# ---------------------------------------------------------------------------


class TickContextFilter(logging.Filter):
    """Give every record the engine's context attributes.

    Callers attach ``tick_id``, ``user_id`` and ``record_id`` through
    ``extra=``; records without them get ``"-"`` / ``None`` so the
    formatters never fail on a missing attribute.
    """

    CONTEXT_ATTRS = frozenset({"tick_id", "user_id", "record_id"})

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "tick_id"):
            record.tick_id = "-"  # type: ignore[attr-defined]
        if not hasattr(record, "user_id"):
            record.user_id = None  # type: ignore[attr-defined]
        if not hasattr(record, "record_id"):
            record.record_id = None  # type: ignore[attr-defined]
        return True


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def configure_logging(settings: LoggingSettings) -> logging.Logger:
    """Configure the ``warrantywatch`` logger hierarchy from settings.

    Replaces any bootstrap handlers with properly formatted output.

    Returns the root ``warrantywatch`` logger.
    """
    level = getattr(logging, settings.level.upper(), logging.INFO)

    root = logging.getLogger("warrantywatch")
    root.setLevel(level)
    root.handlers.clear()
    root.propagate = False

    formatter: logging.Formatter
    formatter = StructuredFormatter() if settings.format == "json" else TextFormatter()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.addFilter(TickContextFilter())
    root.addHandler(console)

    # Quieten noisy third-party loggers
    for lib in ("psycopg", "psycopg.pool", "pypgkit"):
        logging.getLogger(lib).setLevel(logging.WARNING)

    return root
