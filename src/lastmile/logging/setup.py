"""Structured logging configuration for lastmile.

Provides JSON and text formatters, a filter that guarantees the
``order_id`` context attribute on every record, and a one-call
``configure_logging`` function driven by config settings.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lastmile.config.settings import LoggingSettings

# Attributes that are part of the standard LogRecord.  Everything else
# is treated as "extra" and included in structured output.
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
        "order_id",
    }
)


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class StructuredFormatter(logging.Formatter):
    """JSON-lines formatter for production logging.

    Every record becomes a single JSON object on one line containing
    the standard fields plus any *extra* attributes passed by the
    caller.
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
        }

        order_id = getattr(record, "order_id", None)
        if order_id not in (None, "-"):
            data["order_id"] = order_id

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                data.setdefault(key, value)

        if record.exc_info and record.exc_info[0] is not None:
            data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            data["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for console use."""

    _FMT = "%(asctime)s %(levelname)-8s [%(order_id)s] %(name)s: %(message)s"

    def __init__(self) -> None:
        super().__init__(fmt=self._FMT, datefmt="%Y-%m-%d %H:%M:%S")


# ---------------------------------------------------------------------------
# Filter
# ---------------------------------------------------------------------------


class OrderContextFilter(logging.Filter):
    """Default ``order_id`` to ``"-"`` so text formatting never fails."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "order_id"):
            record.order_id = "-"  # type: ignore[attr-defined]
        return True


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def configure_logging(settings: LoggingSettings) -> logging.Logger:
    """Configure the ``lastmile`` logger hierarchy from settings.

    Replaces any bootstrap handlers with properly formatted output.
    Security events can be silenced or additionally written to a
    rotating JSON file.

    Returns the root ``lastmile`` logger.
    """
    level = getattr(logging, settings.level.upper(), logging.INFO)

    root = logging.getLogger("lastmile")
    root.setLevel(level)
    root.handlers.clear()
    root.propagate = False

    formatter: logging.Formatter
    formatter = StructuredFormatter() if settings.format == "json" else TextFormatter()

    ctx_filter = OrderContextFilter()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.addFilter(ctx_filter)
    root.addHandler(console)

    # -- security events --
    security = logging.getLogger("lastmile.security")
    security.handlers.clear()
    security.disabled = not settings.security_events
    security.setLevel(logging.INFO)

    if settings.security_events and settings.security_log_file:
        try:
            from logging.handlers import RotatingFileHandler

            fh = RotatingFileHandler(
                settings.security_log_file,
                maxBytes=settings.max_file_size_bytes,
                backupCount=settings.backup_count,
            )
            # Security logs are always structured JSON
            fh.setFormatter(StructuredFormatter())
            fh.addFilter(ctx_filter)
            security.addHandler(fh)
        except OSError as exc:
            root.warning(
                "Could not open security log file %s: %s",
                settings.security_log_file,
                exc,
            )

    # -- quieten noisy third-party loggers --
    for lib in ("psycopg", "psycopg.pool", "pypgkit"):
        logging.getLogger(lib).setLevel(logging.WARNING)

    return root
