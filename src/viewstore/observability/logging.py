"""
Logging — Structured logging with store and sync-pass tagging.

Every record is stamped with the store it concerns (via ``extra={"store": ...}``)
and with the sync ID of the synchronization pass in progress, if any.
"""

import logging
import json
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any
from uuid import UUID


# Context variable for the current sync pass
_sync_id: ContextVar[str | None] = ContextVar("sync_id", default=None)


def set_sync_id(sid: UUID | str | None) -> None:
    """Set sync ID for current context."""
    _sync_id.set(str(sid) if sid else None)


def get_sync_id() -> str | None:
    """Get sync ID from current context."""
    return _sync_id.get()


class StoreFilter(logging.Filter):
    """Adds sync_id and store to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.sync_id = get_sync_id() or "-"
        if not hasattr(record, "store"):
            record.store = "-"
        return True


class JSONFormatter(logging.Formatter):
    """
    Formats log records as JSON for structured logging.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "store": getattr(record, "store", None),
            "sync_id": getattr(record, "sync_id", None),
        }

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ReadableFormatter(logging.Formatter):
    """
    Human-readable formatter for development.
    """

    def format(self, record: logging.LogRecord) -> str:
        sid = getattr(record, "sync_id", "-")
        sid_short = sid[:8] if sid and sid != "-" else "-"
        store = getattr(record, "store", "-")

        base = f"{record.levelname:<7} [{sid_short}] {record.name} ({store}): {record.getMessage()}"

        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)

        return base


def configure_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    stream: Any = None,
) -> None:
    """
    Configure viewstore logging.

    Args:
        level: Logging level
        json_format: Use JSON format (for production)
        stream: Output stream (default: stderr)
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.addFilter(StoreFilter())

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ReadableFormatter())

    root_logger = logging.getLogger("viewstore")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a viewstore component."""
    return logging.getLogger(f"viewstore.{name}")


class LogContext:
    """
    Context manager tagging log records with a sync ID.

    Usage:
        with LogContext(sync_id):
            store.set_collection(records)  # warnings carry sync_id
    """

    def __init__(self, sync_id: UUID | str | None):
        self.sync_id = sync_id
        self._token = None

    def __enter__(self):
        self._token = _sync_id.set(
            str(self.sync_id) if self.sync_id else None
        )
        return self

    def __exit__(self, *args):
        if self._token is not None:
            _sync_id.reset(self._token)
