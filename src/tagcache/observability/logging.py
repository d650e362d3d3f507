"""Structured logging for the tagged cache.

Cache operations log a fixed message plus structured fields passed through
``extra`` (``cache_id``, ``tags``, ``mode``, ``deleted`` ...). Both formatters
render those fields, so a bulk invalidation reads as:

    {"level": "INFO", "logger": "tagcache.invalidation",
     "message": "Cleaned cache entries", "mode": "matching_tag",
     "tags": ["eu"], "deleted": 12, "correlation_id": "3f2a..."}

or on the console:

    12:34:56 INFO  tagcache.invalidation: Cleaned cache entries mode=matching_tag tags=['eu'] deleted=12 cid=3f2a...

Usage:
    from tagcache.observability.logging import LogContext, configure_logging

    configure_logging(json_format=True, level="INFO")
    with LogContext(correlation_id="nightly-clean"):
        await backend.clean(CleaningMode.MATCHING_TAG, ["eu"])
"""

from __future__ import annotations

import contextvars
import logging
import sys
from datetime import datetime, timezone
from typing import Any

import orjson

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

# Attributes every LogRecord has; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Structured fields attached to a record via ``extra``."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per line: level, logger, message and structured fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_fields(record),
        }
        correlation_id = correlation_id_var.get()
        if correlation_id:
            entry["correlation_id"] = correlation_id
        # Values orjson cannot encode (sets, exceptions) are rendered with str()
        return orjson.dumps(entry, default=str).decode()


class ConsoleFormatter(logging.Formatter):
    """Single-line ``key=value`` output for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        parts = [f"{timestamp} {record.levelname:<5} {record.name}: {record.getMessage()}"]
        parts.extend(f"{key}={value}" for key, value in record_fields(record).items())

        correlation_id = correlation_id_var.get()
        if correlation_id:
            parts.append(f"cid={correlation_id}")
        return " ".join(parts)


def configure_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Install a single stderr handler on the root logger.

    Args:
        json_format: JSON lines (for log shippers) instead of console lines
        level: Log level name, case-insensitive
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_format else ConsoleFormatter())
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("redis").setLevel(logging.WARNING)


class LogContext:
    """Tag every record logged inside the block with a correlation ID."""

    def __init__(self, correlation_id: str) -> None:
        self.correlation_id = correlation_id
        self._token: contextvars.Token[str] | None = None

    def __enter__(self) -> "LogContext":
        self._token = correlation_id_var.set(self.correlation_id)
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            correlation_id_var.reset(self._token)
            self._token = None
