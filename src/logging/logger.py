# src/logging/logger.py - v3
"""Log formatters carrying the cache operation and key, plus setup_logging()."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from smartcache.logging.context import LogContext, get_context


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    The active cache operation and key ("subject/source") are top-level
    fields, matching what TextFormatter prints, so a cron log can be
    filtered with a plain ``jq 'select(.cache_key == "p1/priceApi")'``.
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        entry: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        entry.update(_cache_fields(ctx))
        entry["message"] = record.getMessage()

        data = getattr(record, "data", None)
        if data:
            entry["data"] = data
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line text for terminals: time, level, logger, [operation] (key) - message."""

    def format(self, record: logging.LogRecord) -> str:
        fields = _cache_fields(get_context())
        parts = [
            _timestamp(record).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        if "operation" in fields:
            parts.append(f"[{fields['operation']}]")
        if "cache_key" in fields:
            parts.append(f"({fields['cache_key']})")
        parts.append(f"- {record.getMessage()}")
        text = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            text += "\n" + self.formatException(record.exc_info)
        return text


def _cache_fields(ctx: LogContext) -> dict[str, str]:
    fields: dict[str, str] = {}
    if ctx.operation:
        fields["operation"] = ctx.operation
    if ctx.cache_key:
        fields["cache_key"] = ctx.cache_key
    return fields


def get_logger(name: str) -> logging.Logger:
    """Return the "smartcache.<name>" logger."""
    return logging.getLogger(f"smartcache.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> None:
    """Configure the "smartcache" logger tree.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        log_format: "json" or "text".
        log_file: Optional file, rotated by size, written next to stderr.
        rotation: Size that triggers a rollover (e.g. "10MB").
        retention: Rotated files to keep.
    """
    cache_logger = logging.getLogger("smartcache")
    cache_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in cache_logger.handlers:
        handler.close()
    cache_logger.handlers.clear()

    formatter: logging.Formatter = JsonFormatter() if log_format == "json" else TextFormatter()

    # stdout carries command output; logs go to stderr.
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    cache_logger.addHandler(console)

    if log_file:
        from smartcache.logging.handlers import create_rotating_handler

        file_handler = create_rotating_handler(log_file, rotation=rotation, retention=retention)
        file_handler.setFormatter(formatter)
        cache_logger.addHandler(file_handler)
