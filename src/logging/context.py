# src/logging/context.py - v3
"""Contextual logging support: attach subject_id, source and operation to log records."""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per cache operation.
_subject_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "subject_id", default=None
)
_source: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "source", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    subject_id: str | None = None
    source: str | None = None
    operation: str | None = None

    @property
    def cache_key(self) -> str | None:
        """Return "subject/source", or the bare subject when no source is set."""
        if not self.subject_id:
            return None
        return self.subject_id if not self.source else f"{self.subject_id}/{self.source}"

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        subject_id=_subject_id.get(),
        source=_source.get(),
        operation=_operation.get(),
    )


@contextmanager
def cache_context(
    operation: str,
    subject_id: str | None = None,
    source: str | None = None,
) -> Iterator[LogContext]:
    """Set the logging context for one cache operation, restoring it on exit."""
    tokens = (
        _operation.set(operation),
        _subject_id.set(subject_id),
        _source.set(source),
    )
    try:
        yield get_context()
    finally:
        _operation.reset(tokens[0])
        _subject_id.reset(tokens[1])
        _source.reset(tokens[2])


def clear_context() -> None:
    """Reset all context variables."""
    _subject_id.set(None)
    _source.set(None)
    _operation.set(None)
