# src/cache/errors.py - v1
"""Cache error taxonomy.

Three failure kinds reach callers of the read-through cache:

- ``StoreReadError``: the record store lookup failed. ``get_or_fetch``
  aborts before the fetch function runs.
- ``FetchError``: the upstream fetch failed. Fetch functions may raise it
  (or anything else); the cache re-raises whatever they raise untouched.
- ``StoreWriteError``: persisting a fresh value (or deleting entries) failed.
  The freshly fetched value is lost for that call.

The cache never catches, retries or translates these. Store backends raise
the store variants, chaining the underlying driver exception.
"""

from __future__ import annotations


class CacheError(Exception):
    """Base class for all smart cache errors."""


class StoreReadError(CacheError):
    """Record store lookup failed."""

    def __init__(self, backend: str, operation: str, message: str) -> None:
        self.backend = backend
        self.operation = operation
        super().__init__(f"[{backend}] {operation} failed: {message}")


class StoreWriteError(CacheError):
    """Record store insert, update or delete failed."""

    def __init__(self, backend: str, operation: str, message: str) -> None:
        self.backend = backend
        self.operation = operation
        super().__init__(f"[{backend}] {operation} failed: {message}")


class FetchError(CacheError):
    """Upstream fetch for a (subject, source) pair failed."""

    def __init__(self, subject_id: str, source: str, message: str) -> None:
        self.subject_id = subject_id
        self.source = source
        super().__init__(f"Fetch for {subject_id!r} from {source!r} failed: {message}")
