# src/storage/supabase_store.py - v1
"""Supabase/PostgREST record store (STORE_BACKEND=supabase).

Talks to the hosted ``product_cache`` table through the PostgREST API with
the service-role key. The table is expected to look like:

    create table product_cache (
        id uuid primary key default gen_random_uuid(),
        product_id text not null,
        source text not null,
        external_api_response jsonb not null,
        updated_at timestamptz not null default now()
    );
    create index on product_cache (product_id, source);
    create index on product_cache (updated_at);
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from smartcache.cache.errors import StoreReadError, StoreWriteError
from smartcache.cache.models import CacheEntry, ensure_utc
from smartcache.storage.base_record_store import BaseRecordStore

logger = logging.getLogger(__name__)


def _ts(value: datetime) -> str:
    return ensure_utc(value).isoformat(timespec="microseconds")


def _row_to_entry(row: dict[str, Any]) -> CacheEntry:
    return CacheEntry(
        id=str(row["id"]),
        subject_id=row["product_id"],
        source=row["source"],
        payload=row.get("external_api_response"),
        updated_at=row["updated_at"],
    )


class SupabaseRecordStore(BaseRecordStore):
    """Record store backed by a Supabase table over PostgREST."""

    backend_name = "supabase"

    def __init__(
        self,
        url: str,
        service_role_key: str,
        table: str = "product_cache",
        timeout_s: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            url: Project URL, e.g. https://<project>.supabase.co.
            service_role_key: Service-role API key (full table permissions).
            table: Cache table name.
            timeout_s: Per-request timeout.
            client: Pre-built client (its base_url and headers are used as-is).
        """
        self._table_path = f"/rest/v1/{table}"
        self._client = client or httpx.AsyncClient(
            base_url=url.rstrip("/"),
            headers={
                "apikey": service_role_key,
                "Authorization": f"Bearer {service_role_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout_s,
        )

    async def find_latest(self, subject_id: str, source: str) -> CacheEntry | None:
        """Newest row for the pair (order=updated_at.desc, limit=1)."""
        params = {
            "select": "*",
            "product_id": f"eq.{subject_id}",
            "source": f"eq.{source}",
            "order": "updated_at.desc",
            "limit": "1",
        }
        try:
            response = await self._client.get(self._table_path, params=params)
            response.raise_for_status()
            rows = response.json()
            return _row_to_entry(rows[0]) if rows else None
        except httpx.HTTPError as e:
            raise StoreReadError(self.backend_name, "find_latest", str(e)) from e
        except (ValueError, KeyError) as e:
            raise StoreReadError(
                self.backend_name, "find_latest", f"malformed response: {e}"
            ) from e

    async def insert(
        self,
        subject_id: str,
        source: str,
        payload: Any,
        updated_at: datetime,
    ) -> CacheEntry:
        """Insert a row and return it as stored (id assigned by Postgres)."""
        body = {
            "product_id": subject_id,
            "source": source,
            "external_api_response": payload,
            "updated_at": _ts(updated_at),
        }
        try:
            response = await self._client.post(
                self._table_path,
                json=body,
                headers={"Prefer": "return=representation"},
            )
            response.raise_for_status()
            return _row_to_entry(response.json()[0])
        except httpx.HTTPError as e:
            raise StoreWriteError(self.backend_name, "insert", str(e)) from e
        except (TypeError, ValueError, KeyError, IndexError) as e:
            raise StoreWriteError(self.backend_name, "insert", str(e)) from e

    async def update(self, entry_id: str, payload: Any, updated_at: datetime) -> None:
        """PATCH the row by id."""
        body = {"external_api_response": payload, "updated_at": _ts(updated_at)}
        try:
            response = await self._client.patch(
                self._table_path,
                params={"id": f"eq.{entry_id}"},
                json=body,
                headers={"Prefer": "return=minimal"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise StoreWriteError(self.backend_name, "update", str(e)) from e
        except (TypeError, ValueError) as e:
            raise StoreWriteError(self.backend_name, "update", str(e)) from e

    async def delete(
        self,
        *,
        subject_id: str | None = None,
        source: str | None = None,
        updated_before: datetime | None = None,
    ) -> int:
        """DELETE with eq./lt. filters; the returned ids give the count."""
        self.check_delete_filter(subject_id, source, updated_before)
        params = {"select": "id"}
        if subject_id is not None:
            params["product_id"] = f"eq.{subject_id}"
        if source is not None:
            params["source"] = f"eq.{source}"
        if updated_before is not None:
            params["updated_at"] = f"lt.{_ts(updated_before)}"

        try:
            response = await self._client.delete(
                self._table_path,
                params=params,
                headers={"Prefer": "return=representation"},
            )
            response.raise_for_status()
            removed = len(response.json())
        except httpx.HTTPError as e:
            raise StoreWriteError(self.backend_name, "delete", str(e)) from e
        except ValueError as e:
            raise StoreWriteError(
                self.backend_name, "delete", f"malformed response: {e}"
            ) from e
        logger.debug("Deleted %d row(s) from %s", removed, self._table_path)
        return removed

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
