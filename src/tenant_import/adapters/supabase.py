"""Async Supabase destination adapter.

Provides ``AsyncSupabaseAdapter``, an async implementation of the
``DatabaseClient`` protocol using the supabase-py async client.

The client is initialized lazily on first use with an ``asyncio.Lock``
to ensure thread-safe initialization.

Usage:
    from tenant_import.adapters.supabase import AsyncSupabaseAdapter

    adapter = AsyncSupabaseAdapter(
        url="https://xyzproject.supabase.co",
        key="eyJ...",
    )

    ids = await adapter.insert_many("employers", [{"name": "Acme"}])
    await adapter.close()
"""

import asyncio
from typing import Any

import httpx
from supabase import AsyncClient, acreate_client

from tenant_import.adapters.base import StoreUnavailableError


class AsyncSupabaseAdapter:
    """Async Supabase implementation of the ``DatabaseClient`` protocol.

    Wraps the Supabase Python async client.  PostgREST inserts a list of
    rows atomically, so a rejected batch leaves nothing behind.  Transport
    failures are re-raised as ``StoreUnavailableError``.

    Args:
        url: Supabase project URL.
        key: Supabase API key.  Cross-tenant imports need the service key.
        pk: Primary key column read back from inserted rows.

    Example:
        adapter = AsyncSupabaseAdapter(
            url="https://xyzproject.supabase.co",
            key="eyJhbGciOiJIUzI1NiIs...",
        )
        ids = await adapter.insert_many("patients", rows)
        await adapter.close()
    """

    def __init__(self, url: str, key: str, pk: str = "id") -> None:
        self._url: str = url
        self._key: str = key
        self._pk: str = pk
        self._client: AsyncClient | None = None
        self._lock: asyncio.Lock = asyncio.Lock()

    async def _get_client(self) -> AsyncClient:
        """Get or create the async Supabase client.

        Returns:
            Initialized ``AsyncClient``.
        """
        if self._client is None:
            async with self._lock:
                # Double-check after acquiring lock
                if self._client is None:
                    self._client = await acreate_client(self._url, self._key)
        return self._client

    async def insert_many(self, table: str, records: list[dict]) -> list[Any]:
        """Insert rows and return their new ids in insertion order."""
        if not records:
            return []
        client = await self._get_client()
        try:
            # Rows with different key sets keep their column defaults
            result = await (
                client.table(table)
                .insert(records, default_to_null=False)
                .execute()
            )
        except httpx.TransportError as e:
            raise StoreUnavailableError(f"Supabase unavailable: {e}") from e
        return [row[self._pk] for row in result.data]

    async def insert_one(self, table: str, record: dict) -> Any:
        """Insert one row and return its new id."""
        new_ids = await self.insert_many(table, [record])
        return new_ids[0]

    async def close(self) -> None:
        """Close the Supabase async client.

        If the client was never initialized, this is a no-op.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
