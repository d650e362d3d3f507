"""Tests for shared Redis client management."""

from __future__ import annotations

import pytest

from tagcache import redis as redis_module
from tagcache.backend import get_backend
from tagcache.config import settings


class TestSharedClients:
    """Tests for get_redis() / get_read_redis() / close_redis()."""

    @pytest.mark.asyncio
    async def test_primary_is_reused_and_closed(self) -> None:
        """The primary client is created once and dropped on close."""
        client = await redis_module.get_redis()

        assert await redis_module.get_redis() is client

        await redis_module.close_redis()
        assert redis_module._redis_client is None

    @pytest.mark.asyncio
    async def test_no_replica_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without a replica URL reads use the primary."""
        monkeypatch.setattr(settings, "read_redis_url", None)

        assert await redis_module.get_read_redis() is None

        backend = await get_backend()
        assert backend.store.read_client is backend.client
        await redis_module.close_redis()

    @pytest.mark.asyncio
    async def test_replica_client(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A replica URL yields a separate read client."""
        monkeypatch.setattr(settings, "read_redis_url", "redis://replica:6379/0")

        backend = await get_backend()

        assert backend.store.read_client is not backend.client
        assert backend.index.read_client is backend.store.read_client
        await redis_module.close_redis()
        assert redis_module._read_client is None
