"""Global pytest configuration and fixtures.

Provides an isolated in-memory Redis per test and backends built on it.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest_asyncio
from fakeredis import FakeServer
from fakeredis.aioredis import FakeRedis

from tagcache.backend import TaggedRedisBackend


@pytest_asyncio.fixture
async def redis_client() -> AsyncIterator[FakeRedis]:
    """In-memory Redis with its own server state."""
    client = FakeRedis(server=FakeServer())
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def backend(redis_client: FakeRedis) -> TaggedRedisBackend:
    """Backend without the id registry (SCAN listing)."""
    return TaggedRedisBackend(redis_client)


@pytest_asyncio.fixture
async def tracking_backend(redis_client: FakeRedis) -> TaggedRedisBackend:
    """Backend maintaining the id registry."""
    return TaggedRedisBackend(redis_client, track_all_ids=True)
