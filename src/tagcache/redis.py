"""Redis connection management for the tagged cache.

Uses the redis-py async client with connection pooling. The backend itself
takes an injected client; these helpers build the shared clients from
settings for applications and the CLI.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import redis.asyncio as redis

from tagcache.config import settings

if TYPE_CHECKING:
    from redis.asyncio import Redis

# Module-level connection pools
_redis_client: Redis | None = None
_read_client: Redis | None = None


def _from_url(url: str) -> Redis:
    return redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=False,  # Payloads are stored as bytes
    )


async def get_redis() -> Redis:
    """Get or create the primary Redis client."""
    global _redis_client
    if _redis_client is None:
        _redis_client = _from_url(settings.redis_url)
    return _redis_client


async def get_read_redis() -> Redis | None:
    """Get or create the replica client, if one is configured."""
    global _read_client
    if _read_client is None and settings.read_redis_url:
        _read_client = _from_url(settings.read_redis_url)
    return _read_client


async def close_redis() -> None:
    """Close Redis connections."""
    global _redis_client, _read_client
    if _read_client is not None:
        await _read_client.aclose()
        _read_client = None
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
