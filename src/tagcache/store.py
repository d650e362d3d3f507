"""Entry store: one Redis hash per cached id.

Each entry hash carries the JSON envelope (``d``), the modification time
(``m``), the comma-joined tag list (``t``) and the infinite-lifetime flag
(``i``). Expiry is left to Redis via the key TTL; infinite entries carry
none.

Write methods only queue commands on a pipeline so the caller can group them
with the matching tag index updates in one atomic batch.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, TypeVar, cast

from tagcache.codec import join_tags, split_tags
from tagcache.keys import MAX_LIFETIME, CacheKeys, Field

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import Pipeline

T = TypeVar("T")

logger = logging.getLogger(__name__)

_INFINITE = b"1"
_FINITE = b"0"


def _await_redis(result: Awaitable[T] | T) -> Awaitable[T]:
    """Cast redis-py async results to an awaitable for mypy."""
    return cast(Awaitable[T], result)


def effective_lifetime(lifetime: int | None) -> int | None:
    """Clamp a requested lifetime to what Redis will be asked to apply.

    ``None`` or ``0`` means infinite lifetime and yields None.

    Raises:
        ValueError: If the lifetime is negative
    """
    if not lifetime:
        return None
    if lifetime < 0:
        raise ValueError(f"lifetime must not be negative, got {lifetime}")
    return min(lifetime, MAX_LIFETIME)


@dataclass(frozen=True)
class EntryMetadata:
    """Metadata of a stored entry.

    ``expire`` is an absolute Unix timestamp, or None for infinite entries.
    """

    expire: int | None
    mtime: int
    tags: list[str] = field(default_factory=list)

    @property
    def infinite(self) -> bool:
        return self.expire is None


class EntryStore:
    """Reads and queued writes of entry hashes."""

    def __init__(
        self,
        client: Redis,
        read_client: Redis | None = None,
        read_refresh_lifetime: int = 0,
    ):
        self.client = client
        self.read_client = read_client or client
        self.read_refresh_lifetime = read_refresh_lifetime

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get(self, cache_id: str) -> bytes | None:
        """Read the raw envelope of an entry, or None if it is absent.

        When ``read_refresh_lifetime`` is set, a finite entry gets that TTL
        re-applied after a successful read. Infinite entries are never given
        a TTL here.
        """
        key = CacheKeys.entry(cache_id)
        data, infinite = await _await_redis(
            self.read_client.hmget(key, [Field.DATA, Field.INFINITE])
        )
        if data is None:
            return None

        if self.read_refresh_lifetime and infinite == _FINITE:
            await _await_redis(
                self.client.expire(key, min(self.read_refresh_lifetime, MAX_LIFETIME))
            )

        return cast(bytes, data)

    async def exists(self, cache_id: str) -> int | None:
        """Return the entry mtime, or None if it is absent.

        Always reads from the primary: callers use this as a lock check.
        """
        mtime = await _await_redis(
            self.client.hget(CacheKeys.entry(cache_id), Field.MTIME)
        )
        return int(mtime) if mtime else None

    async def metadata(self, cache_id: str) -> EntryMetadata | None:
        """Expiry, mtime and tags of an entry, or None if it is absent."""
        key = CacheKeys.entry(cache_id)
        tags, mtime, infinite = await _await_redis(
            self.read_client.hmget(key, [Field.TAGS, Field.MTIME, Field.INFINITE])
        )
        if not mtime:
            return None

        expire: int | None = None
        if infinite != _INFINITE:
            ttl = await _await_redis(self.read_client.ttl(key))
            expire = int(time.time()) + max(int(ttl), 0)

        return EntryMetadata(expire=expire, mtime=int(mtime), tags=split_tags(tags))

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def put(
        self,
        pipe: Pipeline,
        cache_id: str,
        payload: bytes,
        tags: list[str],
        lifetime: int | None,
    ) -> None:
        """Queue a full replace of an entry and its expiry.

        Args:
            pipe: Batch pipeline the commands are queued on
            cache_id: Entry id
            payload: Encoded envelope
            tags: Normalized tag list
            lifetime: Clamped lifetime in seconds, None for infinite
        """
        key = CacheKeys.entry(cache_id)
        pipe.hset(
            key,
            mapping={
                Field.INFINITE: _FINITE if lifetime else _INFINITE,
                Field.DATA: payload,
                Field.TAGS: join_tags(tags),
                Field.MTIME: int(time.time()),
            },
        )
        if lifetime:
            pipe.expire(key, lifetime)
        else:
            # An overwrite of a finite entry must not keep the old TTL
            pipe.persist(key)

    def delete(self, pipe: Pipeline, cache_ids: Iterable[str]) -> None:
        """Queue deletion of entry hashes; absent ids are ignored by Redis."""
        keys = CacheKeys.entries(cache_ids)
        if keys:
            pipe.delete(*keys)

    async def discard(self, cache_id: str) -> None:
        """Delete an entry key right away, whatever its Redis type."""
        await _await_redis(self.client.delete(CacheKeys.entry(cache_id)))

    async def extend_expiry(self, cache_id: str, extra_lifetime: int) -> bool:
        """Push a finite entry's expiry ``extra_lifetime`` seconds further.

        Returns False for infinite or absent entries.
        """
        key = CacheKeys.entry(cache_id)
        infinite = await _await_redis(self.client.hget(key, Field.INFINITE))
        if infinite != _FINITE:
            return False

        ttl = int(await _await_redis(self.client.ttl(key)))
        if ttl == -2:
            # Expired between the two reads
            return False

        expire_at = int(time.time()) + max(ttl, 0) + extra_lifetime
        logger.debug("Extending expiry", extra={"cache_id": cache_id, "expire_at": expire_at})
        return bool(await _await_redis(self.client.expireat(key, expire_at)))
