"""Tagged Redis cache backend.

Stores JSON-enveloped payloads under caller-supplied ids and keeps per-tag
id sets in lockstep, so entries can be listed and invalidated by tag:

    backend = TaggedRedisBackend(await get_redis(), track_all_ids=True)
    await backend.save({"price": 10}, "product:42", tags=["catalog", "eu"])
    await backend.load("product:42")                     # {"price": 10}
    await backend.clean(CleaningMode.MATCHING_TAG, ["eu"])
    await backend.load("product:42")                     # NOT_FOUND

Every write (save, remove, bulk delete) is one MULTI/EXEC batch. The backend
holds no state of its own between calls; concurrent callers rely on the
batch atomicity and the idempotence of set updates.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Final, TypeVar, cast

from redis.exceptions import ResponseError

from tagcache.batch import atomic_batch
from tagcache.codec import decode_payload, encode_payload, normalize_tags
from tagcache.config import Settings, settings
from tagcache.errors import CacheWriteError
from tagcache.index import TagIndex, TagMatch
from tagcache.invalidation import CleaningMode, InvalidationEngine
from tagcache.observability.metrics import get_metrics
from tagcache.redis import get_read_redis, get_redis
from tagcache.store import EntryMetadata, EntryStore, effective_lifetime

if TYPE_CHECKING:
    from redis.asyncio import Redis

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _await_redis(result: Awaitable[T] | T) -> Awaitable[T]:
    """Cast redis-py async results to an awaitable for mypy."""
    return cast(Awaitable[T], result)


class _Missing(Enum):
    NOT_FOUND = "NOT_FOUND"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


# Returned by load() for absent ids and for corrupt entries it removed
NOT_FOUND: Final = _Missing.NOT_FOUND


@dataclass(frozen=True)
class Capabilities:
    """Features this backend offers to a cache manager."""

    supports_tagging: bool = True
    supports_infinite_lifetime: bool = True
    supports_listing: bool = True
    supports_automatic_cleaning: bool = False
    supports_expired_read: bool = False
    supports_priority: bool = False


class TaggedRedisBackend:
    """Cache backend with tag indexes kept in Redis.

    Args:
        client: Primary Redis client; all writes and ``exists`` go here
        read_client: Optional replica for lag-tolerant reads
        track_all_ids: Maintain the id registry, enabling "not matching" queries
        automatic_cleaning_factor: Advertised through ``capabilities`` only
        read_refresh_lifetime: TTL re-applied to finite entries on load; 0 disables
    """

    def __init__(
        self,
        client: Redis,
        *,
        read_client: Redis | None = None,
        track_all_ids: bool = False,
        automatic_cleaning_factor: int = 0,
        read_refresh_lifetime: int = 0,
    ):
        self.client = client
        self.track_all_ids = track_all_ids
        self.automatic_cleaning_factor = automatic_cleaning_factor
        self.store = EntryStore(client, read_client, read_refresh_lifetime)
        self.index = TagIndex(client, read_client, track_all_ids)
        self.invalidation = InvalidationEngine(client, self.store, self.index)

    @classmethod
    def from_settings(
        cls,
        client: Redis,
        read_client: Redis | None = None,
        config: Settings | None = None,
    ) -> TaggedRedisBackend:
        """Build a backend with behaviour options taken from settings."""
        config = config or settings
        return cls(
            client,
            read_client=read_client,
            track_all_ids=config.track_all_ids,
            automatic_cleaning_factor=config.automatic_cleaning_factor,
            read_refresh_lifetime=config.read_refresh_lifetime,
        )

    # -------------------------------------------------------------------------
    # Entry operations
    # -------------------------------------------------------------------------

    async def save(
        self,
        data: Any,
        cache_id: str,
        tags: Iterable[str] | str | None = None,
        lifetime: int | None = None,
    ) -> bool:
        """Write or overwrite an entry with its tags.

        Args:
            data: JSON-serializable payload
            cache_id: Entry id
            tags: Tag names; a single string is one tag
            lifetime: Seconds to live, capped at ``MAX_LIFETIME``; None or 0
                stores the entry without expiry

        Raises:
            InvalidTagError: If a tag is empty or contains a comma
            CacheWriteError: If the payload cannot be encoded or Redis
                rejects the write
        """
        if not cache_id:
            raise ValueError("cache_id must not be empty")

        tag_list = normalize_tags(tags)
        ttl = effective_lifetime(lifetime)
        try:
            payload = encode_payload(data)
        except TypeError as e:
            raise CacheWriteError(cache_id, f"payload is not serializable: {e}") from e

        # An overwrite must drop the id from tags it no longer carries
        previous = await self.index.tags_of(cache_id, primary=True)
        dropped = [tag for tag in previous if tag not in tag_list]

        async with atomic_batch(self.client, cache_id) as pipe:
            self.store.put(pipe, cache_id, payload, tag_list, ttl)
            self.index.remove_membership(pipe, dropped, cache_id)
            self.index.add_membership(pipe, tag_list, cache_id)

        get_metrics().cache_saves_total.inc()
        logger.debug(
            "Saved cache entry",
            extra={"cache_id": cache_id, "tags": tag_list, "lifetime": ttl},
        )
        return True

    async def load(self, cache_id: str) -> Any:
        """Return the stored payload, or ``NOT_FOUND``.

        An entry that cannot be read (wrong Redis type) or whose payload cannot
        be decoded is removed and reported as ``NOT_FOUND``. Only connection
        failures raise.
        """
        metrics = get_metrics()
        try:
            raw = await self.store.get(cache_id)
        except ResponseError as e:
            logger.warning(
                "Removing unreadable cache entry",
                extra={"cache_id": cache_id, "error": str(e)},
            )
            metrics.cache_corrupt_total.inc()
            await self.store.discard(cache_id)
            return NOT_FOUND

        if raw is None:
            metrics.cache_misses_total.inc()
            return NOT_FOUND

        decoded = decode_payload(raw)
        if not decoded.ok:
            logger.warning(
                "Removing corrupt cache entry",
                extra={"cache_id": cache_id, "error": decoded.error},
            )
            metrics.cache_corrupt_total.inc()
            await self.remove(cache_id)
            return NOT_FOUND

        metrics.cache_hits_total.inc()
        return decoded.value

    async def exists(self, cache_id: str) -> int | None:
        """Modification time of the entry, or None if it is absent."""
        return await self.store.exists(cache_id)

    async def remove(self, cache_id: str) -> bool:
        """Delete an entry and its tag memberships; absent ids succeed too."""
        tags = await self.index.tags_of(cache_id, primary=True)

        async with atomic_batch(self.client, cache_id) as pipe:
            self.store.delete(pipe, [cache_id])
            self.index.unregister_ids(pipe, [cache_id])
            self.index.remove_membership(pipe, tags, cache_id)

        get_metrics().cache_removals_total.inc()
        logger.debug("Removed cache entry", extra={"cache_id": cache_id, "tags": tags})
        return True

    async def metadata(self, cache_id: str) -> EntryMetadata | None:
        return await self.store.metadata(cache_id)

    async def touch(self, cache_id: str, extra_lifetime: int) -> bool:
        """Extend a finite entry's expiry; False for infinite or absent ids."""
        return await self.store.extend_expiry(cache_id, extra_lifetime)

    # -------------------------------------------------------------------------
    # Tag queries and cleaning
    # -------------------------------------------------------------------------

    async def clean(
        self,
        mode: CleaningMode = CleaningMode.ALL,
        tags: Iterable[str] | str | None = None,
    ) -> bool:
        """Remove entries by cleaning mode. See ``InvalidationEngine.clean``."""
        return await self.invalidation.clean(mode, normalize_tags(tags))

    async def list_ids(self) -> list[str]:
        return await self.index.all_ids()

    async def list_tags(self) -> list[str]:
        return await self.index.all_tags()

    async def tags_of(self, cache_id: str) -> list[str]:
        return await self.index.tags_of(cache_id)

    async def ids_matching_tags(self, tags: Iterable[str] | str) -> list[str]:
        """Ids carrying every one of the tags."""
        return await self.index.ids_for_tags(normalize_tags(tags), TagMatch.ALL)

    async def ids_matching_any_tags(self, tags: Iterable[str] | str) -> list[str]:
        """Ids carrying at least one of the tags."""
        return await self.index.ids_for_tags(normalize_tags(tags), TagMatch.ANY)

    async def ids_not_matching_tags(self, tags: Iterable[str] | str) -> list[str]:
        """Ids carrying none of the tags.

        Raises:
            FeatureDisabledError: If ``track_all_ids`` is off
        """
        return await self.index.ids_not_matching_tags(normalize_tags(tags))

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    async def filling_percentage(self) -> int:
        """Used memory as a percentage of ``maxmemory``, rounded half up.

        Returns 1 when Redis has no memory limit configured.
        """
        config = await _await_redis(self.client.config_get("maxmemory"))
        max_memory = int(config.get("maxmemory") or 0)
        if max_memory == 0:
            return 1

        info = await _await_redis(self.client.info("memory"))
        used = int(info["used_memory"])
        return min(math.floor(used * 100 / max_memory + 0.5), 100)

    def capabilities(self) -> Capabilities:
        return Capabilities(supports_automatic_cleaning=self.automatic_cleaning_factor > 0)


async def get_backend() -> TaggedRedisBackend:
    """Backend over the shared clients, configured from settings."""
    return TaggedRedisBackend.from_settings(await get_redis(), await get_read_redis())
