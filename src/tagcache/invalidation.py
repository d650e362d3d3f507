"""Bulk invalidation of cache entries by tag predicate.

``clean`` resolves a cleaning mode and tag list into a set of ids and
deletes them in one atomic batch:

    engine = InvalidationEngine(client, store, index)
    await engine.clean(CleaningMode.MATCHING_TAG, ["product:42"])

Bulk deletion removes the entry hashes and, when the id registry is tracked,
the registry members. It does not strip the deleted ids from the per-tag
sets: ``ids_matching_tags`` may keep listing an id whose entry is gone
until that tag set is rewritten or cleaned. Loads of such ids are plain
misses.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, TypeVar, cast

from tagcache.batch import atomic_batch
from tagcache.index import TagIndex, TagMatch
from tagcache.observability.metrics import get_metrics
from tagcache.store import EntryStore

if TYPE_CHECKING:
    from redis.asyncio import Redis

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _await_redis(result: Awaitable[T] | T) -> Awaitable[T]:
    """Cast redis-py async results to an awaitable for mypy."""
    return cast(Awaitable[T], result)


class CleaningMode(str, Enum):
    """Which entries ``clean`` removes."""

    ALL = "all"  # Flush the whole Redis server
    OLD = "old"  # Redis expires entries itself; nothing to do
    MATCHING_TAG = "matching_tag"  # Entries carrying every tag
    NOT_MATCHING_TAG = "not_matching_tag"  # Entries carrying none of the tags
    MATCHING_ANY_TAG = "matching_any_tag"  # Entries carrying at least one tag


class InvalidationEngine:
    """Computes id sets for tag predicates and deletes them."""

    def __init__(self, client: Redis, store: EntryStore, index: TagIndex):
        self.client = client
        self.store = store
        self.index = index

    async def clean(self, mode: CleaningMode, tags: list[str] | None = None) -> bool:
        """Remove entries selected by ``mode`` and ``tags``.

        ``ALL`` issues FLUSHALL: every key on the server goes, not only cache
        entries, so the Redis instance must be dedicated to this cache.

        Raises:
            ValueError: If ``mode`` is not a ``CleaningMode`` value; nothing
                is deleted
            FeatureDisabledError: For ``NOT_MATCHING_TAG`` without id tracking
        """
        tags = tags or []
        mode = CleaningMode(mode)

        if mode is CleaningMode.ALL:
            await _await_redis(self.client.flushall())
            logger.info("Flushed all cache entries", extra={"mode": mode.value})
            return True

        if mode is CleaningMode.OLD:
            logger.debug("Nothing to clean; Redis expires entries itself", extra={"mode": mode.value})
            return True

        if mode is CleaningMode.MATCHING_TAG:
            ids = await self.index.ids_for_tags(tags, TagMatch.ALL)
        elif mode is CleaningMode.MATCHING_ANY_TAG:
            ids = await self.index.ids_for_tags(tags, TagMatch.ANY)
        else:
            ids = await self.index.ids_not_matching_tags(tags)

        deleted = await self.flush_by_ids(ids)
        logger.info(
            "Cleaned cache entries",
            extra={"mode": mode.value, "tags": tags, "deleted": deleted},
        )
        get_metrics().cache_invalidated_total.labels(mode=mode.value).inc(deleted)
        return True

    async def flush_by_ids(self, cache_ids: list[str]) -> int:
        """Delete entries and their id registry members in one batch.

        Returns the number of ids submitted for deletion.
        """
        if not cache_ids:
            return 0

        async with atomic_batch(self.client, f"bulk delete of {len(cache_ids)} ids") as pipe:
            self.store.delete(pipe, cache_ids)
            self.index.unregister_ids(pipe, cache_ids)

        return len(cache_ids)
