"""Tag index: per-tag id sets plus the global tag and id registries.

A tag's set lists exactly the ids whose entry hash names that tag. The tag
registry (``zc:tags``) is only ever added to; a tag whose set drains to empty
stays registered. The id registry (``zc:ids``) is kept only when
``track_all_ids`` is enabled, and is what "not matching" queries subtract
from.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, TypeVar, cast

from tagcache.codec import split_tags
from tagcache.errors import FeatureDisabledError
from tagcache.keys import ANY_TAGS_CHUNK, CacheKeys, Field

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import Pipeline

T = TypeVar("T")


def _await_redis(result: Awaitable[T] | T) -> Awaitable[T]:
    """Cast redis-py async results to an awaitable for mypy."""
    return cast(Awaitable[T], result)


def _decode_members(members: Iterable[bytes | str]) -> list[str]:
    return [m.decode() if isinstance(m, bytes) else m for m in members]


class TagMatch(str, Enum):
    """How a tag list selects ids."""

    ALL = "all"  # Intersection
    ANY = "any"  # Union


class TagIndex:
    """Tag to id lookups and queued membership updates."""

    def __init__(
        self,
        client: Redis,
        read_client: Redis | None = None,
        track_all_ids: bool = False,
    ):
        self.client = client
        self.read_client = read_client or client
        self.track_all_ids = track_all_ids

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def tags_of(self, cache_id: str, *, primary: bool = False) -> list[str]:
        """Tags stored on an entry; empty for untagged and absent entries alike.

        Args:
            cache_id: Entry id
            primary: Read from the primary even if a replica is configured
        """
        client = self.client if primary else self.read_client
        raw = await _await_redis(client.hget(CacheKeys.entry(cache_id), Field.TAGS))
        return split_tags(raw)

    async def all_tags(self) -> list[str]:
        members = await _await_redis(self.read_client.smembers(CacheKeys.SET_TAGS))
        return _decode_members(members)

    async def all_ids(self) -> list[str]:
        """Every known id.

        Uses the id registry when it is tracked, otherwise a SCAN over the
        entry key space.
        """
        if self.track_all_ids:
            members = await _await_redis(self.read_client.smembers(CacheKeys.SET_IDS))
            return _decode_members(members)

        ids: list[str] = []
        # Use SCAN to avoid blocking on large keyspaces
        async for key in self.read_client.scan_iter(match=CacheKeys.entry_pattern()):
            cache_id = CacheKeys.id_from_entry_key(key)
            if cache_id is not None:
                ids.append(cache_id)
        return ids

    async def ids_for_tags(self, tags: list[str], mode: TagMatch = TagMatch.ALL) -> list[str]:
        """Ids carrying all (intersection) or any (union) of the tags.

        An empty tag list selects nothing in either mode.
        """
        if not tags:
            return []

        if mode is TagMatch.ALL:
            members = await _await_redis(self.read_client.sinter(CacheKeys.tag_sets(tags)))
            return _decode_members(members)

        result: list[str] = []
        chunks = [tags[i : i + ANY_TAGS_CHUNK] for i in range(0, len(tags), ANY_TAGS_CHUNK)]
        for chunk in chunks:
            members = await _await_redis(self.read_client.sunion(CacheKeys.tag_sets(chunk)))
            result.extend(_decode_members(members))

        if len(chunks) > 1:
            # Chunked unions overlap; de-duplicate member names
            result = list(dict.fromkeys(result))
        return result

    async def ids_not_matching_tags(self, tags: list[str]) -> list[str]:
        """Known ids carrying none of the tags.

        Raises:
            FeatureDisabledError: If the id registry is not tracked
        """
        if not self.track_all_ids:
            raise FeatureDisabledError("ids_not_matching_tags")

        if not tags:
            members = await _await_redis(self.read_client.smembers(CacheKeys.SET_IDS))
        else:
            members = await _await_redis(
                self.read_client.sdiff([CacheKeys.SET_IDS, *CacheKeys.tag_sets(tags)])
            )
        return _decode_members(members)

    # -------------------------------------------------------------------------
    # Queued updates
    # -------------------------------------------------------------------------

    def add_membership(self, pipe: Pipeline, tags: list[str], cache_id: str) -> None:
        """Queue adding an id to each tag set and the tags to the registry."""
        if self.track_all_ids:
            pipe.sadd(CacheKeys.SET_IDS, cache_id)
        if not tags:
            return
        pipe.sadd(CacheKeys.SET_TAGS, *tags)
        for tag in tags:
            pipe.sadd(CacheKeys.tag_ids(tag), cache_id)

    def remove_membership(self, pipe: Pipeline, tags: Iterable[str], cache_id: str) -> None:
        """Queue removing an id from each tag set.

        The tags stay in the registry even if their sets become empty.
        """
        for tag in tags:
            pipe.srem(CacheKeys.tag_ids(tag), cache_id)

    def unregister_ids(self, pipe: Pipeline, cache_ids: list[str]) -> None:
        """Queue removing ids from the id registry, when it is tracked."""
        if self.track_all_ids and cache_ids:
            pipe.srem(CacheKeys.SET_IDS, *cache_ids)
