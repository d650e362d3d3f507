"""Redis key schema for the tagged cache.

Key format:
- zc:k:{id}       hash holding one entry (fields d, m, t, i)
- zc:ti:{tag}     set of ids carrying the tag
- zc:tags         set of every tag name ever used
- zc:ids          set of every known id (only with track_all_ids)
"""

from __future__ import annotations

from collections.abc import Iterable

# Redis backend limit for a single entry lifetime (30 days)
MAX_LIFETIME = 2_592_000

TAG_DELIMITER = ","

# SUNION is issued for at most this many tags at a time
ANY_TAGS_CHUNK = 256


class Field:
    """Hash fields of an entry record."""

    DATA = "d"
    MTIME = "m"
    TAGS = "t"
    INFINITE = "i"


class CacheKeys:
    """Cache key generator following consistent naming convention."""

    SET_IDS = "zc:ids"
    SET_TAGS = "zc:tags"

    PREFIX_KEY = "zc:k:"
    PREFIX_TAG_IDS = "zc:ti:"

    @classmethod
    def entry(cls, cache_id: str) -> str:
        """Key for an entry hash."""
        return f"{cls.PREFIX_KEY}{cache_id}"

    @classmethod
    def tag_ids(cls, tag: str) -> str:
        """Key for the id set of a tag."""
        return f"{cls.PREFIX_TAG_IDS}{tag}"

    @classmethod
    def entries(cls, cache_ids: Iterable[str]) -> list[str]:
        return [cls.entry(cache_id) for cache_id in cache_ids]

    @classmethod
    def tag_sets(cls, tags: Iterable[str]) -> list[str]:
        return [cls.tag_ids(tag) for tag in tags]

    @classmethod
    def entry_pattern(cls) -> str:
        """Pattern matching every entry hash, for SCAN."""
        return f"{cls.PREFIX_KEY}*"

    @classmethod
    def id_from_entry_key(cls, key: str | bytes) -> str | None:
        """Strip the entry prefix from a key.

        Returns None if the key is not an entry key.
        """
        if isinstance(key, bytes):
            key = key.decode()
        if not key.startswith(cls.PREFIX_KEY):
            return None
        return key[len(cls.PREFIX_KEY) :]
