"""Tag-indexed cache backend on Redis.

Provides:
- Entries stored as Redis hashes with mtime, tags and expiry
- Per-tag id sets for lookup and invalidation by tag
- Bulk cleaning by tag predicate (all, any, none) in atomic batches
"""

from tagcache.backend import NOT_FOUND, Capabilities, TaggedRedisBackend, get_backend
from tagcache.errors import (
    CacheWriteError,
    FeatureDisabledError,
    InvalidTagError,
    TagCacheError,
)
from tagcache.invalidation import CleaningMode
from tagcache.keys import MAX_LIFETIME, CacheKeys
from tagcache.redis import close_redis, get_read_redis, get_redis
from tagcache.store import EntryMetadata

__all__ = [
    # Backend
    "TaggedRedisBackend",
    "CleaningMode",
    "Capabilities",
    "EntryMetadata",
    "NOT_FOUND",
    "MAX_LIFETIME",
    "CacheKeys",
    "get_backend",
    # Connections
    "get_redis",
    "get_read_redis",
    "close_redis",
    # Errors
    "TagCacheError",
    "CacheWriteError",
    "FeatureDisabledError",
    "InvalidTagError",
]
