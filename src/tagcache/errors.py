"""Exceptions raised by the tagged cache backend.

Connection failures are not wrapped: ``redis.exceptions.ConnectionError`` and
``redis.exceptions.TimeoutError`` reach the caller unchanged.
"""

from __future__ import annotations


class TagCacheError(Exception):
    """Base class for tagged cache errors."""


class CacheWriteError(TagCacheError):
    """The store rejected a write, or the payload could not be encoded."""

    def __init__(self, cache_id: str, reason: str):
        self.cache_id = cache_id
        self.reason = reason
        super().__init__(f"Could not set cache key {cache_id}: {reason}")


class FeatureDisabledError(TagCacheError):
    """Operation needs the id registry but ``track_all_ids`` is off."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"{operation} requires track_all_ids, which is currently disabled")


class InvalidTagError(TagCacheError, ValueError):
    """Tag name cannot be stored (empty or contains the tag delimiter)."""

    def __init__(self, tag: str, reason: str):
        self.tag = tag
        super().__init__(f"Invalid tag {tag!r}: {reason}")
