"""Shared plumbing for CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar
from uuid import uuid4

from tagcache.backend import TaggedRedisBackend, get_backend
from tagcache.config import settings
from tagcache.observability.logging import LogContext, configure_logging
from tagcache.redis import close_redis

T = TypeVar("T")


def run_with_backend(func: Callable[[TaggedRedisBackend], Awaitable[T]]) -> T:
    """Run ``func`` against a backend built from settings, then close Redis.

    Every log line of one invocation carries the same correlation ID.
    """
    configure_logging(json_format=settings.log_json, level=settings.log_level)

    async def _run() -> T:
        backend = await get_backend()
        try:
            return await func(backend)
        finally:
            await close_redis()

    with LogContext(correlation_id=uuid4().hex[:12]):
        return asyncio.run(_run())
