"""Atomic command batches.

Multi-command mutations are queued on a MULTI/EXEC pipeline and sent in one
round-trip. Redis runs the queued commands back-to-back without interleaving
other clients, but a failing command does not roll back the ones before it.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from redis.exceptions import ResponseError

from tagcache.errors import CacheWriteError

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import Pipeline

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic_batch(client: Redis, label: str) -> AsyncIterator[Pipeline]:
    """Queue commands and execute them as one MULTI/EXEC transaction.

    Args:
        client: Redis client to open the pipeline on
        label: Id (or description) reported in a ``CacheWriteError``

    Raises:
        CacheWriteError: If Redis rejects the transaction or a queued command
    """
    async with client.pipeline(transaction=True) as pipe:
        yield pipe
        try:
            await pipe.execute()
        except ResponseError as e:
            logger.error("Batch rejected by Redis", extra={"batch": label, "error": str(e)})
            raise CacheWriteError(label, str(e)) from e
