"""Tests for atomic command batches."""

from __future__ import annotations

import pytest
from fakeredis.aioredis import FakeRedis

from tagcache.batch import atomic_batch
from tagcache.errors import CacheWriteError


class TestAtomicBatch:
    """Tests for atomic_batch()."""

    @pytest.mark.asyncio
    async def test_commands_execute_on_exit(self, redis_client: FakeRedis) -> None:
        """Queued commands are applied when the block ends."""
        async with atomic_batch(redis_client, "item") as pipe:
            pipe.sadd("s", "a")
            pipe.set("k", b"v")

        assert await redis_client.smembers("s") == {b"a"}
        assert await redis_client.get("k") == b"v"

    @pytest.mark.asyncio
    async def test_exception_discards_queue(self, redis_client: FakeRedis) -> None:
        """An error inside the block leaves the store untouched."""
        with pytest.raises(RuntimeError):
            async with atomic_batch(redis_client, "item") as pipe:
                pipe.set("k", b"v")
                raise RuntimeError("abort")

        assert await redis_client.get("k") is None

    @pytest.mark.asyncio
    async def test_rejected_command_raises_write_error(self, redis_client: FakeRedis) -> None:
        """A command Redis rejects surfaces as CacheWriteError."""
        await redis_client.set("k", b"string")

        with pytest.raises(CacheWriteError) as exc_info:
            async with atomic_batch(redis_client, "item") as pipe:
                pipe.set("other", b"v")
                pipe.sadd("k", "member")  # WRONGTYPE

        assert exc_info.value.cache_id == "item"

    @pytest.mark.asyncio
    async def test_no_rollback_of_earlier_commands(self, redis_client: FakeRedis) -> None:
        """Commands before a failing one stay applied."""
        await redis_client.set("k", b"string")

        with pytest.raises(CacheWriteError):
            async with atomic_batch(redis_client, "item") as pipe:
                pipe.set("other", b"v")
                pipe.sadd("k", "member")

        assert await redis_client.get("other") == b"v"
