"""Tests for settings."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from tagcache.backend import TaggedRedisBackend
from tagcache.config import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Defaults keep the id registry and read refresh off."""
        monkeypatch.delenv("REDIS_URL", raising=False)
        config = Settings(_env_file=None)  # type: ignore[call-arg]

        assert config.redis_url == "redis://localhost:6379/0"
        assert config.read_redis_url is None
        assert config.track_all_ids is False
        assert config.automatic_cleaning_factor == 0
        assert config.read_refresh_lifetime == 0

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Backend options are read from TAGCACHE_ variables."""
        monkeypatch.setenv("TAGCACHE_TRACK_ALL_IDS", "true")
        monkeypatch.setenv("TAGCACHE_AUTOMATIC_CLEANING_FACTOR", "5")
        monkeypatch.setenv("REDIS_URL", "redis://cache:6379/3")

        config = Settings(_env_file=None)  # type: ignore[call-arg]

        assert config.track_all_ids is True
        assert config.automatic_cleaning_factor == 5
        assert config.redis_url == "redis://cache:6379/3"

    def test_from_settings(self) -> None:
        """Backends pick their options up from settings."""
        config = Settings(
            _env_file=None,  # type: ignore[call-arg]
            track_all_ids=True,
            automatic_cleaning_factor=3,
            read_refresh_lifetime=30,
        )

        backend = TaggedRedisBackend.from_settings(AsyncMock(), config=config)

        assert backend.track_all_ids is True
        assert backend.index.track_all_ids is True
        assert backend.store.read_refresh_lifetime == 30
        assert backend.capabilities().supports_automatic_cleaning
