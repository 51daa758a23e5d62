"""Tests for the dependency injection container."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pack_music.application.services.subscription_registry import SubscriptionRegistry
from pack_music.config.container import Container, create_container
from pack_music.config.settings import AudioSettings, DatabaseSettings, Settings
from pack_music.infrastructure.audio.ytdlp_resolver import YtDlpResolver
from pack_music.infrastructure.discord.adapters.voice_adapter import DiscordVoiceAdapter
from pack_music.infrastructure.persistence.repositories.guild_profile_repository import (
    CachedGuildProfileRepository,
)

from conftest import GUILD_ID


@pytest.fixture
def settings():
    return Settings(
        database=DatabaseSettings(url="sqlite:///:memory:"),
        audio=AudioSettings(default_volume=70, lock_timeout_s=2.0),
    )


@pytest.fixture
def container(settings):
    c = create_container(settings)
    c.set_bot(MagicMock())
    return c


class TestLazyComponents:
    def test_components_are_cached(self, container):
        assert container.database is container.database
        assert container.event_bus is container.event_bus
        assert container.registry is container.registry

    def test_component_types(self, container):
        assert isinstance(container.ytdlp_resolver, YtDlpResolver)
        assert isinstance(container.voice_adapter, DiscordVoiceAdapter)
        assert isinstance(container.guild_profile_repository, CachedGuildProfileRepository)
        assert isinstance(container.registry, SubscriptionRegistry)
        assert container.database.is_memory

    def test_bot_required(self, settings):
        container = Container(settings)
        with pytest.raises(RuntimeError):
            _ = container.bot


class TestLifecycle:
    async def test_initialize_and_shutdown(self, container):
        await container.initialize()

        profile = await container.guild_profile_repository.get(GUILD_ID)
        assert profile.default_volume == 70

        await container.shutdown()

    async def test_shutdown_tears_down_registry(self, container):
        await container.initialize()
        container._registry = MagicMock()
        container._registry.shutdown = AsyncMock()

        await container.shutdown()

        container._registry.shutdown.assert_awaited_once()

    async def test_shutdown_without_components(self, settings):
        await Container(settings).shutdown()
