"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for repositories, adapters and the subscription
registry. Components are created on first access and cached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.interfaces.voice_adapter import VoiceAdapter
    from ..application.services.subscription_registry import SubscriptionRegistry
    from ..domain.guild.repository import GuildProfileRepository
    from ..domain.shared.events import EventBus
    from ..infrastructure.audio.ytdlp_resolver import YtDlpResolver
    from ..infrastructure.persistence.database import Database
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed.
    """

    settings: Settings
    _bot: Bot | None = None

    # Persistence layer
    _database: Database | None = None
    _guild_profile_repository: GuildProfileRepository | None = None

    # Infrastructure adapters
    _ytdlp_resolver: YtDlpResolver | None = None
    _voice_adapter: VoiceAdapter | None = None

    # Application services
    _event_bus: EventBus | None = None
    _registry: SubscriptionRegistry | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        if self._bot is None:
            raise RuntimeError("Bot not initialized. Call set_bot() first.")
        return self._bot

    # === Database ===

    @property
    def database(self) -> Database:
        if self._database is None:
            from ..infrastructure.persistence.database import Database

            self._database = Database(self.settings.database.url, settings=self.settings.database)
        return self._database

    # === Repositories ===

    @property
    def guild_profile_repository(self) -> GuildProfileRepository:
        """Get the cached guild profile repository."""
        if self._guild_profile_repository is None:
            from ..infrastructure.persistence.repositories.guild_profile_repository import (
                CachedGuildProfileRepository,
                SQLiteGuildProfileRepository,
            )

            self._guild_profile_repository = CachedGuildProfileRepository(
                SQLiteGuildProfileRepository(
                    self.database, default_volume=self.settings.audio.default_volume
                ),
                ttl_seconds=self.settings.database.profile_cache_ttl_s,
            )
        return self._guild_profile_repository

    # === Adapters ===

    @property
    def ytdlp_resolver(self) -> YtDlpResolver:
        """Track lookup, stream resolution and autoplay share one yt-dlp client."""
        if self._ytdlp_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpResolver

            self._ytdlp_resolver = YtDlpResolver(self.settings.audio)
        return self._ytdlp_resolver

    @property
    def voice_adapter(self) -> VoiceAdapter:
        if self._voice_adapter is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceAdapter

            self._voice_adapter = DiscordVoiceAdapter(self.bot, self.settings.audio)
        return self._voice_adapter

    # === Application Services ===

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            from ..domain.shared.events import EventBus

            self._event_bus = EventBus()
        return self._event_bus

    @property
    def registry(self) -> SubscriptionRegistry:
        """Get the per-guild subscription registry."""
        if self._registry is None:
            from ..application.services.subscription_models import SubscriptionOptions
            from ..application.services.subscription_registry import SubscriptionRegistry

            audio = self.settings.audio
            self._registry = SubscriptionRegistry(
                voice_adapter=self.voice_adapter,
                stream_resolver=self.ytdlp_resolver,
                autoplay_source=self.ytdlp_resolver,
                event_bus=self.event_bus,
                profile_repository=self.guild_profile_repository,
                options=SubscriptionOptions(
                    default_volume=audio.default_volume,
                    history_limit=audio.history_limit,
                    max_resolve_failures=audio.max_resolve_failures,
                    lock_timeout_s=audio.lock_timeout_s,
                    prefetch_ttl_s=audio.prefetch_ttl_s,
                ),
            )
        return self._registry

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Initialize all async resources."""
        await self.database.initialize()

    async def shutdown(self) -> None:
        """Tear down every subscription, then release the database."""
        if self._registry is not None:
            await self._registry.shutdown()

        if self._event_bus is not None:
            self._event_bus.clear()

        if self._database is not None:
            await self._database.close()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
