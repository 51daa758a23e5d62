"""Process-wide map from guild to its active subscription."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from ...domain.guild.entities import GuildProfile
from ...domain.shared.events import SubscriptionCreated, SubscriptionDestroyed
from ...domain.shared.exceptions import NotConnectedError
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake
from .prefetch_cache import PrefetchCache
from .subscription import Subscription
from .subscription_models import SubscriptionOptions

if TYPE_CHECKING:
    from ...domain.guild.repository import GuildProfileRepository
    from ...domain.shared.events import EventBus
    from ..interfaces.autoplay_source import AutoplaySource
    from ..interfaces.stream_resolver import StreamResolver
    from ..interfaces.voice_adapter import VoiceAdapter

logger = logging.getLogger(__name__)


class SubscriptionRegistry:
    """Single source of truth for "does this guild have an active session".

    Entries are inserted only after a successful voice join and removed on
    leave, empty channel or shutdown. Join and leave for the same guild are
    serialized so two subscriptions for one guild can never coexist.
    """

    def __init__(
        self,
        *,
        voice_adapter: VoiceAdapter,
        stream_resolver: StreamResolver,
        autoplay_source: AutoplaySource,
        event_bus: EventBus,
        profile_repository: GuildProfileRepository | None = None,
        options: SubscriptionOptions | None = None,
    ) -> None:
        self._voice = voice_adapter
        self._stream_resolver = stream_resolver
        self._autoplay_source = autoplay_source
        self._event_bus = event_bus
        self._profiles = profile_repository
        self._options = options or SubscriptionOptions()

        self._subscriptions: dict[DiscordSnowflake, Subscription] = {}
        self._guild_locks: dict[DiscordSnowflake, asyncio.Lock] = {}
        self._lock_users: Counter[DiscordSnowflake] = Counter()

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._subscriptions

    def __len__(self) -> int:
        return len(self._subscriptions)

    def get(self, guild_id: DiscordSnowflake) -> Subscription | None:
        return self._subscriptions.get(guild_id)

    def require(self, guild_id: DiscordSnowflake) -> Subscription:
        subscription = self._subscriptions.get(guild_id)
        if subscription is None:
            raise NotConnectedError(guild_id)
        return subscription

    @asynccontextmanager
    async def _guild_lock(self, guild_id: DiscordSnowflake) -> AsyncIterator[None]:
        """Serialize join/leave per guild; the lock is dropped once nobody holds or awaits it."""
        lock = self._guild_locks.setdefault(guild_id, asyncio.Lock())
        self._lock_users[guild_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[guild_id] -= 1
            if self._lock_users[guild_id] <= 0:
                del self._lock_users[guild_id]
                self._guild_locks.pop(guild_id, None)

    async def join(self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake) -> Subscription:
        """Connect to ``channel_id`` and return the guild's subscription, creating it if needed."""
        async with self._guild_lock(guild_id):
            if not await self._voice.connect(guild_id, channel_id):
                raise NotConnectedError(guild_id, f"Could not join voice channel {channel_id}")

            existing = self._subscriptions.get(guild_id)
            if existing is not None:
                logger.debug(LogTemplates.SUBSCRIPTION_EXISTS, guild_id)
                existing.channel_id = channel_id
                return existing

            profile = await self._load_profile(guild_id)
            subscription = Subscription(
                guild_id,
                channel_id,
                voice_adapter=self._voice,
                stream_resolver=self._stream_resolver,
                autoplay_source=self._autoplay_source,
                prefetch_cache=PrefetchCache(
                    self._stream_resolver, ttl_seconds=self._options.prefetch_ttl_s
                ),
                event_bus=self._event_bus,
                options=self._options,
                volume=profile.default_volume,
                autoplay=profile.autoplay_default,
            )
            subscription.start()
            self._subscriptions[guild_id] = subscription

        logger.info(
            LogTemplates.SUBSCRIPTION_CREATED,
            guild_id,
            profile.default_volume,
            profile.autoplay_default,
        )
        await self._event_bus.publish(SubscriptionCreated(guild_id=guild_id, channel_id=channel_id))
        return subscription

    async def leave(self, guild_id: DiscordSnowflake, *, reason: str = "leave") -> bool:
        """Tear down the guild's subscription and voice connection.

        The player is stopped before the connection is released. Returns
        False if there was nothing to leave.
        """
        async with self._guild_lock(guild_id):
            subscription = self._subscriptions.pop(guild_id, None)
            if subscription is not None:
                await subscription.destroy()
            disconnected = await self._voice.disconnect(guild_id)

        if subscription is None:
            return disconnected

        logger.info(LogTemplates.SUBSCRIPTION_DESTROYED, guild_id)
        await self._event_bus.publish(SubscriptionDestroyed(guild_id=guild_id, reason=reason))
        return True

    async def leave_if_alone(self, guild_id: DiscordSnowflake) -> bool:
        """Leave when no human listener is left in the bot's channel."""
        if guild_id not in self._subscriptions:
            return False
        if await self._voice.get_listeners(guild_id):
            return False

        logger.info(LogTemplates.REGISTRY_AUTO_LEAVE, guild_id)
        return await self.leave(guild_id, reason="empty channel")

    async def shutdown(self) -> None:
        guild_ids = list(self._subscriptions)
        if guild_ids:
            logger.info(LogTemplates.REGISTRY_SHUTDOWN, len(guild_ids))
        for guild_id in guild_ids:
            await self.leave(guild_id, reason="shutdown")

    async def _load_profile(self, guild_id: DiscordSnowflake) -> GuildProfile:
        fallback = GuildProfile(guild_id=guild_id, default_volume=self._options.default_volume)
        if self._profiles is None:
            return fallback
        try:
            return await self._profiles.get(guild_id)
        except Exception as exc:
            logger.warning(LogTemplates.PROFILE_FETCH_FAILED, guild_id, exc)
            return fallback
