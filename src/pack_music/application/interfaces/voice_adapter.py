"""Port interface for Discord voice operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from pack_music.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ...domain.music.entities import ResolvedStream
    from ...domain.music.value_objects import AudioFilter, StartSeconds

TrackEndCallback = Callable[[Exception | None], None]
"""Invoked on the event loop once the player stops, with the player error if any."""


class VoiceAdapter(ABC):
    """Interface for Discord voice channel operations."""

    @abstractmethod
    async def connect(self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake) -> bool:
        """Connect to (or move to) a voice channel."""
        ...

    @abstractmethod
    async def disconnect(self, guild_id: DiscordSnowflake) -> bool:
        """Disconnect from voice in a guild."""
        ...

    @abstractmethod
    async def play(
        self,
        guild_id: DiscordSnowflake,
        stream: "ResolvedStream",
        *,
        volume: float,
        on_end: TrackEndCallback,
        start_seconds: "StartSeconds | None" = None,
        filters: "Sequence[AudioFilter]" = (),
    ) -> bool:
        """Replace whatever is playing with *stream*, optionally seeking to *start_seconds*.

        *filters* are applied to the output in order.
        """
        ...

    @abstractmethod
    async def stop(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    async def pause(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    async def resume(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    def set_volume(self, guild_id: DiscordSnowflake, volume: float) -> bool:
        """Apply a volume multiplier to the live source without restarting it."""
        ...

    @abstractmethod
    def is_connected(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    def get_current_channel_id(self, guild_id: DiscordSnowflake) -> DiscordSnowflake | None:
        """Get the current voice channel ID, or None if not connected."""
        ...

    @abstractmethod
    async def get_listeners(self, guild_id: DiscordSnowflake) -> list[DiscordSnowflake]:
        """Get listener user IDs in the voice channel, excluding bots."""
        ...
