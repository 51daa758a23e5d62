"""DTOs for the subscription services."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ...domain.music.entities import Track
from ...domain.music.value_objects import AudioFilter, PlayerStatus, RepeatMode
from ...domain.shared.types import (
    DiscordSnowflake,
    HistoryLimit,
    NonNegativeInt,
    PositiveFloat,
    PositiveInt,
    VolumePercent,
)


class SubscriptionOptions(BaseModel):
    """Tunables shared by every subscription the registry builds."""

    model_config = ConfigDict(frozen=True)

    default_volume: VolumePercent = 100
    history_limit: HistoryLimit = 50
    max_resolve_failures: PositiveInt = 3
    lock_timeout_s: PositiveFloat = 10.0
    prefetch_ttl_s: PositiveFloat = 600.0


class EnqueueResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    position: PositiveInt
    count: PositiveInt
    started: bool = False


class SubscriptionSnapshot(BaseModel):
    """Read-only view of a subscription for display."""

    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    current_track: Track | None
    queue: list[Track]
    history_length: NonNegativeInt
    status: PlayerStatus
    repeat_mode: RepeatMode
    autoplay: bool
    volume: VolumePercent
    filters: list[AudioFilter] = Field(default_factory=list)
    elapsed_seconds: NonNegativeInt = 0

    @property
    def queue_length(self) -> int:
        return len(self.queue)

    @property
    def total_duration_seconds(self) -> int | None:
        """Sum of known queue durations, or None if any is unknown."""
        durations = [t.duration_seconds for t in self.queue]
        if any(d is None for d in durations):
            return None
        return sum(d for d in durations if d is not None)
