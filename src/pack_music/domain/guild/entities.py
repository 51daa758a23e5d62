"""Guild profile entity."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pack_music.domain.shared.datetime_utils import utcnow
from pack_music.domain.shared.types import DiscordSnowflake, UtcDatetimeField, VolumePercent


class GuildProfile(BaseModel):
    """Stored preferences for one guild."""

    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    default_volume: VolumePercent = 100
    autoplay_default: bool = False
    updated_at: UtcDatetimeField = Field(default_factory=utcnow)

    def with_changes(self, **changes: object) -> GuildProfile:
        """Return a validated copy with the given fields replaced and a fresh timestamp."""
        data = self.model_dump()
        data.update(changes)
        data["updated_at"] = utcnow()
        return GuildProfile.model_validate(data)
