"""
Guild Domain Repository Interfaces

Abstract base classes defining the contracts for profile persistence.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod

from pack_music.domain.guild.entities import GuildProfile


class GuildProfileRepository(ABC):
    """Read-mostly store of guild profiles."""

    @abstractmethod
    async def get(self, guild_id: int) -> GuildProfile:
        """Return the profile for ``guild_id``, creating a default row if missing."""
        ...

    @abstractmethod
    async def save(self, profile: GuildProfile) -> None:
        ...

    def invalidate(self, guild_id: int | None = None) -> int:
        """Forget cached profiles; ``None`` clears all. Returns how many were dropped."""
        return 0
