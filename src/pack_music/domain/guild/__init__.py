"""
Guild Bounded Context

Per-guild preferences that seed a new subscription.
"""

from pack_music.domain.guild.entities import GuildProfile
from pack_music.domain.guild.repository import GuildProfileRepository

__all__ = ["GuildProfile", "GuildProfileRepository"]
