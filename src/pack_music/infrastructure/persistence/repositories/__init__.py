"""SQLite repository implementations."""

from pack_music.infrastructure.persistence.repositories.guild_profile_repository import (
    CachedGuildProfileRepository,
    SQLiteGuildProfileRepository,
)

__all__ = [
    "SQLiteGuildProfileRepository",
    "CachedGuildProfileRepository",
]
