"""SQLite implementation of the guild profile repository, plus a TTL cache over it."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pack_music.domain.guild.entities import GuildProfile
from pack_music.domain.guild.repository import GuildProfileRepository
from pack_music.domain.shared.datetime_utils import from_iso, to_iso
from pack_music.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)


class SQLiteGuildProfileRepository(GuildProfileRepository):
    def __init__(self, database: Database, *, default_volume: int = 100) -> None:
        self._db = database
        self._default_volume = default_volume

    async def get(self, guild_id: int) -> GuildProfile:
        row = await self._db.fetch_one(
            "SELECT * FROM guild_profiles WHERE guild_id = ?",
            (guild_id,),
        )
        if row is not None:
            return self._row_to_profile(row)

        profile = GuildProfile(guild_id=guild_id, default_volume=self._default_volume)
        async with self._db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO guild_profiles (guild_id, default_volume, autoplay_default, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(guild_id) DO NOTHING
                """,
                self._profile_to_params(profile),
            )
        return profile

    async def save(self, profile: GuildProfile) -> None:
        async with self._db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO guild_profiles (guild_id, default_volume, autoplay_default, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(guild_id) DO UPDATE SET
                    default_volume = excluded.default_volume,
                    autoplay_default = excluded.autoplay_default,
                    updated_at = excluded.updated_at
                """,
                self._profile_to_params(profile),
            )
        logger.debug(LogTemplates.PROFILE_SAVED, profile.guild_id)

    def _row_to_profile(self, row: dict[str, Any]) -> GuildProfile:
        return GuildProfile(
            guild_id=row["guild_id"],
            default_volume=row["default_volume"],
            autoplay_default=bool(row["autoplay_default"]),
            updated_at=from_iso(row["updated_at"]),
        )

    def _profile_to_params(self, profile: GuildProfile) -> tuple[Any, ...]:
        return (
            profile.guild_id,
            profile.default_volume,
            int(profile.autoplay_default),
            to_iso(profile.updated_at),
        )


class CachedGuildProfileRepository(GuildProfileRepository):
    """Keeps profiles in memory for ``ttl_seconds`` after each load or save."""

    def __init__(
        self,
        inner: GuildProfileRepository,
        *,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._inner = inner
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[int, tuple[float, GuildProfile]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, guild_id: int) -> GuildProfile:
        entry = self._entries.get(guild_id)
        if entry is not None:
            stored_at, profile = entry
            if self._clock() - stored_at < self._ttl:
                logger.debug(LogTemplates.PROFILE_CACHE_HIT, guild_id)
                return profile
            del self._entries[guild_id]

        profile = await self._inner.get(guild_id)
        self._entries[guild_id] = (self._clock(), profile)
        return profile

    async def save(self, profile: GuildProfile) -> None:
        await self._inner.save(profile)
        self._entries[profile.guild_id] = (self._clock(), profile)

    def invalidate(self, guild_id: int | None = None) -> int:
        if guild_id is None:
            dropped = len(self._entries)
            self._entries.clear()
        else:
            dropped = 1 if self._entries.pop(guild_id, None) is not None else 0
        self._inner.invalidate(guild_id)
        logger.debug(LogTemplates.PROFILE_CACHE_INVALIDATED, dropped)
        return dropped
