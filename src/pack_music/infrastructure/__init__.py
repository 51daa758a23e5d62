"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (SQLite guild profiles)
- Discord (bot, cogs, voice adapter)
- Audio (yt-dlp lookups and stream resolution)
"""

from pack_music.infrastructure.discord.adapters.voice_adapter import DiscordVoiceAdapter
from pack_music.infrastructure.discord.bot import create_bot
from pack_music.infrastructure.persistence.database import Database

__all__ = [
    "create_bot",
    "DiscordVoiceAdapter",
    "Database",
]
