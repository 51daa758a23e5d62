"""Discord cogs - command handlers."""

from pack_music.infrastructure.discord.cogs.event_cog import EventCog
from pack_music.infrastructure.discord.cogs.music_cog import MusicCog
from pack_music.infrastructure.discord.cogs.playback_cog import PlaybackCog
from pack_music.infrastructure.discord.cogs.queue_cog import QueueCog
from pack_music.infrastructure.discord.cogs.settings_cog import SettingsCog

__all__ = [
    "MusicCog",
    "QueueCog",
    "PlaybackCog",
    "SettingsCog",
    "EventCog",
]
