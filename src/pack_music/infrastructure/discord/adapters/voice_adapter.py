"""Discord voice adapter implementing VoiceAdapter for connection and playback."""

from __future__ import annotations

import asyncio
import logging
import shlex
from collections.abc import Sequence
from typing import TYPE_CHECKING, Final

import discord

from pack_music.application.interfaces.voice_adapter import TrackEndCallback, VoiceAdapter
from pack_music.config.settings import AudioSettings
from pack_music.domain.music.value_objects import AudioFilter
from pack_music.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ....domain.music.entities import ResolvedStream
    from ....domain.music.value_objects import StartSeconds

logger = logging.getLogger(__name__)

FILTER_EXPRESSIONS: Final[dict[AudioFilter, str]] = {
    AudioFilter.BASSBOOST: "bass=g=10",
    AudioFilter.NIGHTCORE: "asetrate=48000*1.25,aresample=48000,atempo=1.06",
    AudioFilter.VAPORWAVE: "asetrate=48000*0.8,aresample=48000,atempo=0.9",
    AudioFilter.EIGHT_D: "apulsator=hz=0.08",
    AudioFilter.THREE_D: "apulsator=hz=0.125",
    AudioFilter.ECHO: "aecho=0.8:0.9:1000:0.3",
    AudioFilter.TREMOLO: "tremolo",
    AudioFilter.VIBRATO: "vibrato=f=6.5",
    AudioFilter.REVERSE: "areverse",
    AudioFilter.TREBLE: "treble=g=5",
    AudioFilter.NORMALIZER: "dynaudnorm=f=200",
    AudioFilter.SURROUND: "surround",
    AudioFilter.KARAOKE: "stereotools=mlev=0.03",
    AudioFilter.FLANGER: "flanger",
    AudioFilter.GATE: "agate",
    AudioFilter.HAAS: "haas",
    AudioFilter.MCOMPAND: "mcompand",
    AudioFilter.PHASER: "aphaser=in_gain=0.4",
    AudioFilter.EARWAX: "earwax",
    AudioFilter.PITCH_UP: "asetrate=48000*1.15,aresample=48000",
    AudioFilter.PITCH_DOWN: "asetrate=48000*0.85,aresample=48000",
    AudioFilter.SLOW: "atempo=0.8",
    AudioFilter.FAST: "atempo=1.25",
}


def build_before_options(
    base: str, stream: ResolvedStream, start_seconds: StartSeconds | None = None
) -> str:
    """FFmpeg input options: reconnect flags, HTTP headers and an optional seek offset."""
    parts = [base] if base else []

    headers = dict(stream.headers)
    user_agent = next((v for k, v in headers.items() if k.lower() == "user-agent"), None)
    other = {k: v for k, v in headers.items() if k.lower() != "user-agent"}
    if user_agent:
        parts.append(f"-user_agent {shlex.quote(user_agent)}")
    if other:
        header_block = "".join(f"{k}: {v}\r\n" for k, v in other.items())
        parts.append(f"-headers {shlex.quote(header_block)}")

    if start_seconds is not None and start_seconds.value > 0:
        parts.append(f"-ss {start_seconds.value}")
    return " ".join(parts)


def build_options(base: str, filters: Sequence[AudioFilter] = ()) -> str:
    """FFmpeg output options with the filter chain as a single '-af' argument."""
    parts = [base] if base else []
    chain = ",".join(FILTER_EXPRESSIONS[f] for f in filters)
    if chain:
        parts.append(f"-af {shlex.quote(chain)}")
    return " ".join(parts)


class DiscordVoiceAdapter(VoiceAdapter):
    def __init__(self, bot: discord.Client, settings: AudioSettings | None = None) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()

    def _get_voice_client(self, guild_id: int) -> discord.VoiceClient | None:
        guild = self._bot.get_guild(guild_id)
        if not guild:
            return None

        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    async def connect(self, guild_id: int, channel_id: int) -> bool:
        """Connect to ``channel_id``, moving there if already connected elsewhere."""
        guild = self._bot.get_guild(guild_id)
        if not guild:
            return False

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            return False

        vc = self._get_voice_client(guild_id)
        if vc is not None and not vc.is_connected():
            await self.disconnect(guild_id)
            vc = None

        try:
            async with asyncio.timeout(self._settings.connect_timeout_s):
                if vc is None:
                    await channel.connect(self_deaf=True)
                elif vc.channel is None or vc.channel.id != channel_id:
                    await vc.move_to(channel)
                    logger.info(LogTemplates.VOICE_MOVED, channel.name)
                    return True
                else:
                    return True
        except TimeoutError:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            return False
        except discord.Forbidden:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            return False
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return False

        logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
        return True

    async def disconnect(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return False

        await vc.disconnect(force=True)
        logger.info(LogTemplates.VOICE_DISCONNECTED, guild_id)
        return True

    async def play(
        self,
        guild_id: int,
        stream: ResolvedStream,
        *,
        volume: float,
        on_end: TrackEndCallback,
        start_seconds: StartSeconds | None = None,
        filters: Sequence[AudioFilter] = (),
    ) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc or not vc.is_connected():
            logger.warning(LogTemplates.VOICE_NOT_CONNECTED, guild_id)
            return False

        # Stopping fires the old source's after-callback; its generation is already stale.
        if vc.is_playing() or vc.is_paused():
            vc.stop()

        source = discord.FFmpegPCMAudio(
            stream.url,
            before_options=build_before_options(
                self._settings.ffmpeg_before_options, stream, start_seconds
            ),
            options=build_options(self._settings.ffmpeg_options, filters),
        )
        loop = asyncio.get_running_loop()

        def after_callback(error: Exception | None) -> None:
            if error is not None:
                logger.warning(LogTemplates.VOICE_AFTER_ERROR, guild_id, error)
            loop.call_soon_threadsafe(on_end, error)

        try:
            vc.play(discord.PCMVolumeTransformer(source, volume=volume), after=after_callback)
        except discord.ClientException as e:
            source.cleanup()
            logger.error(LogTemplates.VOICE_PLAY_FAILED, guild_id, e)
            return False
        return True

    async def stop(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return False

        if vc.is_playing() or vc.is_paused():
            vc.stop()
            return True
        return False

    async def pause(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if vc and vc.is_playing():
            vc.pause()
            return True
        return False

    async def resume(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if vc and vc.is_paused():
            vc.resume()
            return True
        return False

    def set_volume(self, guild_id: int, volume: float) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc or not isinstance(vc.source, discord.PCMVolumeTransformer):
            return False

        vc.source.volume = max(0.0, min(1.0, volume))
        return True

    def is_connected(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        return vc is not None and vc.is_connected()

    def get_current_channel_id(self, guild_id: int) -> int | None:
        vc = self._get_voice_client(guild_id)
        if vc and vc.channel:
            return vc.channel.id
        return None

    async def get_listeners(self, guild_id: int) -> list[int]:
        """Return user IDs of non-bot members in the bot's voice channel."""
        vc = self._get_voice_client(guild_id)
        if not vc or not vc.channel:
            return []
        return [member.id for member in vc.channel.members if not member.bot]
