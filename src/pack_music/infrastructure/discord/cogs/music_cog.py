"""Slash commands for joining, leaving and queueing music."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from pack_music.application.interfaces.audio_resolver import ResolutionError
from pack_music.domain.shared.exceptions import DomainError, NotConnectedError
from pack_music.domain.shared.messages import DiscordUIMessages, ErrorMessages, LogTemplates
from pack_music.infrastructure.discord.guards.voice_guards import (
    ensure_subscription,
    get_voice_channel_id,
    send_ephemeral,
    send_error,
)
from pack_music.utils.reply import truncate

if TYPE_CHECKING:
    from ....config.container import Container
    from ....domain.music.entities import Track

logger = logging.getLogger(__name__)


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    @app_commands.command(name="join", description="Join your voice channel.")
    async def join(self, interaction: discord.Interaction) -> None:
        channel_id = await get_voice_channel_id(interaction)
        if channel_id is None:
            return

        assert interaction.guild is not None
        await interaction.response.defer(ephemeral=True)
        try:
            await self.container.registry.join(interaction.guild.id, channel_id)
        except NotConnectedError:
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE)
            return

        channel = interaction.guild.get_channel(channel_id)
        name = channel.name if channel is not None else str(channel_id)
        await send_ephemeral(interaction, DiscordUIMessages.ACTION_JOINED.format(channel=name))

    @app_commands.command(name="leave", description="Stop playing and leave the voice channel.")
    async def leave(self, interaction: discord.Interaction) -> None:
        if not interaction.guild:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
            return

        left = await self.container.registry.leave(interaction.guild.id)
        if not left:
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_NOT_CONNECTED)
            return
        await send_ephemeral(interaction, DiscordUIMessages.ACTION_LEFT)

    @app_commands.command(name="play", description="Queue a song link, playlist or search.")
    @app_commands.describe(query="A song link, a playlist link or search terms")
    async def play(self, interaction: discord.Interaction, query: str) -> None:
        await interaction.response.defer()

        subscription = await ensure_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        try:
            tracks = await self.container.ytdlp_resolver.resolve(query)
        except ResolutionError as exc:
            logger.warning(LogTemplates.LOOKUP_FAILED, query, exc)
            tracks = []

        if not tracks:
            await send_ephemeral(
                interaction, DiscordUIMessages.ERROR_TRACK_NOT_FOUND.format(query=truncate(query))
            )
            return

        user = interaction.user
        requester = getattr(user, "display_name", None) or user.name
        tracks = [track.with_requester(user.id, requester) for track in tracks]

        try:
            result = await subscription.enqueue(tracks)
        except DomainError as exc:
            await send_error(interaction, exc)
            return

        playing = subscription.current_track if result.started else None
        await interaction.followup.send(self._enqueued_message(tracks, result.position, playing))

    @staticmethod
    def _enqueued_message(tracks: list[Track], position: int, playing: Track | None) -> str:
        title = truncate((playing or tracks[0]).title)
        started = playing is not None
        if len(tracks) > 1:
            if started:
                return DiscordUIMessages.ACTION_ENQUEUED_PLAYLIST_NOW.format(
                    count=len(tracks), title=title
                )
            return DiscordUIMessages.ACTION_ENQUEUED_PLAYLIST.format(
                count=len(tracks), position=position
            )
        if started:
            return DiscordUIMessages.ACTION_ENQUEUED_NOW.format(title=title)
        return DiscordUIMessages.ACTION_ENQUEUED.format(title=title, position=position)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))
