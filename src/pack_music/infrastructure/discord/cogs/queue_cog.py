"""Slash-command cog for queue management: view, jump, push, swap, undo, shuffle, previous."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from pack_music.domain.shared.exceptions import DomainError
from pack_music.domain.shared.messages import DiscordUIMessages, ErrorMessages
from pack_music.infrastructure.discord.guards.voice_guards import (
    get_subscription,
    send_ephemeral,
    send_error,
)
from pack_music.utils.reply import format_duration, truncate

if TYPE_CHECKING:
    from ....config.container import Container
    from ....domain.music.entities import Track

logger = logging.getLogger(__name__)

QUEUE_PER_PAGE = 10


def _requester(track: Track) -> str:
    if track.is_from_autoplay:
        return "Autoplay"
    return f"Requested by: {track.requested_by_name or 'Unknown'}"


class QueueCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    @app_commands.command(name="queue", description="Show the current queue.")
    @app_commands.describe(page="Page number")
    async def queue(self, interaction: discord.Interaction, page: int = 1) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        snapshot = subscription.snapshot()
        if snapshot.current_track is None and snapshot.queue_length == 0:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_QUEUE_EMPTY)
            return

        total_pages = max(1, math.ceil(snapshot.queue_length / QUEUE_PER_PAGE))
        page = max(1, min(page, total_pages))
        start_idx = (page - 1) * QUEUE_PER_PAGE

        embed = discord.Embed(
            title=DiscordUIMessages.EMBED_QUEUE.format(
                total_tracks=snapshot.queue_length, page=page, total_pages=total_pages
            ),
            color=discord.Color.blurple(),
        )

        if snapshot.current_track:
            embed.add_field(
                name=DiscordUIMessages.EMBED_NOW_PLAYING,
                value=f"**{truncate(snapshot.current_track.title)}**\n"
                f"Duration: {format_duration(snapshot.current_track.duration_seconds)}",
                inline=False,
            )

        tracks = snapshot.queue[start_idx : start_idx + QUEUE_PER_PAGE]
        for idx, track in enumerate(tracks, start=start_idx + 1):
            embed.add_field(
                name=f"{idx}. {truncate(track.title)}",
                value=f"{format_duration(track.duration_seconds)} · {_requester(track)}",
                inline=False,
            )

        footer = DiscordUIMessages.EMBED_FOOTER
        if snapshot.total_duration_seconds:
            footer = f"{footer} · Total duration: {format_duration(snapshot.total_duration_seconds)}"
        embed.set_footer(text=footer)

        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="jump", description="Play the track at a queue position now.")
    @app_commands.describe(position="Queue position (negative counts from the end)")
    async def jump(self, interaction: discord.Interaction, position: int) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        await interaction.response.defer()
        try:
            track = await subscription.jump(position)
        except DomainError as exc:
            await send_error(interaction, exc)
            return
        await interaction.followup.send(
            DiscordUIMessages.ACTION_JUMPED.format(title=truncate(track.title))
        )

    @app_commands.command(name="push", description="Move a queued track to play next.")
    @app_commands.describe(position="Queue position")
    async def push(self, interaction: discord.Interaction, position: int) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        await interaction.response.defer()
        try:
            track = await subscription.push(position)
        except DomainError as exc:
            await send_error(interaction, exc)
            return
        await interaction.followup.send(
            DiscordUIMessages.ACTION_PUSHED.format(title=truncate(track.title))
        )

    @app_commands.command(name="swap", description="Swap two tracks in the queue.")
    @app_commands.describe(first="First position", second="Second position")
    async def swap(self, interaction: discord.Interaction, first: int, second: int) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        await interaction.response.defer()
        try:
            a, b = await subscription.swap(first, second)
        except DomainError as exc:
            await send_error(interaction, exc)
            return
        await interaction.followup.send(
            DiscordUIMessages.ACTION_SWAPPED.format(
                first=truncate(a.title), second=truncate(b.title)
            )
        )

    @app_commands.command(name="undo", description="Remove the last track you queued.")
    async def undo(self, interaction: discord.Interaction) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        await interaction.response.defer()
        try:
            track = await subscription.undo()
        except DomainError as exc:
            await send_error(interaction, exc)
            return
        await interaction.followup.send(
            DiscordUIMessages.ACTION_UNDONE.format(title=truncate(track.title))
        )

    @app_commands.command(name="shuffle", description="Shuffle the queue.")
    async def shuffle(self, interaction: discord.Interaction) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        await interaction.response.defer()
        try:
            count = await subscription.shuffle()
        except DomainError as exc:
            await send_error(interaction, exc)
            return

        if count == 0:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_QUEUE_EMPTY)
            return
        await interaction.followup.send(
            DiscordUIMessages.ACTION_SHUFFLED.format(count=count)
        )

    @app_commands.command(name="previous", description="Go back to the previous track.")
    async def previous(self, interaction: discord.Interaction) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        await interaction.response.defer()
        try:
            track = await subscription.previous()
        except DomainError as exc:
            await send_error(interaction, exc)
            return
        await interaction.followup.send(
            DiscordUIMessages.ACTION_PREVIOUS.format(title=truncate(track.title))
        )


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(QueueCog(bot, container))
