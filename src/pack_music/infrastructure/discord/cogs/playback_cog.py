"""Slash commands that control the player: transport, seek, volume, repeat, autoplay, filters."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from pack_music.domain.music.value_objects import AudioFilter, PlayerStatus, RepeatMode
from pack_music.domain.shared.exceptions import DomainError
from pack_music.domain.shared.messages import DiscordUIMessages, EmojiConstants, ErrorMessages
from pack_music.infrastructure.discord.guards.voice_guards import (
    get_subscription,
    send_ephemeral,
    send_error,
)
from pack_music.utils.reply import format_duration, parse_timestamp, progress_bar, truncate

if TYPE_CHECKING:
    from ....application.services.subscription_models import SubscriptionSnapshot
    from ....config.container import Container

logger = logging.getLogger(__name__)

STATUS_EMOJI = {
    PlayerStatus.PLAYING: EmojiConstants.PLAY,
    PlayerStatus.PAUSED: EmojiConstants.PAUSE,
    PlayerStatus.BUFFERING: EmojiConstants.BUFFERING,
    PlayerStatus.IDLE: EmojiConstants.IDLE,
}

REPEAT_CHOICES = [app_commands.Choice(name=mode.value, value=mode.value) for mode in RepeatMode]
FILTERS_OFF = "off"
FILTER_CHOICES = [
    app_commands.Choice(name=FILTERS_OFF, value=FILTERS_OFF),
    *(app_commands.Choice(name=f.value, value=f.value) for f in AudioFilter),
]


def build_now_playing_embed(snapshot: SubscriptionSnapshot) -> discord.Embed:
    track = snapshot.current_track
    assert track is not None

    embed = discord.Embed(
        title=DiscordUIMessages.EMBED_NOW_PLAYING,
        description=f"[{truncate(track.title)}]({track.webpage_url})",
        color=discord.Color.green(),
    )
    bar = progress_bar(snapshot.elapsed_seconds, track.duration_seconds)
    embed.add_field(
        name=STATUS_EMOJI[snapshot.status],
        value=f"`{bar}` {format_duration(snapshot.elapsed_seconds)} / "
        f"{format_duration(track.duration_seconds)}",
        inline=False,
    )
    if track.seed_artist:
        embed.add_field(name="Artist", value=track.seed_artist)
    if track.requested_by_name:
        embed.add_field(name="Requested by", value=track.requested_by_name)

    repeat_emoji = (
        EmojiConstants.REPEAT_ONE if snapshot.repeat_mode is RepeatMode.SONG else EmojiConstants.REPEAT
    )
    embed.add_field(name=repeat_emoji, value=snapshot.repeat_mode.value)
    embed.add_field(name=EmojiConstants.SPEAKER, value=f"{snapshot.volume}%")
    if snapshot.autoplay:
        embed.add_field(name=EmojiConstants.AUTOPLAY, value="on")
    if snapshot.filters:
        embed.add_field(
            name=EmojiConstants.FILTERS, value=", ".join(f.value for f in snapshot.filters)
        )
    if track.thumbnail_url:
        embed.set_thumbnail(url=track.thumbnail_url)

    footer = DiscordUIMessages.EMBED_FOOTER
    if snapshot.queue_length:
        footer = f"{footer} · {snapshot.queue_length} up next"
    embed.set_footer(text=footer)
    return embed


class PlaybackCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    @app_commands.command(name="skip", description="Skip the current track.")
    async def skip(self, interaction: discord.Interaction) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        await interaction.response.defer()
        try:
            track = await subscription.skip()
        except DomainError as exc:
            await send_error(interaction, exc)
            return
        await interaction.followup.send(
            DiscordUIMessages.ACTION_SKIPPED.format(title=truncate(track.title))
        )

    @app_commands.command(name="stop", description="Stop playback and clear the queue.")
    async def stop(self, interaction: discord.Interaction) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        await interaction.response.defer()
        try:
            await subscription.stop()
        except DomainError as exc:
            await send_error(interaction, exc)
            return
        await interaction.followup.send(DiscordUIMessages.ACTION_STOPPED)

    @app_commands.command(name="pause", description="Pause playback.")
    async def pause(self, interaction: discord.Interaction) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        await interaction.response.defer()
        try:
            await subscription.pause()
        except DomainError as exc:
            await send_error(interaction, exc)
            return
        await interaction.followup.send(DiscordUIMessages.ACTION_PAUSED)

    @app_commands.command(name="resume", description="Resume playback.")
    async def resume(self, interaction: discord.Interaction) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        await interaction.response.defer()
        try:
            await subscription.resume()
        except DomainError as exc:
            await send_error(interaction, exc)
            return
        await interaction.followup.send(DiscordUIMessages.ACTION_RESUMED)

    @app_commands.command(name="seek", description="Jump to a point in the current track.")
    @app_commands.describe(timestamp="Seconds, M:SS or H:MM:SS")
    async def seek(self, interaction: discord.Interaction, timestamp: str) -> None:
        seconds = parse_timestamp(timestamp)
        if seconds is None:
            await send_ephemeral(
                interaction, DiscordUIMessages.ERROR_INVALID_TIMESTAMP.format(value=timestamp)
            )
            return

        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        await interaction.response.defer()
        try:
            await subscription.seek(seconds)
        except DomainError as exc:
            await send_error(interaction, exc)
            return
        await interaction.followup.send(
            DiscordUIMessages.ACTION_SEEKED.format(timestamp=format_duration(seconds))
        )

    @app_commands.command(name="volume", description="Set the playback volume.")
    @app_commands.describe(level="Volume from 0 to 100")
    async def volume(
        self, interaction: discord.Interaction, level: app_commands.Range[int, 0, 100]
    ) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        await interaction.response.defer()
        try:
            applied = await subscription.set_volume(level)
        except DomainError as exc:
            await send_error(interaction, exc)
            return
        await interaction.followup.send(
            DiscordUIMessages.ACTION_VOLUME.format(volume=applied)
        )

    @app_commands.command(name="repeat", description="Set or cycle the repeat mode.")
    @app_commands.describe(mode="off, song or queue; omit to cycle")
    @app_commands.choices(mode=REPEAT_CHOICES)
    async def repeat(
        self, interaction: discord.Interaction, mode: app_commands.Choice[str] | None = None
    ) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        target = RepeatMode(mode.value) if mode is not None else None
        await interaction.response.defer()
        try:
            applied = await subscription.set_repeat_mode(target)
        except DomainError as exc:
            await send_error(interaction, exc)
            return
        await interaction.followup.send(
            DiscordUIMessages.ACTION_REPEAT.format(mode=applied.value)
        )

    @app_commands.command(name="autoplay", description="Turn autoplay on or off.")
    @app_commands.describe(enabled="Queue related tracks when the queue runs out")
    async def autoplay(self, interaction: discord.Interaction, enabled: bool) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        await interaction.response.defer()
        try:
            state = await subscription.set_autoplay(enabled)
        except DomainError as exc:
            await send_error(interaction, exc)
            return
        await interaction.followup.send(
            DiscordUIMessages.ACTION_AUTOPLAY.format(state="on" if state else "off")
        )

    @app_commands.command(name="filters", description="Toggle an audio filter.")
    @app_commands.describe(effect="Filter to switch on or off; off clears them all")
    @app_commands.choices(effect=FILTER_CHOICES)
    async def filters(
        self, interaction: discord.Interaction, effect: app_commands.Choice[str]
    ) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        await interaction.response.defer()
        try:
            if effect.value == FILTERS_OFF:
                active = await subscription.set_filters([])
            else:
                active = await subscription.toggle_filter(AudioFilter(effect.value))
        except DomainError as exc:
            await send_error(interaction, exc)
            return
        await interaction.followup.send(
            DiscordUIMessages.ACTION_FILTERS.format(
                filters=", ".join(f.value for f in active) or FILTERS_OFF
            )
        )

    @app_commands.command(name="nowplaying", description="Show the current track.")
    async def nowplaying(self, interaction: discord.Interaction) -> None:
        subscription = await get_subscription(interaction, self.container.registry)
        if subscription is None:
            return

        snapshot = subscription.snapshot()
        if snapshot.current_track is None:
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_NO_ACTIVE_TRACK)
            return
        await interaction.response.send_message(embed=build_now_playing_embed(snapshot))


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(PlaybackCog(bot, container))
