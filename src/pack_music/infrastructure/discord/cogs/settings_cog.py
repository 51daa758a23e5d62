"""Administrator commands for a guild's stored playback defaults."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from pack_music.domain.shared.messages import DiscordUIMessages, ErrorMessages
from pack_music.infrastructure.discord.guards.voice_guards import send_ephemeral

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)


@app_commands.guild_only()
@app_commands.default_permissions(administrator=True)
class SettingsCog(
    commands.GroupCog, group_name="settings", group_description="Server music defaults"
):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container
        super().__init__()

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        user = interaction.user
        if isinstance(user, discord.Member) and user.guild_permissions.administrator:
            return True
        if user.id in self.container.settings.discord.owner_ids:
            return True
        await send_ephemeral(interaction, DiscordUIMessages.ERROR_MISSING_PERMISSIONS)
        return False

    @app_commands.command(name="volume", description="Default volume for new sessions.")
    @app_commands.describe(level="Volume from 0 to 100")
    async def volume(
        self, interaction: discord.Interaction, level: app_commands.Range[int, 0, 100]
    ) -> None:
        assert interaction.guild is not None
        repository = self.container.guild_profile_repository

        profile = await repository.get(interaction.guild.id)
        await repository.save(profile.with_changes(default_volume=level))
        repository.invalidate(interaction.guild.id)

        await send_ephemeral(
            interaction, DiscordUIMessages.SETTINGS_VOLUME_SAVED.format(volume=level)
        )

    @app_commands.command(name="autoplay", description="Whether new sessions start with autoplay.")
    @app_commands.describe(enabled="Autoplay default")
    async def autoplay(self, interaction: discord.Interaction, enabled: bool) -> None:
        assert interaction.guild is not None
        repository = self.container.guild_profile_repository

        profile = await repository.get(interaction.guild.id)
        await repository.save(profile.with_changes(autoplay_default=enabled))
        repository.invalidate(interaction.guild.id)

        await send_ephemeral(
            interaction,
            DiscordUIMessages.SETTINGS_AUTOPLAY_SAVED.format(state="on" if enabled else "off"),
        )

    @app_commands.command(name="info", description="Show this server's music defaults.")
    async def info(self, interaction: discord.Interaction) -> None:
        assert interaction.guild is not None
        profile = await self.container.guild_profile_repository.get(interaction.guild.id)
        await send_ephemeral(
            interaction,
            DiscordUIMessages.SETTINGS_INFO.format(
                volume=profile.default_volume,
                autoplay="on" if profile.autoplay_default else "off",
            ),
        )


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(SettingsCog(bot, container))
