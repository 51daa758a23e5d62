"""Discord event listeners for voice and guild events."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from pack_music.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)


class EventCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    @commands.Cog.listener()
    async def on_voice_state_update(
        self, member: discord.Member, before: discord.VoiceState, after: discord.VoiceState
    ) -> None:
        guild_id = member.guild.id
        registry = self.container.registry

        if self.bot.user is not None and member.id == self.bot.user.id:
            # Kicked or disconnected from voice by someone else.
            if after.channel is None and guild_id in registry:
                await registry.leave(guild_id, reason="disconnected")
            return

        if member.bot or before.channel is None:
            return
        if after.channel is not None and after.channel.id == before.channel.id:
            return

        bot_channel_id = self.container.voice_adapter.get_current_channel_id(guild_id)
        if bot_channel_id is None or before.channel.id != bot_channel_id:
            return

        await registry.leave_if_alone(guild_id)

    @commands.Cog.listener()
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        logger.info(LogTemplates.BOT_GUILD_REMOVED, guild.name, guild.id)
        await self.container.registry.leave(guild.id, reason="guild removed")
        self.container.guild_profile_repository.invalidate(guild.id)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(EventCog(bot, container))
