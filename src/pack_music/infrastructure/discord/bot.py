"""Main Discord bot class integrating the DI container and cog lifecycle."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from pack_music.domain.shared.events import PlaybackFailed, QueueExhausted, TrackStarted
from pack_music.domain.shared.messages import DiscordUIMessages, LogTemplates

if TYPE_CHECKING:
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)

COGS = (
    "pack_music.infrastructure.discord.cogs.music_cog",
    "pack_music.infrastructure.discord.cogs.queue_cog",
    "pack_music.infrastructure.discord.cogs.playback_cog",
    "pack_music.infrastructure.discord.cogs.settings_cog",
    "pack_music.infrastructure.discord.cogs.event_cog",
)


class MusicBot(commands.Bot):
    def __init__(
        self,
        container: Container,
        settings: Settings,
        **kwargs,
    ) -> None:
        intents = discord.Intents.default()
        intents.voice_states = True
        intents.guilds = True

        super().__init__(
            command_prefix=settings.discord.command_prefix,
            intents=intents,
            help_command=None,
            owner_ids=set(settings.discord.owner_ids) or None,
            **kwargs,
        )

        self.container = container
        self.settings = settings
        container.set_bot(self)

    async def setup_hook(self) -> None:
        logger.info(LogTemplates.BOT_SETUP)

        try:
            await self.container.initialize()
            logger.info(LogTemplates.BOT_CONTAINER_INITIALIZED)
        except Exception as e:
            logger.exception(LogTemplates.BOT_CONTAINER_INIT_FAILED, e)
            raise

        self._subscribe_events()
        await self._load_cogs()
        self.tree.on_error = self._on_app_command_error

        if self.settings.discord.sync_on_startup:
            await self._sync_commands()

        logger.info(LogTemplates.BOT_SETUP_COMPLETE)

    def _subscribe_events(self) -> None:
        bus = self.container.event_bus
        bus.subscribe(TrackStarted, self._on_track_started)
        bus.subscribe(QueueExhausted, self._on_queue_exhausted)
        bus.subscribe(PlaybackFailed, self._on_playback_failed)

    async def _on_track_started(self, event: TrackStarted) -> None:
        logger.info(
            LogTemplates.EVENT_TRACK_STARTED,
            event.guild_id,
            event.track_title,
            event.start_seconds,
            event.from_autoplay,
        )

    async def _on_queue_exhausted(self, event: QueueExhausted) -> None:
        logger.info(LogTemplates.EVENT_QUEUE_EXHAUSTED, event.guild_id, event.last_track_title)

    async def _on_playback_failed(self, event: PlaybackFailed) -> None:
        logger.warning(
            LogTemplates.EVENT_PLAYBACK_FAILED, event.guild_id, event.attempts, event.reason
        )

    async def _load_cogs(self) -> None:
        for cog in COGS:
            try:
                await self.load_extension(cog)
                logger.info(LogTemplates.BOT_COG_LOADED, cog)
            except commands.ExtensionError as e:
                logger.exception(LogTemplates.BOT_COG_LOAD_FAILED, cog, e)

    async def _on_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        """Global slash-command error handler; replies ephemerally to avoid channel spam."""
        if isinstance(error, app_commands.CheckFailure):
            message = DiscordUIMessages.ERROR_MISSING_PERMISSIONS
        else:
            original = getattr(error, "original", error)
            logger.error(
                LogTemplates.BOT_SLASH_COMMAND_ERROR,
                getattr(interaction.command, "name", "<unknown>"),
                original,
                exc_info=original,
            )
            message = DiscordUIMessages.ERROR_COMMAND_FAILED

        try:
            if interaction.response.is_done():
                await interaction.followup.send(message, ephemeral=True)
            else:
                await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException:
            logger.warning(LogTemplates.BOT_ERROR_MESSAGE_SEND_FAILED)

    async def _sync_commands(self) -> None:
        try:
            for guild_id in self.settings.discord.guild_ids:
                guild = discord.Object(id=guild_id)
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
                logger.info(LogTemplates.BOT_SYNCED_GUILD, len(synced), guild_id)

            if not self.settings.discord.guild_ids:
                synced = await self.tree.sync()
                logger.info(LogTemplates.BOT_SYNCED_GLOBAL, len(synced))
        except discord.HTTPException as e:
            logger.warning(LogTemplates.BOT_SYNC_FAILED, e)

    async def on_ready(self) -> None:
        logger.info(
            LogTemplates.BOT_READY,
            self.user,  # type: ignore
            self.user.id,  # type: ignore
        )
        logger.info(LogTemplates.BOT_CONNECTED_GUILDS, len(self.guilds))

        activity = discord.Activity(type=discord.ActivityType.listening, name="/play")
        await self.change_presence(activity=activity)

    async def close(self) -> None:
        logger.info(LogTemplates.BOT_SHUTTING_DOWN)

        try:
            await self.container.shutdown()
        except Exception as e:
            logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, e)

        await super().close()
        logger.info(LogTemplates.BOT_SHUTDOWN_COMPLETE)

    def run_with_graceful_shutdown(self, token: str, *, shutdown_timeout: float = 30.0) -> None:
        async def runner() -> None:
            async with self:
                loop = asyncio.get_running_loop()

                async def _graceful_close() -> None:
                    try:
                        await asyncio.wait_for(self.close(), timeout=shutdown_timeout)
                    except TimeoutError:
                        logger.warning(LogTemplates.BOT_SHUTDOWN_TIMEOUT, shutdown_timeout)

                for sig in (signal.SIGINT, signal.SIGTERM):
                    loop.add_signal_handler(sig, lambda: asyncio.create_task(_graceful_close()))
                await self.start(token)

        asyncio.run(runner())


def create_bot(container: Container, settings: Settings) -> MusicBot:
    return MusicBot(container=container, settings=settings)
