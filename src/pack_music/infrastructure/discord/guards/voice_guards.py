"""Reusable guard functions for Discord slash commands.

These are free functions that accept explicit dependencies rather than relying
on a specific cog instance, making them usable from any cog.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from pack_music.domain.shared.exceptions import (
    DomainError,
    EmptyQueueError,
    InvalidPositionError,
    NoActiveTrackError,
    NoHistoryError,
    NoOpError,
    NotConnectedError,
    NotPlayingError,
    OutOfRangeError,
    StreamResolutionFailedError,
    SubscriptionBusyError,
)
from pack_music.domain.shared.messages import DiscordUIMessages, LogTemplates

if TYPE_CHECKING:
    from ....application.services.subscription import Subscription
    from ....application.services.subscription_registry import SubscriptionRegistry

logger = logging.getLogger(__name__)


async def send_ephemeral(interaction: discord.Interaction, message: str) -> None:
    """Send an ephemeral message, handling both fresh and already-responded interactions."""
    if interaction.response.is_done():
        await interaction.followup.send(message, ephemeral=True)
    else:
        await interaction.response.send_message(message, ephemeral=True)


def describe_error(error: DomainError) -> str:
    """User-facing text for a failed subscription command."""
    match error:
        case InvalidPositionError():
            return DiscordUIMessages.ERROR_INVALID_POSITION.format(
                position=error.position, length=error.length
            )
        case NoOpError():
            return error.message or DiscordUIMessages.ERROR_NO_OP
        case EmptyQueueError():
            return DiscordUIMessages.ERROR_EMPTY_QUEUE
        case NoHistoryError():
            return DiscordUIMessages.ERROR_NO_HISTORY
        case NoActiveTrackError():
            return DiscordUIMessages.ERROR_NO_ACTIVE_TRACK
        case NotPlayingError():
            return DiscordUIMessages.ERROR_NOT_PLAYING
        case OutOfRangeError():
            return DiscordUIMessages.ERROR_OUT_OF_RANGE.format(value=error.value)
        case StreamResolutionFailedError():
            return DiscordUIMessages.ERROR_STREAM_FAILED
        case SubscriptionBusyError():
            return DiscordUIMessages.ERROR_BUSY
        case NotConnectedError():
            return DiscordUIMessages.ERROR_NOT_CONNECTED
        case _:
            return f"❌ {error.message}"


async def send_error(interaction: discord.Interaction, error: DomainError) -> None:
    logger.debug(LogTemplates.COMMAND_REJECTED, error.code, error.message)
    await send_ephemeral(interaction, describe_error(error))


async def get_member(interaction: discord.Interaction) -> discord.Member | None:
    """Validate that the interaction comes from a guild member. Returns None with error on failure."""
    if not interaction.guild:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
        return None

    user = interaction.user
    if not isinstance(user, discord.Member):
        await send_ephemeral(interaction, DiscordUIMessages.STATE_VERIFY_VOICE_FAILED)
        return None

    return user


async def get_voice_channel_id(interaction: discord.Interaction) -> int | None:
    """Return the caller's voice channel ID, replying with an error when they are not in one."""
    member = await get_member(interaction)
    if member is None:
        return None

    if not member.voice or not member.voice.channel:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE)
        return None

    return member.voice.channel.id


async def get_subscription(
    interaction: discord.Interaction, registry: SubscriptionRegistry
) -> Subscription | None:
    """Return the guild's subscription, replying with an error when there is none."""
    if not interaction.guild:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
        return None

    subscription = registry.get(interaction.guild.id)
    if subscription is None:
        await send_ephemeral(interaction, DiscordUIMessages.ERROR_NOT_CONNECTED)
    return subscription


async def ensure_subscription(
    interaction: discord.Interaction, registry: SubscriptionRegistry
) -> Subscription | None:
    """Return the guild's subscription, joining the caller's voice channel first if needed."""
    channel_id = await get_voice_channel_id(interaction)
    if channel_id is None:
        return None

    assert interaction.guild is not None
    existing = registry.get(interaction.guild.id)
    if existing is not None:
        return existing

    try:
        return await registry.join(interaction.guild.id, channel_id)
    except NotConnectedError:
        await send_ephemeral(interaction, DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE)
        return None
