"""Guard helpers shared by the slash-command cogs."""

from pack_music.infrastructure.discord.guards.voice_guards import (
    describe_error,
    ensure_subscription,
    get_member,
    get_subscription,
    get_voice_channel_id,
    send_ephemeral,
    send_error,
)

__all__ = [
    "describe_error",
    "ensure_subscription",
    "get_member",
    "get_subscription",
    "get_voice_channel_id",
    "send_ephemeral",
    "send_error",
]
