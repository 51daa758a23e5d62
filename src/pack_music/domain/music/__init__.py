"""
Music Bounded Context

Domain logic for tracks, the per-guild queue/history and playback state.
"""

from pack_music.domain.music.entities import (
    AdvanceOutcome,
    AdvanceStep,
    GuildPlaybackSession,
    ResolvedStream,
    Track,
)
from pack_music.domain.music.value_objects import (
    PlayerStatus,
    QueuePosition,
    RepeatMode,
    StartSeconds,
    TrackId,
    Volume,
)

__all__ = [
    # Entities
    "Track",
    "ResolvedStream",
    "GuildPlaybackSession",
    "AdvanceOutcome",
    "AdvanceStep",
    # Value Objects
    "TrackId",
    "QueuePosition",
    "StartSeconds",
    "Volume",
    "PlayerStatus",
    "RepeatMode",
]
