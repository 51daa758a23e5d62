"""Immutable value objects for the music bounded context."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from enum import Enum

from pack_music.domain.shared.exceptions import InvalidPositionError, OutOfRangeError
from pack_music.domain.shared.messages import ErrorMessages

_YOUTUBE_ID_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/shorts/([a-zA-Z0-9_-]{11})"),
)


@dataclass(frozen=True)
class TrackId:
    """Typically a YouTube video ID or a hash of the URL."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError(ErrorMessages.EMPTY_TRACK_ID)

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_url(cls, url: str) -> TrackId:
        """YouTube video ID when the URL carries one, otherwise a short URL digest."""
        for pattern in _YOUTUBE_ID_PATTERNS:
            match = pattern.search(url)
            if match:
                return cls(match.group(1))
        return cls(hashlib.md5(url.encode()).hexdigest()[:16])


@dataclass(frozen=True)
class QueuePosition:
    """A user-facing 1-based queue position.

    Negative values count from the end (``-1`` is the last track) but only
    where the caller opts in via ``allow_negative``.
    """

    value: int

    def to_index(self, length: int, *, allow_negative: bool = False) -> int:
        """Convert to a 0-based index into a sequence of ``length`` items.

        Raises:
            InvalidPositionError: If the position does not address an item.
        """
        if 1 <= self.value <= length:
            return self.value - 1
        if allow_negative and -length <= self.value <= -1:
            return length + self.value
        raise InvalidPositionError(self.value, length)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class StartSeconds:
    """Validated seek offset for starting playback at a specific timestamp."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise OutOfRangeError(self.value, 0, None)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)

    def within(self, duration_seconds: int | None) -> StartSeconds:
        """Return self if the offset fits a track of the given (possibly unknown) duration."""
        if duration_seconds is not None and self.value > duration_seconds:
            raise OutOfRangeError(self.value, 0, duration_seconds)
        return self


@dataclass(frozen=True)
class Volume:
    """Playback volume in percent (0-100)."""

    value: int

    MIN = 0
    MAX = 100

    def __post_init__(self) -> None:
        if not self.MIN <= self.value <= self.MAX:
            raise OutOfRangeError(self.value, self.MIN, self.MAX)

    @property
    def multiplier(self) -> float:
        """Scale factor handed to the audio output."""
        return self.value / 100

    def __int__(self) -> int:
        return self.value


class PlayerStatus(Enum):
    """Player status with enforced transitions.

    State transitions:
    - IDLE -> BUFFERING (advance picked a track)
    - BUFFERING -> PLAYING (stream opened)
    - PLAYING <-> PAUSED (pause/resume)
    - PLAYING -> BUFFERING (next track, seek, jump, previous)
    - Any -> IDLE (stop, leave, exhausted queue, unrecoverable stream error)
    """

    IDLE = "idle"
    BUFFERING = "buffering"
    PLAYING = "playing"
    PAUSED = "paused"

    def can_transition_to(self, target: PlayerStatus) -> bool:
        """Check if transition to target state is valid."""
        if target is PlayerStatus.IDLE:
            return True
        valid_transitions = {
            PlayerStatus.IDLE: {PlayerStatus.BUFFERING},
            PlayerStatus.BUFFERING: {PlayerStatus.PLAYING, PlayerStatus.BUFFERING},
            PlayerStatus.PLAYING: {PlayerStatus.PAUSED, PlayerStatus.BUFFERING},
            PlayerStatus.PAUSED: {PlayerStatus.PLAYING, PlayerStatus.BUFFERING},
        }
        return target in valid_transitions[self]

    @property
    def is_active(self) -> bool:
        return self in {PlayerStatus.PLAYING, PlayerStatus.PAUSED}


class RepeatMode(Enum):
    """What advance does with the finished track."""

    OFF = "off"
    SONG = "song"  # Replay the current track
    QUEUE = "queue"  # Recycle history once the queue runs dry

    def next_mode(self) -> RepeatMode:
        """Cycle to next repeat mode."""
        modes = list(RepeatMode)
        return modes[(modes.index(self) + 1) % len(modes)]



class AudioFilter(Enum):
    """Effects that can be layered onto the audio output.

    Active filters apply in the order they were switched on.
    """

    BASSBOOST = "bassboost"
    NIGHTCORE = "nightcore"
    VAPORWAVE = "vaporwave"
    EIGHT_D = "8d"
    THREE_D = "3d"
    ECHO = "echo"
    TREMOLO = "tremolo"
    VIBRATO = "vibrato"
    REVERSE = "reverse"
    TREBLE = "treble"
    NORMALIZER = "normalizer"
    SURROUND = "surround"
    KARAOKE = "karaoke"
    FLANGER = "flanger"
    GATE = "gate"
    HAAS = "haas"
    MCOMPAND = "mcompand"
    PHASER = "phaser"
    EARWAX = "earwax"
    PITCH_UP = "pitch_up"
    PITCH_DOWN = "pitch_down"
    SLOW = "slow"
    FAST = "fast"
