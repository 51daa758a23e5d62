"""Core domain entities for the music bounded context."""

from __future__ import annotations

import random
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from pack_music.domain.music.value_objects import (
    AudioFilter,
    PlayerStatus,
    QueuePosition,
    RepeatMode,
    TrackId,
    Volume,
)
from pack_music.domain.shared.datetime_utils import utcnow
from pack_music.domain.shared.exceptions import (
    EmptyQueueError,
    InvalidOperationError,
    NoHistoryError,
    NoOpError,
    NotPlayingError,
)
from pack_music.domain.shared.types import (
    DiscordSnowflake,
    DurationSeconds,
    HistoryLimit,
    HttpUrlStr,
    NonEmptyStr,
    TrackTitleStr,
    UtcDatetimeField,
    VolumePercent,
)


class ResolvedStream(BaseModel):
    """A playable media URL plus the HTTP headers needed to open it."""

    model_config = ConfigDict(frozen=True)

    url: HttpUrlStr
    headers: dict[str, str] = Field(default_factory=dict)
    resolved_at: UtcDatetimeField = Field(default_factory=utcnow)

    def age_seconds(self, now: datetime | None = None) -> float:
        return ((now or utcnow()) - self.resolved_at).total_seconds()


class Track(BaseModel):
    """Immutable value object representing a playable track."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: TrackId
    title: TrackTitleStr
    webpage_url: HttpUrlStr
    duration_seconds: DurationSeconds | None = None
    thumbnail_url: HttpUrlStr | None = None
    artist: NonEmptyStr | None = None
    uploader: NonEmptyStr | None = None

    # What the user typed, kept for display and re-resolution
    search_query: NonEmptyStr | None = None

    # Request metadata (set when queued)
    requested_by_id: DiscordSnowflake | None = None
    requested_by_name: NonEmptyStr | None = None
    requested_at: UtcDatetimeField | None = None

    is_from_autoplay: bool = False

    # Attached once the stream is opened
    stream: ResolvedStream | None = None

    @property
    def duration_formatted(self) -> str:
        """Format duration as MM:SS or HH:MM:SS."""
        if not self.duration_seconds:
            return "Unknown"

        hours, remainder = divmod(self.duration_seconds, 3600)
        minutes, seconds = divmod(remainder, 60)

        if hours > 0:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes}:{seconds:02d}"

    @property
    def display_title(self) -> str:
        if self.duration_seconds:
            return f"{self.title} [{self.duration_formatted}]"
        return self.title

    @property
    def seed_artist(self) -> str | None:
        """Best guess at the performer, used to look up related tracks."""
        return self.artist or self.uploader

    def with_requester(
        self, user_id: DiscordSnowflake, user_name: NonEmptyStr, requested_at: datetime | None = None
    ) -> Track:
        """Return a copy of this track with requester metadata populated."""
        return self.model_copy(
            update={
                "requested_by_id": user_id,
                "requested_by_name": user_name,
                "requested_at": requested_at or utcnow(),
            }
        )

    def with_stream(self, stream: ResolvedStream | None) -> Track:
        return self.model_copy(update={"stream": stream})


class AdvanceOutcome(Enum):
    """How ``GuildPlaybackSession.select_next`` filled the current slot."""

    REPEATED = "repeated"
    DEQUEUED = "dequeued"
    RECYCLED = "recycled"
    EXHAUSTED = "exhausted"


class AdvanceStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: AdvanceOutcome
    finished: Track | None = None
    recycled: int = 0


class GuildPlaybackSession(BaseModel):
    """Queue, history and playback settings for a single Discord guild.

    Every track lives in exactly one of ``queue``, ``history`` or
    ``current_track``. Positions taken by the public methods are 1-based;
    all validation happens before the first mutation so a rejected call
    leaves the session untouched. History is ordered oldest first and
    holds at most ``history_limit`` tracks.
    """

    model_config = ConfigDict(strict=True)

    guild_id: DiscordSnowflake
    queue: list[Track] = Field(default_factory=list)
    history: list[Track] = Field(default_factory=list)
    history_limit: HistoryLimit = 50
    current_track: Track | None = None
    status: PlayerStatus = PlayerStatus.IDLE
    repeat_mode: RepeatMode = RepeatMode.OFF
    autoplay: bool = False
    volume: VolumePercent = 100
    filters: list[AudioFilter] = Field(default_factory=list)
    last_activity: UtcDatetimeField = Field(default_factory=utcnow)

    @property
    def queue_length(self) -> int:
        return len(self.queue)

    @property
    def has_tracks(self) -> bool:
        return self.current_track is not None or bool(self.queue)

    @property
    def head(self) -> Track | None:
        return self.queue[0] if self.queue else None

    def touch(self) -> None:
        self.last_activity = utcnow()

    def _archive(self, track: Track) -> None:
        self.history.append(track)
        overflow = len(self.history) - self.history_limit
        if overflow > 0:
            del self.history[:overflow]

    # ── queue operations ────────────────────────────────────────────

    def enqueue(self, tracks: list[Track]) -> int:
        """Append tracks and return the 1-based position of the first one."""
        if not tracks:
            raise EmptyQueueError("Nothing to enqueue")
        position = len(self.queue) + 1
        self.queue.extend(tracks)
        self.touch()
        return position

    def jump(self, position: int) -> Track:
        """Make the track at ``position`` current and return it.

        Negative positions count from the end of the queue. The previous
        current track and every skipped track move to history in order.
        """
        index = QueuePosition(position).to_index(len(self.queue), allow_negative=True)
        skipped = self.queue[:index]
        target = self.queue[index]

        if self.current_track is not None:
            self._archive(self.current_track)
        for track in skipped:
            self._archive(track)
        del self.queue[: index + 1]
        self.current_track = target
        self.touch()
        return target

    def push(self, position: int) -> Track:
        """Move the track at ``position`` to the front of the queue."""
        index = QueuePosition(position).to_index(len(self.queue))
        if index == 0:
            raise NoOpError("push", "That track is already next")

        track = self.queue.pop(index)
        self.queue.insert(0, track)
        self.touch()
        return track

    def swap(self, first: int, second: int) -> tuple[Track, Track]:
        i = QueuePosition(first).to_index(len(self.queue))
        j = QueuePosition(second).to_index(len(self.queue))
        if i == j:
            raise NoOpError("swap", "Cannot swap a track with itself")

        self.queue[i], self.queue[j] = self.queue[j], self.queue[i]
        self.touch()
        return self.queue[j], self.queue[i]

    def undo(self) -> Track:
        """Remove and return the most recently queued track."""
        if not self.queue:
            raise EmptyQueueError()
        track = self.queue.pop()
        self.touch()
        return track

    def shuffle(self, rng: random.Random | None = None) -> int:
        """Fisher-Yates shuffle of the queue; returns the number of tracks shuffled."""
        rand = rng or random
        for i in range(len(self.queue) - 1, 0, -1):
            j = rand.randint(0, i)
            self.queue[i], self.queue[j] = self.queue[j], self.queue[i]
        if self.queue:
            self.touch()
        return len(self.queue)

    def rewind(self) -> Track:
        """Make the most recent history entry current again.

        The track that was playing goes back to the front of the queue.
        """
        if not self.history:
            raise NoHistoryError()

        previous = self.history.pop()
        if self.current_track is not None:
            self.queue.insert(0, self.current_track)
        self.current_track = previous
        self.touch()
        return previous

    def clear(self) -> int:
        """Drop queue, history and current track; return how many tracks were queued."""
        count = len(self.queue)
        self.queue.clear()
        self.history.clear()
        self.current_track = None
        self.touch()
        return count

    # ── advance ─────────────────────────────────────────────────────

    def select_next(self, *, honor_repeat: bool = True) -> AdvanceStep:
        """Fill the current slot for the next track.

        With ``honor_repeat`` and repeat-song on, the current track stays.
        Otherwise it is archived and the queue head (or, under
        repeat-queue, the recycled history) takes its place. EXHAUSTED
        leaves the slot empty; autoplay is the caller's business.
        """
        finished = self.current_track
        if honor_repeat and self.repeat_mode is RepeatMode.SONG and finished is not None:
            self.touch()
            return AdvanceStep(outcome=AdvanceOutcome.REPEATED, finished=finished)

        if finished is not None:
            self._archive(finished)
        self.current_track = None

        if self.queue:
            self.current_track = self.queue.pop(0)
            self.touch()
            return AdvanceStep(outcome=AdvanceOutcome.DEQUEUED, finished=finished)

        if self.repeat_mode is RepeatMode.QUEUE and self.history:
            recycled = len(self.history)
            self.queue.extend(self.history)
            self.history.clear()
            self.current_track = self.queue.pop(0)
            self.touch()
            return AdvanceStep(outcome=AdvanceOutcome.RECYCLED, finished=finished, recycled=recycled)

        self.touch()
        return AdvanceStep(outcome=AdvanceOutcome.EXHAUSTED, finished=finished)

    def set_current(self, track: Track) -> None:
        self.current_track = track
        self.touch()

    def discard_current(self) -> Track | None:
        """Drop the current track without archiving it."""
        track, self.current_track = self.current_track, None
        return track

    def shelve_current(self) -> Track | None:
        """Put the current track back at the front of the queue."""
        track = self.discard_current()
        if track is not None:
            self.queue.insert(0, track)
        return track

    # ── playback state ──────────────────────────────────────────────

    def transition_to(self, new_status: PlayerStatus) -> None:
        if not self.status.can_transition_to(new_status):
            raise InvalidOperationError(
                operation=f"transition to {new_status.value}",
                current_state=self.status.value,
            )
        self.status = new_status

    def pause(self) -> None:
        if self.status is PlayerStatus.PAUSED:
            raise NoOpError("pause", "Playback is already paused")
        if self.status is not PlayerStatus.PLAYING:
            raise NotPlayingError()
        self.transition_to(PlayerStatus.PAUSED)

    def resume(self) -> None:
        if self.status is PlayerStatus.PLAYING:
            raise NoOpError("resume", "Playback is not paused")
        if self.status is not PlayerStatus.PAUSED:
            raise NotPlayingError()
        self.transition_to(PlayerStatus.PLAYING)

    def set_volume(self, volume: Volume) -> None:
        self.volume = volume.value

    def set_repeat_mode(self, mode: RepeatMode | None = None) -> RepeatMode:
        """Set the repeat mode, or cycle to the next one when ``mode`` is None."""
        self.repeat_mode = mode if mode is not None else self.repeat_mode.next_mode()
        return self.repeat_mode

    def set_autoplay(self, enabled: bool) -> None:
        self.autoplay = enabled

    def set_filters(self, filters: list[AudioFilter]) -> list[AudioFilter]:
        """Replace the active filters; duplicates are dropped, order is kept."""
        chosen = list(dict.fromkeys(filters))
        if chosen == self.filters:
            message = "Those filters are already active" if chosen else "No filters are active"
            raise NoOpError("filters", message)
        self.filters = chosen
        self.touch()
        return list(chosen)

    def toggled_filters(self, audio_filter: AudioFilter) -> list[AudioFilter]:
        """The filter list with ``audio_filter`` switched off if active, on otherwise."""
        if audio_filter in self.filters:
            return [f for f in self.filters if f is not audio_filter]
        return [*self.filters, audio_filter]
