"""Per-guild music subscription: queue, playback state and the advance loop."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

from ...domain.music.entities import AdvanceOutcome, GuildPlaybackSession, ResolvedStream, Track
from ...domain.music.value_objects import (
    AudioFilter,
    PlayerStatus,
    RepeatMode,
    StartSeconds,
    TrackId,
    Volume,
)
from ...domain.shared.events import PlaybackFailed, QueueExhausted, TrackStarted
from ...domain.shared.exceptions import (
    DomainError,
    NoActiveTrackError,
    NotConnectedError,
    StreamResolutionFailedError,
    SubscriptionBusyError,
)
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake
from ..interfaces.audio_resolver import ResolutionError
from .subscription_models import EnqueueResult, SubscriptionOptions, SubscriptionSnapshot

if TYPE_CHECKING:
    from ...domain.shared.events import EventBus
    from ..interfaces.autoplay_source import AutoplaySource
    from ..interfaces.stream_resolver import StreamResolver
    from ..interfaces.voice_adapter import VoiceAdapter
    from .prefetch_cache import PrefetchCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _TrackEnded:
    generation: int
    error: Exception | None


class Subscription:
    """Owns one guild's queue, history, playback state and prefetch cache.

    Commands and player "track ended" notifications are the only sources of
    mutation. Both run under ``self._lock``; commands give up with
    ``SubscriptionBusyError`` after ``lock_timeout_s``. Track-end
    notifications are queued and handled one at a time by a consumer task.
    Each ``VoiceAdapter.play`` call gets a new generation number, and a
    notification whose generation is no longer current (the source was
    replaced or stopped on purpose) is ignored.
    """

    def __init__(
        self,
        guild_id: DiscordSnowflake,
        channel_id: DiscordSnowflake,
        *,
        voice_adapter: VoiceAdapter,
        stream_resolver: StreamResolver,
        autoplay_source: AutoplaySource,
        prefetch_cache: PrefetchCache,
        event_bus: EventBus,
        options: SubscriptionOptions | None = None,
        volume: int | None = None,
        autoplay: bool = False,
        rng: random.Random | None = None,
    ) -> None:
        self._options = options or SubscriptionOptions()
        self.guild_id = guild_id
        self.channel_id = channel_id

        self._voice = voice_adapter
        self._stream_resolver = stream_resolver
        self._autoplay_source = autoplay_source
        self._prefetch = prefetch_cache
        self._event_bus = event_bus
        self._rng = rng

        self._session = GuildPlaybackSession(
            guild_id=guild_id,
            history_limit=self._options.history_limit,
            volume=Volume(self._options.default_volume if volume is None else volume).value,
            autoplay=autoplay,
        )

        self._lock = asyncio.Lock()
        self._events: asyncio.Queue[_TrackEnded] = asyncio.Queue()
        self._consumer: asyncio.Task[None] | None = None
        self._generation = 0
        self._closed = False

        self._elapsed_base = 0.0
        self._resumed_at: float | None = None

    # ── lifecycle ───────────────────────────────────────────────────

    def start(self) -> None:
        """Start consuming player notifications."""
        if self._consumer is None:
            self._consumer = asyncio.create_task(
                self._consume_events(), name=f"subscription:{self.guild_id}"
            )

    async def destroy(self) -> None:
        """Cancel prefetches, stop the player and drop all state. Idempotent."""
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            await self._prefetch.close()
            self._session.clear()
            await self._go_idle()

        if self._consumer is not None:
            self._consumer.cancel()
            with suppress(asyncio.CancelledError):
                await self._consumer
            self._consumer = None

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def session(self) -> GuildPlaybackSession:
        return self._session

    @property
    def current_track(self) -> Track | None:
        return self._session.current_track

    @property
    def status(self) -> PlayerStatus:
        return self._session.status

    @asynccontextmanager
    async def _locked(self) -> AsyncIterator[None]:
        try:
            async with asyncio.timeout(self._options.lock_timeout_s):
                await self._lock.acquire()
        except TimeoutError:
            logger.warning(
                LogTemplates.SUBSCRIPTION_LOCK_TIMEOUT, self.guild_id, self._options.lock_timeout_s
            )
            raise SubscriptionBusyError(self.guild_id, self._options.lock_timeout_s) from None

        try:
            if self._closed:
                raise NotConnectedError(self.guild_id)
            yield
        finally:
            self._lock.release()

    # ── queue commands ──────────────────────────────────────────────

    async def enqueue(self, tracks: Sequence[Track]) -> EnqueueResult:
        """Append tracks; start playing if the subscription is idle."""
        async with self._locked():
            had_head = self._session.head is not None
            position = self._session.enqueue(list(tracks))
            logger.info(LogTemplates.QUEUE_ENQUEUED, len(tracks), position, self.guild_id)

            started = False
            if self._session.current_track is None and self._session.status is PlayerStatus.IDLE:
                started = await self._advance(honor_repeat=False) is not None
            elif not had_head:
                self._prefetch_head()

            return EnqueueResult(position=position, count=len(tracks), started=started)

    async def jump(self, position: int) -> Track:
        """Play the track at ``position`` now; everything before it goes to history."""
        async with self._locked():
            target = self._session.jump(position)
            logger.info(LogTemplates.QUEUE_JUMPED, target.title, self.guild_id)

            self._prefetch.invalidate(keep=target)
            await self._play_selected(seed=None)
            return target

    async def push(self, position: int) -> Track:
        """Move the track at ``position`` to the front of the queue."""
        async with self._locked():
            previous_head = self._session.head
            track = self._session.push(position)
            logger.info(LogTemplates.QUEUE_PUSHED, track.title, self.guild_id)

            if previous_head is not None:
                self._prefetch.invalidate(previous_head)
            self._prefetch_head()
            return track

    async def swap(self, first: int, second: int) -> tuple[Track, Track]:
        async with self._locked():
            a, b = self._session.swap(first, second)
            logger.info(LogTemplates.QUEUE_SWAPPED, first, second, self.guild_id)

            self._prefetch.invalidate(a)
            self._prefetch.invalidate(b)
            if 1 in (first, second):
                self._prefetch_head()
            return a, b

    async def undo(self) -> Track:
        """Remove the last queued track."""
        async with self._locked():
            track = self._session.undo()
            logger.info(LogTemplates.QUEUE_UNDONE, track.title, self.guild_id)

            if not any(t.id == track.id for t in self._session.queue):
                self._prefetch.invalidate(track)
            return track

    async def shuffle(self) -> int:
        """Shuffle the queue; an empty queue is left alone and returns 0."""
        async with self._locked():
            count = self._session.shuffle(self._rng)
            if count == 0:
                return 0
            logger.info(LogTemplates.QUEUE_SHUFFLED, count, self.guild_id)

            self._prefetch.invalidate()
            self._prefetch_head()
            return count

    async def previous(self) -> Track:
        """Replay the most recent history entry; the current track goes back on the queue."""
        async with self._locked():
            track = self._session.rewind()
            logger.info(LogTemplates.QUEUE_PREVIOUS, track.title, self.guild_id)

            self._prefetch.invalidate()
            await self._play_selected(seed=None)
            return track

    # ── playback commands ───────────────────────────────────────────

    async def skip(self) -> Track:
        """End the current track and advance. Repeat-song does not apply."""
        async with self._locked():
            current = self._session.current_track
            if current is None:
                raise NoActiveTrackError()
            await self._advance(honor_repeat=False)
            return current

    async def stop(self) -> int:
        """Clear queue, history and current track; returns the number of queued tracks dropped."""
        async with self._locked():
            self._prefetch.invalidate()
            cleared = self._session.clear()
            await self._go_idle()
            logger.info(LogTemplates.PLAYBACK_STOPPED, self.guild_id)
            return cleared

    async def pause(self) -> None:
        async with self._locked():
            self._session.pause()
            await self._voice.pause(self.guild_id)
            if self._resumed_at is not None:
                self._elapsed_base += time.monotonic() - self._resumed_at
                self._resumed_at = None
            logger.info(LogTemplates.PLAYBACK_PAUSED, self.guild_id)

    async def resume(self) -> None:
        async with self._locked():
            self._session.resume()
            await self._voice.resume(self.guild_id)
            self._resumed_at = time.monotonic()
            logger.info(LogTemplates.PLAYBACK_RESUMED, self.guild_id)

    async def seek(self, seconds: int) -> Track:
        """Restart the current track at ``seconds``; queue and history are untouched."""
        async with self._locked():
            track = self._session.current_track
            if track is None:
                raise NoActiveTrackError()
            offset = StartSeconds(seconds).within(track.duration_seconds)
            logger.info(LogTemplates.PLAYBACK_SEEK, track.title, offset, self.guild_id)

            await self._restart_current(track, offset)
            return track

    async def set_filters(self, filters: Sequence[AudioFilter]) -> list[AudioFilter]:
        """Replace the active audio filters; an empty sequence turns them all off."""
        async with self._locked():
            return await self._apply_filters(list(filters))

    async def toggle_filter(self, audio_filter: AudioFilter) -> list[AudioFilter]:
        """Switch one filter on or off and return the filters now active."""
        async with self._locked():
            return await self._apply_filters(self._session.toggled_filters(audio_filter))

    async def set_volume(self, percent: int) -> int:
        async with self._locked():
            volume = Volume(percent)
            self._session.set_volume(volume)
            if self._session.status.is_active:
                self._voice.set_volume(self.guild_id, volume.multiplier)
            logger.info(LogTemplates.PLAYBACK_VOLUME, volume.value, self.guild_id)
            return volume.value

    async def set_repeat_mode(self, mode: RepeatMode | None = None) -> RepeatMode:
        """Set the repeat mode, or cycle Off -> Song -> Queue when ``mode`` is None."""
        async with self._locked():
            new_mode = self._session.set_repeat_mode(mode)
            logger.info(LogTemplates.REPEAT_MODE_CHANGED, new_mode.value, self.guild_id)
            return new_mode

    async def set_autoplay(self, enabled: bool) -> bool:
        async with self._locked():
            self._session.set_autoplay(enabled)
            logger.info(LogTemplates.AUTOPLAY_CHANGED, "on" if enabled else "off", self.guild_id)
            return enabled

    # ── queries ─────────────────────────────────────────────────────

    @property
    def elapsed_seconds(self) -> int:
        elapsed = self._elapsed_base
        if self._resumed_at is not None:
            elapsed += time.monotonic() - self._resumed_at
        return max(0, int(elapsed))

    def snapshot(self) -> SubscriptionSnapshot:
        session = self._session
        return SubscriptionSnapshot(
            guild_id=self.guild_id,
            current_track=session.current_track,
            queue=list(session.queue),
            history_length=len(session.history),
            status=session.status,
            repeat_mode=session.repeat_mode,
            autoplay=session.autoplay,
            volume=session.volume,
            filters=list(session.filters),
            elapsed_seconds=self.elapsed_seconds if session.current_track else 0,
        )

    # ── player notifications ────────────────────────────────────────

    def _on_track_end(self, generation: int, error: Exception | None) -> None:
        self._events.put_nowait(_TrackEnded(generation, error))

    async def wait_for_events(self) -> None:
        """Block until every queued player notification has been handled."""
        await self._events.join()

    async def _consume_events(self) -> None:
        while True:
            event = await self._events.get()
            try:
                async with self._lock:
                    await self._handle_track_end(event)
            except DomainError as exc:
                logger.info(LogTemplates.SUBSCRIPTION_ADVANCE_STOPPED, self.guild_id, exc)
            except Exception:
                logger.exception(LogTemplates.SUBSCRIPTION_EVENT_FAILED, self.guild_id)
            finally:
                self._events.task_done()

    async def _handle_track_end(self, event: _TrackEnded) -> None:
        if self._closed or event.generation != self._generation:
            logger.debug(
                LogTemplates.SUBSCRIPTION_STALE_EVENT,
                event.generation,
                self.guild_id,
                self._generation,
            )
            return
        if event.error is not None:
            logger.warning(LogTemplates.VOICE_AFTER_ERROR, self.guild_id, event.error)
        await self._advance(honor_repeat=event.error is None)

    # ── advance (lock held) ─────────────────────────────────────────

    async def _advance(self, *, honor_repeat: bool) -> Track | None:
        step = self._session.select_next(honor_repeat=honor_repeat)
        if step.outcome is AdvanceOutcome.REPEATED and step.finished is not None:
            logger.debug(LogTemplates.PLAYBACK_REPEAT_SONG, step.finished.title, self.guild_id)
        elif step.outcome is AdvanceOutcome.RECYCLED:
            logger.info(LogTemplates.PLAYBACK_REPEAT_QUEUE, step.recycled, self.guild_id)
        return await self._play_selected(seed=step.finished)

    async def _play_selected(self, *, seed: Track | None) -> Track | None:
        """Start the current track, falling through the queue on resolution failures.

        ``seed`` is the track that just finished; autoplay looks for
        something related to it when the queue is exhausted.
        """
        failures = 0
        while True:
            track = self._session.current_track
            if track is None:
                track = await self._recommend(seed) if seed is not None else None
                if track is None:
                    await self._go_idle()
                    logger.info(LogTemplates.PLAYBACK_IDLE, self.guild_id)
                    await self._event_bus.publish(
                        QueueExhausted(
                            guild_id=self.guild_id,
                            last_track_title=seed.title if seed else None,
                        )
                    )
                    return None
                self._session.set_current(track)

            try:
                await self._start(track)
            except ResolutionError as exc:
                failures += 1
                logger.warning(
                    LogTemplates.PLAYBACK_RESOLVE_FAILED,
                    track.title,
                    self.guild_id,
                    failures,
                    self._options.max_resolve_failures,
                    exc,
                )
                self._session.discard_current()
                seed = seed or track

                if failures >= self._options.max_resolve_failures:
                    await self._go_idle()
                    logger.error(LogTemplates.PLAYBACK_GAVE_UP, failures, self.guild_id)
                    await self._event_bus.publish(
                        PlaybackFailed(guild_id=self.guild_id, attempts=failures, reason=str(exc))
                    )
                    raise StreamResolutionFailedError(failures, exc) from exc

                self._session.select_next(honor_repeat=False)
                continue

            self._prefetch_head()
            return track

    async def _start(
        self,
        track: Track,
        *,
        start_seconds: StartSeconds | None = None,
        stream: ResolvedStream | None = None,
    ) -> None:
        """Open a stream for ``track`` and hand it to the player.

        ``ResolutionError`` propagates with the session still buffering so the
        caller can move on to the next track. Any other failure drops the
        track and leaves the session idle.
        """
        self._session.transition_to(PlayerStatus.BUFFERING)
        try:
            if stream is None:
                if start_seconds is None:
                    stream = await self._prefetch.take(track)
                if stream is None:
                    stream = await self._resolve_stream(track)

            self._generation += 1
            played = await self._voice.play(
                self.guild_id,
                stream,
                volume=Volume(self._session.volume).multiplier,
                on_end=partial(self._on_track_end, self._generation),
                start_seconds=start_seconds,
                filters=tuple(self._session.filters),
            )
        except ResolutionError:
            raise
        except Exception:
            logger.exception(LogTemplates.PLAYBACK_START_FAILED, track.title, self.guild_id)
            self._session.discard_current()
            await self._go_idle()
            raise

        if not played:
            self._session.shelve_current()
            await self._go_idle()
            raise NotConnectedError(self.guild_id)

        self._session.set_current(track.with_stream(stream))
        self._session.transition_to(PlayerStatus.PLAYING)
        offset = start_seconds.value if start_seconds is not None else 0
        self._elapsed_base = float(offset)
        self._resumed_at = time.monotonic()

        logger.info(LogTemplates.PLAYBACK_STARTED, track.title, self.guild_id, offset)
        await self._event_bus.publish(
            TrackStarted(
                guild_id=self.guild_id,
                track_id=track.id,
                track_title=track.title,
                start_seconds=offset,
                from_autoplay=track.is_from_autoplay,
            )
        )

    async def _apply_filters(self, filters: list[AudioFilter]) -> list[AudioFilter]:
        applied = self._session.set_filters(filters)
        logger.info(
            LogTemplates.PLAYBACK_FILTERS, ", ".join(f.value for f in applied), self.guild_id
        )

        track = self._session.current_track
        if track is not None and self._session.status.is_active:
            elapsed = self.elapsed_seconds
            if track.duration_seconds is not None:
                elapsed = min(elapsed, track.duration_seconds)
            await self._restart_current(track, StartSeconds(elapsed))
        return applied

    async def _restart_current(self, track: Track, offset: StartSeconds) -> None:
        """Reopen the current track at ``offset`` with the active filters.

        A fresh stream URL is preferred; the last one is reused if resolving
        fails. A paused track stays paused.
        """
        was_paused = self._session.status is PlayerStatus.PAUSED
        try:
            stream = await self._resolve_stream(track)
        except ResolutionError as exc:
            if track.stream is None:
                raise
            logger.warning(LogTemplates.PLAYBACK_SEEK_FALLBACK, self.guild_id, exc)
            stream = track.stream

        await self._start(track, start_seconds=offset, stream=stream)
        if was_paused:
            self._session.pause()
            await self._voice.pause(self.guild_id)
            self._elapsed_base = float(offset.value)
            self._resumed_at = None

    async def _resolve_stream(self, track: Track) -> ResolvedStream:
        try:
            return await self._stream_resolver.resolve_stream(track)
        except ResolutionError:
            raise
        except Exception as exc:
            raise ResolutionError(str(exc), query=track.webpage_url) from exc

    async def _go_idle(self) -> None:
        self._generation += 1
        await self._voice.stop(self.guild_id)
        self._session.transition_to(PlayerStatus.IDLE)
        self._elapsed_base = 0.0
        self._resumed_at = None

    async def _recommend(self, seed: Track) -> Track | None:
        if not self._session.autoplay:
            return None
        try:
            track = await self._autoplay_source.related(seed)
        except Exception as exc:
            logger.warning(LogTemplates.AUTOPLAY_FAILED, seed.title, exc)
            return None

        if track is None:
            logger.info(LogTemplates.AUTOPLAY_NOTHING, seed.title, self.guild_id)
            return None
        logger.info(LogTemplates.AUTOPLAY_PICKED, track.title, seed.title, self.guild_id)
        return track.model_copy(update={"is_from_autoplay": True})

    # ── prefetch ────────────────────────────────────────────────────

    def _prefetch_head(self) -> None:
        head = self._session.head
        if head is not None and not self._closed:
            self._prefetch.prefetch(head, still_wanted=partial(self._is_head, head.id))

    def _is_head(self, track_id: TrackId) -> bool:
        head = self._session.head
        return not self._closed and head is not None and head.id == track_id
