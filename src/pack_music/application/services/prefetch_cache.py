"""Speculative stream resolution for the next track in a guild's queue."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from functools import partial
from typing import TYPE_CHECKING

from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.music.entities import ResolvedStream, Track
    from ...domain.music.value_objects import TrackId
    from ..interfaces.stream_resolver import StreamResolver

logger = logging.getLogger(__name__)

StillWanted = Callable[[], bool]


class PrefetchCache:
    """Resolves streams ahead of time, keyed by track id.

    Holds at most one entry (in flight or ready) per track id. A finished
    resolution is only stored if ``still_wanted`` agrees at completion time;
    ready entries older than ``ttl_seconds`` are treated as absent because
    stream URLs expire.
    """

    def __init__(self, resolver: StreamResolver, *, ttl_seconds: float = 600.0) -> None:
        self._resolver = resolver
        self._ttl_seconds = ttl_seconds
        self._ready: dict[TrackId, ResolvedStream] = {}
        self._pending: dict[TrackId, asyncio.Task[ResolvedStream | None]] = {}

    def __contains__(self, track: Track) -> bool:
        return track.id in self._ready or track.id in self._pending

    def __len__(self) -> int:
        return len(self._ready) + len(self._pending)

    def is_ready(self, track: Track) -> bool:
        return track.id in self._ready

    def prefetch(
        self, track: Track, *, still_wanted: StillWanted
    ) -> asyncio.Task[ResolvedStream | None] | None:
        """Start resolving *track* in the background unless it is already cached."""
        if track in self:
            return None

        logger.debug(LogTemplates.PREFETCH_STARTED, track.title)
        task = asyncio.create_task(self._resolve(track), name=f"prefetch:{track.id}")
        self._pending[track.id] = task
        task.add_done_callback(partial(self._store, track, still_wanted))
        return task

    async def _resolve(self, track: Track) -> ResolvedStream | None:
        try:
            return await self._resolver.resolve_stream(track)
        except Exception as exc:
            logger.warning(LogTemplates.PREFETCH_FAILED, track.title, exc)
            return None

    def _store(
        self,
        track: Track,
        still_wanted: StillWanted,
        task: asyncio.Task[ResolvedStream | None],
    ) -> None:
        if self._pending.get(track.id) is not task:
            return
        del self._pending[track.id]

        if task.cancelled():
            return
        stream = task.result()
        if stream is None:
            return
        if not still_wanted():
            logger.debug(LogTemplates.PREFETCH_STALE, track.title)
            return

        self._ready[track.id] = stream
        logger.debug(LogTemplates.PREFETCH_READY, track.title)

    async def take(self, track: Track) -> ResolvedStream | None:
        """Remove and return the prepared stream for *track*, if any.

        An in-flight resolution for the track is awaited rather than
        duplicated.
        """
        task = self._pending.pop(track.id, None)
        if task is not None:
            stream = await task
            if stream is not None:
                logger.debug(LogTemplates.PREFETCH_HIT, track.title)
            return stream

        stream = self._ready.pop(track.id, None)
        if stream is None:
            return None
        if stream.age_seconds() > self._ttl_seconds:
            logger.debug(LogTemplates.PREFETCH_EXPIRED, track.title)
            return None

        logger.debug(LogTemplates.PREFETCH_HIT, track.title)
        return stream

    def invalidate(self, track: Track | None = None, *, keep: Track | None = None) -> int:
        """Drop the entry for *track*, or every entry when *track* is None.

        *keep* survives a full invalidation.
        """
        if track is None:
            keys = set(self._ready) | set(self._pending)
            if keep is not None:
                keys.discard(keep.id)
        else:
            keys = {track.id}

        dropped = 0
        for key in keys:
            task = self._pending.pop(key, None)
            if task is not None:
                task.cancel()
                dropped += 1
            if self._ready.pop(key, None) is not None:
                dropped += 1
        return dropped

    async def close(self) -> None:
        """Cancel in-flight work and wait for it to unwind."""
        tasks = list(self._pending.values())
        self.invalidate()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
