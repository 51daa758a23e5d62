"""yt-dlp backed track lookup, stream resolution and autoplay."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Final, cast
from urllib.parse import urlparse

from pydantic import ValidationError
from yt_dlp import YoutubeDL

from pack_music.application.interfaces.audio_resolver import AudioResolver, ResolutionError
from pack_music.application.interfaces.autoplay_source import AutoplaySource
from pack_music.application.interfaces.stream_resolver import StreamResolver
from pack_music.config.settings import AudioSettings
from pack_music.domain.music.entities import ResolvedStream, Track
from pack_music.domain.music.value_objects import TrackId
from pack_music.domain.shared.messages import ErrorMessages, LogTemplates
from pack_music.infrastructure.audio.models import (
    DEFAULT_SEARCH_LIMIT,
    AudioFormatInfo,
    YtDlpOpts,
    YtDlpTrackInfo,
)

logger = logging.getLogger(__name__)

YOUTUBE_ORIGIN: Final[str] = "https://www.youtube.com"
YOUTUBE_HOST_SUFFIXES: Final[tuple[str, ...]] = ("youtube.com", "youtu.be", "googlevideo.com")
AUTOPLAY_CANDIDATES: Final[int] = 5

URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"^https?://"),
    re.compile(r"^www\."),
]


def _is_youtube_host(url: str) -> bool:
    host = (urlparse(url).hostname or "").lower()
    return any(host == suffix or host.endswith("." + suffix) for suffix in YOUTUBE_HOST_SUFFIXES)


def youtube_headers(url: str, headers: dict[str, str], user_agent: str) -> dict[str, str]:
    """Fill in the headers YouTube's CDN expects, keeping any already present.

    Non-YouTube URLs get their headers back unchanged.
    """
    if not _is_youtube_host(url):
        return dict(headers)

    present = {key.lower() for key in headers}
    merged = dict(headers)
    for key, value in (
        ("Referer", YOUTUBE_ORIGIN + "/"),
        ("Origin", YOUTUBE_ORIGIN),
        ("User-Agent", user_agent),
    ):
        if key.lower() not in present:
            merged[key] = value
    return merged


class YtDlpResolver(AudioResolver, StreamResolver, AutoplaySource):
    """One yt-dlp client serving lookups, stream URLs and related tracks.

    Every yt-dlp call is blocking, so each runs in a worker thread.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._base_opts = YtDlpOpts(
            format=self._settings.ytdlp_format,
            default_search=self._settings.search_default,
            http_headers={"User-Agent": self._settings.user_agent},
        )

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    # ── blocking helpers ────────────────────────────────────────────

    def _extract_sync(self, url: str, opts: YtDlpOpts) -> dict[str, Any]:
        try:
            with YoutubeDL(params=cast(Any, opts.model_dump())) as ydl:
                data = ydl.extract_info(url, download=False)
        except Exception as exc:
            logger.warning(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url)
            raise ResolutionError(str(exc), query=url) from exc

        if not isinstance(data, dict):
            raise ResolutionError(ErrorMessages.NO_RESULTS_FOR_QUERY.format(query=url), query=url)
        return dict(data)

    def _extract_info_sync(self, url: str) -> YtDlpTrackInfo:
        data = self._extract_sync(url, self._get_opts())
        try:
            return YtDlpTrackInfo.model_validate(data)
        except ValidationError as exc:
            logger.warning(LogTemplates.YTDLP_INVALID_INFO, url, exc)
            raise ResolutionError(str(exc), query=url) from exc

    def _extract_url_sync(self, url: str) -> list[YtDlpTrackInfo]:
        """Extract a URL; playlists come back as their flat entries."""
        opts = self._get_opts(
            noplaylist=False,
            extract_flat="in_playlist",
            playlistend=self._settings.max_playlist_tracks,
        )
        data = self._extract_sync(url, opts)
        if data.get("_type") != "playlist":
            try:
                return [YtDlpTrackInfo.model_validate(data)]
            except ValidationError as exc:
                logger.warning(LogTemplates.YTDLP_INVALID_INFO, url, exc)
                raise ResolutionError(str(exc), query=url) from exc

        entries: list[YtDlpTrackInfo] = []
        for raw in data.get("entries") or []:
            if not isinstance(raw, dict):
                continue
            entry = dict(raw)
            # Flat entries carry the page URL in ``url``.
            if not entry.get("webpage_url") and isinstance(entry.get("url"), str):
                entry["webpage_url"] = entry["url"]
            try:
                entries.append(YtDlpTrackInfo.model_validate(entry))
            except ValidationError as exc:
                logger.debug(LogTemplates.YTDLP_INVALID_INFO, entry.get("id"), exc)
        logger.info(LogTemplates.YTDLP_PLAYLIST_EXPANDED, url, len(entries))
        return entries

    def _search_sync(self, query: str, limit: int) -> list[YtDlpTrackInfo]:
        search_query = f"{self._settings.search_default}{limit}:{query}"
        try:
            with YoutubeDL(params=cast(Any, self._get_opts().model_dump())) as ydl:
                data = ydl.extract_info(search_query, download=False)
        except Exception as exc:
            logger.warning(LogTemplates.YTDLP_FAILED_SEARCH, query)
            raise ResolutionError(str(exc), query=query) from exc

        if not isinstance(data, dict):
            return []
        entries = data.get("entries") or []
        if not isinstance(entries, list):
            return []

        results: list[YtDlpTrackInfo] = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            try:
                results.append(YtDlpTrackInfo.model_validate(dict(entry)))
            except ValidationError as exc:
                logger.debug(LogTemplates.YTDLP_INVALID_INFO, query, exc)
        return results

    # ── conversion ──────────────────────────────────────────────────

    def _info_to_track(self, info: YtDlpTrackInfo, *, query: str | None = None) -> Track | None:
        url = info.webpage_url
        if not url:
            if info.id:
                url = f"{YOUTUBE_ORIGIN}/watch?v={info.id}"
            elif info.url and self.is_url(info.url):
                url = info.url
            else:
                logger.debug(ErrorMessages.NO_URL_IN_INFO_DICT)
                return None

        try:
            return Track(
                id=TrackId.from_url(url),
                title=info.title,
                webpage_url=url,
                duration_seconds=info.duration,
                thumbnail_url=info.thumbnail,
                artist=info.seed_artist,
                uploader=info.seed_uploader,
                search_query=query,
            )
        except ValidationError as exc:
            logger.debug(LogTemplates.YTDLP_INVALID_INFO, url, exc)
            return None

    @staticmethod
    def _pick_format(formats: list[AudioFormatInfo]) -> AudioFormatInfo | None:
        audio = [f for f in formats if f.url and f.acodec != "none"]
        return audio[-1] if audio else None

    def _info_to_stream(self, info: YtDlpTrackInfo, *, query: str) -> ResolvedStream:
        url, headers = info.url, info.http_headers
        if not url:
            chosen = self._pick_format(info.formats)
            if chosen is None or chosen.url is None:
                raise ResolutionError(ErrorMessages.NO_URL_IN_INFO_DICT, query=query)
            url, headers = chosen.url, chosen.http_headers or headers

        try:
            return ResolvedStream(
                url=url,
                headers=youtube_headers(url, headers, self._settings.user_agent),
            )
        except ValidationError as exc:
            logger.warning(LogTemplates.YTDLP_INVALID_INFO, query, exc)
            raise ResolutionError(str(exc), query=query) from exc

    # ── AudioResolver ───────────────────────────────────────────────

    async def resolve(self, query: str) -> list[Track]:
        if self.is_url(query):
            infos = await asyncio.to_thread(self._extract_url_sync, query)
            tracks = (self._info_to_track(info) for info in infos)
            return [track for track in tracks if track is not None]

        results = await asyncio.to_thread(self._search_sync, query, 1)
        if not results:
            return []
        track = self._info_to_track(results[0], query=query)
        return [track] if track is not None else []

    async def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[Track]:
        results = await asyncio.to_thread(self._search_sync, query, limit)
        tracks: list[Track] = []
        for info in results:
            track = self._info_to_track(info, query=query)
            if track is not None:
                tracks.append(track)
        return tracks

    def is_url(self, query: str) -> bool:
        return any(pattern.search(query) for pattern in URL_PATTERNS)

    # ── StreamResolver ──────────────────────────────────────────────

    async def resolve_stream(self, track: Track) -> ResolvedStream:
        info = await asyncio.to_thread(self._extract_info_sync, track.webpage_url)
        return self._info_to_stream(info, query=track.webpage_url)

    # ── AutoplaySource ──────────────────────────────────────────────

    async def related(self, track: Track) -> Track | None:
        seed = f"{track.seed_artist or ''} {track.title} related".strip()
        for candidate in await self.search(seed, limit=AUTOPLAY_CANDIDATES):
            if candidate.id != track.id:
                return candidate.model_copy(update={"is_from_autoplay": True, "search_query": seed})
        return None
