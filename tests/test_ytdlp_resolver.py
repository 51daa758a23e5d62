"""Tests for the yt-dlp resolver."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from pack_music.application.interfaces.audio_resolver import ResolutionError
from pack_music.config.settings import AudioSettings
from pack_music.infrastructure.audio.models import YtDlpTrackInfo
from pack_music.infrastructure.audio.ytdlp_resolver import YtDlpResolver, youtube_headers

from conftest import make_track

UA = "test-agent/1.0"
VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
PLAYLIST_URL = "https://www.youtube.com/playlist?list=PL0123456789"
WATCH = "https://www.youtube.com/watch?v="


def info(**data) -> YtDlpTrackInfo:
    return YtDlpTrackInfo.model_validate(data)


@pytest.fixture
def resolver():
    return YtDlpResolver(AudioSettings(user_agent=UA))


@pytest.fixture
def ydl():
    """Patch YoutubeDL and yield the object bound by ``with YoutubeDL(...) as ydl``."""
    with patch("pack_music.infrastructure.audio.ytdlp_resolver.YoutubeDL") as mock_cls:
        instance = MagicMock()
        mock_cls.return_value.__enter__.return_value = instance
        yield instance


class TestYoutubeHeaders:
    def test_fills_missing_headers_for_youtube(self):
        headers = youtube_headers("https://rr1.googlevideo.com/videoplayback", {}, UA)

        assert headers == {
            "Referer": "https://www.youtube.com/",
            "Origin": "https://www.youtube.com",
            "User-Agent": UA,
        }

    def test_keeps_existing_headers_case_insensitively(self):
        headers = youtube_headers(VIDEO_URL, {"user-agent": "yt-dlp"}, UA)

        assert headers["user-agent"] == "yt-dlp"
        assert "User-Agent" not in headers

    def test_other_hosts_untouched(self):
        assert youtube_headers("https://cdn.example/a.webm", {"X": "1"}, UA) == {"X": "1"}


class TestYtDlpTrackInfo:
    def test_bad_values_coerced(self):
        parsed = info(title="  ", duration=99_999, thumbnail="", artist=None, creator="Creator")

        assert parsed.title == "Unknown Title"
        assert parsed.duration is None
        assert parsed.thumbnail is None
        assert parsed.seed_artist == "Creator"


class TestResolve:
    def test_is_url(self, resolver):
        assert resolver.is_url(VIDEO_URL)
        assert resolver.is_url("www.example.com/song")
        assert not resolver.is_url("never gonna give you up")

    async def test_resolve_url(self, resolver):
        with patch.object(
            resolver,
            "_extract_url_sync",
            return_value=[info(webpage_url=VIDEO_URL, title="Song", duration=212, uploader="Rick")],
        ):
            (track,) = await resolver.resolve(VIDEO_URL)

        assert track.id.value == "dQw4w9WgXcQ"
        assert track.title == "Song"
        assert track.duration_seconds == 212
        assert track.uploader == "Rick"
        assert track.search_query is None

    async def test_resolve_search_uses_first_result(self, resolver):
        with patch.object(
            resolver, "_search_sync", return_value=[info(id="dQw4w9WgXcQ", title="Song")]
        ) as search:
            (track,) = await resolver.resolve("rick astley")

        search.assert_called_once_with("rick astley", 1)
        assert track.webpage_url == VIDEO_URL
        assert track.search_query == "rick astley"

    async def test_resolve_search_without_results(self, resolver):
        with patch.object(resolver, "_search_sync", return_value=[]):
            assert await resolver.resolve("nothing at all") == []

    async def test_search_skips_entries_without_url(self, resolver):
        with patch.object(
            resolver, "_search_sync", return_value=[info(title="No url"), info(id="abcdefghijk")]
        ):
            tracks = await resolver.search("query", limit=2)

        assert [t.id.value for t in tracks] == ["abcdefghijk"]

    def test_search_builds_query(self, resolver, ydl):
        ydl.extract_info.return_value = {"entries": [{"id": "abcdefghijk", "title": "A"}, None]}

        results = resolver._search_sync("lofi", 3)

        ydl.extract_info.assert_called_once_with("ytsearch3:lofi", download=False)
        assert [r.id for r in results] == ["abcdefghijk"]

    def test_extract_failure_raises_resolution_error(self, resolver, ydl):
        ydl.extract_info.side_effect = RuntimeError("Video unavailable")

        with pytest.raises(ResolutionError) as exc_info:
            resolver._extract_info_sync(VIDEO_URL)
        assert exc_info.value.query == VIDEO_URL

    def test_unusable_info_raises_resolution_error(self, resolver, ydl):
        ydl.extract_info.return_value = {"id": "abcdefghijk", "formats": "not a list"}

        with pytest.raises(ResolutionError) as exc_info:
            resolver._extract_info_sync(VIDEO_URL)
        assert exc_info.value.query == VIDEO_URL


class TestPlaylists:
    async def test_playlist_expands_to_every_entry(self, resolver, ydl):
        ydl.extract_info.return_value = {
            "_type": "playlist",
            "title": "Mix",
            "entries": [
                {"id": "aaaaaaaaaaa", "url": f"{WATCH}aaaaaaaaaaa", "title": "A"},
                None,
                {"id": "bbbbbbbbbbb", "url": f"{WATCH}bbbbbbbbbbb", "title": "B"},
                {"title": "Private video"},
            ],
        }

        tracks = await resolver.resolve(PLAYLIST_URL)

        assert [t.id.value for t in tracks] == ["aaaaaaaaaaa", "bbbbbbbbbbb"]
        assert [t.title for t in tracks] == ["A", "B"]

    def test_playlist_extraction_is_flat_and_capped(self):
        resolver = YtDlpResolver(AudioSettings(user_agent=UA, max_playlist_tracks=25))

        with patch("pack_music.infrastructure.audio.ytdlp_resolver.YoutubeDL") as mock_cls:
            ydl = mock_cls.return_value.__enter__.return_value
            ydl.extract_info.return_value = {"_type": "playlist", "entries": []}
            assert resolver._extract_url_sync(PLAYLIST_URL) == []

        params = mock_cls.call_args.kwargs["params"]
        assert params["extract_flat"] == "in_playlist"
        assert params["noplaylist"] is False
        assert params["playlistend"] == 25

    async def test_single_video_url_is_one_track(self, resolver, ydl):
        ydl.extract_info.return_value = {
            "id": "dQw4w9WgXcQ",
            "webpage_url": VIDEO_URL,
            "title": "Song",
        }

        tracks = await resolver.resolve(VIDEO_URL)

        assert [t.id.value for t in tracks] == ["dQw4w9WgXcQ"]


class TestResolveStream:
    async def test_direct_url_gets_youtube_headers(self, resolver):
        with patch.object(
            resolver,
            "_extract_info_sync",
            return_value=info(webpage_url=VIDEO_URL, url="https://rr1.googlevideo.com/a"),
        ):
            stream = await resolver.resolve_stream(make_track("dQw4w9WgXcQ"))

        assert stream.url == "https://rr1.googlevideo.com/a"
        assert stream.headers["Referer"] == "https://www.youtube.com/"
        assert stream.headers["User-Agent"] == UA

    async def test_falls_back_to_last_audio_format(self, resolver):
        formats = [
            {"url": "https://cdn.example/low", "acodec": "opus"},
            {"url": "https://cdn.example/video", "acodec": "none"},
            {"url": "https://cdn.example/high", "acodec": "opus", "http_headers": {"X": "1"}},
        ]
        with patch.object(resolver, "_extract_info_sync", return_value=info(formats=formats)):
            stream = await resolver.resolve_stream(make_track("a"))

        assert stream.url == "https://cdn.example/high"
        assert stream.headers == {"X": "1"}

    async def test_non_http_stream_url_is_a_resolution_error(self, resolver):
        with pytest.raises(ResolutionError):
            resolver._info_to_stream(info(url="rtmp://live.example/a"), query=VIDEO_URL)

    async def test_no_playable_format(self, resolver):
        with patch.object(resolver, "_extract_info_sync", return_value=info(formats=[])):
            with pytest.raises(ResolutionError):
                await resolver.resolve_stream(make_track("a"))


class TestRelated:
    async def test_skips_seed_and_marks_autoplay(self, resolver):
        seed = make_track("dQw4w9WgXcQ", artist="Rick Astley", title="Never Gonna")
        with patch.object(
            resolver,
            "_search_sync",
            return_value=[info(id="dQw4w9WgXcQ"), info(id="abcdefghijk", title="Together")],
        ) as search:
            track = await resolver.related(seed)

        search.assert_called_once_with("Rick Astley Never Gonna related", 5)
        assert track.id.value == "abcdefghijk"
        assert track.is_from_autoplay is True

    async def test_nothing_related(self, resolver):
        with patch.object(resolver, "_search_sync", return_value=[info(id="dQw4w9WgXcQ")]):
            assert await resolver.related(make_track("dQw4w9WgXcQ")) is None
