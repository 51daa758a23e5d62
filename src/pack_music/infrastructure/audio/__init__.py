"""Audio infrastructure - yt-dlp lookups and stream resolution."""

from pack_music.infrastructure.audio.models import AudioFormatInfo, YtDlpOpts, YtDlpTrackInfo
from pack_music.infrastructure.audio.ytdlp_resolver import YtDlpResolver, youtube_headers

__all__ = [
    "AudioFormatInfo",
    "YtDlpOpts",
    "YtDlpResolver",
    "YtDlpTrackInfo",
    "youtube_headers",
]
