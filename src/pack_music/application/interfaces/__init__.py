"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from pack_music.application.interfaces.audio_resolver import AudioResolver, ResolutionError
from pack_music.application.interfaces.autoplay_source import AutoplaySource
from pack_music.application.interfaces.stream_resolver import StreamResolver
from pack_music.application.interfaces.voice_adapter import TrackEndCallback, VoiceAdapter

__all__ = [
    "AudioResolver",
    "AutoplaySource",
    "ResolutionError",
    "StreamResolver",
    "TrackEndCallback",
    "VoiceAdapter",
]
