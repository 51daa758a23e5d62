import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from pack_music.application.interfaces.audio_resolver import ResolutionError
from pack_music.application.interfaces.autoplay_source import AutoplaySource
from pack_music.application.interfaces.stream_resolver import StreamResolver
from pack_music.application.interfaces.voice_adapter import VoiceAdapter
from pack_music.domain.music.entities import ResolvedStream, Track
from pack_music.domain.music.value_objects import TrackId

GUILD_ID = 987654321
CHANNEL_ID = 123456789


# ============================================================================
# Builders
# ============================================================================


def make_track(track_id: str = "t1", *, duration: int | None = 180, **overrides) -> Track:
    data = {
        "id": TrackId(track_id),
        "title": f"Track {track_id}",
        "webpage_url": f"https://www.youtube.com/watch?v={track_id}",
        "duration_seconds": duration,
        "artist": "Test Artist",
    }
    data.update(overrides)
    return Track(**data)


def make_stream(track_id: str = "t1") -> ResolvedStream:
    return ResolvedStream(url=f"https://cdn.example/{track_id}.webm")


# ============================================================================
# Port fakes
# ============================================================================


class FakeVoiceAdapter(VoiceAdapter):
    """Records every call; ``finish()`` simulates the player reaching the end."""

    def __init__(self) -> None:
        self.connected: dict[int, int] = {}
        self.plays: list[dict] = []
        self.stops = 0
        self.paused = 0
        self.resumed = 0
        self.volumes: list[float] = []
        self.listeners: list[int] = [42]
        self.play_result = True
        self.play_error: Exception | None = None
        self.connect_result = True

    async def connect(self, guild_id: int, channel_id: int) -> bool:
        if self.connect_result:
            self.connected[guild_id] = channel_id
        return self.connect_result

    async def disconnect(self, guild_id: int) -> bool:
        return self.connected.pop(guild_id, None) is not None

    async def play(
        self, guild_id, stream, *, volume, on_end, start_seconds=None, filters=()
    ) -> bool:
        if self.play_error is not None:
            raise self.play_error
        if not self.play_result:
            return False
        self.plays.append(
            {
                "stream": stream,
                "volume": volume,
                "on_end": on_end,
                "start_seconds": start_seconds,
                "filters": tuple(filters),
            }
        )
        return True

    async def stop(self, guild_id: int) -> bool:
        self.stops += 1
        return True

    async def pause(self, guild_id: int) -> bool:
        self.paused += 1
        return True

    async def resume(self, guild_id: int) -> bool:
        self.resumed += 1
        return True

    def set_volume(self, guild_id: int, volume: float) -> bool:
        self.volumes.append(volume)
        return True

    def is_connected(self, guild_id: int) -> bool:
        return guild_id in self.connected

    def get_current_channel_id(self, guild_id: int) -> int | None:
        return self.connected.get(guild_id)

    async def get_listeners(self, guild_id: int) -> list[int]:
        return list(self.listeners)

    @property
    def last_url(self) -> str | None:
        return self.plays[-1]["stream"].url if self.plays else None

    def finish(self, index: int = -1, error: Exception | None = None) -> None:
        self.plays[index]["on_end"](error)


class FakeStreamResolver(StreamResolver):
    """Resolves ``https://cdn.example/<id>.webm``; ids in ``failing`` raise."""

    def __init__(self) -> None:
        self.failing: set[str] = set()
        self.calls: list[str] = []
        self.gate: asyncio.Event | None = None

    async def resolve_stream(self, track: Track) -> ResolvedStream:
        self.calls.append(track.id.value)
        if self.gate is not None:
            await self.gate.wait()
        if track.id.value in self.failing:
            raise ResolutionError("unavailable", query=track.webpage_url)
        return make_stream(track.id.value)


class FakeAutoplaySource(AutoplaySource):
    def __init__(self) -> None:
        self.next_track: Track | None = None
        self.error: Exception | None = None
        self.seeds: list[Track] = []

    async def related(self, track: Track) -> Track | None:
        self.seeds.append(track)
        if self.error is not None:
            raise self.error
        return self.next_track


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def voice():
    return FakeVoiceAdapter()


@pytest.fixture
def resolver():
    return FakeStreamResolver()


@pytest.fixture
def autoplay_source():
    return FakeAutoplaySource()


@pytest.fixture
def event_bus():
    from pack_music.domain.shared.events import EventBus

    return EventBus()


@pytest.fixture
def published(event_bus):
    """Every domain event published on ``event_bus``, in order."""
    from pack_music.domain.shared.events import (
        PlaybackFailed,
        QueueExhausted,
        SubscriptionCreated,
        SubscriptionDestroyed,
        TrackStarted,
    )

    events: list = []

    async def record(event) -> None:
        events.append(event)

    for event_type in (
        TrackStarted,
        QueueExhausted,
        PlaybackFailed,
        SubscriptionCreated,
        SubscriptionDestroyed,
    ):
        event_bus.subscribe(event_type, record)
    return events


@pytest_asyncio.fixture
async def subscription(voice, resolver, autoplay_source, event_bus):
    import random

    from pack_music.application.services.prefetch_cache import PrefetchCache
    from pack_music.application.services.subscription import Subscription
    from pack_music.application.services.subscription_models import SubscriptionOptions

    sub = Subscription(
        GUILD_ID,
        CHANNEL_ID,
        voice_adapter=voice,
        stream_resolver=resolver,
        autoplay_source=autoplay_source,
        prefetch_cache=PrefetchCache(resolver),
        event_bus=event_bus,
        options=SubscriptionOptions(lock_timeout_s=0.2),
        rng=random.Random(1234),
    )
    sub.start()
    yield sub
    await sub.destroy()


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from pack_music.infrastructure.persistence.database import Database

    db = Database(":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def profile_repository(in_memory_database):
    from pack_music.infrastructure.persistence.repositories.guild_profile_repository import (
        SQLiteGuildProfileRepository,
    )

    return SQLiteGuildProfileRepository(in_memory_database)


# ============================================================================
# Discord mocks
# ============================================================================


@pytest.fixture
def interaction():
    """Slash-command interaction from a member sitting in voice channel 333."""
    import discord

    i = MagicMock(spec=discord.Interaction)
    responded = {"done": False}

    async def mark_done(*args, **kwargs) -> None:
        responded["done"] = True

    i.response = MagicMock()
    i.response.is_done.side_effect = lambda: responded["done"]
    i.response.send_message = AsyncMock(side_effect=mark_done)
    i.response.defer = AsyncMock(side_effect=mark_done)
    i.followup = MagicMock()
    i.followup.send = AsyncMock()

    i.guild = MagicMock()
    i.guild.id = GUILD_ID

    member = MagicMock(spec=discord.Member)
    member.id = 222
    member.bot = False
    member.display_name = "TestUser"
    member.name = "testuser"
    member.voice = MagicMock()
    member.voice.channel = MagicMock()
    member.voice.channel.id = CHANNEL_ID
    i.user = member
    return i


def sent_messages(interaction) -> list[str]:
    """Plain-text replies: direct responses first, then followups."""
    calls = interaction.response.send_message.call_args_list + interaction.followup.send.call_args_list
    return [c.args[0] for c in calls if c.args]


@pytest.fixture
def mock_container(subscription):
    container = MagicMock()
    container.registry = MagicMock()
    container.registry.get.return_value = subscription
    container.registry.join = AsyncMock(return_value=subscription)
    container.registry.leave = AsyncMock(return_value=True)
    container.registry.leave_if_alone = AsyncMock(return_value=False)
    container.ytdlp_resolver = MagicMock()
    container.ytdlp_resolver.resolve = AsyncMock()
    return container
