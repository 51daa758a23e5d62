"""Domain event bus for publishing and subscribing to events."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from pack_music.domain.music.value_objects import TrackId
from pack_music.domain.shared.datetime_utils import utcnow
from pack_music.domain.shared.messages import LogTemplates
from pack_music.domain.shared.types import (
    DiscordSnowflake,
    NonEmptyStr,
    NonNegativeInt,
    UtcDatetimeField,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="DomainEvent")
EventHandler = Callable[[T], Awaitable[None]]


class DomainEvent(BaseModel):
    """Base class for all domain events."""

    model_config = ConfigDict(frozen=True)

    event_id: NonEmptyStr = Field(default_factory=lambda: str(uuid4()))
    occurred_at: UtcDatetimeField = Field(default_factory=utcnow)


# === Playback Events ===


class TrackStarted(DomainEvent):
    guild_id: DiscordSnowflake
    track_id: TrackId
    track_title: str = ""
    start_seconds: NonNegativeInt = 0
    from_autoplay: bool = False


class QueueExhausted(DomainEvent):
    guild_id: DiscordSnowflake
    last_track_title: str | None = None


class PlaybackFailed(DomainEvent):
    guild_id: DiscordSnowflake
    attempts: NonNegativeInt
    reason: str = ""


# === Session Events ===


class SubscriptionCreated(DomainEvent):
    guild_id: DiscordSnowflake
    channel_id: DiscordSnowflake


class SubscriptionDestroyed(DomainEvent):
    guild_id: DiscordSnowflake
    reason: str = ""


# === Event Bus ===


class EventBus:
    """In-memory pub/sub event bus for domain events.

    Handlers are called concurrently. Exceptions in handlers are logged
    but do not prevent other handlers from running.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler[Any]]] = defaultdict(list)

    def subscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        self._handlers[event_type].append(handler)
        logger.debug("Subscribed handler to: %s", event_type.__name__)

    def unsubscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)
            logger.debug("Unsubscribed handler from %s", event_type.__name__)

    async def publish(self, event: DomainEvent) -> None:
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug("No handlers for %s", event_type.__name__)
            return

        async def safe_call(handler: EventHandler[Any]) -> None:
            try:
                await handler(event)
            except Exception:
                logger.exception(LogTemplates.EVENT_HANDLER_FAILED, handler, event_type.__name__)

        async with asyncio.TaskGroup() as tg:
            for handler in handlers:
                tg.create_task(safe_call(handler))

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
