"""Base exception classes for domain-level errors.

Every failure a subscription operation can report is a ``DomainError``
subclass with a stable ``code``. Commands raise them *before* touching any
state, so a rejected command never leaves a half-applied mutation behind.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


class InvalidPositionError(DomainError):
    """Raised when a 1-based queue position does not address a queued track."""

    def __init__(self, position: int, length: int) -> None:
        super().__init__(
            f"Position {position} is not valid for a queue of {length} track(s)",
            code="INVALID_POSITION",
        )
        self.position = position
        self.length = length


class NoOpError(DomainError):
    """Raised when a command would leave the state exactly as it is."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        super().__init__(message or f"'{operation}' would change nothing", code="NO_OP")
        self.operation = operation


class EmptyQueueError(DomainError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "The queue is empty", code="EMPTY_QUEUE")


class NoHistoryError(DomainError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "There is no previously played track", code="NO_HISTORY")


class NoActiveTrackError(DomainError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "Nothing is playing", code="NO_ACTIVE_TRACK")


class OutOfRangeError(DomainError):
    """Raised when a numeric argument falls outside its allowed bounds."""

    def __init__(self, value: float, low: float, high: float | None) -> None:
        upper = "∞" if high is None else str(high)
        super().__init__(f"{value} is outside [{low}, {upper}]", code="OUT_OF_RANGE")
        self.value = value
        self.low = low
        self.high = high


class NotPlayingError(DomainError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "The player is not playing anything", code="NOT_PLAYING")


class StreamResolutionFailedError(DomainError):
    """Raised when advance gave up after repeated stream resolution failures."""

    def __init__(self, attempts: int, last_error: Exception | None = None) -> None:
        super().__init__(
            f"Could not open a stream after {attempts} attempt(s)",
            code="STREAM_RESOLUTION_FAILED",
        )
        self.attempts = attempts
        self.last_error = last_error


class SubscriptionBusyError(DomainError):
    """Raised when the subscription lock could not be acquired in time."""

    def __init__(self, guild_id: int, timeout: float) -> None:
        super().__init__(
            f"Guild {guild_id} is busy, try again in a moment",
            code="SUBSCRIPTION_BUSY",
        )
        self.guild_id = guild_id
        self.timeout = timeout


class NotConnectedError(DomainError):
    """Raised when a guild has no active subscription or voice join failed."""

    def __init__(self, guild_id: int, message: str | None = None) -> None:
        super().__init__(message or f"Guild {guild_id} has no active voice session", code="NOT_CONNECTED")
        self.guild_id = guild_id
