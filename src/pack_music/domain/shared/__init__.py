"""
Shared Domain Kernel

Contains exceptions, constrained types and the event bus shared across layers.
"""

from pack_music.domain.shared.exceptions import (
    DomainError,
    EmptyQueueError,
    InvalidOperationError,
    InvalidPositionError,
    NoActiveTrackError,
    NoHistoryError,
    NoOpError,
    NotConnectedError,
    NotPlayingError,
    OutOfRangeError,
    StreamResolutionFailedError,
    SubscriptionBusyError,
)

__all__ = [
    "DomainError",
    "InvalidOperationError",
    "InvalidPositionError",
    "NoOpError",
    "EmptyQueueError",
    "NoHistoryError",
    "NoActiveTrackError",
    "OutOfRangeError",
    "NotPlayingError",
    "StreamResolutionFailedError",
    "SubscriptionBusyError",
    "NotConnectedError",
]
