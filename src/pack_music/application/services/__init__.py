"""Application services for the subscription core."""

from pack_music.application.services.prefetch_cache import PrefetchCache
from pack_music.application.services.subscription import Subscription
from pack_music.application.services.subscription_models import (
    EnqueueResult,
    SubscriptionOptions,
    SubscriptionSnapshot,
)
from pack_music.application.services.subscription_registry import SubscriptionRegistry

__all__ = [
    "EnqueueResult",
    "PrefetchCache",
    "Subscription",
    "SubscriptionOptions",
    "SubscriptionRegistry",
    "SubscriptionSnapshot",
]
