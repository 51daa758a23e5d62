# ruff: noqa: N999
"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Exceptions, constrained types, messages and the event bus
- music/: Track, queue/history and playback state
- guild/: Per-guild profile defaults
"""

from pack_music.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
