"""Port interface for opening a playable stream for a track."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.music.entities import ResolvedStream, Track


class StreamResolver(ABC):
    @abstractmethod
    async def resolve_stream(self, track: "Track") -> "ResolvedStream":
        """Return a fresh stream URL plus headers for *track*.

        Raises:
            ResolutionError: If no playable stream could be produced.
        """
        ...
