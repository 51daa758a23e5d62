"""Port interface for autoplay recommendations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.music.entities import Track


class AutoplaySource(ABC):
    @abstractmethod
    async def related(self, track: "Track") -> "Track | None":
        """Return one track related to *track*, or None when nothing fits."""
        ...
