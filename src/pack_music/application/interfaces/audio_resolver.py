"""Port interface for resolving user queries and URLs to tracks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pack_music.domain.shared.exceptions import DomainError
from pack_music.domain.shared.types import NonEmptyStr, PositiveInt

if TYPE_CHECKING:
    from ...domain.music.entities import Track


class ResolutionError(DomainError):
    """Raised by resolver adapters when a query or stream cannot be resolved."""

    def __init__(self, message: str, query: str | None = None) -> None:
        super().__init__(message, code="RESOLUTION_ERROR")
        self.query = query


class AudioResolver(ABC):
    """Interface for turning URLs and search terms into tracks."""

    @abstractmethod
    async def resolve(self, query: NonEmptyStr) -> list["Track"]:
        """Resolve a URL or search query to tracks.

        A playlist URL yields every entry in playlist order; a search yields
        its best match. Nothing found is an empty list.
        """
        ...

    @abstractmethod
    async def search(self, query: NonEmptyStr, limit: PositiveInt = 5) -> list["Track"]:
        ...

    @abstractmethod
    def is_url(self, query: NonEmptyStr) -> bool:
        ...
