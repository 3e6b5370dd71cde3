"""Port interface for turning queries into songs and songs into audio streams."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import discord

    from ...domain.music.entities import SongRequest


class SourceResolver(ABC):
    """Interface for resolving free text, direct links and third-party links."""

    @abstractmethod
    async def resolve(self, query: str) -> SongRequest | None:
        """Resolve a query or link to a song.

        Returns None when the lookup succeeded but matched nothing.

        Raises:
            SourceResolutionError: The lookup itself failed.
        """
        ...

    @abstractmethod
    async def open_stream(self, source_ref: str) -> discord.AudioSource:
        """Open a playable audio stream for a previously resolved song.

        Raises:
            StreamOpenError: No stream could be obtained.
        """
        ...

    @abstractmethod
    def is_url(self, query: str) -> bool:
        ...
