"""
Music Domain Repository Interfaces

Abstract base class defining the contract for guild session bookkeeping.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod

from discord_jukebox.domain.music.entities import GuildSession


class SessionStore(ABC):
    """Abstract store mapping guild IDs to their live GuildSession.

    A store holds at most one session per guild and owns no external
    resources; it never touches voice connections.
    """

    @abstractmethod
    async def get(self, guild_id: int) -> GuildSession | None:
        """Retrieve a session by guild ID.

        Args:
            guild_id: The Discord guild ID.

        Returns:
            The session if found, None otherwise.
        """
        ...

    @abstractmethod
    async def get_or_create(
        self, guild_id: int, *, voice_channel_id: int, notify_channel_id: int
    ) -> GuildSession:
        """Get the existing session or create one with the given channels.

        The channel arguments are only used when a new session is created.

        Args:
            guild_id: The Discord guild ID.
            voice_channel_id: Voice channel the session connects to.
            notify_channel_id: Text channel status messages go to.

        Returns:
            The existing or newly created session.
        """
        ...

    @abstractmethod
    async def remove(self, guild_id: int) -> bool:
        """Remove a session by guild ID.

        Returns:
            True if a session was removed, False if none existed.
        """
        ...

    @abstractmethod
    async def exists(self, guild_id: int) -> bool:
        ...

    @abstractmethod
    async def all(self) -> list[GuildSession]:
        """Snapshot of every live session."""
        ...

    @abstractmethod
    async def count(self) -> int:
        ...
