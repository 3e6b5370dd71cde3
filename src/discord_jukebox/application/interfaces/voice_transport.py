"""Port interface for voice connections and audio players."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    import discord


class PlaybackListener(Protocol):
    """Receiver of player events. Exactly one event is emitted per played stream."""

    async def on_playback_idle(self, guild_id: int, player: Any = None) -> None:
        """The stream finished naturally or was force-stopped."""
        ...

    async def on_playback_error(
        self, guild_id: int, error: Exception, player: Any = None
    ) -> None:
        """The stream failed while playing."""
        ...


class VoiceTransport(ABC):
    """Interface for Discord voice channel operations.

    Connection and player handles are opaque to callers; they are only ever
    passed back into the transport that produced them.
    """

    @abstractmethod
    async def connect(self, voice_channel_id: int, guild_id: int) -> Any:
        """Join a voice channel and return the connection handle.

        Raises:
            VoiceConnectError: The channel could not be joined.
        """
        ...

    @abstractmethod
    async def disconnect(self, connection: Any) -> None:
        """Leave the voice channel held by ``connection``."""
        ...

    @abstractmethod
    def create_player(self, guild_id: int) -> Any:
        """Create an unbound audio player for a guild."""
        ...

    @abstractmethod
    def bind(self, player: Any, connection: Any) -> None:
        """Route the player's audio into the connection."""
        ...

    @abstractmethod
    async def destroy_player(self, player: Any) -> None:
        """Stop the player for good and drop its binding."""
        ...

    @abstractmethod
    def play(self, player: Any, stream: discord.AudioSource) -> None:
        """Start playing ``stream``; completion is reported to the listener.

        Raises:
            PlayerError: The player refused the stream.
        """
        ...

    @abstractmethod
    def pause(self, player: Any) -> bool:
        ...

    @abstractmethod
    def resume(self, player: Any) -> bool:
        ...

    @abstractmethod
    def stop(self, player: Any) -> bool:
        """Force-stop the current stream. Returns False if nothing was playing."""
        ...

    @abstractmethod
    def set_listener(self, listener: PlaybackListener) -> None:
        """Register the receiver of idle/error events."""
        ...
