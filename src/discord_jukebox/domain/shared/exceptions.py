"""Exception taxonomy for domain-level and playback errors."""

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


# ── Command validation ──────────────────────────────────────────────
# Surfaced to the user as a reply, never retried.


class NoVoiceChannelError(DomainError):
    """The invoking member is not in a voice channel."""

    def __init__(self, message: str = "You need to be in a voice channel to play music.") -> None:
        super().__init__(message, code="NO_VOICE_CHANNEL")


class NothingPlayingError(DomainError):
    """The guild has no active playback session."""

    def __init__(self, guild_id: int, message: str = "Nothing is playing right now.") -> None:
        super().__init__(message, code="NOTHING_PLAYING")
        self.guild_id = guild_id


class EmptyQueueError(DomainError):
    """The guild's queue has no songs in it."""

    def __init__(self, guild_id: int, message: str = "The queue is empty.") -> None:
        super().__init__(message, code="EMPTY_QUEUE")
        self.guild_id = guild_id


class QueueFullError(DomainError):
    """The guild's queue has reached its configured size limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"The queue is full (max {limit} songs).", code="QUEUE_FULL")
        self.limit = limit


class PlayCancelledError(DomainError):
    """The guild was stopped while the requested song was still being looked up."""

    def __init__(self, title: str) -> None:
        super().__init__(
            f"Playback was stopped before '{title}' could be queued.", code="PLAY_CANCELLED"
        )
        self.title = title


# ── Source resolution ───────────────────────────────────────────────


class SourceNotFoundError(DomainError):
    """Resolution finished but produced nothing playable."""

    def __init__(self, query: str) -> None:
        super().__init__(f"Couldn't find anything for: {query}", code="SOURCE_NOT_FOUND")
        self.query = query


class SourceResolutionError(DomainError):
    """The resolver failed (network, extractor or lookup error)."""

    def __init__(self, query: str, reason: str | None = None) -> None:
        msg = f"Failed to look up '{query}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg, code="SOURCE_RESOLUTION_ERROR")
        self.query = query
        self.reason = reason


class StreamOpenError(DomainError):
    """A media stream could not be opened for a resolved song."""

    def __init__(self, source_ref: str, reason: str | None = None, title: str | None = None) -> None:
        label = title or source_ref
        msg = f"Couldn't open a stream for '{label}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg, code="STREAM_OPEN_ERROR")
        self.source_ref = source_ref
        self.reason = reason


# ── Voice transport ─────────────────────────────────────────────────


class VoiceConnectError(DomainError):
    """Joining the voice channel failed."""

    def __init__(self, channel_id: int, reason: str | None = None) -> None:
        msg = f"Couldn't join voice channel {channel_id}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg, code="VOICE_CONNECT_ERROR")
        self.channel_id = channel_id
        self.reason = reason


class PlayerError(DomainError):
    """The audio player rejected an operation."""

    def __init__(self, guild_id: int, reason: str) -> None:
        super().__init__(f"Audio player error in guild {guild_id}: {reason}", code="PLAYER_ERROR")
        self.guild_id = guild_id
        self.reason = reason
