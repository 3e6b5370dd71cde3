"""Core domain entities for the music bounded context."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from discord_jukebox.domain.music.value_objects import SessionState
from discord_jukebox.domain.shared.exceptions import InvalidOperationError, QueueFullError
from discord_jukebox.domain.shared.types import (
    DiscordSnowflake,
    DurationSeconds,
    HttpUrlStr,
    NonEmptyStr,
    SongTitleStr,
)


def utcnow() -> datetime:
    return datetime.now(UTC)


class SongRequest(BaseModel):
    """Immutable request for one song, as produced by the source resolver."""

    model_config = ConfigDict(frozen=True, strict=True)

    title: SongTitleStr
    source_ref: NonEmptyStr
    webpage_url: HttpUrlStr | None = None
    duration_seconds: DurationSeconds | None = None

    # Request metadata (set when queued)
    requested_by_id: DiscordSnowflake | None = None
    requested_by_name: NonEmptyStr | None = None

    @property
    def duration_formatted(self) -> str:
        """Format duration as MM:SS or HH:MM:SS."""
        if self.duration_seconds is None:
            return "Unknown"

        hours, remainder = divmod(self.duration_seconds, 3600)
        minutes, seconds = divmod(remainder, 60)

        if hours > 0:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes}:{seconds:02d}"

    @property
    def display_title(self) -> str:
        if self.duration_seconds:
            return f"{self.title} [{self.duration_formatted}]"
        return self.title

    def with_requester(self, user_id: int | None, user_name: str | None) -> SongRequest:
        """Return a copy of this request stamped with who asked for it."""
        if user_id is None and user_name is None:
            return self
        return self.model_copy(
            update={"requested_by_id": user_id, "requested_by_name": user_name}
        )


@dataclass(frozen=True)
class VoiceHandles:
    """The voice connection and its bound player, owned together.

    Holding both in one value makes "connection without player" (or the
    reverse) unrepresentable on a session.
    """

    connection: Any
    player: Any
    release: Callable[[], Awaitable[None]] = field(repr=False, compare=False)


class GuildSession(BaseModel):
    """Aggregate root tracking one guild's queue and voice resources."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    guild_id: DiscordSnowflake
    voice_channel_id: DiscordSnowflake
    notify_channel_id: DiscordSnowflake
    queue: list[SongRequest] = Field(default_factory=list)
    voice: VoiceHandles | None = None
    state: SessionState = SessionState.CONNECTING
    songs_started: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    last_activity: datetime = Field(default_factory=utcnow)

    @property
    def connection_handle(self) -> Any:
        return self.voice.connection if self.voice else None

    @property
    def player_handle(self) -> Any:
        return self.voice.player if self.voice else None

    @property
    def head(self) -> SongRequest | None:
        return self.queue[0] if self.queue else None

    @property
    def queue_length(self) -> int:
        return len(self.queue)

    @property
    def is_playing(self) -> bool:
        return self.state == SessionState.PLAYING

    @property
    def is_paused(self) -> bool:
        return self.state == SessionState.PAUSED

    @property
    def has_started(self) -> bool:
        """True once any song of this session reached the player."""
        return self.songs_started > 0

    def touch(self) -> None:
        self.last_activity = utcnow()

    def enqueue(self, song: SongRequest, *, limit: int | None = None) -> int:
        """Append a song to the tail and return its 1-based position."""
        if limit is not None and len(self.queue) >= limit:
            raise QueueFullError(limit)
        self.queue.append(song)
        self.touch()
        return len(self.queue)

    def drop_head(self) -> SongRequest | None:
        """Remove and return the head of the queue."""
        if not self.queue:
            return None
        song = self.queue.pop(0)
        self.touch()
        return song

    def clear_queue(self) -> int:
        """Clear all songs from the queue and return the count removed."""
        count = len(self.queue)
        self.queue.clear()
        self.touch()
        return count

    def titles(self) -> list[str]:
        return [song.title for song in self.queue]

    def attach_voice(self, handles: VoiceHandles) -> None:
        if self.voice is not None:
            raise InvalidOperationError(
                operation="attach voice",
                current_state=self.state.value,
                message=f"Guild {self.guild_id} already owns a voice connection",
            )
        self.voice = handles
        self.touch()

    def detach_voice(self) -> VoiceHandles | None:
        """Hand back ownership of the voice handles, leaving none attached."""
        handles, self.voice = self.voice, None
        return handles

    def transition_to(self, new_state: SessionState) -> None:
        if not self.state.can_transition_to(new_state):
            raise InvalidOperationError(
                operation=f"transition to {new_state.value}",
                current_state=self.state.value,
                message=f"Cannot transition from {self.state.value} to {new_state.value}",
            )
        self.state = new_state
        self.touch()

    def mark_started(self) -> None:
        self.transition_to(SessionState.PLAYING)
        self.songs_started += 1

    def pause(self) -> None:
        self.transition_to(SessionState.PAUSED)

    def resume(self) -> None:
        self.transition_to(SessionState.PLAYING)

    def begin_drain(self) -> None:
        """Enter DRAINING from any live state; a no-op if already draining."""
        if self.state != SessionState.DRAINING:
            self.transition_to(SessionState.DRAINING)
