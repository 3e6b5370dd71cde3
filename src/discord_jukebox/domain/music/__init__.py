"""
Music Bounded Context

Domain logic for song requests, guild queues and voice session lifecycle.
"""

from discord_jukebox.domain.music.entities import GuildSession, SongRequest, VoiceHandles
from discord_jukebox.domain.music.repository import SessionStore
from discord_jukebox.domain.music.value_objects import (
    AdvanceReason,
    SessionState,
    TeardownReason,
)

__all__ = [
    "AdvanceReason",
    "GuildSession",
    "SessionState",
    "SessionStore",
    "SongRequest",
    "TeardownReason",
    "VoiceHandles",
]
