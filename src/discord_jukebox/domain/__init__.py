"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Cross-cutting types, messages and exceptions
- music/: Song requests, guild sessions and the session state machine
"""

from discord_jukebox.domain.music import GuildSession, SessionState, SongRequest
from discord_jukebox.domain.shared import DomainError

__all__ = ["DomainError", "GuildSession", "SessionState", "SongRequest"]
