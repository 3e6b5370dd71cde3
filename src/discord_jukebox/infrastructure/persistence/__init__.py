"""Session store implementations."""

from discord_jukebox.infrastructure.persistence.session_store import InMemorySessionStore

__all__ = ["InMemorySessionStore"]
