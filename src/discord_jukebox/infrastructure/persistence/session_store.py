"""In-memory implementation of the session store."""

from __future__ import annotations

import logging

from discord_jukebox.domain.music.entities import GuildSession
from discord_jukebox.domain.music.repository import SessionStore
from discord_jukebox.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class InMemorySessionStore(SessionStore):
    """Process-local dict keyed by guild ID.

    Safe under the single event loop: no method awaits between reading and
    writing the mapping.
    """

    def __init__(self) -> None:
        self._sessions: dict[int, GuildSession] = {}

    async def get(self, guild_id: int) -> GuildSession | None:
        return self._sessions.get(guild_id)

    async def get_or_create(
        self, guild_id: int, *, voice_channel_id: int, notify_channel_id: int
    ) -> GuildSession:
        session = self._sessions.get(guild_id)
        if session is None:
            session = GuildSession(
                guild_id=guild_id,
                voice_channel_id=voice_channel_id,
                notify_channel_id=notify_channel_id,
            )
            self._sessions[guild_id] = session
            logger.debug(
                LogTemplates.SESSION_CREATED, guild_id, voice_channel_id, notify_channel_id
            )
        return session

    async def remove(self, guild_id: int) -> bool:
        removed = self._sessions.pop(guild_id, None) is not None
        if removed:
            logger.debug(LogTemplates.SESSION_REMOVED, guild_id)
        return removed

    async def exists(self, guild_id: int) -> bool:
        return guild_id in self._sessions

    async def all(self) -> list[GuildSession]:
        return list(self._sessions.values())

    async def count(self) -> int:
        return len(self._sessions)
