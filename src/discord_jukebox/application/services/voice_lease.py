"""Scoped acquisition of a guild's voice connection and audio player."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from contextlib import AsyncExitStack
from typing import TYPE_CHECKING, Any

from discord_jukebox.domain.music.entities import VoiceHandles
from discord_jukebox.domain.shared.exceptions import DomainError, VoiceConnectError
from discord_jukebox.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ..interfaces.voice_transport import VoiceTransport

logger = logging.getLogger(__name__)


def _logged(
    guild_id: int, what: str, action: Callable[[Any], Awaitable[None]]
) -> Callable[[Any], Awaitable[None]]:
    async def release(handle: Any) -> None:
        try:
            await action(handle)
        except Exception:
            logger.exception(LogTemplates.VOICE_RELEASE_FAILED, what, guild_id)

    return release


async def acquire_voice(
    transport: VoiceTransport, guild_id: int, voice_channel_id: int
) -> VoiceHandles:
    """Connect, create the player and bind it, or release whatever was acquired.

    The returned handles carry a ``release`` coroutine that destroys the
    player and then disconnects. Calling it more than once is harmless.
    """
    async with AsyncExitStack() as stack:
        try:
            connection = await transport.connect(voice_channel_id, guild_id)
            stack.push_async_callback(
                _logged(guild_id, "connection", transport.disconnect), connection
            )

            player = transport.create_player(guild_id)
            stack.push_async_callback(
                _logged(guild_id, "player", transport.destroy_player), player
            )

            transport.bind(player, connection)
        except DomainError:
            raise
        except Exception as exc:
            raise VoiceConnectError(voice_channel_id, str(exc)) from exc

        release_stack = stack.pop_all()

    logger.debug(LogTemplates.VOICE_ACQUIRED, guild_id, voice_channel_id)
    return VoiceHandles(connection=connection, player=player, release=release_stack.aclose)
