"""Voice channel guard functions for Discord cogs."""

from discord_jukebox.infrastructure.discord.guards.voice_guards import (
    ensure_voice_capability,
    get_member,
    member_voice_channel,
    missing_voice_permissions,
)

__all__ = [
    "ensure_voice_capability",
    "get_member",
    "member_voice_channel",
    "missing_voice_permissions",
]
