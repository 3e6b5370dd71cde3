"""Adapters implementing application ports over discord.py."""

from discord_jukebox.infrastructure.discord.adapters.voice_transport import (
    DiscordVoiceTransport,
    GuildAudioPlayer,
)

__all__ = ["DiscordVoiceTransport", "GuildAudioPlayer"]
