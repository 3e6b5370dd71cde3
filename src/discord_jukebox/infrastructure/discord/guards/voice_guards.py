"""Reusable voice-channel guard functions for prefix commands.

These are free functions that accept explicit dependencies rather than relying
on a specific cog instance, making them usable from any cog.
"""

from __future__ import annotations

import discord
from discord.ext import commands

from discord_jukebox.domain.shared.messages import DiscordUIMessages

REQUIRED_VOICE_PERMISSIONS: tuple[str, ...] = ("connect", "speak")


async def get_member(ctx: commands.Context) -> discord.Member | None:
    """Return the invoking guild member, replying with an error outside a guild."""
    if ctx.guild is None or not isinstance(ctx.author, discord.Member):
        await ctx.reply(DiscordUIMessages.STATE_SERVER_ONLY)
        return None
    return ctx.author


def member_voice_channel(
    member: discord.Member,
) -> discord.VoiceChannel | discord.StageChannel | None:
    if member.voice is None or member.voice.channel is None:
        return None
    channel = member.voice.channel
    return channel if isinstance(channel, discord.VoiceChannel | discord.StageChannel) else None


def missing_voice_permissions(
    channel: discord.VoiceChannel | discord.StageChannel, me: discord.Member
) -> list[str]:
    """Names of the permissions the bot lacks to stream into ``channel``."""
    permissions = channel.permissions_for(me)
    return [name for name in REQUIRED_VOICE_PERMISSIONS if not getattr(permissions, name)]


async def ensure_voice_capability(
    ctx: commands.Context, channel: discord.VoiceChannel | discord.StageChannel
) -> bool:
    """Check the bot may connect and speak in ``channel``. Replies with what is missing."""
    assert ctx.guild is not None

    missing = missing_voice_permissions(channel, ctx.guild.me)
    if not missing:
        return True

    readable = ", ".join(name.replace("_", " ").title() for name in missing)
    await ctx.reply(DiscordUIMessages.ERROR_BOT_MISSING_PERMISSIONS.format(missing=readable))
    return False
