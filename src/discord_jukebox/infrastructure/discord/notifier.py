"""NotificationSink that posts status embeds to a guild text channel."""

from __future__ import annotations

import logging

import discord

from discord_jukebox.application.interfaces.notification_sink import NotificationSink
from discord_jukebox.domain.shared.messages import LogTemplates
from discord_jukebox.utils.reply import truncate

logger = logging.getLogger(__name__)

EMBED_DESCRIPTION_LIMIT = 4096


class DiscordChannelNotifier(NotificationSink):
    def __init__(self, bot: discord.Client) -> None:
        self._bot = bot

    async def _resolve_channel(self, channel_id: int) -> discord.abc.Messageable | None:
        channel = self._bot.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self._bot.fetch_channel(channel_id)
            except (discord.NotFound, discord.Forbidden):
                return None
        return channel if isinstance(channel, discord.abc.Messageable) else None

    async def notify(self, channel_id: int, message: str) -> None:
        channel = await self._resolve_channel(channel_id)
        if channel is None:
            logger.warning(LogTemplates.NOTIFY_CHANNEL_NOT_FOUND, channel_id)
            return

        embed = discord.Embed(
            description=truncate(message, EMBED_DESCRIPTION_LIMIT),
            color=discord.Color.blurple(),
        )
        await channel.send(embed=embed)
