"""Tests for the text channel notifier."""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from discord_jukebox.infrastructure.discord.notifier import DiscordChannelNotifier


@pytest.fixture
def channel():
    channel = MagicMock(spec=discord.TextChannel)
    channel.send = AsyncMock()
    return channel


class TestDiscordChannelNotifier:
    @pytest.mark.asyncio
    async def test_sends_embed_to_cached_channel(self, channel):
        bot = MagicMock()
        bot.get_channel.return_value = channel

        await DiscordChannelNotifier(bot).notify(20, "🎶 Now playing: lofi beats")

        bot.get_channel.assert_called_once_with(20)
        embed = channel.send.call_args.kwargs["embed"]
        assert embed.description == "🎶 Now playing: lofi beats"

    @pytest.mark.asyncio
    async def test_fetches_uncached_channel(self, channel):
        bot = MagicMock()
        bot.get_channel.return_value = None
        bot.fetch_channel = AsyncMock(return_value=channel)

        await DiscordChannelNotifier(bot).notify(20, "hello")

        bot.fetch_channel.assert_awaited_once_with(20)
        channel.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_channel_is_logged(self, caplog):
        bot = MagicMock()
        bot.get_channel.return_value = None
        bot.fetch_channel = AsyncMock(
            side_effect=discord.NotFound(MagicMock(status=404), "Unknown Channel")
        )

        await DiscordChannelNotifier(bot).notify(20, "hello")

        assert any("20" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_long_message_is_truncated(self, channel):
        bot = MagicMock()
        bot.get_channel.return_value = channel

        await DiscordChannelNotifier(bot).notify(20, "x" * 5000)

        embed = channel.send.call_args.kwargs["embed"]
        assert len(embed.description) == 4096

    @pytest.mark.asyncio
    async def test_send_failure_propagates(self, channel):
        bot = MagicMock()
        bot.get_channel.return_value = channel
        channel.send.side_effect = discord.HTTPException(MagicMock(status=500), "oops")

        with pytest.raises(discord.HTTPException):
            await DiscordChannelNotifier(bot).notify(20, "hello")
