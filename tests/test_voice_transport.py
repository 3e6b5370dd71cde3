"""
Unit Tests for DiscordVoiceTransport

Tests for:
- Connecting (timeouts, permissions, stale voice clients)
- Player lifecycle (create, bind, destroy)
- Play / pause / resume / stop on the bound VoiceClient
- Delivering the after-callback to the playback listener
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.domain.shared.exceptions import PlayerError, VoiceConnectError
from discord_jukebox.infrastructure.discord.adapters.voice_transport import (
    DiscordVoiceTransport,
    GuildAudioPlayer,
)

GUILD_ID = 123
CHANNEL_ID = 456


@pytest.fixture
def voice_client():
    vc = MagicMock(spec=discord.VoiceClient)
    vc.guild.id = GUILD_ID
    vc.is_connected.return_value = True
    vc.is_playing.return_value = False
    vc.is_paused.return_value = False
    vc.disconnect = AsyncMock()
    return vc


@pytest.fixture
def channel(voice_client):
    channel = MagicMock(spec=discord.VoiceChannel)
    channel.id = CHANNEL_ID
    channel.name = "Music"
    channel.connect = AsyncMock(return_value=voice_client)
    return channel


@pytest.fixture
def guild(channel):
    guild = MagicMock()
    guild.id = GUILD_ID
    guild.name = "Test Guild"
    guild.voice_client = None
    guild.get_channel.return_value = channel
    return guild


@pytest.fixture
def bot(guild):
    bot = MagicMock()
    bot.get_guild.return_value = guild
    return bot


@pytest.fixture
def transport(bot):
    return DiscordVoiceTransport(bot, AudioSettings(connect_timeout_s=0.5))


@pytest.fixture
def bound_player(transport, voice_client):
    player = transport.create_player(GUILD_ID)
    transport.bind(player, voice_client)
    return player


# =============================================================================
# Connect / disconnect
# =============================================================================


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_returns_voice_client(self, transport, channel, voice_client):
        result = await transport.connect(CHANNEL_ID, GUILD_ID)

        assert result is voice_client
        channel.connect.assert_awaited_once_with(self_deaf=True)

    @pytest.mark.asyncio
    async def test_connect_unknown_guild(self, transport, bot):
        bot.get_guild.return_value = None

        with pytest.raises(VoiceConnectError, match="not found"):
            await transport.connect(CHANNEL_ID, GUILD_ID)

    @pytest.mark.asyncio
    async def test_connect_rejects_text_channel(self, transport, guild):
        guild.get_channel.return_value = MagicMock(spec=discord.TextChannel)

        with pytest.raises(VoiceConnectError, match="not a voice channel"):
            await transport.connect(CHANNEL_ID, GUILD_ID)

    @pytest.mark.asyncio
    async def test_connect_cleans_up_stale_voice_client(self, transport, guild):
        stale = MagicMock()
        stale.disconnect = AsyncMock()
        guild.voice_client = stale

        await transport.connect(CHANNEL_ID, GUILD_ID)

        stale.disconnect.assert_awaited_once_with(force=True)

    @pytest.mark.asyncio
    async def test_connect_timeout(self, transport, channel):
        async def hang(**kwargs):
            await asyncio.sleep(10)

        channel.connect = hang

        with pytest.raises(VoiceConnectError, match="timed out"):
            await transport.connect(CHANNEL_ID, GUILD_ID)

    @pytest.mark.asyncio
    async def test_connect_forbidden(self, transport, channel):
        channel.connect.side_effect = discord.Forbidden(MagicMock(status=403), "No permission")

        with pytest.raises(VoiceConnectError, match="missing permission"):
            await transport.connect(CHANNEL_ID, GUILD_ID)

    @pytest.mark.asyncio
    async def test_connect_client_exception(self, transport, channel):
        channel.connect.side_effect = discord.ClientException("Already connected to a voice channel.")

        with pytest.raises(VoiceConnectError, match="Already connected"):
            await transport.connect(CHANNEL_ID, GUILD_ID)

    @pytest.mark.asyncio
    async def test_disconnect_forces(self, transport, voice_client):
        await transport.disconnect(voice_client)

        voice_client.disconnect.assert_awaited_once_with(force=True)


# =============================================================================
# Players
# =============================================================================


class TestPlayer:
    def test_create_and_bind(self, transport, voice_client):
        player = transport.create_player(GUILD_ID)

        assert isinstance(player, GuildAudioPlayer)
        assert player.voice_client is None

        transport.bind(player, voice_client)

        assert player.voice_client is voice_client

    @pytest.mark.asyncio
    async def test_destroy_stops_audio_and_unbinds(self, transport, bound_player, voice_client):
        voice_client.is_playing.return_value = True

        await transport.destroy_player(bound_player)

        voice_client.stop.assert_called_once()
        assert bound_player.destroyed is True
        assert bound_player.voice_client is None

    @pytest.mark.asyncio
    async def test_play_hands_stream_to_voice_client(self, transport, bound_player, voice_client):
        stream = MagicMock(spec=discord.AudioSource)

        transport.play(bound_player, stream)

        assert voice_client.play.call_args[0][0] is stream
        assert callable(voice_client.play.call_args.kwargs["after"])

    @pytest.mark.asyncio
    async def test_play_when_disconnected_raises(self, transport, bound_player, voice_client):
        voice_client.is_connected.return_value = False

        with pytest.raises(PlayerError):
            transport.play(bound_player, MagicMock())

    @pytest.mark.asyncio
    async def test_play_after_destroy_raises(self, transport, bound_player):
        await transport.destroy_player(bound_player)

        with pytest.raises(PlayerError):
            transport.play(bound_player, MagicMock())

    @pytest.mark.asyncio
    async def test_play_client_exception_becomes_player_error(
        self, transport, bound_player, voice_client
    ):
        voice_client.play.side_effect = discord.ClientException("Already playing audio.")

        with pytest.raises(PlayerError, match="Already playing"):
            transport.play(bound_player, MagicMock())

    def test_pause_resume_stop(self, transport, bound_player, voice_client):
        assert transport.pause(bound_player) is False
        assert transport.stop(bound_player) is False

        voice_client.is_playing.return_value = True
        assert transport.pause(bound_player) is True
        voice_client.pause.assert_called_once()

        voice_client.is_playing.return_value = False
        voice_client.is_paused.return_value = True
        assert transport.resume(bound_player) is True
        voice_client.resume.assert_called_once()

        assert transport.stop(bound_player) is True
        voice_client.stop.assert_called_once()

    def test_unbound_player_operations_are_noops(self, transport):
        player = transport.create_player(GUILD_ID)

        assert transport.pause(player) is False
        assert transport.resume(player) is False
        assert transport.stop(player) is False


# =============================================================================
# Player events
# =============================================================================


class TestPlayerEvents:
    async def _play_and_finish(self, transport, player, voice_client, error=None):
        transport.play(player, MagicMock(spec=discord.AudioSource))
        after = voice_client.play.call_args.kwargs["after"]
        # discord.py calls this from its audio thread.
        await asyncio.to_thread(after, error)

    @pytest.mark.asyncio
    async def test_finished_stream_reports_idle(self, transport, bound_player, voice_client):
        done = asyncio.Event()
        listener = MagicMock()
        listener.on_playback_idle = AsyncMock(side_effect=lambda *args: done.set())
        listener.on_playback_error = AsyncMock()
        transport.set_listener(listener)

        await self._play_and_finish(transport, bound_player, voice_client)
        await asyncio.wait_for(done.wait(), timeout=1)

        listener.on_playback_idle.assert_awaited_once_with(GUILD_ID, bound_player)
        listener.on_playback_error.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_stream_reports_error(self, transport, bound_player, voice_client):
        done = asyncio.Event()
        error = RuntimeError("decoder died")
        listener = MagicMock()
        listener.on_playback_error = AsyncMock(side_effect=lambda *args: done.set())
        transport.set_listener(listener)

        await self._play_and_finish(transport, bound_player, voice_client, error)
        await asyncio.wait_for(done.wait(), timeout=1)

        listener.on_playback_error.assert_awaited_once_with(GUILD_ID, error, bound_player)

    @pytest.mark.asyncio
    async def test_destroyed_player_reports_nothing(self, transport, bound_player, voice_client):
        listener = MagicMock()
        listener.on_playback_idle = AsyncMock()
        transport.set_listener(listener)

        transport.play(bound_player, MagicMock(spec=discord.AudioSource))
        after = voice_client.play.call_args.kwargs["after"]
        await transport.destroy_player(bound_player)
        await asyncio.to_thread(after, None)
        await asyncio.sleep(0)

        listener.on_playback_idle.assert_not_called()

    @pytest.mark.asyncio
    async def test_listener_failure_is_logged(self, transport, bound_player, caplog):
        listener = MagicMock()
        listener.on_playback_idle = AsyncMock(side_effect=RuntimeError("boom"))
        transport.set_listener(listener)

        await transport._dispatch(bound_player, None)

        assert any("playback callback" in r.getMessage() for r in caplog.records)
