"""Discord voice transport implementing VoiceTransport over discord.py VoiceClient."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import discord

from discord_jukebox.application.interfaces.voice_transport import VoiceTransport
from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.domain.shared.exceptions import PlayerError, VoiceConnectError
from discord_jukebox.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ....application.interfaces.voice_transport import PlaybackListener

logger = logging.getLogger(__name__)


class GuildAudioPlayer:
    """Player handle for one guild: the VoiceClient it is bound to, if any."""

    __slots__ = ("guild_id", "voice_client", "destroyed")

    def __init__(self, guild_id: int) -> None:
        self.guild_id = guild_id
        self.voice_client: discord.VoiceClient | None = None
        self.destroyed = False

    def __repr__(self) -> str:
        return f"<GuildAudioPlayer guild={self.guild_id} destroyed={self.destroyed}>"


class DiscordVoiceTransport(VoiceTransport):
    def __init__(self, bot: discord.Client, settings: AudioSettings | None = None) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()
        self._listener: PlaybackListener | None = None

    def set_listener(self, listener: PlaybackListener) -> None:
        self._listener = listener

    # ─────────────────────────────────────────────────────────────────
    # Connections
    # ─────────────────────────────────────────────────────────────────

    async def connect(self, voice_channel_id: int, guild_id: int) -> discord.VoiceClient:
        guild = self._bot.get_guild(guild_id)
        if guild is None:
            raise VoiceConnectError(voice_channel_id, f"guild {guild_id} not found")

        channel = guild.get_channel(voice_channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            raise VoiceConnectError(voice_channel_id, "not a voice channel")

        stale = guild.voice_client
        if stale is not None:
            logger.warning(LogTemplates.VOICE_STALE_CLEANUP, guild_id)
            await stale.disconnect(force=True)

        try:
            async with asyncio.timeout(self._settings.connect_timeout_s):
                voice_client = await channel.connect(self_deaf=True)
        except TimeoutError as exc:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, voice_channel_id)
            raise VoiceConnectError(voice_channel_id, "timed out") from exc
        except discord.Forbidden as exc:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, voice_channel_id)
            raise VoiceConnectError(voice_channel_id, "missing permission") from exc
        except discord.ClientException as exc:
            raise VoiceConnectError(voice_channel_id, str(exc)) from exc

        logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
        return voice_client

    async def disconnect(self, connection: discord.VoiceClient) -> None:
        await connection.disconnect(force=True)
        logger.info(LogTemplates.VOICE_DISCONNECTED, connection.guild.id)

    # ─────────────────────────────────────────────────────────────────
    # Players
    # ─────────────────────────────────────────────────────────────────

    def create_player(self, guild_id: int) -> GuildAudioPlayer:
        logger.debug(LogTemplates.PLAYER_CREATED, guild_id)
        return GuildAudioPlayer(guild_id)

    def bind(self, player: GuildAudioPlayer, connection: discord.VoiceClient) -> None:
        player.voice_client = connection

    async def destroy_player(self, player: GuildAudioPlayer) -> None:
        player.destroyed = True
        vc, player.voice_client = player.voice_client, None
        if vc is not None and (vc.is_playing() or vc.is_paused()):
            vc.stop()
        logger.debug(LogTemplates.PLAYER_DESTROYED, player.guild_id)

    def play(self, player: GuildAudioPlayer, stream: discord.AudioSource) -> None:
        vc = player.voice_client
        if player.destroyed or vc is None or not vc.is_connected():
            raise PlayerError(player.guild_id, "not connected to voice")

        loop = asyncio.get_running_loop()

        def after_callback(error: Exception | None = None) -> None:
            # Runs on discord.py's audio thread.
            if player.destroyed:
                return
            asyncio.run_coroutine_threadsafe(self._dispatch(player, error), loop)

        try:
            vc.play(stream, after=after_callback)
        except discord.ClientException as exc:
            raise PlayerError(player.guild_id, str(exc)) from exc

    def pause(self, player: GuildAudioPlayer) -> bool:
        vc = player.voice_client
        if vc is None or not vc.is_playing():
            return False
        vc.pause()
        return True

    def resume(self, player: GuildAudioPlayer) -> bool:
        vc = player.voice_client
        if vc is None or not vc.is_paused():
            return False
        vc.resume()
        return True

    def stop(self, player: GuildAudioPlayer) -> bool:
        vc = player.voice_client
        if vc is None or not (vc.is_playing() or vc.is_paused()):
            return False
        vc.stop()
        return True

    async def _dispatch(self, player: GuildAudioPlayer, error: Exception | None) -> None:
        """Hand a finished stream to the listener on the event loop."""
        listener = self._listener
        if listener is None:
            logger.warning(LogTemplates.PLAYER_EVENT_DISPATCH_FAILED, player.guild_id)
            return

        try:
            if error is not None:
                await listener.on_playback_error(player.guild_id, error, player)
            else:
                await listener.on_playback_idle(player.guild_id, player)
        except Exception as e:
            logger.error(LogTemplates.PLAYER_CALLBACK_ERROR, player.guild_id, e)
