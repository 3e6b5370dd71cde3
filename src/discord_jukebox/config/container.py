"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the session store, adapters and the playback
controller. Components are created on-demand and cached for reuse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.interfaces.notification_sink import NotificationSink
    from ..application.interfaces.source_resolver import SourceResolver
    from ..application.interfaces.voice_transport import VoiceTransport
    from ..application.services.playback_controller import PlaybackController
    from ..domain.music.repository import SessionStore
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed. The voice
    transport and notifier need the bot, so ``set_bot`` must be called first.
    """

    settings: Settings
    _bot: Bot | None = None

    _session_store: SessionStore | None = None
    _source_resolver: SourceResolver | None = None
    _voice_transport: VoiceTransport | None = None
    _notifier: NotificationSink | None = None
    _playback_controller: PlaybackController | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Stores ===

    @property
    def session_store(self) -> SessionStore:
        if self._session_store is None:
            from ..infrastructure.persistence.session_store import InMemorySessionStore

            self._session_store = InMemorySessionStore()
        return self._session_store

    # === Infrastructure Adapters ===

    @property
    def source_resolver(self) -> SourceResolver:
        """Get the yt-dlp source resolver."""
        if self._source_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpSourceResolver

            self._source_resolver = YtDlpSourceResolver(
                self.settings.audio, self.settings.resolver
            )
        return self._source_resolver

    @property
    def voice_transport(self) -> VoiceTransport:
        """Get the discord.py voice transport."""
        if self._voice_transport is None:
            from ..infrastructure.discord.adapters.voice_transport import (
                DiscordVoiceTransport,
            )

            self._voice_transport = DiscordVoiceTransport(self.bot, self.settings.audio)
        return self._voice_transport

    @property
    def notifier(self) -> NotificationSink:
        """Get the text channel notifier."""
        if self._notifier is None:
            from ..infrastructure.discord.notifier import DiscordChannelNotifier

            self._notifier = DiscordChannelNotifier(self.bot)
        return self._notifier

    # === Application Services ===

    @property
    def playback_controller(self) -> PlaybackController:
        """Get the playback controller."""
        if self._playback_controller is None:
            from ..application.services.playback_controller import PlaybackController

            self._playback_controller = PlaybackController(
                session_store=self.session_store,
                source_resolver=self.source_resolver,
                voice_transport=self.voice_transport,
                notifier=self.notifier,
                settings=self.settings.playback,
            )
        return self._playback_controller

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Build the controller so the transport listener is registered before any event."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        _ = self.playback_controller

    async def shutdown(self) -> None:
        """Stop every live session and release shared resources."""
        if self._playback_controller is not None:
            try:
                await self._playback_controller.shutdown()
            except Exception as exc:
                logger.warning(LogTemplates.CONTAINER_CONTROLLER_SHUTDOWN_FAILED, exc)

        if self._source_resolver is not None:
            close = getattr(self._source_resolver, "aclose", None)
            if close is not None:
                try:
                    await close()
                except Exception as exc:
                    logger.warning(LogTemplates.CONTAINER_RESOLVER_CLOSE_FAILED, exc)


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
