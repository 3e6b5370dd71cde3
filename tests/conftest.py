import asyncio
from typing import Any

import pytest

from discord_jukebox.application.interfaces.notification_sink import NotificationSink
from discord_jukebox.application.interfaces.source_resolver import SourceResolver
from discord_jukebox.application.interfaces.voice_transport import VoiceTransport
from discord_jukebox.domain.music.entities import SongRequest
from discord_jukebox.domain.shared.exceptions import (
    PlayerError,
    SourceResolutionError,
    StreamOpenError,
)

GUILD_ID = 111111111111111111
OTHER_GUILD_ID = 222222222222222222
VOICE_CHANNEL_ID = 333333333333333333
TEXT_CHANNEL_ID = 444444444444444444
USER_ID = 555555555555555555


# ============================================================================
# Voice Transport Fake
# ============================================================================


class FakeConnection:
    def __init__(self, guild_id: int, channel_id: int) -> None:
        self.guild_id = guild_id
        self.channel_id = channel_id
        self.connected = True

    def __repr__(self) -> str:
        return f"<FakeConnection guild={self.guild_id} channel={self.channel_id}>"


class FakePlayer:
    def __init__(self, guild_id: int) -> None:
        self.guild_id = guild_id
        self.connection: FakeConnection | None = None
        self.stream: Any = None
        self.paused = False
        self.destroyed = False
        self.played: list[Any] = []

    def __repr__(self) -> str:
        return f"<FakePlayer guild={self.guild_id} destroyed={self.destroyed}>"


class FakeVoiceTransport(VoiceTransport):
    """Records every call; force-stops report idle asynchronously like discord.py."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.connections: list[FakeConnection] = []
        self.players: list[FakePlayer] = []
        self.listener: Any = None

        self.connect_error: Exception | None = None
        self.create_player_error: Exception | None = None
        self.play_error: Exception | None = None

        self._event_tasks: list[asyncio.Task] = []

    def set_listener(self, listener) -> None:
        self.listener = listener

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def connect(self, voice_channel_id: int, guild_id: int) -> FakeConnection:
        self.calls.append(("connect", guild_id, voice_channel_id))
        if self.connect_error is not None:
            raise self.connect_error
        connection = FakeConnection(guild_id, voice_channel_id)
        self.connections.append(connection)
        return connection

    async def disconnect(self, connection: FakeConnection) -> None:
        self.calls.append(("disconnect", connection.guild_id))
        connection.connected = False

    def create_player(self, guild_id: int) -> FakePlayer:
        self.calls.append(("create_player", guild_id))
        if self.create_player_error is not None:
            raise self.create_player_error
        player = FakePlayer(guild_id)
        self.players.append(player)
        return player

    def bind(self, player: FakePlayer, connection: FakeConnection) -> None:
        self.calls.append(("bind", player.guild_id))
        player.connection = connection

    async def destroy_player(self, player: FakePlayer) -> None:
        self.calls.append(("destroy_player", player.guild_id))
        player.destroyed = True
        player.stream = None

    def play(self, player: FakePlayer, stream) -> None:
        self.calls.append(("play", player.guild_id, getattr(stream, "title", None)))
        if self.play_error is not None:
            raise self.play_error
        if player.destroyed or player.connection is None or not player.connection.connected:
            raise PlayerError(player.guild_id, "not connected to voice")
        player.stream = stream
        player.paused = False
        player.played.append(stream)

    def pause(self, player: FakePlayer) -> bool:
        if player.stream is None or player.paused:
            return False
        player.paused = True
        return True

    def resume(self, player: FakePlayer) -> bool:
        if player.stream is None or not player.paused:
            return False
        player.paused = False
        return True

    def stop(self, player: FakePlayer) -> bool:
        self.calls.append(("stop", player.guild_id))
        if player.stream is None:
            return False
        player.stream = None
        player.paused = False
        self._event_tasks.append(
            asyncio.get_running_loop().create_task(
                self.listener.on_playback_idle(player.guild_id, player)
            )
        )
        return True

    # ── test helpers ────────────────────────────────────────────────

    async def finish(self, player: FakePlayer) -> None:
        """The current stream of ``player`` ended on its own."""
        player.stream = None
        await self.listener.on_playback_idle(player.guild_id, player)

    async def fail(self, player: FakePlayer, error: Exception) -> None:
        player.stream = None
        await self.listener.on_playback_error(player.guild_id, error, player)

    async def flush(self) -> None:
        """Wait for every player event emitted so far to be fully handled."""
        while self._event_tasks:
            tasks, self._event_tasks = self._event_tasks, []
            await asyncio.gather(*tasks)


# ============================================================================
# Source Resolver Fake
# ============================================================================


class FakeStream:
    def __init__(self, title: str, source_ref: str) -> None:
        self.title = title
        self.source_ref = source_ref
        self.cleaned_up = False

    def cleanup(self) -> None:
        self.cleaned_up = True


class FakeSourceResolver(SourceResolver):
    """Resolves any query to a song titled after it.

    ``broken`` titles fail to open, ``not_found`` queries resolve to nothing,
    ``gates`` hold a title's stream open until the event is set, and
    ``lookup_gates`` hold a query's resolution the same way.
    """

    def __init__(self) -> None:
        self.not_found: set[str] = set()
        self.failing: set[str] = set()
        self.broken: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.lookup_gates: dict[str, asyncio.Event] = {}
        self.ignore_cancel = False

        self.resolved: list[str] = []
        self.streams: list[FakeStream] = []
        self.open_tasks: list[asyncio.Task] = []
        self.open_started = asyncio.Event()
        self.lookup_started = asyncio.Event()

    @staticmethod
    def ref_for(title: str) -> str:
        return "https://media.example.com/" + title.replace(" ", "-")

    async def resolve(self, query: str) -> SongRequest | None:
        self.resolved.append(query)
        gate = self.lookup_gates.get(query)
        if gate is not None:
            self.lookup_started.set()
            await gate.wait()
        if query in self.failing:
            raise SourceResolutionError(query, "lookup exploded")
        if query in self.not_found:
            return None
        ref = self.ref_for(query)
        return SongRequest(title=query, source_ref=ref, webpage_url=ref, duration_seconds=180)

    async def open_stream(self, source_ref: str) -> FakeStream:
        title = source_ref.rsplit("/", 1)[-1].replace("-", " ")
        self.open_tasks.append(asyncio.current_task())
        self.open_started.set()

        gate = self.gates.get(title)
        if gate is not None:
            try:
                await gate.wait()
            except asyncio.CancelledError:
                if not self.ignore_cancel:
                    raise

        if title in self.broken:
            raise StreamOpenError(source_ref, "403 Forbidden", title=title)

        stream = FakeStream(title, source_ref)
        self.streams.append(stream)
        return stream

    def is_url(self, query: str) -> bool:
        return query.startswith(("http://", "https://"))


# ============================================================================
# Notification Sink Fake
# ============================================================================


class RecordingNotifier(NotificationSink):
    def __init__(self) -> None:
        self.sent: list[tuple[int, str]] = []
        self.error: Exception | None = None

    async def notify(self, channel_id: int, message: str) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append((channel_id, message))

    @property
    def messages(self) -> list[str]:
        return [message for _, message in self.sent]


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def transport():
    return FakeVoiceTransport()


@pytest.fixture
def resolver():
    return FakeSourceResolver()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def session_store():
    from discord_jukebox.infrastructure.persistence.session_store import InMemorySessionStore

    return InMemorySessionStore()


@pytest.fixture
def playback_settings():
    from discord_jukebox.config.settings import PlaybackSettings

    return PlaybackSettings()


@pytest.fixture
def controller(session_store, resolver, transport, notifier, playback_settings):
    from discord_jukebox.application.services.playback_controller import PlaybackController

    return PlaybackController(
        session_store=session_store,
        source_resolver=resolver,
        voice_transport=transport,
        notifier=notifier,
        settings=playback_settings,
    )


@pytest.fixture
def sample_song():
    return SongRequest(
        title="Test Song",
        source_ref="https://www.youtube.com/watch?v=test123",
        webpage_url="https://www.youtube.com/watch?v=test123",
        duration_seconds=245,
    )

