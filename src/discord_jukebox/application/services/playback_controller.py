"""Playback Controller - per-guild queue and voice-session state machine.

Every command, player event and stream-open continuation for a guild runs
through that guild's ``GuildMailbox``, so a session is only ever mutated by
one operation at a time. The two long operations run outside the mailbox:

- Resolving a play query. Each play takes a ticket on arrival and enqueues
  its song in ticket order once resolved; a stop revokes the tickets that
  have not enqueued yet.
- Opening a media stream. Its result re-enters as a continuation tagged with
  a token, and a continuation whose token is no longer current (the song was
  skipped, or the session was stopped) is discarded.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from discord_jukebox.domain.music.entities import GuildSession, SongRequest
from discord_jukebox.domain.music.value_objects import AdvanceReason, SessionState, TeardownReason
from discord_jukebox.domain.shared.exceptions import (
    DomainError,
    EmptyQueueError,
    NothingPlayingError,
    NoVoiceChannelError,
    PlayCancelledError,
    PlayerError,
    SourceNotFoundError,
    SourceResolutionError,
    StreamOpenError,
)
from discord_jukebox.domain.shared.messages import DiscordUIMessages, LogTemplates
from discord_jukebox.domain.shared.types import DiscordSnowflake, NonNegativeInt, PositiveInt
from discord_jukebox.application.services.guild_mailbox import GuildMailbox
from discord_jukebox.application.services.voice_lease import acquire_voice

if TYPE_CHECKING:
    import discord

    from ...config.settings import PlaybackSettings
    from ...domain.music.repository import SessionStore
    from ..interfaces.notification_sink import NotificationSink
    from ..interfaces.source_resolver import SourceResolver
    from ..interfaces.voice_transport import VoiceTransport

logger = logging.getLogger(__name__)

Settled = asyncio.Future[SongRequest | None]


class PlayOutcome(BaseModel):
    """Result of a successful play command."""

    model_config = ConfigDict(frozen=True)

    song: SongRequest
    position: PositiveInt
    started_session: bool

    @property
    def was_queued(self) -> bool:
        return not self.started_session


class QueueSnapshot(BaseModel):
    """Ordered copy of a guild's queue; the first entry is playing or loading."""

    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    songs: list[SongRequest] = Field(default_factory=list)
    state: SessionState
    total_duration: NonNegativeInt = 0

    @property
    def titles(self) -> list[str]:
        return [song.title for song in self.songs]

    @property
    def now_playing(self) -> SongRequest:
        return self.songs[0]

    @property
    def upcoming(self) -> list[SongRequest]:
        return self.songs[1:]

    @property
    def length(self) -> int:
        return len(self.songs)


@dataclass
class _PendingStart:
    token: int
    song: SongRequest
    initial: bool
    settled: Settled
    task: asyncio.Task[None] | None = field(default=None, repr=False)


@dataclass(eq=False)
class _PlayTicket:
    """A play command whose song has not reached the queue yet."""

    turn: asyncio.Future[None] = field(repr=False)
    previous: asyncio.Future[None] | None = field(default=None, repr=False)
    revoked: bool = False


def _chain(source: Settled | None, target: Settled) -> None:
    """Resolve ``target`` with whatever ``source`` eventually settles to."""
    if source is None:
        if not target.done():
            target.set_result(None)
        return

    def _copy(done: Settled) -> None:
        if target.done():
            return
        if done.cancelled() or done.exception() is not None:
            target.set_result(None)
        else:
            target.set_result(done.result())

    source.add_done_callback(_copy)


def _cleanup_stream(stream: Any) -> None:
    cleanup = getattr(stream, "cleanup", None)
    if cleanup is None:
        return
    try:
        cleanup()
    except Exception:
        logger.exception(LogTemplates.STREAM_CLEANUP_FAILED)


class PlaybackController:
    """Consumes guild commands and player events and drives the voice transport."""

    def __init__(
        self,
        *,
        session_store: SessionStore,
        source_resolver: SourceResolver,
        voice_transport: VoiceTransport,
        notifier: NotificationSink,
        settings: PlaybackSettings | None = None,
    ) -> None:
        self._store = session_store
        self._resolver = source_resolver
        self._transport = voice_transport
        self._notifier = notifier

        self._max_queue_size: int | None = settings.max_queue_size if settings else None
        self._idle_notice: bool = settings.idle_notice if settings else True

        self._mailboxes: dict[int, GuildMailbox] = {}
        self._tickets: dict[int, list[_PlayTicket]] = {}
        self._pending: dict[int, _PendingStart] = {}
        self._tokens = itertools.count(1)
        self._closed = False

        self._transport.set_listener(self)

    def _mailbox(self, guild_id: int) -> GuildMailbox:
        """Return the guild's mailbox; a drained one is dropped and made anew on demand."""
        if self._closed:
            raise RuntimeError("PlaybackController has been shut down")
        return self._open_mailbox(guild_id)

    def _open_mailbox(self, guild_id: int) -> GuildMailbox:
        mailbox = self._mailboxes.get(guild_id)
        if mailbox is None:
            mailbox = self._mailboxes[guild_id] = GuildMailbox(
                guild_id, on_drained=self._retire_mailbox
            )
        return mailbox

    def _retire_mailbox(self, mailbox: GuildMailbox) -> None:
        if self._mailboxes.get(mailbox.guild_id) is mailbox:
            del self._mailboxes[mailbox.guild_id]

    # ─────────────────────────────────────────────────────────────────
    # Play tickets
    # ─────────────────────────────────────────────────────────────────

    def _issue_ticket(self, guild_id: int) -> _PlayTicket:
        waiting = self._tickets.setdefault(guild_id, [])
        ticket = _PlayTicket(
            turn=asyncio.get_running_loop().create_future(),
            previous=waiting[-1].turn if waiting else None,
        )
        waiting.append(ticket)
        return ticket

    @staticmethod
    def _pass_turn(ticket: _PlayTicket) -> None:
        """Let the next ticket enqueue once every earlier one has."""

        def _release(_: object = None) -> None:
            if not ticket.turn.done():
                ticket.turn.set_result(None)

        if ticket.previous is None or ticket.previous.done():
            _release()
        else:
            ticket.previous.add_done_callback(_release)

    def _retire_ticket(self, guild_id: int, ticket: _PlayTicket) -> None:
        waiting = self._tickets.get(guild_id)
        if waiting is None or ticket not in waiting:
            return
        waiting.remove(ticket)
        if not waiting:
            del self._tickets[guild_id]

    # ─────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────

    async def handle_play(
        self,
        guild_id: int,
        voice_channel_id: int | None,
        notify_channel_id: int,
        query: str,
        *,
        requested_by_id: int | None = None,
        requested_by_name: str | None = None,
    ) -> PlayOutcome:
        """Resolve ``query`` and queue it, opening a session if the guild has none.

        For a new session this returns once the first song is actually
        playing, and raises if it could not be started. The lookup runs
        outside the guild's mailbox; songs still reach the queue in the order
        their commands arrived.
        """
        if voice_channel_id is None:
            raise NoVoiceChannelError()

        ticket = self._issue_ticket(guild_id)
        reply: asyncio.Future[tuple[PlayOutcome, Settled | None]] | None = None
        try:
            song = (await self._resolve(query)).with_requester(
                requested_by_id, requested_by_name
            )
            if ticket.previous is not None:
                await asyncio.shield(ticket.previous)
            reply = self._mailbox(guild_id).post(
                lambda: self._play(guild_id, voice_channel_id, notify_channel_id, song, ticket)
            )
        finally:
            self._pass_turn(ticket)
            if reply is None:
                self._retire_ticket(guild_id, ticket)
            else:
                reply.add_done_callback(lambda _: self._retire_ticket(guild_id, ticket))

        outcome, settled = await reply
        if settled is not None:
            await settled
        return outcome

    async def handle_skip(self, guild_id: int) -> SongRequest:
        """Stop the current song; the queue advances as if it had finished."""
        return await self._mailbox(guild_id).post(lambda: self._skip(guild_id))

    async def handle_stop(self, guild_id: int) -> int:
        """Clear the queue, release voice and remove the session.

        Returns the number of songs that were cleared. Plays issued before
        the stop that are still resolving are dropped when they land.
        """
        earlier = list(self._tickets.get(guild_id, ()))
        return await self._mailbox(guild_id).post(lambda: self._stop(guild_id, earlier))

    async def handle_pause(self, guild_id: int) -> bool:
        return await self._mailbox(guild_id).post(lambda: self._pause(guild_id))

    async def handle_resume(self, guild_id: int) -> bool:
        return await self._mailbox(guild_id).post(lambda: self._resume(guild_id))

    async def handle_queue_query(self, guild_id: int) -> QueueSnapshot:
        return await self._mailbox(guild_id).post(lambda: self._queue_snapshot(guild_id))

    async def handle_now_playing(self, guild_id: int) -> SongRequest:
        return await self._mailbox(guild_id).post(lambda: self._now_playing(guild_id))

    # ─────────────────────────────────────────────────────────────────
    # Player events
    # ─────────────────────────────────────────────────────────────────

    async def on_playback_idle(self, guild_id: int, player: Any = None) -> None:
        """The current stream ended or was force-stopped.

        Returns once the next song has started, or the session is gone.
        """
        if self._closed:
            logger.debug(LogTemplates.EVENT_IGNORED_SHUTDOWN, guild_id)
            return
        settled = await self._mailbox(guild_id).post(lambda: self._on_idle(guild_id, player))
        if settled is not None:
            await settled

    async def on_playback_error(
        self, guild_id: int, error: Exception, player: Any = None
    ) -> None:
        """The current stream failed; drop it and carry on with the queue."""
        if self._closed:
            logger.debug(LogTemplates.EVENT_IGNORED_SHUTDOWN, guild_id)
            return
        settled = await self._mailbox(guild_id).post(
            lambda: self._on_error(guild_id, error, player)
        )
        if settled is not None:
            await settled

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    async def shutdown(self) -> None:
        """Tear down every live session and stop all mailboxes.

        Commands arriving afterwards raise ``RuntimeError``; player events and
        stream-open results are dropped.
        """
        self._closed = True
        for session in await self._store.all():
            guild_id = session.guild_id
            try:
                await self._open_mailbox(guild_id).post(
                    lambda g=guild_id: self._shutdown_guild(g)
                )
            except Exception:
                logger.exception(LogTemplates.SESSION_SHUTDOWN_FAILED, guild_id)

        mailboxes = list(self._mailboxes.values())
        self._mailboxes.clear()
        for mailbox in mailboxes:
            await mailbox.close()

    # ─────────────────────────────────────────────────────────────────
    # Mailbox operations
    # ─────────────────────────────────────────────────────────────────

    async def _play(
        self,
        guild_id: int,
        voice_channel_id: int,
        notify_channel_id: int,
        song: SongRequest,
        ticket: _PlayTicket,
    ) -> tuple[PlayOutcome, Settled | None]:
        if ticket.revoked:
            logger.info(LogTemplates.QUEUE_ENQUEUE_CANCELLED, song.title, guild_id)
            raise PlayCancelledError(song.title)

        session = await self._store.get(guild_id)
        if session is not None:
            position = session.enqueue(song, limit=self._max_queue_size)
            logger.info(LogTemplates.QUEUE_ENQUEUED, song.title, position, guild_id)
            await self._announce(
                session.notify_channel_id,
                DiscordUIMessages.ADDED_TO_QUEUE.format(title=song.title, position=position),
            )
            return PlayOutcome(song=song, position=position, started_session=False), None

        session = await self._store.get_or_create(
            guild_id, voice_channel_id=voice_channel_id, notify_channel_id=notify_channel_id
        )
        session.enqueue(song, limit=self._max_queue_size)
        logger.info(LogTemplates.SESSION_OPENING, guild_id, voice_channel_id)

        try:
            handles = await acquire_voice(self._transport, guild_id, voice_channel_id)
        except Exception:
            session.clear_queue()
            await self._teardown(session, TeardownReason.ABORTED)
            raise

        session.attach_voice(handles)
        session.transition_to(SessionState.LOADING)
        settled = self._begin_start(session, initial=True)
        return PlayOutcome(song=song, position=1, started_session=True), settled

    async def _resolve(self, query: str) -> SongRequest:
        try:
            song = await self._resolver.resolve(query)
        except DomainError:
            raise
        except Exception as exc:
            raise SourceResolutionError(query, str(exc)) from exc

        if song is None:
            raise SourceNotFoundError(query)
        return song

    async def _skip(self, guild_id: int) -> SongRequest:
        session = await self._store.get(guild_id)
        if session is None or session.head is None:
            raise NothingPlayingError(guild_id)

        skipped = session.head
        logger.info(LogTemplates.SONG_SKIPPED, skipped.title, guild_id)

        # The idle event for a stopped stream advances the queue. With no
        # stream in the player there is no event to wait for.
        if session.state.is_audio_active and self._transport.stop(session.player_handle):
            return skipped

        self._cancel_pending(guild_id)
        await self._advance(session, AdvanceReason.SKIPPED)
        return skipped

    async def _stop(self, guild_id: int, earlier: list[_PlayTicket]) -> int:
        session = await self._store.get(guild_id)
        if session is None:
            raise NothingPlayingError(guild_id)

        for ticket in earlier:
            ticket.revoked = True
        self._cancel_pending(guild_id)
        cleared = session.clear_queue()
        await self._teardown(session, TeardownReason.STOPPED)
        return cleared

    async def _pause(self, guild_id: int) -> bool:
        session = await self._store.get(guild_id)
        if session is None or session.voice is None or not session.is_playing:
            return False

        if not self._transport.pause(session.player_handle):
            return False
        session.pause()
        logger.info(LogTemplates.PLAYBACK_PAUSED, guild_id)
        return True

    async def _resume(self, guild_id: int) -> bool:
        session = await self._store.get(guild_id)
        if session is None or session.voice is None or not session.is_paused:
            return False

        if not self._transport.resume(session.player_handle):
            return False
        session.resume()
        logger.info(LogTemplates.PLAYBACK_RESUMED, guild_id)
        return True

    async def _queue_snapshot(self, guild_id: int) -> QueueSnapshot:
        session = await self._store.get(guild_id)
        if session is None or not session.queue:
            raise EmptyQueueError(guild_id)

        return QueueSnapshot(
            guild_id=guild_id,
            songs=list(session.queue),
            state=session.state,
            total_duration=sum(s.duration_seconds or 0 for s in session.queue),
        )

    async def _now_playing(self, guild_id: int) -> SongRequest:
        session = await self._store.get(guild_id)
        if session is None or session.head is None:
            raise NothingPlayingError(guild_id)
        return session.head

    async def _on_idle(self, guild_id: int, player: Any) -> Settled | None:
        session = await self._current_session(guild_id, player)
        if session is None:
            return None

        finished = session.head
        if finished is not None:
            logger.info(LogTemplates.SONG_FINISHED, finished.title, guild_id)
        return await self._advance(session, AdvanceReason.FINISHED)

    async def _on_error(self, guild_id: int, error: Exception, player: Any) -> Settled | None:
        session = await self._current_session(guild_id, player)
        if session is None:
            logger.warning(LogTemplates.PLAYBACK_ERROR_STALE, guild_id, error)
            return None

        return await self._drop_failed_head(session, error, announce=True)

    async def _shutdown_guild(self, guild_id: int) -> None:
        session = await self._store.get(guild_id)
        if session is None:
            return
        session.clear_queue()
        await self._teardown(session, TeardownReason.SHUTDOWN)

    # ─────────────────────────────────────────────────────────────────
    # State machine helpers (always called from inside the mailbox)
    # ─────────────────────────────────────────────────────────────────

    async def _current_session(self, guild_id: int, player: Any) -> GuildSession | None:
        """Return the session a player event belongs to, or None if the event is stale."""
        session = await self._store.get(guild_id)
        if session is None:
            logger.debug(LogTemplates.EVENT_IGNORED_NO_SESSION, guild_id)
            return None
        if player is not None and player is not session.player_handle:
            logger.debug(LogTemplates.EVENT_IGNORED_OTHER_PLAYER, guild_id)
            return None
        if not session.state.is_audio_active:
            logger.debug(LogTemplates.EVENT_IGNORED_STATE, guild_id, session.state.value)
            return None
        return session

    async def _advance(
        self,
        session: GuildSession,
        reason: AdvanceReason,
        *,
        terminal: TeardownReason = TeardownReason.DRAINED,
    ) -> Settled | None:
        """Drop the head; start the next song or tear the session down."""
        session.drop_head()

        if session.queue:
            session.transition_to(SessionState.LOADING)
            return self._begin_start(session, initial=False)

        logger.info(LogTemplates.QUEUE_EMPTY, session.guild_id, reason.value)
        await self._teardown(session, terminal)
        if terminal is TeardownReason.DRAINED and self._idle_notice:
            await self._announce(session.notify_channel_id, DiscordUIMessages.QUEUE_FINISHED)
        return None

    async def _drop_failed_head(
        self, session: GuildSession, error: Exception, *, announce: bool
    ) -> Settled | None:
        failed = session.head
        title = failed.title if failed else "?"
        logger.warning(LogTemplates.PLAYBACK_ERROR, session.guild_id, title, error)
        if announce:
            await self._announce(
                session.notify_channel_id,
                DiscordUIMessages.SKIPPING_BROKEN_SONG.format(title=title),
            )
        return await self._advance(session, AdvanceReason.ERROR)

    def _begin_start(self, session: GuildSession, *, initial: bool) -> Settled:
        """Open a stream for the head off-mailbox; the continuation hands it to the player."""
        song = session.head
        assert song is not None

        guild_id = session.guild_id
        pending = _PendingStart(
            token=next(self._tokens),
            song=song,
            initial=initial,
            settled=asyncio.get_running_loop().create_future(),
        )
        self._pending[guild_id] = pending
        pending.task = asyncio.create_task(
            self._open_stream(guild_id, pending.token, song),
            name=f"open-stream-{guild_id}-{pending.token}",
        )
        logger.debug(LogTemplates.STREAM_OPENING, song.title, guild_id)
        return pending.settled

    async def _open_stream(self, guild_id: int, token: int, song: SongRequest) -> None:
        stream: discord.AudioSource | None = None
        error: Exception | None = None
        try:
            stream = await self._resolver.open_stream(song.source_ref)
        except DomainError as exc:
            error = exc
        except Exception as exc:
            error = StreamOpenError(song.source_ref, str(exc), title=song.title)

        try:
            self._mailbox(guild_id).post_nowait(
                lambda: self._finish_start(guild_id, token, stream, error)
            )
        except RuntimeError:
            logger.debug(LogTemplates.STREAM_DISCARDED_SHUTDOWN, guild_id, token)
            if stream is not None:
                _cleanup_stream(stream)

    async def _finish_start(
        self,
        guild_id: int,
        token: int,
        stream: discord.AudioSource | None,
        error: Exception | None,
    ) -> None:
        pending = self._pending.get(guild_id)
        session = await self._store.get(guild_id)
        if pending is None or pending.token != token or session is None:
            logger.debug(LogTemplates.STREAM_DISCARDED, guild_id, token)
            if stream is not None:
                _cleanup_stream(stream)
            return

        del self._pending[guild_id]

        if error is None:
            try:
                self._transport.play(session.player_handle, stream)
            except DomainError as exc:
                error = exc
            except Exception as exc:
                error = PlayerError(guild_id, str(exc))
            if error is not None:
                _cleanup_stream(stream)

        if error is not None:
            await self._start_failed(session, pending, error)
            return

        session.mark_started()
        logger.info(LogTemplates.SONG_STARTED, pending.song.title, guild_id)
        await self._announce(
            session.notify_channel_id,
            DiscordUIMessages.NOW_PLAYING.format(title=pending.song.title),
        )
        pending.settled.set_result(pending.song)

    async def _start_failed(
        self, session: GuildSession, pending: _PendingStart, error: Exception
    ) -> None:
        if not pending.initial:
            _chain(await self._drop_failed_head(session, error, announce=True), pending.settled)
            return

        # The requester of the first song gets the error as the command
        # reply; the session only survives if others queued up meanwhile.
        if session.queue_length > 1:
            await self._drop_failed_head(session, error, announce=False)
        else:
            logger.warning(LogTemplates.SESSION_ABORTED, session.guild_id, error)
            session.clear_queue()
            await self._teardown(session, TeardownReason.ABORTED)
        pending.settled.set_exception(error)

    def _cancel_pending(self, guild_id: int) -> None:
        pending = self._pending.pop(guild_id, None)
        if pending is None:
            return
        if pending.task is not None and not pending.task.done():
            pending.task.cancel()
        if not pending.settled.done():
            pending.settled.set_result(None)
        logger.debug(LogTemplates.STREAM_CANCELLED, guild_id, pending.token)

    async def _teardown(self, session: GuildSession, reason: TeardownReason) -> None:
        """Release voice resources and remove the session, whatever happens."""
        guild_id = session.guild_id
        session.begin_drain()
        self._cancel_pending(guild_id)

        handles = session.detach_voice()
        try:
            if handles is not None:
                await handles.release()
        except Exception:
            logger.exception(LogTemplates.VOICE_RELEASE_FAILED, "voice", guild_id)
        finally:
            await self._store.remove(guild_id)

        logger.info(LogTemplates.SESSION_TORN_DOWN, guild_id, reason.value)

    async def _announce(self, channel_id: int, message: str) -> None:
        try:
            await self._notifier.notify(channel_id, message)
        except Exception:
            logger.warning(LogTemplates.NOTIFY_FAILED, channel_id, exc_info=True)
