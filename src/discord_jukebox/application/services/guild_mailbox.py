"""Per-guild serial executor (actor mailbox) for playback operations."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from discord_jukebox.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

T = TypeVar("T")
Operation = Callable[[], Awaitable[T]]


@dataclass(slots=True)
class _Envelope:
    operation: Operation[Any]
    future: asyncio.Future[Any]


class GuildMailbox:
    """Runs one guild's operations strictly one at a time, in arrival order.

    Mailboxes of different guilds run concurrently. An operation must never
    await the future of another operation posted to the same mailbox; it
    would wait on itself.

    ``on_drained`` is called by the worker when it runs out of work, before it
    exits; no operation can slip in between.
    """

    def __init__(
        self,
        guild_id: int,
        on_drained: Callable[[GuildMailbox], None] | None = None,
    ) -> None:
        self.guild_id = guild_id
        self._on_drained = on_drained
        self._pending: deque[_Envelope] = deque()
        self._worker: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def is_idle(self) -> bool:
        return not self._pending and (self._worker is None or self._worker.done())

    def post(self, operation: Operation[T]) -> asyncio.Future[T]:
        """Queue an operation; the returned future carries its result or exception."""
        if self._closed:
            raise RuntimeError(f"Mailbox for guild {self.guild_id} is closed")

        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()
        self._pending.append(_Envelope(operation, future))

        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(
                self._drain(), name=f"guild-mailbox-{self.guild_id}"
            )
        return future

    def post_nowait(self, operation: Operation[Any]) -> None:
        """Queue an operation nobody waits on; failures are logged."""
        future = self.post(operation)
        future.add_done_callback(self._log_failure)

    def _log_failure(self, future: asyncio.Future[Any]) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(
                LogTemplates.MAILBOX_OPERATION_FAILED,
                self.guild_id,
                exc,
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    async def _drain(self) -> None:
        while self._pending:
            envelope = self._pending.popleft()
            if envelope.future.cancelled():
                continue

            try:
                result = await envelope.operation()
            except asyncio.CancelledError:
                envelope.future.cancel()
                task = asyncio.current_task()
                if task is not None and task.cancelling():
                    raise
            except Exception as exc:
                if not envelope.future.done():
                    envelope.future.set_exception(exc)
            else:
                if not envelope.future.done():
                    envelope.future.set_result(result)

        if self._on_drained is not None:
            self._on_drained(self)

    async def close(self) -> None:
        """Stop accepting work, cancel what is queued, and stop the worker."""
        self._closed = True

        while self._pending:
            self._pending.popleft().future.cancel()

        worker, self._worker = self._worker, None
        if worker is not None and not worker.done():
            worker.cancel()
            try:
                await worker
            except asyncio.CancelledError:
                pass
