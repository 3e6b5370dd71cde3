"""Port interface for posting status messages to a text channel."""

from __future__ import annotations

from abc import ABC, abstractmethod


class NotificationSink(ABC):
    @abstractmethod
    async def notify(self, channel_id: int, message: str) -> None:
        """Post ``message`` to ``channel_id``. Implementations may raise; callers log."""
        ...
