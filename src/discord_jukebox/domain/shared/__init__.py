"""
Shared Domain Kernel

Contains types, message templates and exceptions shared across the domain.
"""

from discord_jukebox.domain.shared.exceptions import (
    DomainError,
    EmptyQueueError,
    InvalidOperationError,
    NothingPlayingError,
    NoVoiceChannelError,
    PlayerError,
    QueueFullError,
    SourceNotFoundError,
    SourceResolutionError,
    StreamOpenError,
    VoiceConnectError,
)

__all__ = [
    "DomainError",
    "EmptyQueueError",
    "InvalidOperationError",
    "NoVoiceChannelError",
    "NothingPlayingError",
    "PlayerError",
    "QueueFullError",
    "SourceNotFoundError",
    "SourceResolutionError",
    "StreamOpenError",
    "VoiceConnectError",
]
