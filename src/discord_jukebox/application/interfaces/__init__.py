"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters.
"""

from discord_jukebox.application.interfaces.notification_sink import NotificationSink
from discord_jukebox.application.interfaces.source_resolver import SourceResolver
from discord_jukebox.application.interfaces.voice_transport import (
    PlaybackListener,
    VoiceTransport,
)

__all__ = [
    "NotificationSink",
    "PlaybackListener",
    "SourceResolver",
    "VoiceTransport",
]
