"""Audio infrastructure - yt-dlp resolver and FFmpeg streams."""

from discord_jukebox.infrastructure.audio.models import (
    AudioFormatInfo,
    OEmbedInfo,
    YtDlpEntryInfo,
    YtDlpOpts,
)
from discord_jukebox.infrastructure.audio.ytdlp_resolver import YtDlpSourceResolver

__all__ = [
    "AudioFormatInfo",
    "OEmbedInfo",
    "YtDlpEntryInfo",
    "YtDlpOpts",
    "YtDlpSourceResolver",
]
