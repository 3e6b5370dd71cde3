"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (in-memory session store)
- Discord (bot, cogs, voice transport, notifier)
- Audio (yt-dlp resolution, FFmpeg streams)
"""
