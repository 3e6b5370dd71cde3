"""Discord Jukebox - per-guild music queue bot for Discord voice channels."""

__version__ = "0.1.0"
