"""Application services: playback controller, guild mailbox and voice lease."""
