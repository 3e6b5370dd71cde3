"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from collections.abc import Sequence
from functools import cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.music.entities import SongRequest


@cache
def format_duration(seconds: int | float | None) -> str:
    if seconds is None:
        return "–"

    total_seconds = int(seconds)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    secs = total_seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def format_song_line(position: int, song: SongRequest) -> str:
    """One queue line: ``3. Title [4:05] (requested by name)``."""
    line = f"{position}. {truncate(song.title)}"
    if song.duration_seconds is not None:
        line += f" [{format_duration(song.duration_seconds)}]"
    if song.requested_by_name:
        line += f" (requested by {song.requested_by_name})"
    return line


def format_queue_lines(songs: Sequence[SongRequest], limit: int = 10) -> tuple[list[str], int]:
    """Numbered lines for the first ``limit`` songs, plus how many were left out."""
    shown = [format_song_line(i, song) for i, song in enumerate(songs[:limit], start=1)]
    return shown, max(0, len(songs) - limit)
