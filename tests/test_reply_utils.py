"""Tests for message formatting helpers."""

import pytest

from discord_jukebox.domain.music.entities import SongRequest
from discord_jukebox.utils.reply import (
    format_duration,
    format_queue_lines,
    format_song_line,
    truncate,
)


def make_song(title: str, **kwargs) -> SongRequest:
    return SongRequest(title=title, source_ref=f"https://example.com/{title}", **kwargs)


class TestFormatDuration:
    @pytest.mark.parametrize(
        "seconds,expected",
        [(None, "–"), (0, "0:00"), (59, "0:59"), (61, "1:01"), (3600, "1:00:00"), (3725.9, "1:02:05")],
    )
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("hello", 10) == "hello"

    def test_long_text_gets_ellipsis(self):
        result = truncate("a" * 20, 10)

        assert len(result) == 10
        assert result.endswith("…")


class TestSongLines:
    def test_song_line_with_everything(self):
        song = make_song("Song", duration_seconds=65, requested_by_name="alice")

        assert format_song_line(3, song) == "3. Song [1:05] (requested by alice)"

    def test_song_line_minimal(self):
        assert format_song_line(1, make_song("Song")) == "1. Song"

    def test_queue_lines_limit(self):
        songs = [make_song(f"S{i}") for i in range(5)]

        lines, hidden = format_queue_lines(songs, limit=3)

        assert lines == ["1. S0", "2. S1", "3. S2"]
        assert hidden == 2

    def test_queue_lines_under_limit(self):
        lines, hidden = format_queue_lines([make_song("Only")])

        assert lines == ["1. Only"]
        assert hidden == 0
