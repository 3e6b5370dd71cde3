"""Tests for ColoredFormatter."""

import logging
from io import StringIO
from unittest.mock import patch

import pytest

from discord_jukebox.utils.logging import ColoredFormatter

RESET = "\033[0m"


class _TTY(StringIO):
    def isatty(self) -> bool:
        return True


def _record(level: int, message: str = "queue advanced") -> logging.LogRecord:
    return logging.makeLogRecord(
        {"name": "discord_jukebox.test", "levelno": level, "levelname": logging.getLevelName(level), "msg": message}
    )


@pytest.fixture
def tty_formatter():
    return ColoredFormatter("%(levelname)s | %(message)s", stream=_TTY())


class TestColoredFormatter:
    @pytest.mark.parametrize("level", sorted(ColoredFormatter.COLORS))
    def test_levelname_is_colored_on_tty(self, tty_formatter, level):
        output = tty_formatter.format(_record(level))

        assert output.startswith(ColoredFormatter.COLORS[level])
        assert RESET in output

    def test_no_color_env_disables_colors(self, tty_formatter):
        with patch.dict("os.environ", {"NO_COLOR": "1"}):
            output = tty_formatter.format(_record(logging.INFO))

        assert output == "INFO | queue advanced"

    def test_plain_stream_disables_colors(self):
        formatter = ColoredFormatter("%(levelname)s | %(message)s", stream=StringIO())

        assert "\033[" not in formatter.format(_record(logging.ERROR))

    def test_record_is_left_untouched(self, tty_formatter):
        record = _record(logging.WARNING)

        tty_formatter.format(record)

        assert record.levelname == "WARNING"

    def test_dictconfig_factory_accepts_format_keywords(self):
        formatter = ColoredFormatter(fmt="%(message)s", datefmt="%H:%M")

        assert formatter.datefmt == "%H:%M"

    def test_short_names_strip_package_prefix(self):
        formatter = ColoredFormatter("%(name)s", stream=StringIO(), short_names=True)

        assert formatter.format(_record(logging.INFO)) == "test"

    def test_short_names_keep_foreign_loggers(self):
        formatter = ColoredFormatter("%(name)s", stream=StringIO(), short_names=True)
        record = _record(logging.INFO)
        record.name = "discord.gateway"

        assert formatter.format(record) == "discord.gateway"

    def test_logger_name_is_dimmed_on_tty(self):
        formatter = ColoredFormatter("%(name)s", stream=_TTY())

        assert formatter.format(_record(logging.INFO)).startswith(ColoredFormatter.DIM)
