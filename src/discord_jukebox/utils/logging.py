"""Console log formatting for the jukebox."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, TextIO

PACKAGE_PREFIX = "discord_jukebox."


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name and shortens package logger names.

    ANSI colours are only emitted when the target stream is a TTY and
    ``NO_COLOR`` is unset. ``stream`` defaults to stdout, which is where the
    console handler in ``logging_config.json`` writes.

    With ``short_names`` enabled, ``discord_jukebox.application.services.x``
    is rendered as ``application.services.x``; third-party names are kept.
    """

    COLORS: dict[int, str] = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    DIM = "\033[2m"
    RESET = "\033[0m"

    def __init__(
        self,
        *args: Any,
        stream: TextIO | None = None,
        short_names: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._stream = stream
        self._short_names = short_names

    @property
    def colors_enabled(self) -> bool:
        if "NO_COLOR" in os.environ:
            return False
        isatty = getattr(self._stream or sys.stdout, "isatty", None)
        return bool(isatty and isatty())

    def format(self, record: logging.LogRecord) -> str:
        colored = self.colors_enabled
        if not colored and not self._short_names:
            return super().format(record)

        # Copy so other handlers see the untouched record.
        record = logging.makeLogRecord(record.__dict__)
        if self._short_names and record.name.startswith(PACKAGE_PREFIX):
            record.name = record.name[len(PACKAGE_PREFIX):]
        if colored:
            record.levelname = f"{self.COLORS.get(record.levelno, '')}{record.levelname}{self.RESET}"
            record.name = f"{self.DIM}{record.name}{self.RESET}"
        return super().format(record)
