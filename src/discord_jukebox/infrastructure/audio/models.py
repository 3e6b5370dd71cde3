"""Pydantic models for yt-dlp data and options.

These are infrastructure-specific models for parsing external yt-dlp data,
oEmbed responses, and configuring yt-dlp.
"""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from discord_jukebox.domain.shared.types import NonEmptyStr, PositiveInt

DEFAULT_RETRIES: Final[int] = 3
DEFAULT_SOCKET_TIMEOUT: Final[int] = 10
MAX_DURATION_SECONDS: Final[int] = 86_400
MAX_TITLE_LENGTH: Final[int] = 500


class AudioFormatInfo(BaseModel):
    """A single format entry from yt-dlp extraction."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: NonEmptyStr | None = None
    acodec: NonEmptyStr | None = None
    vcodec: NonEmptyStr | None = None


class YtDlpEntryInfo(BaseModel):
    """Trimmed yt-dlp extraction result.

    Flat playlist/search entries only carry ``url`` (the watch page) and a
    title; full extractions also carry a direct media ``url`` and formats.
    Before-validators coerce garbage from external yt-dlp data gracefully.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    webpage_url: NonEmptyStr | None = None
    original_url: NonEmptyStr | None = None
    url: NonEmptyStr | None = None
    title: NonEmptyStr = "Unknown Title"
    duration: int | None = None
    http_headers: dict[str, str] = Field(default_factory=dict)
    formats: list[AudioFormatInfo] = Field(default_factory=list)
    entries: list[dict[str, Any]] | None = None

    @field_validator("webpage_url", "original_url", "url", mode="before")
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        """Convert empty / whitespace-only / non-string values to None."""
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str:
        """Fall back to default on empty titles and cap overly long ones."""
        if not isinstance(v, str) or not v.strip():
            return "Unknown Title"
        return v.strip()[:MAX_TITLE_LENGTH]

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, v: Any) -> int | None:
        """Coerce to an int within a day; None for live streams and garbage."""
        if v is None:
            return None
        try:
            val = int(v)
        except (TypeError, ValueError):
            return None
        return val if 0 <= val <= MAX_DURATION_SECONDS else None

    @field_validator("http_headers", mode="before")
    @classmethod
    def _coerce_headers(cls, v: Any) -> dict[str, str]:
        if not isinstance(v, dict):
            return {}
        return {str(k): str(val) for k, val in v.items()}

    @field_validator("entries", mode="before")
    @classmethod
    def _coerce_entries(cls, v: Any) -> list[dict[str, Any]] | None:
        if v is None:
            return None
        return [dict(e) for e in v if isinstance(e, dict)]


class OEmbedInfo(BaseModel):
    """The part of an oEmbed response used to build a search query."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: NonEmptyStr | None = None
    author_name: NonEmptyStr | None = None

    @field_validator("title", "author_name", mode="before")
    @classmethod
    def _coerce_blank(cls, v: Any) -> str | None:
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip()

    @property
    def search_terms(self) -> str | None:
        if self.title is None:
            return None
        if self.author_name and self.author_name.lower() not in self.title.lower():
            return f"{self.author_name} - {self.title}"
        return self.title


class YtDlpOpts(BaseModel):
    """Typed yt-dlp configuration options passed to YoutubeDL."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    no_warnings: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    default_search: NonEmptyStr = "ytsearch"
    forceipv4: bool = True
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = DEFAULT_SOCKET_TIMEOUT
    format: NonEmptyStr | None = None
    skip_download: bool = True
    extract_flat: NonEmptyStr | bool = False
    playlistend: PositiveInt | None = None
