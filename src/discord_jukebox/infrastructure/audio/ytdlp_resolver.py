"""SourceResolver implementation using yt-dlp for lookup and FFmpeg for streaming."""

from __future__ import annotations

import asyncio
import html
import logging
import re
from typing import Any, Final, cast
from urllib.parse import urlparse

import discord
import httpx
from yt_dlp import YoutubeDL

from discord_jukebox.application.interfaces.source_resolver import SourceResolver
from discord_jukebox.config.settings import AudioSettings, ResolverSettings
from discord_jukebox.domain.music.entities import SongRequest
from discord_jukebox.domain.shared.exceptions import SourceResolutionError, StreamOpenError
from discord_jukebox.domain.shared.messages import ErrorMessages, LogTemplates
from discord_jukebox.infrastructure.audio.models import (
    AudioFormatInfo,
    OEmbedInfo,
    YtDlpEntryInfo,
    YtDlpOpts,
)

logger = logging.getLogger(__name__)

LOG_URL_TRUNCATE: Final[int] = 60
BROWSER_USER_AGENT: Final[str] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"^https?://", re.IGNORECASE),
    re.compile(r"^www\.", re.IGNORECASE),
]

# Links yt-dlp cannot stream from. Their title is looked up and searched instead.
OEMBED_ENDPOINTS: Final[dict[str, str]] = {
    "open.spotify.com": "https://open.spotify.com/oembed",
    "spotify.link": "https://open.spotify.com/oembed",
    "www.deezer.com": "https://api.deezer.com/oembed",
    "deezer.com": "https://api.deezer.com/oembed",
    "deezer.page.link": "https://api.deezer.com/oembed",
}
PAGE_TITLE_HOSTS: Final[frozenset[str]] = frozenset(
    {"music.apple.com", "tidal.com", "listen.tidal.com"}
)

OG_TITLE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"""<meta[^>]+property=["']og:title["'][^>]+content=["']([^"']+)["']""",
    re.IGNORECASE,
)


def _host(url: str) -> str:
    if not url.lower().startswith(("http://", "https://")):
        url = f"https://{url}"
    return (urlparse(url).hostname or "").lower()


class YtDlpSourceResolver(SourceResolver):
    """Resolves free text, direct links, playlists and third-party track links.

    Resolution stores the song's page URL as ``source_ref``; the direct media
    URL is extracted again in ``open_stream`` because it expires.
    """

    def __init__(
        self,
        audio_settings: AudioSettings | None = None,
        resolver_settings: ResolverSettings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._audio = audio_settings or AudioSettings()
        self._resolver = resolver_settings or ResolverSettings()
        self._http = http_client
        self._owns_http = http_client is None

        self._base_opts = YtDlpOpts(
            format=self._audio.ytdlp_format,
            default_search=self._resolver.search_prefix,
        )

    # ─────────────────────────────────────────────────────────────────
    # yt-dlp
    # ─────────────────────────────────────────────────────────────────

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    def _lookup_opts(self) -> YtDlpOpts:
        # Flat extraction: page URL and title only, first playlist entry only.
        return self._get_opts(extract_flat="in_playlist", playlistend=1)

    def _extract_sync(self, target: str, opts: YtDlpOpts) -> YtDlpEntryInfo | None:
        params = cast(Any, opts.model_dump(exclude_none=True))
        with YoutubeDL(params=params) as ydl:
            data = ydl.extract_info(target, download=False)
        if not isinstance(data, dict):
            return None
        return YtDlpEntryInfo.model_validate(dict(data))

    async def _lookup(self, target: str, query: str) -> YtDlpEntryInfo | None:
        try:
            info = await asyncio.to_thread(self._extract_sync, target, self._lookup_opts())
        except Exception as exc:
            logger.warning(LogTemplates.YTDLP_FAILED_RESOLVE, query, exc_info=True)
            raise SourceResolutionError(query, str(exc)) from exc

        if info is None:
            return None
        if info.entries is not None:
            # Search results and playlists: first playable entry.
            for entry in info.entries:
                parsed = YtDlpEntryInfo.model_validate(entry)
                if self._page_url(parsed):
                    return parsed
            return None
        return info

    @staticmethod
    def _page_url(info: YtDlpEntryInfo) -> str | None:
        for candidate in (info.webpage_url, info.original_url, info.url):
            if candidate and candidate.lower().startswith(("http://", "https://")):
                return candidate
        return None

    def _info_to_song(self, info: YtDlpEntryInfo) -> SongRequest | None:
        url = self._page_url(info)
        if not url:
            logger.warning(LogTemplates.YTDLP_NO_STREAM_URL, info.title)
            return None

        return SongRequest(
            title=info.title,
            source_ref=url,
            webpage_url=url,
            duration_seconds=info.duration,
        )

    @staticmethod
    def _extract_stream_url(info: YtDlpEntryInfo) -> str | None:
        if info.url:
            return info.url
        return YtDlpSourceResolver._extract_stream_from_formats(info.formats)

    @staticmethod
    def _extract_stream_from_formats(formats: list[AudioFormatInfo]) -> str | None:
        if not formats:
            return None
        audio_formats = [f for f in formats if f.acodec != "none" and f.url]
        if audio_formats:
            return audio_formats[-1].url
        return None

    # ─────────────────────────────────────────────────────────────────
    # Third-party links
    # ─────────────────────────────────────────────────────────────────

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=self._resolver.http_timeout_s,
                follow_redirects=True,
                headers={"User-Agent": BROWSER_USER_AGENT},
            )
        return self._http

    @staticmethod
    def is_third_party_link(query: str) -> bool:
        host = _host(query)
        return host in OEMBED_ENDPOINTS or host in PAGE_TITLE_HOSTS

    async def _link_search_terms(self, url: str) -> str | None:
        """Read a human title for a link from the provider's oEmbed or page metadata."""
        host = _host(url)
        client = self._client()
        try:
            endpoint = OEMBED_ENDPOINTS.get(host)
            if endpoint is not None:
                response = await client.get(endpoint, params={"url": url, "format": "json"})
                if response.status_code == httpx.codes.NOT_FOUND:
                    return None
                response.raise_for_status()
                return OEmbedInfo.model_validate(response.json()).search_terms

            response = await client.get(url)
            if response.status_code == httpx.codes.NOT_FOUND:
                return None
            response.raise_for_status()
            match = OG_TITLE_PATTERN.search(response.text)
            return html.unescape(match.group(1)).strip() if match else None
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(LogTemplates.OEMBED_LOOKUP_FAILED, url[:LOG_URL_TRUNCATE], exc)
            raise SourceResolutionError(url, str(exc)) from exc

    # ─────────────────────────────────────────────────────────────────
    # SourceResolver
    # ─────────────────────────────────────────────────────────────────

    def is_url(self, query: str) -> bool:
        return any(pattern.search(query) for pattern in URL_PATTERNS)

    async def resolve(self, query: str) -> SongRequest | None:
        query = query.strip()
        if not query:
            return None

        if self.is_url(query) and self.is_third_party_link(query):
            terms = await self._link_search_terms(query)
            if not terms:
                return None
            logger.debug(LogTemplates.OEMBED_TITLE_RESOLVED, query[:LOG_URL_TRUNCATE], terms)
            target = f"{self._resolver.search_prefix}1:{terms}"
        elif self.is_url(query):
            target = query
        else:
            target = f"{self._resolver.search_prefix}1:{query}"

        info = await self._lookup(target, query)
        if info is None:
            return None

        song = self._info_to_song(info)
        if song is not None:
            logger.debug(LogTemplates.YTDLP_RESOLVED, query, song.title)
        return song

    async def open_stream(self, source_ref: str) -> discord.AudioSource:
        try:
            info = await asyncio.to_thread(self._extract_sync, source_ref, self._get_opts())
        except Exception as exc:
            logger.warning(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, source_ref[:LOG_URL_TRUNCATE])
            raise StreamOpenError(source_ref, str(exc)) from exc

        stream_url = self._extract_stream_url(info) if info is not None else None
        if not stream_url:
            raise StreamOpenError(
                source_ref, ErrorMessages.NO_STREAM_URL_FOR_SONG.format(source_ref=source_ref)
            )

        before_options = self._audio.ffmpeg_options.get("before_options", "")
        user_agent = info.http_headers.get("User-Agent") if info is not None else None
        if user_agent:
            before_options = f'{before_options} -user_agent "{user_agent}"'.strip()

        try:
            source = discord.FFmpegPCMAudio(
                stream_url,
                before_options=before_options,
                options=self._audio.ffmpeg_options.get("options", ""),
            )
        except discord.ClientException as exc:
            raise StreamOpenError(source_ref, str(exc)) from exc

        return discord.PCMVolumeTransformer(source, volume=self._audio.default_volume)

    async def aclose(self) -> None:
        """Close the HTTP client if this resolver created it."""
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None
