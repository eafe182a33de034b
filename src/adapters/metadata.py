"""Best-effort title/thumbnail lookup for playlist items.

The chain is: YouTube oEmbed (YouTube links only) -> noembed -> scraping the
page's og:title or <title>. Every failure degrades to less metadata; nothing
here raises to the caller.
"""

from __future__ import annotations

import asyncio
import html
import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

import httpx

from adapters.url_canonical import youtube_id_from_url, youtube_thumbnail

LOGGER = logging.getLogger(__name__)

YOUTUBE_OEMBED_URL = "https://www.youtube.com/oembed"
NOEMBED_URL = "https://noembed.com/embed"
SCRAPE_USER_AGENT = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"

_OG_TITLE_RE = re.compile(r'<meta\s+property="og:title"\s+content="(.*?)"', re.IGNORECASE | re.DOTALL)
_TITLE_RE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_YOUTUBE_SUFFIX = " - YouTube"
_HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")
# Titles live in <head>; anything past this is not read.
MAX_SCRAPE_BYTES = 256 * 1024


class MetadataLookupError(Exception):
    """An oEmbed provider answered without usable metadata."""


@dataclass(frozen=True)
class Metadata:
    title: Optional[str] = None
    thumbnail: Optional[str] = None


class MetadataResolver:
    """Resolve display metadata for a URL through the fallback chain."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        timeout_seconds: float = 5.0,
        scrape_timeout_seconds: float = 3.0,
    ) -> None:
        self._client = client
        self._timeout = timeout_seconds
        self._scrape_timeout = scrape_timeout_seconds

    async def resolve(self, url: str) -> Metadata:
        video_id = youtube_id_from_url(url)
        try:
            meta = await self._from_oembed(url, video_id)
        except (httpx.HTTPError, ValueError, MetadataLookupError, asyncio.TimeoutError) as exc:
            LOGGER.warning("Failed to fetch metadata via oEmbed for %s: %r", url, exc)
            title = await self._scrape_title(url)
            return Metadata(title=title, thumbnail=youtube_thumbnail(video_id))

        if not meta.thumbnail and video_id:
            meta = replace(meta, thumbnail=youtube_thumbnail(video_id))
        return meta

    async def _from_oembed(self, url: str, video_id: Optional[str]) -> Metadata:
        if video_id:
            try:
                return await self._fetch_oembed(YOUTUBE_OEMBED_URL, {"url": url, "format": "json"})
            except (httpx.HTTPError, ValueError, MetadataLookupError, asyncio.TimeoutError) as exc:
                LOGGER.info("YouTube oEmbed failed for %s (%r), falling back to noembed", url, exc)
        return await self._fetch_oembed(NOEMBED_URL, {"url": url})

    async def _fetch_oembed(self, endpoint: str, params: Dict[str, str]) -> Metadata:
        # The client timeout bounds each network step; wait_for bounds the whole call.
        response = await asyncio.wait_for(
            self._client.get(endpoint, params=params, timeout=self._timeout),
            timeout=self._timeout,
        )
        response.raise_for_status()
        data: Any = response.json()
        if not isinstance(data, dict):
            raise MetadataLookupError(f"{endpoint} returned a non-object payload")
        # noembed answers 200 with an "error" field for unsupported URLs.
        if data.get("error") or not data.get("title"):
            raise MetadataLookupError(f"{endpoint} returned an error or no title")
        return Metadata(
            title=html.unescape(str(data["title"])),
            thumbnail=data.get("thumbnail_url") or data.get("thumbnail"),
        )

    async def _scrape_title(self, url: str) -> Optional[str]:
        try:
            page = await asyncio.wait_for(self._read_page(url), timeout=self._scrape_timeout)
        except asyncio.TimeoutError:
            LOGGER.warning("Scraping fallback timed out for %s", url)
            return None
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            LOGGER.warning("Scraping fallback failed for %s: %s", url, exc)
            return None
        if page is None:
            return None

        match = _OG_TITLE_RE.search(page) or _TITLE_RE.search(page)
        if not match:
            return None
        title = match.group(1).strip()
        if title.endswith(_YOUTUBE_SUFFIX):
            title = title[: -len(_YOUTUBE_SUFFIX)]
        return html.unescape(title) or None

    async def _read_page(self, url: str) -> Optional[str]:
        """Read the head of an HTML page; media and other bodies are never downloaded."""

        async with self._client.stream(
            "GET",
            url,
            headers={"User-Agent": SCRAPE_USER_AGENT},
            timeout=self._scrape_timeout,
            follow_redirects=True,
        ) as response:
            if not response.is_success:
                return None
            content_type = response.headers.get("Content-Type", "").lower()
            if not any(kind in content_type for kind in _HTML_CONTENT_TYPES):
                LOGGER.debug("Not scraping %s (content type %r)", url, content_type)
                return None

            body = bytearray()
            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                if len(body) >= MAX_SCRAPE_BYTES:
                    break
            encoding = response.charset_encoding or "utf-8"

        try:
            return bytes(body[:MAX_SCRAPE_BYTES]).decode(encoding, errors="replace")
        except LookupError:
            return bytes(body[:MAX_SCRAPE_BYTES]).decode("utf-8", errors="replace")
