"""YouTube link detection and canonicalization.

Every YouTube video link form (youtu.be, watch?v=, /shorts/, /embed/, /live/,
/v/) is rewritten to one watch URL so the room playlist and the oEmbed lookup
see the same thing. Channel, playlist and other pages are left alone.
"""

from __future__ import annotations

from typing import Optional

import httpx

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch"
YOUTUBE_THUMBNAIL_URL = "https://img.youtube.com/vi/{video_id}/hqdefault.jpg"
_VIDEO_PATH_PREFIXES = ("shorts", "embed", "live", "v")


def youtube_id_from_url(url: str) -> Optional[str]:
    """Return the video id of a YouTube link, or None for anything else."""

    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return None

    host = parsed.host
    if host == "youtu.be":
        return parsed.path[1:] or None

    if "youtube.com" in host:
        video_id = parsed.params.get("v")
        if video_id:
            return video_id
        parts = [part for part in parsed.path.split("/") if part]
        if len(parts) >= 2 and parts[0] in _VIDEO_PATH_PREFIXES:
            return parts[1]

    return None


def youtube_thumbnail(video_id: Optional[str]) -> Optional[str]:
    if not video_id:
        return None
    return YOUTUBE_THUMBNAIL_URL.format(video_id=video_id)


def canonicalize_url(url: str) -> str:
    """Rewrite YouTube links to the canonical watch URL; keep others as-is."""

    video_id = youtube_id_from_url(url)
    if not video_id:
        return url

    parsed = httpx.URL(url)
    params = {"v": video_id}
    start = parsed.params.get("t") or parsed.params.get("start")
    if start:
        params["t"] = start
    return str(httpx.URL(YOUTUBE_WATCH_URL, params=params))
