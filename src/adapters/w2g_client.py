"""Watch2Gether room service adapter.

Implements the core RoomServicePort over the W2G HTTP API using httpx. Every
request carries the client timeout; transport errors, non-2xx answers and
malformed payloads all surface as RoomServiceError.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from adapters.metadata import MetadataResolver
from adapters.url_canonical import canonicalize_url
from core.errors import ConfigError, RoomServiceError

LOGGER = logging.getLogger(__name__)

W2G_API_BASE = "https://api.w2g.tv"
W2G_ROOM_URL_BASE = "https://w2g.tv/rooms"
JSON_HEADERS = {"Content-Type": "application/json; charset=utf-8"}


class W2GRoomService:
    """Create rooms and append playlist items on Watch2Gether."""

    def __init__(
        self,
        api_key: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        metadata: Optional[MetadataResolver] = None,
        api_base: str = W2G_API_BASE,
        room_url_base: str = W2G_ROOM_URL_BASE,
        timeout_seconds: float = 5.0,
        scrape_timeout_seconds: float = 3.0,
    ) -> None:
        if not api_key:
            raise ConfigError("W2G_API_KEY is not set")
        self._api_key = api_key
        self._api_base = api_base.rstrip("/")
        self._room_url_base = room_url_base.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._metadata = metadata or MetadataResolver(
            self._client,
            timeout_seconds=timeout_seconds,
            scrape_timeout_seconds=scrape_timeout_seconds,
        )

    async def close(self) -> None:
        await self._client.aclose()

    def room_link(self, streamkey: str) -> str:
        return f"{self._room_url_base}/{streamkey}"

    async def create_room(self, initial_url: Optional[str] = None) -> str:
        """Create a room and return its streamkey."""

        body: Dict[str, Any] = {"w2g_api_key": self._api_key}
        if initial_url:
            body["share"] = initial_url

        response = await self._post("/rooms/create.json", body, action="create room")
        try:
            data = response.json()
        except ValueError as exc:
            raise RoomServiceError("Failed to create room: response is not JSON") from exc

        streamkey = data.get("streamkey") if isinstance(data, dict) else None
        if not streamkey:
            raise RoomServiceError("No streamkey returned from Watch2Gether")
        return str(streamkey)

    async def add_to_playlist(self, streamkey: str, url: str, title: Optional[str] = None) -> None:
        """Append one item to the room's current playlist.

        Metadata lookup is best-effort: a missing title or thumbnail never
        blocks the add.
        """

        cleaned_url = canonicalize_url(url)
        meta = await self._metadata.resolve(cleaned_url)
        item: Dict[str, Any] = {"url": cleaned_url}
        resolved_title = title or meta.title
        if resolved_title:
            item["title"] = resolved_title
        if meta.thumbnail:
            # W2G clients read different keys for the thumbnail.
            item["thumbnail"] = meta.thumbnail
            item["img"] = meta.thumbnail
            item["thumb"] = meta.thumbnail

        body = {"w2g_api_key": self._api_key, "add_items": [item]}
        path = f"/rooms/{quote(streamkey, safe='')}/playlists/current/playlist_items/sync_update"
        await self._post(path, body, action="add to playlist")
        LOGGER.info("Playlist item added: %s", cleaned_url)

    async def _post(self, path: str, body: Dict[str, Any], *, action: str) -> httpx.Response:
        try:
            response = await self._client.post(
                f"{self._api_base}{path}",
                json=body,
                headers=JSON_HEADERS,
            )
        except httpx.HTTPError as exc:
            raise RoomServiceError(f"Failed to {action}: {exc.__class__.__name__}") from exc

        if not response.is_success:
            body_preview = (response.text or "").strip().replace("\n", " ")[:200]
            raise RoomServiceError(f"Failed to {action}: {response.status_code} {body_preview}")
        return response
