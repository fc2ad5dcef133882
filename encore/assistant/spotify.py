"""Async client helpers for the Spotify Web API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from .config import SpotifyConfig
from .errors import RemoteActionError

LOGGER = logging.getLogger(__name__)


class SpotifyError(RemoteActionError):
    """Generic Spotify API failure."""


class SpotifyAuthError(SpotifyError):
    """Raised when Spotify returns 401/403."""


@dataclass(frozen=True)
class SpotifySession:
    """Bearer credential handed to every Web API call.

    Produced by the authorization flow; the command pipeline only reads it.
    """

    access_token: str
    refresh_token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)


@dataclass(slots=True)
class SpotifyClient:
    config: SpotifyConfig
    transport: httpx.AsyncBaseTransport | None = None
    _client: httpx.AsyncClient = field(init=False, repr=False)
    _closed: bool = field(init=False, default=True, repr=False)

    def __post_init__(self) -> None:
        if not self.config.api_base_url:
            raise ValueError("Spotify API base URL is not configured")
        self._client = httpx.AsyncClient(
            base_url=self.config.api_base_url.rstrip("/"),
            timeout=self.config.timeout,
            transport=self.transport,
        )
        self._closed = False

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._client.aclose()

    async def play(
        self,
        token: str,
        *,
        uris: list[str] | None = None,
        context_uri: str | None = None,
    ) -> None:
        """Start or resume playback, optionally on specific tracks or a context."""
        body: dict[str, Any] = {}
        if uris:
            body["uris"] = list(uris)
        if context_uri:
            body["context_uri"] = context_uri
        if body:
            await self._request("PUT", "/me/player/play", token, json=body)
        else:
            await self._request("PUT", "/me/player/play", token)

    async def pause(self, token: str) -> None:
        await self._request("PUT", "/me/player/pause", token)

    async def next_track(self, token: str) -> None:
        await self._request("POST", "/me/player/next", token)

    async def previous_track(self, token: str) -> None:
        await self._request("POST", "/me/player/previous", token)

    async def search(self, token: str, query: str, item_type: str, *, limit: int = 1) -> list[dict[str, Any]]:
        """Return catalog items of one type, in Spotify's ranking order."""
        payload = await self._request(
            "GET",
            "/search",
            token,
            params={"q": query, "type": item_type, "limit": limit},
        )
        return _items(_section(payload, f"{item_type}s"))

    async def artist_top_tracks(self, token: str, artist_id: str, market: str) -> list[dict[str, Any]]:
        payload = await self._request("GET", f"/artists/{artist_id}/top-tracks", token, params={"market": market})
        tracks = payload.get("tracks") if isinstance(payload, dict) else None
        if not isinstance(tracks, list):
            return []
        return [track for track in tracks if isinstance(track, dict)]

    async def list_playlists(self, token: str, *, limit: int = 50) -> list[dict[str, Any]]:
        """Return the current user's playlists in library order."""
        payload = await self._request("GET", "/me/playlists", token, params={"limit": limit})
        return _items(payload)

    async def _request(self, method: str, path: str, token: str, **kwargs: Any) -> Any:
        headers = {"Authorization": f"Bearer {token}"}
        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as exc:
            raise SpotifyError(f"Spotify request timed out: {method} {path}") from exc
        except httpx.RequestError as exc:
            raise SpotifyError(f"Failed to contact Spotify: {exc}") from exc
        LOGGER.debug("[spotify] %s %s -> %s", method, path, response.status_code)
        if response.status_code in (401, 403):
            raise SpotifyAuthError(f"Spotify rejected the request ({response.status_code}): {_error_message(response)}")
        if response.status_code >= 400:
            raise SpotifyError(f"Spotify error {response.status_code}: {_error_message(response)}")
        if response.status_code == 204 or not response.content:
            return None
        if response.headers.get("content-type", "").startswith("application/json"):
            return response.json()
        return response.text


def _section(payload: Any, key: str) -> Any:
    if isinstance(payload, dict):
        return payload.get(key)
    return None


def _items(container: Any) -> list[dict[str, Any]]:
    if not isinstance(container, dict):
        return []
    items = container.get("items")
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        description = payload.get("error_description")
        return f"{error}: {description}" if description else error
    return response.text or response.reason_phrase
