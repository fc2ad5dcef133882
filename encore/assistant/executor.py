"""Execute structured playback actions against the Spotify Web API."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING

from .errors import NotFoundError, NoTracksError, RemoteActionError, UnknownActionError

if TYPE_CHECKING:
    from .actions import StructuredAction
    from .spotify import SpotifyClient, SpotifySession

LOGGER = logging.getLogger(__name__)

Handler = Callable[[Mapping[str, str], str], Awaitable[None]]


class ActionExecutor:
    """Maps each action kind onto an ordered sequence of Spotify calls.

    Every step is a single call without retry; the first failure aborts the
    action and propagates as a :class:`RemoteActionError` (or a lookup error
    when a search comes back empty).
    """

    def __init__(
        self,
        spotify: SpotifyClient,
        *,
        market: str = "US",
        playlist_limit: int = 50,
        logger: logging.Logger | None = None,
    ) -> None:
        self.spotify = spotify
        self.market = market
        self.playlist_limit = playlist_limit
        self.logger = logger or LOGGER
        self._handlers: dict[str, Handler] = {
            "play": self._play,
            "pause": self._pause,
            "next": self._next,
            "previous": self._previous,
            "search_and_play": self._search_and_play,
            "play_artist_top_tracks": self._play_artist_top_tracks,
            "play_my_playlist": self._play_my_playlist,
        }

    async def execute(self, action: StructuredAction, session: SpotifySession) -> None:
        handler = self._handlers.get(action.action)
        if handler is None:
            raise UnknownActionError(str(action.action))
        self.logger.debug("[executor] Running %s with %s", action.action, action.parameters)
        await handler(action.parameters, session.access_token)

    async def _play(self, _parameters: Mapping[str, str], token: str) -> None:
        await self.spotify.play(token)

    async def _pause(self, _parameters: Mapping[str, str], token: str) -> None:
        await self.spotify.pause(token)

    async def _next(self, _parameters: Mapping[str, str], token: str) -> None:
        await self.spotify.next_track(token)

    async def _previous(self, _parameters: Mapping[str, str], token: str) -> None:
        await self.spotify.previous_track(token)

    async def _search_and_play(self, parameters: Mapping[str, str], token: str) -> None:
        query = parameters.get("query", "")
        item_type = parameters.get("type") or "track"
        if not query:
            raise NotFoundError(query, item_type)
        items = await self.spotify.search(token, query, item_type, limit=1)
        if not items:
            raise NotFoundError(query, item_type)
        uri = _require_uri(items[0], item_type)
        if item_type == "track":
            await self.spotify.play(token, uris=[uri])
        else:
            await self.spotify.play(token, context_uri=uri)

    async def _play_artist_top_tracks(self, parameters: Mapping[str, str], token: str) -> None:
        artist_name = parameters.get("artistName", "")
        if not artist_name:
            raise NotFoundError(artist_name, "artist")
        artists = await self.spotify.search(token, artist_name, "artist", limit=1)
        if not artists:
            raise NotFoundError(artist_name, "artist")
        artist_id = artists[0].get("id")
        if not artist_id:
            raise RemoteActionError(f"Spotify returned an artist without an id for {artist_name}")
        tracks = await self.spotify.artist_top_tracks(token, str(artist_id), self.market)
        uris = [str(track["uri"]) for track in tracks if track.get("uri")]
        if not uris:
            raise NoTracksError(artist_name)
        await self.spotify.play(token, uris=uris)

    async def _play_my_playlist(self, parameters: Mapping[str, str], token: str) -> None:
        playlist_name = parameters.get("playlistName", "")
        if not playlist_name:
            raise NotFoundError(playlist_name, "playlist")
        playlists = await self.spotify.list_playlists(token, limit=self.playlist_limit)
        needle = playlist_name.lower()
        # First match in library order, not the closest name.
        match = next((item for item in playlists if needle in str(item.get("name") or "").lower()), None)
        if match is None:
            raise NotFoundError(playlist_name, "playlist")
        await self.spotify.play(token, context_uri=_require_uri(match, "playlist"))


def _require_uri(item: Mapping[str, object], item_type: str) -> str:
    uri = item.get("uri")
    if not uri:
        raise RemoteActionError(f"Spotify returned a {item_type} without a URI")
    return str(uri)
