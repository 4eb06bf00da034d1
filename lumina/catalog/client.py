"""
Audius catalog client — async REST adapter over httpx.

Fetches trending tracks, single tracks, users, user tracks, playlists and
search results from the Audius v1 API and maps them to catalog models.
Every network error, non-2xx response or malformed payload is raised as
CatalogError (404 as CatalogNotFoundError). No retries.
"""

from __future__ import annotations

from typing import Any, Protocol
from urllib.parse import quote, urlencode

import httpx

from lumina.catalog.models import Playlist, Track, User
from lumina.config.env import (
    get_audius_api_key,
    get_audius_api_url,
    get_request_timeout_sec,
)
from lumina.core.exceptions import CatalogError, CatalogNotFoundError
from lumina.lumina_logging import get_logger

logger = get_logger(__name__)

TRENDING_MAX_LIMIT = 100
TRENDING_ARTISTS_POOL = 50


class CatalogSource(Protocol):
    """Catalog operations consumed by the analysis engine."""

    async def get_trending_tracks(self, limit: int = 20, offset: int = 0) -> list[Track]: ...

    async def get_track(self, track_id: str) -> Track: ...

    async def get_user(self, user_id: str) -> User: ...

    async def get_user_tracks(self, user_id: str, limit: int = 20, offset: int = 0) -> list[Track]: ...


class AudiusClient:
    """
    Async client for the Audius v1 REST API.

    Use as an async context manager, or call aclose() when done. A custom
    httpx transport can be passed for tests (httpx.MockTransport).
    """

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = (api_url or get_audius_api_url()).rstrip("/")
        self.api_key = api_key if api_key is not None else get_audius_api_key()
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            headers=headers,
            timeout=httpx.Timeout(timeout or get_request_timeout_sec()),
            transport=transport,
        )

    async def __aenter__(self) -> "AudiusClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport and mapping
    # ------------------------------------------------------------------

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """GET endpoint and return the unwrapped `data` payload."""
        try:
            resp = await self._client.get(endpoint, params=params)
        except httpx.HTTPError as e:
            logger.warning("catalog_request_failed", endpoint=endpoint, error=str(e))
            raise CatalogError(f"Audius API request failed: {e}", endpoint=endpoint) from e
        if resp.status_code == 404:
            raise CatalogNotFoundError(
                f"Audius API error: {resp.status_code}", status_code=resp.status_code, endpoint=endpoint
            )
        if not resp.is_success:
            logger.warning("catalog_bad_status", endpoint=endpoint, status_code=resp.status_code)
            raise CatalogError(
                f"Audius API error: {resp.status_code}", status_code=resp.status_code, endpoint=endpoint
            )
        try:
            body = resp.json()
        except ValueError as e:
            raise CatalogError("Audius API returned invalid JSON", endpoint=endpoint) from e
        if not isinstance(body, dict) or "data" not in body:
            raise CatalogError("Audius API response missing data envelope", endpoint=endpoint)
        return body["data"]

    def _stream_url(self, track_id: str) -> str:
        url = f"{self.api_url}/tracks/{track_id}/stream"
        if self.api_key:
            url += "?" + urlencode({"api_key": self.api_key})
        return url

    def _map_track(self, raw: Any, endpoint: str) -> Track:
        try:
            return Track.from_api(raw, stream_url=self._stream_url(str(raw["id"])))
        except (KeyError, TypeError, AttributeError, ValueError, OverflowError) as e:
            raise CatalogError(f"Malformed track payload: {e}", endpoint=endpoint) from e

    def _map_tracks(self, raw: Any, endpoint: str) -> list[Track]:
        if not isinstance(raw, list):
            raise CatalogError("Expected a list of tracks", endpoint=endpoint)
        return [self._map_track(item, endpoint) for item in raw]

    def _map_user(self, raw: Any, endpoint: str) -> User:
        try:
            return User.from_api(raw)
        except (KeyError, TypeError, AttributeError, ValueError, OverflowError) as e:
            raise CatalogError(f"Malformed user payload: {e}", endpoint=endpoint) from e

    def _map_playlist(self, raw: Any, endpoint: str) -> Playlist:
        try:
            raw_tracks = raw.get("tracks")
            return Playlist(
                id=str(raw["id"]),
                name=raw.get("playlist_name") or "",
                owner=User.from_api(raw["user"]),
                track_count=int(raw.get("track_count") or 0),
                repost_count=int(raw.get("repost_count") or 0),
                favorite_count=int(raw.get("favorite_count") or 0),
                total_play_count=int(raw.get("total_play_count") or 0),
                created_at=raw.get("created_at") or "",
                description=raw.get("description"),
                artwork=raw.get("artwork"),
                tracks=self._map_tracks(raw_tracks, endpoint) if isinstance(raw_tracks, list) else [],
            )
        except (KeyError, TypeError, AttributeError, ValueError, OverflowError) as e:
            raise CatalogError(f"Malformed playlist payload: {e}", endpoint=endpoint) from e

    # ------------------------------------------------------------------
    # Tracks
    # ------------------------------------------------------------------

    async def get_trending_tracks(self, limit: int = 20, offset: int = 0) -> list[Track]:
        """Return one page of trending tracks. limit is clamped to [1, 100], offset to >= 0."""
        safe_limit = min(max(int(limit), 1), TRENDING_MAX_LIMIT)
        safe_offset = max(int(offset), 0)
        endpoint = "/tracks/trending"
        data = await self._get(endpoint, {"limit": safe_limit, "offset": safe_offset})
        tracks = self._map_tracks(data, endpoint)
        logger.debug("catalog_trending_fetched", limit=safe_limit, offset=safe_offset, count=len(tracks))
        return tracks

    async def get_track(self, track_id: str) -> Track:
        endpoint = f"/tracks/{quote(track_id, safe='')}"
        return self._map_track(await self._get(endpoint), endpoint)

    async def search_tracks(self, query: str, limit: int = 20) -> list[Track]:
        endpoint = "/tracks/search"
        data = await self._get(endpoint, {"query": query, "limit": limit})
        return self._map_tracks(data, endpoint)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_user(self, user_id: str) -> User:
        endpoint = f"/users/{quote(user_id, safe='')}"
        return self._map_user(await self._get(endpoint), endpoint)

    async def get_user_by_handle(self, handle: str) -> User:
        endpoint = f"/users/handle/{quote(handle, safe='')}"
        return self._map_user(await self._get(endpoint), endpoint)

    async def get_user_tracks(self, user_id: str, limit: int = 20, offset: int = 0) -> list[Track]:
        endpoint = f"/users/{quote(user_id, safe='')}/tracks"
        data = await self._get(endpoint, {"limit": limit, "offset": offset})
        return self._map_tracks(data, endpoint)

    async def search_users(self, query: str, limit: int = 20, offset: int = 0) -> list[User]:
        endpoint = "/users/search"
        data = await self._get(endpoint, {"query": query, "limit": limit, "offset": offset})
        if not isinstance(data, list):
            raise CatalogError("Expected a list of users", endpoint=endpoint)
        return [self._map_user(item, endpoint) for item in data]

    async def get_trending_artists(self, limit: int = 20) -> list[User]:
        """Unique owners of the current trending tracks, in first-seen order."""
        endpoint = "/tracks/trending"
        data = await self._get(endpoint, {"limit": TRENDING_ARTISTS_POOL})
        seen: set[str] = set()
        artists: list[User] = []
        for track in self._map_tracks(data, endpoint):
            if track.user.id in seen:
                continue
            seen.add(track.user.id)
            artists.append(track.user)
            if len(artists) >= limit:
                break
        return artists

    # ------------------------------------------------------------------
    # Playlists
    # ------------------------------------------------------------------

    async def get_playlist(self, playlist_id: str) -> Playlist:
        """Return a playlist; the API may wrap it in a one-element list."""
        endpoint = f"/playlists/{quote(playlist_id, safe='')}"
        data = await self._get(endpoint)
        raw = data[0] if isinstance(data, list) and data else data
        if not raw or isinstance(raw, list):
            raise CatalogNotFoundError("Playlist not found", endpoint=endpoint)
        return self._map_playlist(raw, endpoint)
