"""Spotify catalog connector.

This module provides a read-only connector for the Spotify Web API using the
spotipy library (https://spotipy.readthedocs.io/) with the client-credentials
grant.

Key components:
- CatalogTokenCache: process-wide access token with single-flight refresh
- SpotifyCatalogConnector: fetches one track and converts it to ExternalTrack
- convert_spotify_track: Spotify track object to domain conversion

spotipy is synchronous; every HTTP call runs in a worker thread.
"""

import asyncio
from collections.abc import Callable
import time
from typing import Any

from attrs import define, field
import backoff
import requests
import spotipy
from spotipy.oauth2 import SpotifyClientCredentials, SpotifyOauthError

from tunelink.config import get_logger, resilient_operation, settings
from tunelink.domain.entities import ExternalTrack
from tunelink.domain.exceptions import NotFoundError, UnavailableError

# Get contextual logger with service binding
logger = get_logger(__name__).bind(service="spotify")


class _TransientCatalogError(Exception):
    """Rate limiting or server-side failure worth retrying."""


def request_client_credentials_token() -> str:
    """Run the client-credentials grant and return a bearer token.

    Blocking; call it from a worker thread.
    """
    creds = settings.credentials
    if not creds.spotify_client_id or not creds.spotify_client_secret:
        raise UnavailableError("Spotify client credentials are not configured")

    manager = SpotifyClientCredentials(
        client_id=creds.spotify_client_id,
        client_secret=creds.spotify_client_secret,
        requests_timeout=settings.catalog.request_timeout,
    )
    try:
        return manager.get_access_token(as_dict=False, check_cache=False)
    except (SpotifyOauthError, requests.RequestException) as e:
        raise UnavailableError(f"Spotify authentication failed: {e}") from e


class CatalogTokenCache:
    """Process-wide catalog access token.

    The token is acquired on first use and refreshed shortly before it
    expires or after the API rejects it. Concurrent callers needing a new
    token wait on one refresh instead of each running the grant.
    """

    def __init__(
        self,
        fetch_token: Callable[[], str] = request_client_credentials_token,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch_token = fetch_token
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    def _current(self) -> str | None:
        margin = settings.catalog.token_refresh_margin_seconds
        if self._token is not None and self._clock() < self._expires_at - margin:
            return self._token
        return None

    async def get_token(self) -> str:
        """Return a valid token, refreshing it if needed."""
        if (token := self._current()) is not None:
            return token

        async with self._lock:
            # Another caller may have refreshed while we waited
            if (token := self._current()) is not None:
                return token

            logger.debug("Refreshing catalog access token")
            token = await asyncio.to_thread(self._fetch_token)
            self._token = token
            self._expires_at = self._clock() + settings.catalog.token_ttl_seconds
            return token

    async def invalidate(self, rejected_token: str) -> None:
        """Drop the token the API rejected, unless it was already replaced."""
        async with self._lock:
            if self._token == rejected_token:
                self._token = None
                self._expires_at = 0.0

    def clear(self) -> None:
        self._token = None
        self._expires_at = 0.0


_token_cache: CatalogTokenCache | None = None


def get_token_cache() -> CatalogTokenCache:
    """Get or create the process-wide token cache."""
    global _token_cache
    if _token_cache is None:
        _token_cache = CatalogTokenCache()
    return _token_cache


def _build_client(token: str) -> spotipy.Spotify:
    # Retries are handled by backoff, not by spotipy's urllib3 adapter
    return spotipy.Spotify(
        auth=token,
        requests_timeout=settings.catalog.request_timeout,
        retries=0,
        status_retries=0,
    )


@define(slots=True)
class SpotifyCatalogConnector:
    """Fetches track descriptions from the Spotify catalog.

    Error mapping:
    - 400 and 404 raise NotFoundError (malformed or unknown track ID)
    - 401 refreshes the shared token once and retries
    - 429 and 5xx are retried with exponential backoff, then UnavailableError
    - anything else raises UnavailableError
    """

    token_cache: CatalogTokenCache = field(factory=get_token_cache)
    client_factory: Callable[[str], Any] = field(default=_build_client)
    _client: Any = field(default=None, init=False, repr=False)
    _client_token: str | None = field(default=None, init=False, repr=False)

    def _client_for(self, token: str) -> Any:
        if self._client is None or self._client_token != token:
            self._client = self.client_factory(token)
            self._client_token = token
        return self._client

    @resilient_operation("spotify_get_track")
    async def get_track(self, external_id: str) -> ExternalTrack:
        """Fetch one track by its Spotify ID."""
        try:
            raw_track = await self._get_track_with_retry(external_id)
        except _TransientCatalogError as e:
            raise UnavailableError(
                f"Spotify unavailable while fetching track {external_id}"
            ) from e.__cause__

        if not isinstance(raw_track, dict) or not raw_track.get("id"):
            raise UnavailableError(f"Invalid Spotify response for track {external_id}")

        return convert_spotify_track(raw_track)

    @backoff.on_exception(
        backoff.expo,
        _TransientCatalogError,
        max_tries=lambda: settings.catalog.retry_count,
        max_time=lambda: settings.catalog.retry_max_time,
        logger=None,
    )
    async def _get_track_with_retry(self, external_id: str) -> dict[str, Any]:
        return await self._request_track(external_id)

    async def _request_track(
        self, external_id: str, token_refreshed: bool = False
    ) -> dict[str, Any]:
        token = await self.token_cache.get_token()
        client = self._client_for(token)

        try:
            return await asyncio.to_thread(
                client.track, external_id, market=settings.catalog.market
            )
        except spotipy.SpotifyException as e:
            status = e.http_status
            if status == 401 and not token_refreshed:
                logger.info("Spotify rejected access token, refreshing")
                await self.token_cache.invalidate(token)
                return await self._request_track(external_id, token_refreshed=True)
            if status in (400, 404):
                raise NotFoundError(f"Spotify track {external_id} not found") from e
            if status == 429 or (status is not None and status >= 500):
                logger.warning(f"Spotify returned {status}, backing off")
                raise _TransientCatalogError(str(e)) from e
            raise UnavailableError(f"Spotify request failed with {status}") from e
        except requests.RequestException as e:
            logger.warning(f"Spotify request error: {e}")
            raise _TransientCatalogError(str(e)) from e


def convert_spotify_track(spotify_track: dict[str, Any]) -> ExternalTrack:
    """Convert a Spotify track object to an ExternalTrack."""
    album = spotify_track.get("album") or {}
    images = album.get("images") or []

    return ExternalTrack(
        external_id=spotify_track["id"],
        title=spotify_track.get("name") or "",
        artists=[
            artist["name"]
            for artist in spotify_track.get("artists") or []
            if artist.get("name")
        ],
        album=album.get("name"),
        duration_ms=spotify_track.get("duration_ms"),
        release_date=album.get("release_date"),
        artwork_url=images[0].get("url") if images else None,
        preview_url=spotify_track.get("preview_url"),
        external_url=(spotify_track.get("external_urls") or {}).get("spotify"),
        popularity=spotify_track.get("popularity"),
    )
