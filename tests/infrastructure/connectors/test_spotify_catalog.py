"""Tests for the Spotify catalog connector and its token cache.

The spotipy client is replaced through ``client_factory`` and token grants
through ``fetch_token``; no request leaves the process.
"""

import asyncio
import threading
import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import requests
import spotipy

from tunelink.config import settings
from tunelink.domain.exceptions import NotFoundError, UnavailableError
from tunelink.infrastructure.connectors import (
    CatalogTokenCache,
    SpotifyCatalogConnector,
    convert_spotify_track,
)

SPOTIFY_TRACK = {
    "id": "ext-123",
    "name": "Idioteque",
    "artists": [{"name": "Radiohead"}, {"name": ""}],
    "album": {
        "name": "Kid A",
        "release_date": "2000-10-02",
        "images": [{"url": "https://i.scdn.co/large.jpg"}, {"url": "small.jpg"}],
    },
    "duration_ms": 309_000,
    "preview_url": None,
    "external_urls": {"spotify": "https://open.spotify.com/track/ext-123"},
    "popularity": 58,
}


def spotify_error(status: int) -> spotipy.SpotifyException:
    return spotipy.SpotifyException(status, -1, f"HTTP {status}")


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TokenSource:
    """Hands out tok-1, tok-2, ... and counts grants."""

    def __init__(self, delay: float = 0.0) -> None:
        self.calls = 0
        self.delay = delay
        self._lock = threading.Lock()

    def __call__(self) -> str:
        if self.delay:
            time.sleep(self.delay)
        with self._lock:
            self.calls += 1
            return f"tok-{self.calls}"


@pytest.fixture(autouse=True)
def no_backoff_sleep():
    with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


@pytest.fixture
def tokens():
    return TokenSource()


@pytest.fixture
def token_cache(tokens):
    return CatalogTokenCache(fetch_token=tokens, clock=FakeClock())


@pytest.fixture
def client():
    mock = MagicMock()
    mock.track.return_value = SPOTIFY_TRACK
    return mock


@pytest.fixture
def built_with():
    return []


@pytest.fixture
def connector(token_cache, client, built_with):
    def factory(token):
        built_with.append(token)
        return client

    return SpotifyCatalogConnector(token_cache=token_cache, client_factory=factory)


class TestCatalogTokenCache:
    async def test_token_reused_until_refresh_margin(self, tokens):
        clock = FakeClock()
        cache = CatalogTokenCache(fetch_token=tokens, clock=clock)

        assert await cache.get_token() == "tok-1"
        clock.now += settings.catalog.token_ttl_seconds - (
            settings.catalog.token_refresh_margin_seconds + 1
        )
        assert await cache.get_token() == "tok-1"

        clock.now += 2
        assert await cache.get_token() == "tok-2"
        assert tokens.calls == 2

    async def test_concurrent_callers_share_one_refresh(self):
        tokens = TokenSource(delay=0.05)
        cache = CatalogTokenCache(fetch_token=tokens, clock=FakeClock())

        results = await asyncio.gather(*(cache.get_token() for _ in range(8)))

        assert set(results) == {"tok-1"}
        assert tokens.calls == 1

    async def test_invalidate_only_drops_matching_token(self, token_cache, tokens):
        await token_cache.get_token()

        await token_cache.invalidate("some-older-token")
        assert await token_cache.get_token() == "tok-1"

        await token_cache.invalidate("tok-1")
        assert await token_cache.get_token() == "tok-2"

    async def test_clear(self, token_cache):
        await token_cache.get_token()
        token_cache.clear()

        assert await token_cache.get_token() == "tok-2"

    async def test_grant_failure_propagates(self):
        def failing() -> str:
            raise UnavailableError("bad credentials")

        cache = CatalogTokenCache(fetch_token=failing, clock=FakeClock())

        with pytest.raises(UnavailableError):
            await cache.get_token()


class TestSpotifyCatalogConnector:
    async def test_get_track(self, connector, client):
        track = await connector.get_track("ext-123")

        assert track.external_id == "ext-123"
        assert track.artists == ["Radiohead"]
        client.track.assert_called_once_with("ext-123", market=settings.catalog.market)

    async def test_client_reused_for_same_token(self, connector, built_with):
        await connector.get_track("ext-123")
        await connector.get_track("ext-123")

        assert built_with == ["tok-1"]

    @pytest.mark.parametrize("status", [400, 404])
    async def test_unknown_track(self, connector, client, status):
        client.track.side_effect = spotify_error(status)

        with pytest.raises(NotFoundError):
            await connector.get_track("nope")

        assert client.track.call_count == 1

    async def test_rejected_token_refreshed_once(
        self, connector, client, tokens, built_with
    ):
        client.track.side_effect = [spotify_error(401), SPOTIFY_TRACK]

        track = await connector.get_track("ext-123")

        assert track.title == "Idioteque"
        assert tokens.calls == 2
        assert built_with == ["tok-1", "tok-2"]

    async def test_second_rejection_is_unavailable(self, connector, client, tokens):
        client.track.side_effect = spotify_error(401)

        with pytest.raises(UnavailableError):
            await connector.get_track("ext-123")

        assert tokens.calls == 2

    @pytest.mark.parametrize("status", [429, 500, 503])
    async def test_transient_errors_retried(self, connector, client, status):
        client.track.side_effect = [spotify_error(status), SPOTIFY_TRACK]

        track = await connector.get_track("ext-123")

        assert track.external_id == "ext-123"
        assert client.track.call_count == 2

    async def test_persistent_outage_is_unavailable(self, connector, client):
        client.track.side_effect = spotify_error(503)

        with pytest.raises(UnavailableError):
            await connector.get_track("ext-123")

        assert client.track.call_count == settings.catalog.retry_count

    async def test_network_errors_retried(self, connector, client):
        client.track.side_effect = [
            requests.ConnectionError("reset"),
            requests.Timeout("slow"),
            SPOTIFY_TRACK,
        ]

        track = await connector.get_track("ext-123")

        assert track.external_id == "ext-123"

    async def test_unexpected_status(self, connector, client):
        client.track.side_effect = spotify_error(403)

        with pytest.raises(UnavailableError):
            await connector.get_track("ext-123")

        assert client.track.call_count == 1

    async def test_malformed_response(self, connector, client):
        client.track.return_value = {"name": "no id"}

        with pytest.raises(UnavailableError):
            await connector.get_track("ext-123")


def test_convert_spotify_track():
    track = convert_spotify_track(SPOTIFY_TRACK)

    assert track.title == "Idioteque"
    assert track.album == "Kid A"
    assert track.duration_ms == 309_000
    assert track.release_date == "2000-10-02"
    assert track.artwork_url == "https://i.scdn.co/large.jpg"
    assert track.preview_url is None
    assert track.external_url == "https://open.spotify.com/track/ext-123"
    assert track.popularity == 58


def test_convert_sparse_track():
    track = convert_spotify_track({"id": "x", "name": "Bare"})

    assert track.artists == []
    assert track.album is None
    assert track.artwork_url is None
