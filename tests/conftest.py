from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
import pytest

from enrichify.adapters.http_resilience import ResilientClient
from enrichify.config.spotify import SpotifyConfig

if TYPE_CHECKING:
    from collections.abc import Callable

    from enrichify.config.http_resilience import ResilienceConfig

SpotifyPayload = dict[str, object]


class FakeSpotifyApi:
    """In-memory stand-in for the accounts service and the Web API endpoints we call."""

    def __init__(self, *, token: str = "test-token") -> None:  # noqa: S107
        self.token = token
        self.token_status = 200
        self.artists: dict[str, SpotifyPayload] = {}
        self.albums: dict[str, list[SpotifyPayload]] = {}
        self.failures: dict[str, httpx.Response] = {}
        self.queued: list[httpx.Response] = []
        self.requests: list[httpx.Request] = []

    def add_artist(
        self,
        artist_id: str,
        *,
        name: str | None = None,
        popularity: int = 50,
        followers: int = 1000,
    ) -> None:
        self.artists[artist_id] = {
            "id": artist_id,
            "name": name or f"Artist {artist_id}",
            "popularity": popularity,
            "followers": {"href": None, "total": followers},
            "genres": [],
            "type": "artist",
        }

    def add_album(
        self,
        artist_id: str,
        *,
        album_id: str,
        name: str,
        release_date: str,
        precision: str = "day",
    ) -> None:
        self.albums.setdefault(artist_id, []).append(
            {
                "id": album_id,
                "name": name,
                "release_date": release_date,
                "release_date_precision": precision,
                "album_type": "album",
                "total_tracks": 10,
                "artists": [{"id": artist_id, "name": f"Artist {artist_id}"}],
            }
        )

    @property
    def api_requests(self) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.host == "api.spotify.com"]

    @property
    def artist_batches(self) -> list[list[str]]:
        return [
            request.url.params["ids"].split(",")
            for request in self.api_requests
            if request.url.path == "/v1/artists"
        ]

    @property
    def album_requests(self) -> list[str]:
        return [
            request.url.path.split("/")[3]
            for request in self.api_requests
            if request.url.path.endswith("/albums")
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "accounts.spotify.com":
            return self._token(request)
        if self.queued:
            return self.queued.pop(0)

        path = request.url.path
        if path == "/v1/artists":
            ids = request.url.params["ids"].split(",")
            return httpx.Response(200, json={"artists": [self.artists.get(i) for i in ids]})

        parts = path.split("/")
        if len(parts) == 5 and parts[2] == "artists" and parts[4] == "albums":
            artist_id = parts[3]
            if artist_id in self.failures:
                return self.failures[artist_id]
            limit = int(request.url.params.get("limit", "20"))
            items = self.albums.get(artist_id, [])
            return httpx.Response(
                200,
                json={
                    "href": str(request.url),
                    "items": items[:limit],
                    "limit": limit,
                    "next": None,
                    "offset": 0,
                    "previous": None,
                    "total": len(items),
                },
            )
        return httpx.Response(404, json={"error": {"status": 404, "message": "Not found"}})

    def _token(self, request: httpx.Request) -> httpx.Response:
        del request
        if self.token_status != 200:
            return httpx.Response(
                self.token_status,
                content=json.dumps({"error": "invalid_client"}).encode(),
                headers={"Content-Type": "application/json"},
            )
        return httpx.Response(
            200,
            json={
                "access_token": self.token,
                "token_type": "Bearer",
                "expires_in": 3600,
                "scope": "",
            },
        )


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def spotify_config() -> SpotifyConfig:
    return SpotifyConfig(
        client_id="client-id",
        client_secret="client-secret",  # noqa: S106
    )


@pytest.fixture
def fake_spotify_api() -> FakeSpotifyApi:
    return FakeSpotifyApi()


@pytest.fixture
def client_factory(
    fake_spotify_api: FakeSpotifyApi,
) -> Callable[[ResilienceConfig], ResilientClient]:
    def factory(config: ResilienceConfig) -> ResilientClient:
        return ResilientClient(config, transport=httpx.MockTransport(fake_spotify_api))

    return factory


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
