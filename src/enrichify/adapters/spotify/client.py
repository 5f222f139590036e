"""Client-credentials Spotify Web API client."""

from __future__ import annotations

import asyncio
import dataclasses
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from enrichify.adapters.http_resilience import (
    ResilientClient,
    TransportError,
    ensure_success,
    retry_on_rate_limit,
)
from enrichify.config.spotify import SpotifyConfig

from .schema import AccessToken, ArtistAlbumsPage, SeveralArtistsResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from enrichify.adapters.http_resilience import Sleep
    from enrichify.config.http_resilience import ResilienceConfig

    from .schema import SpotifyAlbum, SpotifyArtist

log = getLogger(__name__)

MAX_IDS_PER_ARTISTS_REQUEST = 50


class AuthError(RuntimeError):
    """Raised when the token endpoint rejects the client credentials."""

    def __init__(self, message: str, *, status_code: int, body: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NotAuthenticatedError(RuntimeError):
    """Raised when the API is used before ``authenticate`` succeeded."""


async def fetch_access_token(client: ResilientClient, config: SpotifyConfig) -> AccessToken:
    """Exchange the client id/secret for a bearer token (client-credentials grant)."""

    response = await client.post(
        config.token_url,
        auth=httpx.BasicAuth(config.client_id, config.client_secret),
        data={"grant_type": "client_credentials"},
    )
    if not response.is_success:
        log.error("Spotify token request failed with HTTP %s", response.status_code)
        raise AuthError(
            f"Spotify rejected the client credentials (HTTP {response.status_code}): "
            f"{response.text}",
            status_code=response.status_code,
            body=response.text,
        )
    return AccessToken.model_validate(response.json())


@dataclass(frozen=True, slots=True)
class SpotifySession:
    """An authenticated view of the Web API; produced by ``SpotifyClient.authenticate``."""

    token: AccessToken
    http: ResilientClient
    sleep: Sleep = asyncio.sleep

    async def request(
        self,
        path: str,
        params: dict[str, str | int] | None = None,
    ) -> httpx.Response:
        if self.http.is_closed:
            raise NotAuthenticatedError("Spotify session has been closed")
        response = await self.http.get(path, params=params)
        return ensure_success(response)

    async def get_artists(self, ids: Sequence[str]) -> list[SpotifyArtist]:
        if not ids:
            return []
        if len(ids) > MAX_IDS_PER_ARTISTS_REQUEST:
            raise ValueError(
                f"At most {MAX_IDS_PER_ARTISTS_REQUEST} ids per request, got {len(ids)}"
            )
        response = await retry_on_rate_limit(
            lambda: self.request("artists", params={"ids": ",".join(ids)}),
            self.http.config.retry,
            sleep=self.sleep,
            description=f"{len(ids)} artists",
        )
        return SeveralArtistsResponse.model_validate(response.json()).found()

    async def get_latest_album(self, artist_id: str) -> SpotifyAlbum | None:
        response = await retry_on_rate_limit(
            lambda: self.request(f"artists/{artist_id}/albums", params={"limit": 1}),
            self.http.config.retry,
            sleep=self.sleep,
            description=f"albums of {artist_id}",
        )
        page = ArtistAlbumsPage.model_validate(response.json())
        return page.items[0] if page.items else None


class SpotifyClient:
    """Owns the HTTP clients; hands out a ``SpotifySession`` once authenticated."""

    def __init__(
        self,
        *,
        config: SpotifyConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient
        self._sleep = sleep
        self._session: SpotifySession | None = None

    async def __aenter__(self) -> SpotifyClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._session is not None:
            await self._session.http.aclose()

    async def authenticate(self) -> SpotifySession:
        if self._session is not None:
            return self._session

        async with self._client_factory(self._config.accounts) as accounts:
            token = await fetch_access_token(accounts, self._config)

        headers = dict(self._config.api.default_headers or {})
        headers["Authorization"] = f"Bearer {token.access_token}"
        api_config = dataclasses.replace(self._config.api, default_headers=headers)
        self._session = SpotifySession(
            token=token,
            http=self._client_factory(api_config),
            sleep=self._sleep,
        )
        log.info("Authenticated with Spotify (token type %s)", token.token_type)
        return self._session

    @property
    def session(self) -> SpotifySession:
        if self._session is None:
            raise NotAuthenticatedError("Not authenticated, call authenticate() first")
        return self._session

    async def request(
        self,
        path: str,
        params: dict[str, str | int] | None = None,
    ) -> httpx.Response:
        return await self.session.request(path, params)


__all__ = [
    "MAX_IDS_PER_ARTISTS_REQUEST",
    "AuthError",
    "NotAuthenticatedError",
    "SpotifyClient",
    "SpotifyConfig",
    "SpotifySession",
    "TransportError",
    "fetch_access_token",
]
