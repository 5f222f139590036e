"""Spotify configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import require_env_vars
from .http_resilience import RateLimit, RateLimitRetryPolicy, ResilienceConfig

SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_API_BASE_URL = "https://api.spotify.com/v1"


def _default_api_resilience() -> ResilienceConfig:
    return ResilienceConfig(name="spotify", base_url=SPOTIFY_API_BASE_URL)


def _default_accounts_resilience() -> ResilienceConfig:
    return ResilienceConfig(name="spotify-accounts")


@dataclass(frozen=True, slots=True)
class SpotifyConfig:
    client_id: str
    client_secret: str
    token_url: str = SPOTIFY_TOKEN_URL
    api: ResilienceConfig = field(default_factory=_default_api_resilience)
    accounts: ResilienceConfig = field(default_factory=_default_accounts_resilience)


def get_spotify_config(
    *,
    client_id: str | None = None,
    client_secret: str | None = None,
    retry: RateLimitRetryPolicy | None = None,
    ratelimit: RateLimit | None = None,
) -> SpotifyConfig:
    """Build the Spotify configuration, preferring explicit credentials over the environment."""

    values = require_env_vars(
        ("SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET"),
        overrides={"SPOTIFY_CLIENT_ID": client_id, "SPOTIFY_CLIENT_SECRET": client_secret},
    )
    api = ResilienceConfig(
        name="spotify",
        base_url=SPOTIFY_API_BASE_URL,
        retry=retry or RateLimitRetryPolicy(),
        ratelimit=ratelimit,
    )
    return SpotifyConfig(
        client_id=values["SPOTIFY_CLIENT_ID"],
        client_secret=values["SPOTIFY_CLIENT_SECRET"],
        api=api,
    )
