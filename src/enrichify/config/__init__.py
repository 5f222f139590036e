"""Application configuration helpers."""

from __future__ import annotations

from .enrichment import EnrichmentSettings, get_enrichment_settings
from .env import optional_env_int, require_env_vars
from .errors import ConfigurationError, InvalidSettingError, MissingConfigurationError
from .http_resilience import RateLimit, RateLimitRetryPolicy, ResilienceConfig
from .logging import configure_logging
from .spotify import SPOTIFY_API_BASE_URL, SPOTIFY_TOKEN_URL, SpotifyConfig, get_spotify_config

__all__ = [
    "SPOTIFY_API_BASE_URL",
    "SPOTIFY_TOKEN_URL",
    "ConfigurationError",
    "EnrichmentSettings",
    "InvalidSettingError",
    "MissingConfigurationError",
    "RateLimit",
    "RateLimitRetryPolicy",
    "ResilienceConfig",
    "SpotifyConfig",
    "configure_logging",
    "get_enrichment_settings",
    "get_spotify_config",
    "optional_env_int",
    "require_env_vars",
]
