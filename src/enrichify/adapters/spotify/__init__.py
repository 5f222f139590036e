"""Spotify adapter package."""

from __future__ import annotations

from .client import (
    AuthError,
    NotAuthenticatedError,
    SpotifyClient,
    SpotifySession,
    fetch_access_token,
)
from .schema import AccessToken, SpotifyAlbum, SpotifyArtist

__all__ = [
    "AccessToken",
    "AuthError",
    "NotAuthenticatedError",
    "SpotifyAlbum",
    "SpotifyArtist",
    "SpotifyClient",
    "SpotifySession",
    "fetch_access_token",
]
