"""Minimal Pydantic models for the Spotify Web API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SpotifyBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class AccessToken(SpotifyBaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    scope: str | None = None


class SpotifyFollowers(SpotifyBaseModel):
    href: str | None = None
    total: int = 0


class SpotifySimplifiedArtist(SpotifyBaseModel):
    id: str
    name: str


class SpotifyArtist(SpotifyBaseModel):
    id: str
    name: str
    popularity: int | None = None
    followers: SpotifyFollowers = Field(default_factory=SpotifyFollowers)
    genres: list[str] = Field(default_factory=list)


class SpotifyAlbum(SpotifyBaseModel):
    id: str
    name: str
    release_date: str | None = None
    release_date_precision: str | None = None
    album_type: str | None = None
    total_tracks: int | None = None
    artists: list[SpotifySimplifiedArtist] = Field(
        default_factory=list["SpotifySimplifiedArtist"]
    )


class SpotifyPage(SpotifyBaseModel):
    href: str | None = None
    limit: int | None = None
    next: str | None = None
    offset: int | None = None
    previous: str | None = None
    total: int | None = None


class ArtistAlbumsPage(SpotifyPage):
    items: list[SpotifyAlbum] = Field(default_factory=list["SpotifyAlbum"])


class SeveralArtistsResponse(SpotifyBaseModel):
    # Unknown ids come back as null entries.
    artists: list[SpotifyArtist | None] = Field(default_factory=list["SpotifyArtist | None"])

    def found(self) -> list[SpotifyArtist]:
        return [artist for artist in self.artists if artist is not None]
