"""Port for looking up artists in an external music catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence


class FollowerCount(Protocol):
    @property
    def total(self) -> int: ...


class CatalogArtist(Protocol):
    """What the enrichment run reads from an artist record."""

    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def popularity(self) -> int | None: ...

    @property
    def followers(self) -> FollowerCount: ...


class CatalogAlbum(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def release_date(self) -> str | None: ...


@runtime_checkable
class ArtistCatalog(Protocol):
    """Async lookups the enrichment run needs from a catalog session."""

    async def get_artists(self, ids: Sequence[str]) -> Sequence[CatalogArtist]:
        """Return the artists matching ``ids``; unknown ids are simply absent."""
        ...

    async def get_latest_album(self, artist_id: str) -> CatalogAlbum | None:
        """Return the artist's most recent release, or None when there is none."""
        ...


__all__ = ["ArtistCatalog", "CatalogAlbum", "CatalogArtist", "FollowerCount"]
