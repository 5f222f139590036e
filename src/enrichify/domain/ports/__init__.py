"""Domain port definitions for adapters."""

from __future__ import annotations

from .catalog import ArtistCatalog, CatalogAlbum, CatalogArtist, FollowerCount

__all__ = ["ArtistCatalog", "CatalogAlbum", "CatalogArtist", "FollowerCount"]
