"""Artist enrichment: resolve ids, fetch artists and their latest releases."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from enrichify.config.enrichment import EnrichmentSettings

from .batching import chunked, run_batched, unique_in_order

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from enrichify.domain.ports.catalog import ArtistCatalog, CatalogAlbum, CatalogArtist

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ArtistReportRow:
    spotify_id: str
    name: str | None = None
    popularity: int | None = None
    followers: int | None = None
    latest_album_name: str | None = None
    latest_album_release_date: str | None = None


@dataclass(slots=True)
class EnrichmentResult:
    """Everything fetched during a run, keyed by artist id.

    Filled while the run progresses, so a failed run still holds what it got.
    """

    requested_ids: list[str] = field(default_factory=list)
    artists: dict[str, CatalogArtist] = field(default_factory=dict)
    latest_albums: dict[str, CatalogAlbum | None] = field(default_factory=dict)

    @property
    def unmatched_ids(self) -> list[str]:
        return [artist_id for artist_id in self.requested_ids if artist_id not in self.artists]

    def rows(self) -> Iterator[ArtistReportRow]:
        """One row per requested id; missing data stays None."""

        for artist_id in self.requested_ids:
            artist = self.artists.get(artist_id)
            album = self.latest_albums.get(artist_id)
            yield ArtistReportRow(
                spotify_id=artist_id,
                name=artist.name if artist else None,
                popularity=artist.popularity if artist else None,
                followers=artist.followers.total if artist else None,
                latest_album_name=album.name if album else None,
                latest_album_release_date=album.release_date if album else None,
            )


def resolve_artist_ids(raw_ids: Iterable[str | None]) -> list[str]:
    """Strip, drop blanks and deduplicate, keeping first-occurrence order."""

    cleaned = (raw.strip() for raw in raw_ids if raw is not None)
    return unique_in_order(artist_id for artist_id in cleaned if artist_id)


async def fetch_artists(
    catalog: ArtistCatalog,
    artist_ids: list[str],
    *,
    settings: EnrichmentSettings,
    result: EnrichmentResult,
) -> list[CatalogArtist]:
    total = len(artist_ids)
    batch_size = settings.artist_batch_size

    async def fetch_chunk(ids: list[str], index: int) -> int:
        start = index * batch_size
        log.info("Fetching artists %s - %s / %s...", start, start + len(ids), total)
        artists = await catalog.get_artists(ids)
        for artist in artists:
            result.artists.setdefault(artist.id, artist)
        return len(artists)

    await run_batched(
        chunked(artist_ids, batch_size),
        fetch_chunk,
        concurrency=settings.concurrency,
    )
    # Request order, whatever order the catalog answered in.
    return [result.artists[artist_id] for artist_id in artist_ids if artist_id in result.artists]


async def fetch_latest_albums(
    catalog: ArtistCatalog,
    artists: list[CatalogArtist],
    *,
    settings: EnrichmentSettings,
    result: EnrichmentResult,
) -> None:
    total = len(artists)

    async def fetch_album(artist: CatalogArtist, index: int) -> None:
        log.info("Fetching latest album for artist %s / %s", index + 1, total)
        result.latest_albums[artist.id] = await catalog.get_latest_album(artist.id)

    await run_batched(artists, fetch_album, concurrency=settings.concurrency)


async def enrich_artists(
    catalog: ArtistCatalog,
    raw_ids: Iterable[str | None],
    *,
    settings: EnrichmentSettings | None = None,
    result: EnrichmentResult | None = None,
) -> EnrichmentResult:
    """Fetch artist data and latest releases for ``raw_ids``.

    Pass ``result`` to keep access to partial data when the run fails midway.
    """

    effective_settings = settings or EnrichmentSettings()
    effective_result = result if result is not None else EnrichmentResult()
    effective_result.requested_ids = resolve_artist_ids(raw_ids)

    log.info("Enriching %s distinct artist ids", len(effective_result.requested_ids))
    artists = await fetch_artists(
        catalog,
        effective_result.requested_ids,
        settings=effective_settings,
        result=effective_result,
    )
    unmatched = effective_result.unmatched_ids
    if unmatched:
        log.warning("%s ids did not match any artist: %s", len(unmatched), ", ".join(unmatched))

    await fetch_latest_albums(
        catalog,
        artists,
        settings=effective_settings,
        result=effective_result,
    )
    return effective_result
