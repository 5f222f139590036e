"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from enrichify.adapters.files import read_artist_ids, write_report
from enrichify.adapters.spotify import SpotifyClient
from enrichify.domain.enrichment import EnrichmentResult, enrich_artists

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from enrichify.adapters.files import InputFormat, OutputFormat
    from enrichify.adapters.http_resilience import ResilientClient, Sleep
    from enrichify.config.enrichment import EnrichmentSettings
    from enrichify.config.http_resilience import ResilienceConfig
    from enrichify.config.spotify import SpotifyConfig

log = getLogger(__name__)


def load_artist_ids(
    *,
    ids: Sequence[str] | None = None,
    input_path: Path | None = None,
    input_format: InputFormat | None = None,
    id_field: str | None = None,
) -> list[str | None]:
    """Return ids given directly, or the ids found in ``input_path``."""

    if ids:
        return list(ids)
    if input_path is None:
        raise ValueError("Either artist ids or an input file is required")
    if id_field is None:
        return read_artist_ids(input_path, input_format=input_format)
    return read_artist_ids(input_path, input_format=input_format, id_field=id_field)


def run_enrichment(
    *,
    artist_ids: Sequence[str | None],
    output_path: Path,
    spotify_config: SpotifyConfig,
    settings: EnrichmentSettings | None = None,
    output_format: OutputFormat | None = None,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    sleep: Sleep = asyncio.sleep,
) -> EnrichmentResult:
    """Enrich ``artist_ids`` from Spotify and write the report to ``output_path``.

    Once authenticated, the report is written even when fetching fails; the
    error is re-raised afterwards.
    """

    return asyncio.run(
        _run_enrichment_async(
            artist_ids=artist_ids,
            output_path=output_path,
            spotify_config=spotify_config,
            settings=settings,
            output_format=output_format,
            client_factory=client_factory,
            sleep=sleep,
        )
    )


async def _run_enrichment_async(
    *,
    artist_ids: Sequence[str | None],
    output_path: Path,
    spotify_config: SpotifyConfig,
    settings: EnrichmentSettings | None,
    output_format: OutputFormat | None,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None,
    sleep: Sleep,
) -> EnrichmentResult:
    result = EnrichmentResult()
    async with SpotifyClient(
        config=spotify_config,
        client_factory=client_factory,
        sleep=sleep,
    ) as client:
        session = await client.authenticate()
        try:
            await enrich_artists(session, artist_ids, settings=settings, result=result)
        finally:
            written = write_report(result.rows(), output_path, output_format=output_format)
            log.info(
                "Wrote %s rows (%s artists, %s latest albums) to %s",
                written,
                len(result.artists),
                sum(1 for album in result.latest_albums.values() if album is not None),
                output_path,
            )
    return result
