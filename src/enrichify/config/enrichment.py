"""Defaults for the artist enrichment run."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_int
from .errors import InvalidSettingError

DEFAULT_ARTIST_BATCH_SIZE = 50
DEFAULT_CONCURRENCY = 10
MAX_ARTIST_BATCH_SIZE = 50


@dataclass(frozen=True, slots=True)
class EnrichmentSettings:
    artist_batch_size: int = DEFAULT_ARTIST_BATCH_SIZE
    concurrency: int = DEFAULT_CONCURRENCY

    def __post_init__(self) -> None:
        if not 1 <= self.artist_batch_size <= MAX_ARTIST_BATCH_SIZE:
            raise InvalidSettingError(
                "artist_batch_size",
                self.artist_batch_size,
                f"must be between 1 and {MAX_ARTIST_BATCH_SIZE}",
            )
        if self.concurrency < 1:
            raise InvalidSettingError("concurrency", self.concurrency, "must be positive")


def get_enrichment_settings(*, concurrency: int | None = None) -> EnrichmentSettings:
    return EnrichmentSettings(
        concurrency=(
            concurrency
            if concurrency is not None
            else optional_env_int("ENRICHIFY_CONCURRENCY", DEFAULT_CONCURRENCY)
        ),
    )
