"""Reading artist ids from input files and writing the enrichment report."""

from __future__ import annotations

import csv
import dataclasses
import io
import json
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from enrichify.domain.enrichment import ArtistReportRow

log = getLogger(__name__)

DEFAULT_ID_FIELD = "shop_artist_ids"

CSV_HEADER = (
    "spotifyId",
    "name",
    "popularity",
    "followers",
    "latest album name",
    "latest album release date",
)


class InputFormat(StrEnum):
    JSON = "json"
    CSV = "csv"


class OutputFormat(StrEnum):
    CSV = "csv"
    JSON = "json"


class InputFileError(RuntimeError):
    """Raised when an input file cannot be read or has an unexpected shape."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class RemoteId(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None


class RemoteIds(BaseModel):
    model_config = ConfigDict(extra="ignore")

    spotify: RemoteId | None = None


class ArtistInputRecord(BaseModel):
    """One input row; the remote ids arrive either as an object or as embedded JSON."""

    model_config = ConfigDict(extra="ignore")

    remote_ids: RemoteIds | None = None

    @field_validator("remote_ids", mode="before")
    @classmethod
    def _decode_embedded_json(cls, value: object) -> object:
        if isinstance(value, str):
            if not value.strip():
                return None
            return json.loads(value)
        return value

    @property
    def spotify_id(self) -> str | None:
        if self.remote_ids is None or self.remote_ids.spotify is None:
            return None
        return self.remote_ids.spotify.id


def infer_input_format(path: Path) -> InputFormat:
    return InputFormat.CSV if path.suffix.lower() == ".csv" else InputFormat.JSON


def infer_output_format(path: Path) -> OutputFormat:
    return OutputFormat.JSON if path.suffix.lower() == ".json" else OutputFormat.CSV


def read_artist_ids(
    path: Path,
    *,
    input_format: InputFormat | None = None,
    id_field: str = DEFAULT_ID_FIELD,
) -> list[str | None]:
    """Return the Spotify id of every record in ``path`` (None where a record has none)."""

    effective_format = input_format or infer_input_format(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise InputFileError(f"cannot read input file ({exc.strerror})", path=path) from exc

    try:
        if effective_format is InputFormat.CSV:
            raw_values = _csv_values(text, id_field=id_field, path=path)
        else:
            raw_values = _json_values(text, id_field=id_field, path=path)
        records = [ArtistInputRecord.model_validate({"remote_ids": value}) for value in raw_values]
    except (json.JSONDecodeError, ValidationError) as exc:
        raise InputFileError(f"malformed {effective_format} input ({exc})", path=path) from exc

    ids = [record.spotify_id for record in records]
    log.info(
        "Read %s records from %s, %s with a Spotify id",
        len(records),
        path,
        sum(1 for artist_id in ids if artist_id),
    )
    return ids


def _json_values(text: str, *, id_field: str, path: Path) -> list[object]:
    payload = json.loads(text)
    if not isinstance(payload, list):
        raise InputFileError("expected a JSON array of records", path=path)
    values: list[object] = []
    for item in payload:
        if not isinstance(item, dict):
            raise InputFileError("expected every JSON array element to be an object", path=path)
        values.append(item.get(id_field))
    return values


def _csv_values(text: str, *, id_field: str, path: Path) -> list[object]:
    reader = csv.DictReader(io.StringIO(text))
    if reader.fieldnames is None or id_field not in reader.fieldnames:
        raise InputFileError(f"missing column {id_field!r}", path=path)
    return [row.get(id_field) for row in reader]


def write_report(
    rows: Iterable[ArtistReportRow],
    path: Path,
    *,
    output_format: OutputFormat | None = None,
) -> int:
    """Write ``rows`` to ``path`` and return how many were written."""

    effective_format = output_format or infer_output_format(path)
    materialized = list(rows)
    log.info("Writing result to '%s'...", path)
    if effective_format is OutputFormat.JSON:
        payload = [dataclasses.asdict(row) for row in materialized]
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    else:
        with path.open("w", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle)
            writer.writerow(CSV_HEADER)
            writer.writerows(_csv_row(row) for row in materialized)
    return len(materialized)


def _csv_row(row: ArtistReportRow) -> tuple[object, ...]:
    values = (
        row.spotify_id,
        row.name,
        row.popularity,
        row.followers,
        row.latest_album_name,
        row.latest_album_release_date,
    )
    return tuple("" if value is None else value for value in values)
