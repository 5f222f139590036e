#!/usr/bin/env python3

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from enrichify.adapters.files import InputFileError, InputFormat, OutputFormat
from enrichify.app import load_artist_ids, run_enrichment
from enrichify.config import (
    ConfigurationError,
    RateLimit,
    RateLimitRetryPolicy,
    configure_logging,
    get_enrichment_settings,
    get_spotify_config,
)
from enrichify.config.http_resilience import DEFAULT_MAX_RETRIES

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Enrich Spotify artist ids with artist data and their latest release",
        epilog="Credentials may also come from SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET.",
    )
    parser.add_argument("--client-id", type=str, help="Client ID of your Spotify app")
    parser.add_argument("--client-secret", type=str, help="Client secret of your Spotify app")
    parser.add_argument(
        "--ids",
        nargs="+",
        metavar="ID",
        help="Spotify artist ids to enrich (skips reading the input file)",
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=Path("input.json"),
        help="File containing artist data (default: %(default)s)",
    )
    parser.add_argument(
        "--input-format",
        type=InputFormat,
        choices=list(InputFormat),
        help="Input file format (defaults to the file suffix, else json)",
    )
    parser.add_argument(
        "--id-column",
        type=str,
        help="Field holding the JSON-encoded remote ids (default: shop_artist_ids)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("out.csv"),
        help="File to write result data to (default: %(default)s)",
    )
    parser.add_argument(
        "--output-format",
        type=OutputFormat,
        choices=list(OutputFormat),
        help="Output file format (defaults to the file suffix, else csv)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        help="Maximum number of requests in flight (default: 10)",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=DEFAULT_MAX_RETRIES,
        help="Retries per request after HTTP 429 (default: %(default)s)",
    )
    parser.add_argument(
        "--retry-after-fallback",
        type=float,
        help="Seconds to wait when a 429 carries no usable Retry-After header "
        "(default: treat as fatal)",
    )
    parser.add_argument(
        "--max-calls-per-second",
        type=float,
        help="Optional client-side throttle for API calls",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(list(argv))


def _build_retry_policy(args: argparse.Namespace) -> RateLimitRetryPolicy:
    if args.max_retries < 0:
        raise ValueError("--max-retries must be non-negative")
    if args.retry_after_fallback is not None and args.retry_after_fallback < 0:
        raise ValueError("--retry-after-fallback must be non-negative")
    return RateLimitRetryPolicy(
        max_retries=args.max_retries,
        fallback_wait_seconds=args.retry_after_fallback,
    )


def _build_ratelimit(args: argparse.Namespace) -> RateLimit | None:
    if args.max_calls_per_second is None:
        return None
    if args.max_calls_per_second <= 0:
        raise ValueError("--max-calls-per-second must be positive")
    return RateLimit(max_calls=1, per_seconds=1.0 / args.max_calls_per_second)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        spotify_config = get_spotify_config(
            client_id=parsed_args.client_id,
            client_secret=parsed_args.client_secret,
            retry=_build_retry_policy(parsed_args),
            ratelimit=_build_ratelimit(parsed_args),
        )
        settings = get_enrichment_settings(concurrency=parsed_args.concurrency)
        artist_ids = load_artist_ids(
            ids=parsed_args.ids,
            input_path=parsed_args.input,
            input_format=parsed_args.input_format,
            id_field=parsed_args.id_column,
        )
    except (ValueError, ConfigurationError, InputFileError):
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        run_enrichment(
            artist_ids=artist_ids,
            output_path=parsed_args.output,
            output_format=parsed_args.output_format,
            spotify_config=spotify_config,
            settings=settings,
        )
    except Exception:
        log.exception("Fatal error during enrichment")
        sys.exit(1)

    log.info("Done!")


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def cli() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    cli()
