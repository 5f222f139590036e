"""Configuration types for resilient HTTP clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

TOO_MANY_REQUESTS = 429
DEFAULT_MAX_RETRIES = 10


@dataclass(slots=True, frozen=True)
class RateLimitRetryPolicy:
    """How a 429 response is retried.

    ``fallback_wait_seconds`` is only consulted when ``Retry-After`` is absent or
    not a whole number of seconds; ``None`` makes such a response fatal.
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    retry_status: int = TOO_MANY_REQUESTS
    fallback_wait_seconds: float | None = None


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RateLimitRetryPolicy = field(default_factory=RateLimitRetryPolicy)
    ratelimit: RateLimit | None = None
    default_headers: Mapping[str, str] | None = None
