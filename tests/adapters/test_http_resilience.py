from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import TYPE_CHECKING

import httpx
import pytest

from enrichify.adapters.http_resilience import (
    RateLimit,
    RateLimitRetryPolicy,
    ResilienceConfig,
    ResilientClient,
    TransportError,
    ensure_success,
    parse_retry_after,
    retry_on_rate_limit,
)

if TYPE_CHECKING:
    from tests.conftest import RecordingSleep


def _rate_limited(retry_after: str | None = "1") -> TransportError:
    headers = {"Retry-After": retry_after} if retry_after is not None else {}
    return TransportError("rate limited", status_code=429, headers=headers)


class ScriptedOperation:
    """Raises the queued errors one per call, then returns ``result``."""

    def __init__(self, errors: list[Exception], result: str = "ok") -> None:
        self._errors = list(errors)
        self._result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self._errors:
            raise self._errors.pop(0)
        return self._result


class AlwaysRateLimited:
    def __init__(self, retry_after: str = "0") -> None:
        self.retry_after = retry_after
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        raise _rate_limited(self.retry_after)


def test_retry_returns_result_after_two_rate_limits(
    recording_sleep: RecordingSleep,
    caplog: pytest.LogCaptureFixture,
) -> None:
    operation = ScriptedOperation([_rate_limited("1"), _rate_limited("1")])

    with caplog.at_level(logging.INFO, logger="enrichify.adapters.http_resilience"):
        result = asyncio.run(
            retry_on_rate_limit(operation, sleep=recording_sleep, description="artists")
        )

    assert result == "ok"
    assert operation.calls == 3
    assert recording_sleep.delays == [1, 1]
    messages = [
        record.getMessage()
        for record in caplog.records
        if record.name == "enrichify.adapters.http_resilience"
    ]
    assert messages == [
        "Rate limit reached for artists, waiting 1 seconds before continuing (retry 1)...",
        "Rate limit reached for artists, waiting 1 seconds before continuing (retry 2)...",
    ]


def test_retry_counter_is_independent_per_call(recording_sleep: RecordingSleep) -> None:
    first = ScriptedOperation([_rate_limited("1"), _rate_limited("1")])
    asyncio.run(retry_on_rate_limit(first, sleep=recording_sleep))

    # A fresh call gets the full retry budget again.
    second = ScriptedOperation([_rate_limited("0") for _ in range(10)], result="second")
    result = asyncio.run(retry_on_rate_limit(second, sleep=recording_sleep))

    assert result == "second"
    assert second.calls == 11


def test_retry_gives_up_after_exactly_max_retries(recording_sleep: RecordingSleep) -> None:
    operation = AlwaysRateLimited(retry_after="0")

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(retry_on_rate_limit(operation, sleep=recording_sleep))

    assert excinfo.value.status_code == 429
    assert operation.calls == 11
    assert recording_sleep.delays == [0] * 10


def test_retry_honours_custom_ceiling(recording_sleep: RecordingSleep) -> None:
    operation = AlwaysRateLimited()

    with pytest.raises(TransportError):
        asyncio.run(
            retry_on_rate_limit(
                operation,
                RateLimitRetryPolicy(max_retries=3),
                sleep=recording_sleep,
            )
        )

    assert operation.calls == 4


def test_retry_propagates_other_status_unchanged(recording_sleep: RecordingSleep) -> None:
    error = TransportError("boom", status_code=500, headers={"Retry-After": "1"})
    operation = ScriptedOperation([error])

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(retry_on_rate_limit(operation, sleep=recording_sleep))

    assert excinfo.value is error
    assert operation.calls == 1
    assert recording_sleep.delays == []


def test_retry_propagates_non_transport_errors(recording_sleep: RecordingSleep) -> None:
    operation = ScriptedOperation([KeyError("missing")])

    with pytest.raises(KeyError):
        asyncio.run(retry_on_rate_limit(operation, sleep=recording_sleep))

    assert recording_sleep.delays == []


def test_retry_without_retry_after_is_fatal_by_default(recording_sleep: RecordingSleep) -> None:
    error = _rate_limited(None)
    operation = ScriptedOperation([error])

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(retry_on_rate_limit(operation, sleep=recording_sleep))

    assert excinfo.value is error
    assert operation.calls == 1


def test_retry_uses_fallback_when_retry_after_unusable(recording_sleep: RecordingSleep) -> None:
    operation = ScriptedOperation([_rate_limited("soon"), _rate_limited(None)])

    result = asyncio.run(
        retry_on_rate_limit(
            operation,
            RateLimitRetryPolicy(fallback_wait_seconds=2.5),
            sleep=recording_sleep,
        )
    )

    assert result == "ok"
    assert recording_sleep.delays == [2.5, 2.5]


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("3", 3),
        (" 7 ", 7),
        ("-2", 0),
        ("1.5", None),
        ("Wed, 21 Oct 2015 07:28:00 GMT", None),
        (None, None),
    ],
)
def test_parse_retry_after(header: str | None, expected: int | None) -> None:
    assert parse_retry_after(header) == expected


def test_ensure_success_raises_transport_error_with_headers() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        del request
        return httpx.Response(429, headers={"Retry-After": "4"}, text="slow down")

    async def scenario() -> httpx.Response:
        config = ResilienceConfig(name="test", base_url="https://example.com")
        async with ResilientClient(config, transport=httpx.MockTransport(handler)) as client:
            return ensure_success(await client.get("things"))

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(scenario())

    assert excinfo.value.status_code == 429
    assert excinfo.value.headers["retry-after"] == "4"
    assert excinfo.value.body == "slow down"


def test_resilient_client_applies_base_url_headers_and_throttle() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    config = ResilienceConfig(
        name="test",
        base_url="https://example.com/v1",
        default_headers={"X-Test": "yes"},
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
    )

    async def scenario() -> list[int]:
        async with ResilientClient(config, transport=httpx.MockTransport(handler)) as client:
            responses = await asyncio.gather(*(client.get("items") for _ in range(3)))
            return [response.status_code for response in responses]

    assert asyncio.run(scenario()) == [200, 200, 200]
    assert {str(request.url) for request in seen} == {"https://example.com/v1/items"}
    assert all(request.headers["X-Test"] == "yes" for request in seen)


def test_resilience_config_carries_only_client_settings() -> None:
    config = ResilienceConfig(name="test")

    assert [item.name for item in dataclasses.fields(config)] == [
        "name",
        "base_url",
        "timeout_seconds",
        "retry",
        "ratelimit",
        "default_headers",
    ]
    assert config.retry == RateLimitRetryPolicy(max_retries=10, retry_status=429)
    assert config.ratelimit is None
