from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from logging import getLogger
from typing import (
    TYPE_CHECKING,
    TypedDict,
    Unpack,
)

import httpx
from aiolimiter import AsyncLimiter

from enrichify.config.http_resilience import (
    RateLimit,
    RateLimitRetryPolicy,
    ResilienceConfig,
)

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._client import UseClientDefault
    from httpx._types import (
        AuthTypes,
        CookieTypes,
        HeaderTypes,
        QueryParamTypes,
        RequestContent,
        RequestData,
        RequestExtensions,
        RequestFiles,
        TimeoutTypes,
        URLTypes,
    )

log = getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

__all__ = [
    "RateLimit",
    "RateLimitRetryPolicy",
    "ResilienceConfig",
    "ResilientClient",
    "TransportError",
    "ensure_success",
    "parse_retry_after",
    "retry_on_rate_limit",
]


class TransportError(httpx.HTTPError):
    """Raised for any non-2xx response; carries what the retry wrapper needs."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        headers: Mapping[str, str],
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.headers = httpx.Headers(headers)
        self.body = body

    @classmethod
    def from_response(cls, response: httpx.Response) -> TransportError:
        request = response.request
        return cls(
            f"{request.method} {request.url} failed with HTTP {response.status_code}",
            status_code=response.status_code,
            headers=response.headers,
            body=response.text,
        )


def ensure_success(response: httpx.Response) -> httpx.Response:
    if not response.is_success:
        raise TransportError.from_response(response)
    return response


class RequestOptions(TypedDict, total=False):
    content: RequestContent | None
    data: RequestData | None
    files: RequestFiles | None
    json: object
    params: QueryParamTypes | None
    headers: HeaderTypes | None
    cookies: CookieTypes | None
    auth: AuthTypes | UseClientDefault | None
    follow_redirects: bool | UseClientDefault
    timeout: TimeoutTypes | UseClientDefault
    extensions: RequestExtensions | None


class AsyncClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    transport: httpx.AsyncBaseTransport


class ResilientClient:
    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )

        headers = dict(config.default_headers) if config.default_headers else None

        client_kwargs: AsyncClientOptions = {"timeout": config.timeout_seconds}
        if config.base_url is not None:
            client_kwargs["base_url"] = config.base_url
        if headers is not None:
            client_kwargs["headers"] = headers
        if transport is not None:
            client_kwargs["transport"] = transport

        self._client = httpx.AsyncClient(**client_kwargs)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        async def do_request() -> httpx.Response:
            return await self._client.request(method, url, **kwargs)

        return await self._send(do_request)

    async def get(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def _send(self, func: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        if self._limiter is None:
            return await func()
        async with self._limiter:
            return await func()


def parse_retry_after(value: str | None) -> int | None:
    """Return the ``Retry-After`` delay in whole seconds, or None when unusable.

    Only the delta-seconds form is understood; an HTTP-date yields None.
    """

    if value is None:
        return None
    try:
        seconds = int(value.strip())
    except ValueError:
        return None
    return max(seconds, 0)


async def retry_on_rate_limit[T](
    operation: Callable[[], Awaitable[T]],
    policy: RateLimitRetryPolicy | None = None,
    *,
    sleep: Sleep = asyncio.sleep,
    description: str | None = None,
) -> T:
    """Await ``operation`` and retry it while the server answers 429.

    Each call keeps its own attempt counter. Errors other than a retryable 429,
    and the 429 that hits ``policy.max_retries``, are re-raised untouched.
    """

    effective = policy or RateLimitRetryPolicy()
    attempt = 0
    while True:
        try:
            return await operation()
        except TransportError as exc:
            if exc.status_code != effective.retry_status or attempt >= effective.max_retries:
                raise
            seconds: float | None = parse_retry_after(exc.headers.get("retry-after"))
            if seconds is None:
                if effective.fallback_wait_seconds is None:
                    log.error(
                        "Rate limited without a usable Retry-After header (%r), giving up",
                        exc.headers.get("retry-after"),
                    )
                    raise
                seconds = effective.fallback_wait_seconds

        attempt += 1
        log.info(
            "Rate limit reached%s, waiting %s seconds before continuing (retry %s)...",
            f" for {description}" if description else "",
            seconds,
            attempt,
        )
        await sleep(seconds)
