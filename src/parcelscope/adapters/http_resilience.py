"""Shared async HTTP client for the provider adapters.

Every provider call goes through a ``ResilientClient`` built from that
provider's ``ResilienceConfig``: httpx-retries handles transient transport
failures, an aiolimiter bucket paces calls, and billed lookups can be answered
from a hishel cache.
"""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, Protocol, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from parcelscope.config.storage import get_storage_config

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import HeaderTypes, QueryParamTypes, URLTypes

    from parcelscope.config.http_resilience import (
        CacheConfig,
        RateLimit,
        ResilienceConfig,
        RetryPolicy,
        ShouldCacheHook,
    )

log = getLogger(__name__)

_IDEMPOTENT_METHODS = ("GET", "HEAD", "OPTIONS")


class RequestOptions(TypedDict, total=False):
    params: QueryParamTypes | None
    json: object
    headers: HeaderTypes | None


class ClientFactory(Protocol):
    def __call__(
        self, config: ResilienceConfig, /, *, limiter: AsyncLimiter | None = None
    ) -> ResilientClient: ...


def build_limiter(ratelimit: RateLimit | None) -> AsyncLimiter | None:
    """One bucket per adapter; clients built for single lookups share it."""

    if ratelimit is None:
        return None
    return AsyncLimiter(ratelimit.max_calls, ratelimit.per_seconds)


def build_retry(policy: RetryPolicy) -> Retry:
    # POSTs are never replayed by the transport
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=True,
        allowed_methods=_IDEMPOTENT_METHODS,
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
    )


def build_async_client(config: ResilienceConfig) -> httpx.AsyncClient:
    """Assemble the underlying httpx client (cached when ``config.cache`` is set)."""

    transport: httpx.AsyncBaseTransport = (
        RetryTransport(retry=build_retry(config.retry))
        if config.retry.enabled
        else httpx.AsyncHTTPTransport()
    )
    options: dict[str, object] = {
        "timeout": config.timeout_seconds,
        "transport": transport,
        "headers": {"User-Agent": config.user_agent},
    }
    if config.base_url is not None:
        options["base_url"] = config.base_url

    if config.cache is None:
        return httpx.AsyncClient(**options)  # pyright: ignore[reportArgumentType]
    storage, policy = _build_cache_components(config.cache)
    return AsyncCacheClient(**options, storage=storage, policy=policy)  # pyright: ignore[reportArgumentType]


class ResilientClient:
    """One provider's HTTP client.

    Used as an async context manager for the lifetime of a single lookup, so
    the owning adapter passes in its long-lived ``limiter``; without one the
    client paces only its own calls. Tests swap ``_client`` for an
    ``httpx.AsyncClient`` on a ``MockTransport``.
    """

    def __init__(self, config: ResilienceConfig, *, limiter: AsyncLimiter | None = None) -> None:
        self.name = config.name
        self._limiter = limiter if limiter is not None else build_limiter(config.ratelimit)
        self._client = build_async_client(config)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self._client.aclose()

    async def get(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        if self._limiter is not None:
            async with self._limiter:
                response = await self._client.request(method, url, **kwargs)
        else:
            response = await self._client.request(method, url, **kwargs)

        if response.extensions.get("hishel_from_cache"):
            log.debug("%s: %s %s served from cache", self.name, method, response.request.url.path)
        elif response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            log.warning("%s: still rate limited after retries", self.name)
        return response


class _JsonPredicateFilter(BaseFilter[HishelCacheResponse]):
    """Let a JSON predicate decide whether a response body is worth caching."""

    def __init__(self, predicate: ShouldCacheHook) -> None:
        self._predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if body is None:
            return False
        try:
            payload = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError):
            return False
        return bool(self._predicate(payload))


def _build_cache_components(
    config: CacheConfig,
) -> tuple[AsyncSqliteStorage, FilterPolicy | None]:
    if config.backend == "sqlite":
        database_path = config.path or str(get_storage_config().http_cache_path())
    elif config.backend == "memory":
        database_path = ":memory:"
    else:
        raise ValueError(f"Unsupported cache backend: {config.backend}")

    storage = AsyncSqliteStorage(database_path=database_path, default_ttl=config.ttl_seconds)
    policy = (
        FilterPolicy(response_filters=[_JsonPredicateFilter(config.should_cache)])
        if config.should_cache is not None
        else None
    )
    return storage, policy
