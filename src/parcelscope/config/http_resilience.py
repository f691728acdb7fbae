"""Per-provider HTTP client settings: timeouts, retries, rate limits, caching."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Final, Literal

import httpx

from parcelscope import __version__

USER_AGENT: Final[str] = f"parcelscope/{__version__}"

ShouldCacheHook = Callable[[object], bool]


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Transport-level retries, applied by httpx-retries to idempotent methods only.

    Adapters that own an explicit retry loop (skip trace) or a hard time budget
    (GIS) use ``RetryPolicy.disabled()`` so attempts are not multiplied.
    """

    total: int = 2
    backoff_factor: float = 0.5
    max_backoff_wait: float = 10.0
    status_forcelist: frozenset[int] = field(
        default_factory=lambda: frozenset({429, 500, 502, 503, 504})
    )
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )

    @classmethod
    def disabled(cls) -> RetryPolicy:
        return cls(total=0)

    @property
    def enabled(self) -> bool:
        return self.total > 0


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float = 1.0


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """Response cache for billed lookups.

    ``should_cache`` sees the decoded JSON body; returning ``False`` keeps that
    response (an empty search, say) out of the cache.
    """

    backend: Literal["sqlite", "memory"] = "memory"
    path: str | None = None
    ttl_seconds: float | None = None
    should_cache: ShouldCacheHook | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 10.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    user_agent: str = USER_AGENT
