"""Fallback property lookup (nationwide parcel API) configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

FALLBACK_BASE_URL = "https://app.regrid.com/api/v2"
FALLBACK_TIMEOUT_SECONDS = 10.0
FALLBACK_CACHE_TTL_SECONDS = 7 * 24 * 3600.0


def found_parcels(payload: object) -> bool:
    """Whether a search response carries at least one parcel."""

    if not isinstance(payload, dict):
        return False
    found = payload.get("parcels", payload.get("results"))
    if isinstance(found, dict):
        found = found.get("features")
    return bool(found)


def _default_resilience(base_url: str) -> ResilienceConfig:
    # parcel lookups are billed per call; only hits are cached so misses get retried later
    return ResilienceConfig(
        name="property_fallback",
        base_url=base_url,
        timeout_seconds=FALLBACK_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=10),
        cache=CacheConfig(
            backend="sqlite",
            ttl_seconds=FALLBACK_CACHE_TTL_SECONDS,
            should_cache=found_parcels,
        ),
    )


@dataclass(frozen=True)
class FallbackLookupConfig:
    """Holds the fallback parcel API configuration; the key is optional."""

    api_key: str | None = None
    base_url: str = FALLBACK_BASE_URL
    resilience: ResilienceConfig = field(
        default_factory=lambda: _default_resilience(FALLBACK_BASE_URL)
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


def get_fallback_config(*, resilience: ResilienceConfig | None = None) -> FallbackLookupConfig:
    base_url = optional_env_var("PROPERTY_FALLBACK_BASE_URL", FALLBACK_BASE_URL) or FALLBACK_BASE_URL
    return FallbackLookupConfig(
        api_key=optional_env_var("PROPERTY_FALLBACK_API_KEY"),
        base_url=base_url,
        resilience=resilience or _default_resilience(base_url),
    )
