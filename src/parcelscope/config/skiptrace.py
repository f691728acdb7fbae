"""Skip-trace service configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_var
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

SKIPTRACE_BASE_URL = "https://api.skiptrace.example.com/v1"
SKIPTRACE_TIMEOUT_SECONDS = 15.0


def _default_resilience(base_url: str) -> ResilienceConfig:
    # the adapter owns the retry loop; transport retries would multiply attempts
    return ResilienceConfig(
        name="skiptrace",
        base_url=base_url,
        timeout_seconds=SKIPTRACE_TIMEOUT_SECONDS,
        retry=RetryPolicy.disabled(),
        ratelimit=RateLimit(max_calls=5),
        cache=None,
    )


@dataclass(frozen=True)
class SkipTraceConfig:
    """Holds skip-trace API configuration and the adapter's retry budget."""

    api_key: str | None = None
    base_url: str = SKIPTRACE_BASE_URL
    retries: int = 2
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 8.0
    timeout_seconds: float = SKIPTRACE_TIMEOUT_SECONDS
    resilience: ResilienceConfig = field(
        default_factory=lambda: _default_resilience(SKIPTRACE_BASE_URL)
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


def get_skiptrace_config(*, resilience: ResilienceConfig | None = None) -> SkipTraceConfig:
    base_url = optional_env_var("SKIPTRACE_BASE_URL", SKIPTRACE_BASE_URL) or SKIPTRACE_BASE_URL
    return SkipTraceConfig(
        api_key=optional_env_var("SKIPTRACE_API_KEY"),
        base_url=base_url,
        resilience=resilience or _default_resilience(base_url),
    )
