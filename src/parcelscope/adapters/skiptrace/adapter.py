"""Skip-trace (people search) adapter with a bounded retry loop."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from parcelscope.adapters.http_resilience import ResilientClient, build_limiter
from parcelscope.adapters.retry import retry_async
from parcelscope.config.skiptrace import SkipTraceConfig, get_skiptrace_config
from parcelscope.domain.model import PersonEnrichmentResult, PhoneNumber

from .schema import PersonPayload, PersonSearchResponse

if TYPE_CHECKING:
    from parcelscope.adapters.http_resilience import ClientFactory
    from parcelscope.adapters.retry import Sleep
    from parcelscope.domain.model import PersonLookupInput

log = getLogger(__name__)

SEARCH_PATH = "/person/search"


def build_search_body(person: PersonLookupInput) -> dict[str, str]:
    body = {
        "first_name": person.first_name,
        "last_name": person.last_name,
        "address": person.address,
        "city": person.city,
        "state": person.state,
        "zip": person.zip_code,
    }
    return {key: value.strip() for key, value in body.items() if value and value.strip()}


def to_enrichment_result(payload: PersonPayload, raw: dict[str, object]) -> PersonEnrichmentResult:
    return PersonEnrichmentResult(
        first_name=payload.first_name,
        last_name=payload.last_name,
        phones=[
            PhoneNumber(phone.number, phone.phone_type, phone.do_not_call)
            for phone in payload.phones
        ],
        emails=list(payload.emails),
        age=payload.age,
        relatives=list(payload.relatives),
        raw=raw,
    )


class SkipTraceAdapter:
    """Person lookup port backed by the skip-trace HTTP API.

    A missing API key short-circuits to ``None`` without a request. Each attempt
    runs under ``timeout_seconds``; timeouts and HTTP failures are retried, and
    ``RetryExhaustedError`` propagates once the budget is spent. A 2xx answer
    that cannot be read, or that carries only an error, is a miss.
    """

    def __init__(
        self,
        config: SkipTraceConfig | None = None,
        *,
        client_factory: ClientFactory | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._config = config or get_skiptrace_config()
        self._client_factory = client_factory or ResilientClient
        self._limiter = build_limiter(self._config.resilience.ratelimit)
        self._sleep = sleep

    @property
    def source(self) -> str:
        return "skiptrace"

    async def lookup(self, person: PersonLookupInput) -> PersonEnrichmentResult | None:
        if not self._config.is_configured:
            log.warning("SKIPTRACE_API_KEY is not set; skipping person lookup")
            return None
        if person.is_empty:
            log.info("Skip trace needs a name or an address")
            return None

        body = build_search_body(person)
        outcome = await retry_async(
            lambda: self._attempt(body),
            retries=self._config.retries,
            base_delay=self._config.base_delay_seconds,
            max_delay=self._config.max_delay_seconds,
            exceptions=(TimeoutError, httpx.HTTPError),
            sleep=self._sleep,
        )

        if outcome is None:
            return None
        response, raw = outcome
        if not response.persons:
            log.info("Skip trace found nobody for %s", body.get("address", "<no address>"))
            return None
        return to_enrichment_result(response.persons[0], raw=raw)

    async def _attempt(
        self, body: dict[str, str]
    ) -> tuple[PersonSearchResponse, dict[str, object]] | None:
        async with asyncio.timeout(self._config.timeout_seconds):
            async with self._client_factory(
                self._config.resilience, limiter=self._limiter
            ) as client:
                response = await client.post(
                    SEARCH_PATH,
                    json=body,
                    headers={"Authorization": f"Bearer {self._config.api_key}"},
                )
            response.raise_for_status()

        try:
            payload = response.json()
            parsed = PersonSearchResponse.model_validate(payload)
        except (ValueError, ValidationError) as exc:
            log.warning("Skip trace returned an unreadable payload: %s", exc)
            return None
        if parsed.error and not parsed.persons:
            log.warning("Skip trace answered with an error: %s", parsed.error)
            return None
        raw: dict[str, object] = payload if isinstance(payload, dict) else {"body": payload}
        return parsed, raw


if TYPE_CHECKING:
    from parcelscope.domain.ports.lookup import PersonLookupAdapter

    _adapter_check: PersonLookupAdapter = SkipTraceAdapter(SkipTraceConfig())
