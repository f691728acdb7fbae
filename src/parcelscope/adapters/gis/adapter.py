"""Configuration-driven adapter for county ArcGIS parcel layers."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx
from pydantic import ValidationError

from parcelscope.adapters.http_resilience import ResilientClient, build_limiter
from parcelscope.config.http_resilience import ResilienceConfig, RetryPolicy
from parcelscope.domain.model import LookupField, LookupResult, is_absent

from .schema import ErrorResponse, FeatureQueryResponse
from .transforms import apply_transform

if TYPE_CHECKING:
    from collections.abc import Mapping

    from parcelscope.adapters.http_resilience import ClientFactory
    from parcelscope.config.gis import ProviderAdapterConfig
    from parcelscope.domain.model import FieldValue, LookupInput

log = getLogger(__name__)

OWNER_MATCH_CONFIDENCE: Final[int] = 75
PARTIAL_MATCH_CONFIDENCE: Final[int] = 40


class GISQueryError(RuntimeError):
    """Raised when a feature layer answers with an error or an unreadable payload."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


def build_where_clause(search_field: str, normalized_address: str) -> str:
    """Substring match on the layer's situs field; single quotes are doubled."""

    escaped = normalized_address.replace("'", "''")
    return f"{search_field} LIKE '%{escaped}%'"


class GenericGISAdapter:
    """One jurisdiction's parcel layer behind the property lookup port.

    Never raises: timeouts, transport errors and layer errors all come back as
    zero-confidence results that explain themselves in ``diagnostics``.
    """

    def __init__(
        self,
        config: ProviderAdapterConfig,
        *,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience or ResilienceConfig(
            name=config.source,
            timeout_seconds=config.timeout_seconds,
            retry=RetryPolicy.disabled(),
        )
        self._client_factory = client_factory or ResilientClient
        self._limiter = build_limiter(self._resilience.ratelimit)

    @property
    def source(self) -> str:
        return self._config.source

    @property
    def jurisdiction(self) -> str:
        return self._config.jurisdiction

    def build_params(self, normalized_address: str) -> dict[str, str | int]:
        return {
            "where": build_where_clause(self._config.search_field, normalized_address),
            "outFields": self._config.out_fields_param,
            "returnGeometry": "false",
            "resultRecordCount": self._config.max_candidates,
            "f": "json",
        }

    async def lookup(self, lookup_input: LookupInput) -> LookupResult:
        normalized = lookup_input.normalized_address
        if not normalized:
            return LookupResult.empty(self.source, diagnostic="no address to search")

        params = self.build_params(normalized)
        where = str(params["where"])
        try:
            async with asyncio.timeout(self._config.timeout_seconds):
                response = await self._query(params)
        except TimeoutError:
            log.warning("%s timed out after %ss", self.source, self._config.timeout_seconds)
            return LookupResult.empty(
                self.source, diagnostic=f"timed out after {self._config.timeout_seconds}s"
            )
        except (httpx.HTTPError, GISQueryError) as exc:
            log.warning("%s query failed: %s", self.source, exc)
            return LookupResult.empty(self.source, diagnostic=f"{type(exc).__name__}: {exc}")

        if not response.features:
            log.info("%s found no parcel for %s", self.source, where)
            return LookupResult.empty(self.source, diagnostic=f"no features for {where}")

        if response.exceeded_transfer_limit:
            log.debug("%s truncated its candidates for %s", self.source, where)
        # the layer's own ranking is trusted; later candidates are ignored
        attributes = response.features[0].attributes
        values = self._map_attributes(attributes)
        has_owner = LookupField.OWNER_NAME in values
        return LookupResult(
            source=self.source,
            confidence_score=OWNER_MATCH_CONFIDENCE if has_owner else PARTIAL_MATCH_CONFIDENCE,
            raw=dict(attributes),
            **{name.value: value for name, value in values.items()},  # pyright: ignore[reportArgumentType]
        )

    async def _query(self, params: dict[str, str | int]) -> FeatureQueryResponse:
        async with self._client_factory(self._resilience, limiter=self._limiter) as client:
            response = await client.get(self._config.endpoint, params=httpx.QueryParams(params))
        response.raise_for_status()

        try:
            payload = response.json()
        except ValueError as exc:
            raise GISQueryError(f"{self.source} returned a non-JSON body") from exc

        try:
            if isinstance(payload, dict) and "error" in payload:
                error_payload = ErrorResponse.model_validate(payload)
            else:
                return FeatureQueryResponse.model_validate(payload)
        except ValidationError as exc:
            raise GISQueryError(f"Unexpected {self.source} payload: {exc}") from exc
        raise GISQueryError(error_payload.error.message, code=error_payload.error.code)

    def _map_attributes(self, attributes: Mapping[str, object]) -> dict[LookupField, FieldValue]:
        values: dict[LookupField, FieldValue] = {}
        for provider_field, canonical in self._config.field_map.items():
            raw_value = attributes.get(provider_field)
            if raw_value is None or (isinstance(raw_value, str) and not raw_value.strip()):
                continue
            value = apply_transform(self._config.transforms.get(canonical), raw_value)
            if is_absent(canonical, value):
                continue
            values.setdefault(canonical, value)
        return values


if TYPE_CHECKING:
    from parcelscope.domain.ports.lookup import PropertyLookupAdapter

    def _check_adapter(config: ProviderAdapterConfig) -> None:
        _adapter: PropertyLookupAdapter = GenericGISAdapter(config)
