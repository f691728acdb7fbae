"""Nationwide parcel API used when no jurisdiction adapter answers well enough."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx
from pydantic import ValidationError

from parcelscope.adapters.gis.transforms import apply_transform
from parcelscope.adapters.http_resilience import ResilientClient, build_limiter
from parcelscope.config.fallback import FallbackLookupConfig, get_fallback_config
from parcelscope.domain.model import LookupField, LookupResult, TransformKind, is_absent

from .schema import ParcelSearchResponse

if TYPE_CHECKING:
    from collections.abc import Mapping

    from parcelscope.adapters.http_resilience import ClientFactory
    from parcelscope.domain.model import FieldValue, LookupInput

log = getLogger(__name__)

SOURCE: Final[str] = "parcel_fallback"

OWNER_CONFIDENCE: Final[int] = 60
MAILING_BONUS: Final[int] = 10
BASE_CONFIDENCE: Final[int] = 30

FIELD_MAP: Final[dict[str, tuple[LookupField, TransformKind]]] = {
    "parcelnumb": (LookupField.PARCEL_ID, TransformKind.TEXT),
    "owner": (LookupField.OWNER_NAME, TransformKind.TEXT),
    "address": (LookupField.PROPERTY_ADDRESS, TransformKind.TEXT),
    "homestead_exemption": (LookupField.HOMESTEAD, TransformKind.BOOLEAN),
    "parval": (LookupField.ASSESSED_VALUE, TransformKind.POSITIVE_NUMBER),
    "saledate": (LookupField.LAST_SALE_DATE, TransformKind.EPOCH_DATE),
    "saleprice": (LookupField.LAST_SALE_AMOUNT, TransformKind.POSITIVE_NUMBER),
    "lender": (LookupField.MORTGAGE_LENDER, TransformKind.TEXT),
}
MAILING_PARTS: Final[tuple[str, ...]] = ("mailadd", "mail_city", "mail_state2", "mail_zip")


def mailing_address(fields: Mapping[str, object]) -> str | None:
    """Join the split mailing-address columns into one line."""

    street = apply_transform(TransformKind.TEXT, fields.get("mailadd"))
    if not street:
        return None
    city, state, zip_code = (
        apply_transform(TransformKind.TEXT, fields.get(part)) for part in MAILING_PARTS[1:]
    )
    locality = " ".join(str(part) for part in (state, zip_code) if part)
    tail = ", ".join(str(part) for part in (city, locality) if part)
    return f"{street}, {tail}" if tail else str(street)


class ParcelFallbackAdapter:
    """Property lookup against the parcel API.

    Returns ``None`` for every "no data" outcome: missing key, no parcel,
    transport failure or timeout. It never raises.
    """

    def __init__(
        self,
        config: FallbackLookupConfig | None = None,
        *,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._config = config or get_fallback_config()
        self._client_factory = client_factory or ResilientClient
        self._limiter = build_limiter(self._config.resilience.ratelimit)

    @property
    def source(self) -> str:
        return SOURCE

    async def lookup(self, lookup_input: LookupInput) -> LookupResult | None:
        if not self._config.is_configured:
            log.warning("PROPERTY_FALLBACK_API_KEY is not set; skipping fallback lookup")
            return None

        request = self._build_request(lookup_input)
        if request is None:
            log.info("Fallback lookup needs an address or coordinates")
            return None
        path, params = request

        try:
            parcels = await self._search(path, params)
        except httpx.HTTPError as exc:
            log.warning("Fallback lookup failed: %s", exc)
            return None
        except (ValueError, ValidationError) as exc:
            log.warning("Fallback lookup returned an unreadable payload: %s", exc)
            return None

        if not parcels.parcels:
            log.info("Fallback lookup found no parcel for %s", params.get("query", "point"))
            return None
        return self._to_result(parcels.parcels[0].fields)

    def _build_request(self, lookup_input: LookupInput) -> tuple[str, dict[str, str]] | None:
        token = self._config.api_key or ""
        if lookup_input.has_coordinates:
            return "/parcels/point", {
                "lat": str(lookup_input.lat),
                "lon": str(lookup_input.lng),
                "token": token,
            }
        normalized = lookup_input.normalized_address
        if not normalized:
            return None
        params = {"query": normalized, "token": token}
        if lookup_input.state:
            params["path"] = f"/us/{lookup_input.state.strip().lower()}"
        return "/parcels/address", params

    async def _search(self, path: str, params: dict[str, str]) -> ParcelSearchResponse:
        async with self._client_factory(
            self._config.resilience, limiter=self._limiter
        ) as client:
            response = await client.get(path, params=httpx.QueryParams(params))
        response.raise_for_status()
        return ParcelSearchResponse.model_validate(response.json())

    def _to_result(self, fields: Mapping[str, object]) -> LookupResult:
        values: dict[LookupField, FieldValue] = {}
        for provider_field, (canonical, kind) in FIELD_MAP.items():
            value = apply_transform(kind, fields.get(provider_field))
            if not is_absent(canonical, value):
                values[canonical] = value
        mailing = mailing_address(fields)
        if mailing is not None:
            values[LookupField.OWNER_MAILING_ADDRESS] = mailing

        confidence = BASE_CONFIDENCE
        if LookupField.OWNER_NAME in values:
            confidence = OWNER_CONFIDENCE
            if LookupField.OWNER_MAILING_ADDRESS in values:
                confidence += MAILING_BONUS
        return LookupResult(
            source=SOURCE,
            confidence_score=confidence,
            raw=dict(fields),
            **{name.value: value for name, value in values.items()},  # pyright: ignore[reportArgumentType]
        )


if TYPE_CHECKING:
    from parcelscope.domain.ports.lookup import PropertyLookupAdapter

    _adapter_check: PropertyLookupAdapter = ParcelFallbackAdapter(FallbackLookupConfig())
