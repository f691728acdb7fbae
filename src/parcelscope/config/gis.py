"""Jurisdiction GIS adapter bindings.

Each entry binds one county property-appraiser ArcGIS layer to the canonical
lookup fields. The endpoints are public and need no credentials.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final

from parcelscope.domain.model import LookupField, TransformKind

from .http_resilience import ResilienceConfig, RetryPolicy

GIS_TIMEOUT_SECONDS: Final[float] = 10.0
GIS_MAX_CANDIDATES: Final[int] = 3


def _gis_resilience(source: str) -> ResilienceConfig:
    # the adapter's own timeout is the whole budget, so transport retries stay off
    return ResilienceConfig(
        name=source,
        timeout_seconds=GIS_TIMEOUT_SECONDS,
        retry=RetryPolicy.disabled(),
        cache=None,
    )


@dataclass(frozen=True, slots=True, kw_only=True)
class ProviderAdapterConfig:
    """Declarative binding for one GIS-backed property adapter."""

    source: str
    jurisdiction: str
    endpoint: str
    search_field: str
    out_fields: tuple[str, ...]
    field_map: Mapping[str, LookupField]
    transforms: Mapping[LookupField, TransformKind] = field(
        default_factory=lambda: MappingProxyType({})
    )
    timeout_seconds: float = GIS_TIMEOUT_SECONDS
    max_candidates: int = GIS_MAX_CANDIDATES
    resilience: ResilienceConfig | None = None

    def __post_init__(self) -> None:
        if not self.field_map:
            raise ValueError(f"{self.source}: field_map must not be empty")
        unmapped = set(self.transforms) - set(self.field_map.values())
        if unmapped:
            names = ", ".join(sorted(unmapped))
            raise ValueError(f"{self.source}: transforms for unmapped fields: {names}")
        # freeze caller-supplied dicts
        object.__setattr__(self, "field_map", MappingProxyType(dict(self.field_map)))
        object.__setattr__(self, "transforms", MappingProxyType(dict(self.transforms)))
        if self.resilience is None:
            object.__setattr__(self, "resilience", _gis_resilience(self.source))

    @property
    def out_fields_param(self) -> str:
        return ",".join(self.out_fields) if self.out_fields else "*"


def _binding(
    *,
    source: str,
    jurisdiction: str,
    endpoint: str,
    search_field: str,
    field_map: Mapping[str, LookupField],
    transforms: Mapping[LookupField, TransformKind] | None = None,
) -> ProviderAdapterConfig:
    return ProviderAdapterConfig(
        source=source,
        jurisdiction=jurisdiction,
        endpoint=endpoint,
        search_field=search_field,
        out_fields=tuple(field_map),
        field_map=field_map,
        transforms=transforms or {},
    )


JURISDICTION_CONFIGS: Final[tuple[ProviderAdapterConfig, ...]] = (
    _binding(
        source="st_lucie_pa",
        jurisdiction="St. Lucie County",
        endpoint="https://gis.paslc.gov/arcgis/rest/services/Parcels/MapServer/0/query",
        search_field="SiteAddress",
        field_map={
            "ParcelID": LookupField.PARCEL_ID,
            "OwnerName": LookupField.OWNER_NAME,
            "MailingAddress": LookupField.OWNER_MAILING_ADDRESS,
            "SiteAddress": LookupField.PROPERTY_ADDRESS,
            "Homestead": LookupField.HOMESTEAD,
            "AssessedValue": LookupField.ASSESSED_VALUE,
            "SaleDate": LookupField.LAST_SALE_DATE,
            "SalePrice": LookupField.LAST_SALE_AMOUNT,
        },
        transforms={
            LookupField.OWNER_NAME: TransformKind.TEXT,
            LookupField.OWNER_MAILING_ADDRESS: TransformKind.TEXT,
            LookupField.HOMESTEAD: TransformKind.BOOLEAN,
            LookupField.ASSESSED_VALUE: TransformKind.POSITIVE_NUMBER,
            LookupField.LAST_SALE_DATE: TransformKind.EPOCH_DATE,
            LookupField.LAST_SALE_AMOUNT: TransformKind.POSITIVE_NUMBER,
        },
    ),
    _binding(
        source="martin_pa",
        jurisdiction="Martin County",
        endpoint="https://gis.martin.fl.us/arcgis/rest/services/Parcels/MapServer/0/query",
        search_field="SITE_ADDR",
        field_map={
            "PCN": LookupField.PARCEL_ID,
            "OWNER": LookupField.OWNER_NAME,
            "MAIL_ADDR": LookupField.OWNER_MAILING_ADDRESS,
            "SITE_ADDR": LookupField.PROPERTY_ADDRESS,
            "HMSTD": LookupField.HOMESTEAD,
            "ASSD_VAL": LookupField.ASSESSED_VALUE,
            "SALE_DATE": LookupField.LAST_SALE_DATE,
            "SALE_PRICE": LookupField.LAST_SALE_AMOUNT,
        },
        transforms={
            LookupField.OWNER_NAME: TransformKind.TEXT,
            LookupField.HOMESTEAD: TransformKind.BOOLEAN,
            LookupField.ASSESSED_VALUE: TransformKind.POSITIVE_NUMBER,
            LookupField.LAST_SALE_DATE: TransformKind.EPOCH_DATE,
            LookupField.LAST_SALE_AMOUNT: TransformKind.POSITIVE_NUMBER,
        },
    ),
    _binding(
        source="palm_beach_pa",
        jurisdiction="Palm Beach County",
        endpoint="https://maps.co.palm-beach.fl.us/arcgis/rest/services/Parcels/MapServer/0/query",
        search_field="SITE_ADDR_STR",
        field_map={
            "PARCEL_NUMBER": LookupField.PARCEL_ID,
            "OWNER_NAME1": LookupField.OWNER_NAME,
            "PADDR1": LookupField.OWNER_MAILING_ADDRESS,
            "SITE_ADDR_STR": LookupField.PROPERTY_ADDRESS,
            "HOMESTEAD": LookupField.HOMESTEAD,
            "ASSESSED_VAL": LookupField.ASSESSED_VALUE,
            "SALE_DATE": LookupField.LAST_SALE_DATE,
            "PRICE": LookupField.LAST_SALE_AMOUNT,
        },
        transforms={
            LookupField.OWNER_NAME: TransformKind.TEXT,
            LookupField.HOMESTEAD: TransformKind.BOOLEAN,
            LookupField.ASSESSED_VALUE: TransformKind.POSITIVE_NUMBER,
            LookupField.LAST_SALE_DATE: TransformKind.EPOCH_DATE,
            LookupField.LAST_SALE_AMOUNT: TransformKind.POSITIVE_NUMBER,
        },
    ),
    _binding(
        source="lee_pa",
        jurisdiction="Lee County",
        endpoint="https://gissvr.leepa.org/arcgis/rest/services/Parcels/MapServer/0/query",
        search_field="SITEADDR",
        field_map={
            "STRAP": LookupField.PARCEL_ID,
            "OWNER": LookupField.OWNER_NAME,
            "MAILADDR": LookupField.OWNER_MAILING_ADDRESS,
            "SITEADDR": LookupField.PROPERTY_ADDRESS,
            "HOMESTEAD": LookupField.HOMESTEAD,
            "ASSESSED": LookupField.ASSESSED_VALUE,
            "SALEDATE": LookupField.LAST_SALE_DATE,
            "SALEAMT": LookupField.LAST_SALE_AMOUNT,
        },
        transforms={
            LookupField.OWNER_NAME: TransformKind.TEXT,
            LookupField.HOMESTEAD: TransformKind.BOOLEAN,
            LookupField.ASSESSED_VALUE: TransformKind.POSITIVE_NUMBER,
            LookupField.LAST_SALE_DATE: TransformKind.EPOCH_DATE,
            LookupField.LAST_SALE_AMOUNT: TransformKind.POSITIVE_NUMBER,
        },
    ),
    _binding(
        source="hillsborough_pa",
        jurisdiction="Hillsborough County",
        endpoint="https://gis.hcpafl.org/arcgis/rest/services/Parcels/MapServer/0/query",
        search_field="SITE_ADDR",
        field_map={
            "FOLIO": LookupField.PARCEL_ID,
            "OWNER": LookupField.OWNER_NAME,
            "ADDR_1": LookupField.OWNER_MAILING_ADDRESS,
            "SITE_ADDR": LookupField.PROPERTY_ADDRESS,
            "HMSTD": LookupField.HOMESTEAD,
            "ASD_VAL": LookupField.ASSESSED_VALUE,
            "S_DATE": LookupField.LAST_SALE_DATE,
            "S_AMT": LookupField.LAST_SALE_AMOUNT,
        },
        transforms={
            LookupField.OWNER_NAME: TransformKind.TEXT,
            LookupField.HOMESTEAD: TransformKind.BOOLEAN,
            LookupField.ASSESSED_VALUE: TransformKind.POSITIVE_NUMBER,
            LookupField.LAST_SALE_DATE: TransformKind.EPOCH_DATE,
            LookupField.LAST_SALE_AMOUNT: TransformKind.POSITIVE_NUMBER,
        },
    ),
)


def get_jurisdiction_configs() -> tuple[ProviderAdapterConfig, ...]:
    return JURISDICTION_CONFIGS
