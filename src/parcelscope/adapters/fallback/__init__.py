"""Public interface for the fallback parcel adapter."""

from __future__ import annotations

from .adapter import SOURCE, ParcelFallbackAdapter, mailing_address
from .schema import ParcelFeature, ParcelSearchResponse

__all__ = [
    "SOURCE",
    "ParcelFallbackAdapter",
    "ParcelFeature",
    "ParcelSearchResponse",
    "mailing_address",
]
