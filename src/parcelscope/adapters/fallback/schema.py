"""Pydantic models for the nationwide parcel API.

The API has shipped several envelopes over time: ``parcels`` as a bare feature
list or as a FeatureCollection, and parcel fields either directly on
``properties`` or nested under ``properties.fields``. All of them normalize to
``ParcelSearchResponse.parcels``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ParcelBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ParcelFeature(ParcelBaseModel):
    fields: dict[str, object] = Field(default_factory=dict[str, object])

    @model_validator(mode="before")
    @classmethod
    def _flatten_properties(cls, value: object) -> object:
        if not isinstance(value, Mapping):
            return {"fields": {}}
        feature = cast(Mapping[str, object], value)
        properties = feature.get("properties", feature)
        if not isinstance(properties, Mapping):
            return {"fields": {}}
        properties = cast(Mapping[str, object], properties)
        nested = properties.get("fields")
        if isinstance(nested, Mapping):
            return {"fields": dict(cast(Mapping[str, object], nested))}
        return {"fields": dict(properties)}


class ParcelSearchResponse(ParcelBaseModel):
    parcels: list[ParcelFeature] = Field(default_factory=list[ParcelFeature])

    @model_validator(mode="before")
    @classmethod
    def _unwrap_collection(cls, value: object) -> object:
        if not isinstance(value, Mapping):
            return {"parcels": []}
        payload = cast(Mapping[str, object], value)
        parcels = payload.get("parcels", payload.get("results"))
        if isinstance(parcels, Mapping):
            parcels = cast(Mapping[str, object], parcels).get("features")
        if not isinstance(parcels, list):
            return {"parcels": []}
        return {"parcels": parcels}
