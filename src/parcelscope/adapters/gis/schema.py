"""Pydantic models describing ArcGIS feature-layer query payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ArcGISBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ArcGISError(ArcGISBaseModel):
    code: int | None = None
    message: str = "unknown error"
    details: list[str] = Field(default_factory=list[str])


class Feature(ArcGISBaseModel):
    attributes: dict[str, object] = Field(default_factory=dict[str, object])


class FeatureQueryResponse(ArcGISBaseModel):
    features: list[Feature] = Field(default_factory=list[Feature])
    exceeded_transfer_limit: bool = Field(default=False, alias="exceededTransferLimit")


class ErrorResponse(ArcGISBaseModel):
    error: ArcGISError
