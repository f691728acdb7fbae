"""Public interface for the jurisdiction GIS adapter."""

from __future__ import annotations

from .adapter import GenericGISAdapter, GISQueryError, build_where_clause
from .schema import ErrorResponse, Feature, FeatureQueryResponse
from .transforms import apply_transform

__all__ = [
    "ErrorResponse",
    "Feature",
    "FeatureQueryResponse",
    "GISQueryError",
    "GenericGISAdapter",
    "apply_transform",
    "build_where_clause",
]
