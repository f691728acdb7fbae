"""Public interface for the skip-trace adapter."""

from __future__ import annotations

from .adapter import SkipTraceAdapter, build_search_body
from .schema import PersonPayload, PersonSearchResponse, PhonePayload

__all__ = [
    "PersonPayload",
    "PersonSearchResponse",
    "PhonePayload",
    "SkipTraceAdapter",
    "build_search_body",
]
