"""Ports for external property and person data providers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from parcelscope.domain.model import (
        LookupInput,
        LookupResult,
        PersonEnrichmentResult,
        PersonLookupInput,
    )


@runtime_checkable
class PropertyLookupAdapter(Protocol):
    """One property data source.

    Jurisdiction GIS adapters always return a result (failures become
    zero-confidence results); fallback adapters return ``None`` for "no data".
    """

    @property
    def source(self) -> str: ...

    async def lookup(self, lookup_input: LookupInput) -> LookupResult | None: ...


@runtime_checkable
class PersonLookupAdapter(Protocol):
    """Skip-trace source; may raise once its retries are exhausted."""

    async def lookup(self, person: PersonLookupInput) -> PersonEnrichmentResult | None: ...


__all__ = ["PersonLookupAdapter", "PropertyLookupAdapter"]
