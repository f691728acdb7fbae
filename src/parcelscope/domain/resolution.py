"""Two-tier property resolution: jurisdiction GIS first, generic fallback second."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from parcelscope.domain.merge import (
    DEFAULT_ESCALATION_THRESHOLD,
    merge_results,
    needs_escalation,
)
from parcelscope.domain.model import LookupResult
from parcelscope.domain.registry import NotFound

if TYPE_CHECKING:
    from parcelscope.domain.model import LookupInput
    from parcelscope.domain.ports.lookup import PropertyLookupAdapter
    from parcelscope.domain.registry import AdapterRegistry

log = getLogger(__name__)


class ResolutionOrchestrator:
    """Run the adapter chain for one address and merge what comes back.

    Holds no per-call state, so one instance serves every concurrent batch worker.
    The fallback only runs after the jurisdiction adapter has finished, and only
    when that result is missing, weak, or lacks owner contact data.
    """

    def __init__(
        self,
        *,
        registry: AdapterRegistry,
        fallback: PropertyLookupAdapter | None = None,
        escalation_threshold: int = DEFAULT_ESCALATION_THRESHOLD,
    ) -> None:
        self._registry = registry
        self._fallback = fallback
        self._escalation_threshold = escalation_threshold

    async def resolve(self, lookup_input: LookupInput) -> LookupResult:
        primary: LookupResult | None = None
        if lookup_input.jurisdiction:
            adapter = self._registry.resolve(lookup_input.jurisdiction)
            if isinstance(adapter, NotFound):
                log.debug("No jurisdiction adapter for %r, going to fallback", adapter.key)
            else:
                primary = await self._call(adapter, lookup_input)

        fallbacks: list[LookupResult | None] = []
        if needs_escalation(primary, threshold=self._escalation_threshold):
            if self._fallback is not None:
                fallbacks.append(await self._call(self._fallback, lookup_input))
        elif primary is not None:
            log.debug(
                "Resolved %r from %s at confidence %s without escalation",
                lookup_input.normalized_address,
                primary.source,
                primary.confidence_score,
            )

        return merge_results(primary, fallbacks)

    async def _call(
        self,
        adapter: PropertyLookupAdapter,
        lookup_input: LookupInput,
    ) -> LookupResult | None:
        try:
            async with asyncio.timeout(lookup_input.timeout_seconds):
                return await adapter.lookup(lookup_input)
        except TimeoutError:
            log.warning(
                "%s timed out after %ss for %r",
                adapter.source,
                lookup_input.timeout_seconds,
                lookup_input.normalized_address,
            )
            return LookupResult.empty(
                adapter.source, diagnostic=f"timed out after {lookup_input.timeout_seconds}s"
            )
        except Exception as exc:
            log.exception("%s failed for %r", adapter.source, lookup_input.normalized_address)
            return LookupResult.empty(adapter.source, diagnostic=f"{type(exc).__name__}: {exc}")
