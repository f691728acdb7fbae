"""Fake property and person adapters for orchestration tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from parcelscope.domain.model import LookupResult, PersonEnrichmentResult, PhoneNumber

if TYPE_CHECKING:
    from parcelscope.domain.model import LookupInput, PersonLookupInput


def make_result(
    source: str = "fake",
    confidence: int = 75,
    **fields: object,
) -> LookupResult:
    return LookupResult(source=source, confidence_score=confidence, **fields)  # type: ignore[arg-type]


@dataclass
class FakePropertyAdapter:
    """Returns a canned result (or raises) and records what it was asked."""

    name: str = "fake"
    result: LookupResult | None = None
    error: Exception | None = None
    delay: float = 0.0
    calls: list[LookupInput] = field(default_factory=list)

    @property
    def source(self) -> str:
        return self.name

    async def lookup(self, lookup_input: LookupInput) -> LookupResult | None:
        self.calls.append(lookup_input)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


@dataclass
class FakePersonAdapter:
    result: PersonEnrichmentResult | None = None
    calls: list[PersonLookupInput] = field(default_factory=list)

    async def lookup(self, person: PersonLookupInput) -> PersonEnrichmentResult | None:
        self.calls.append(person)
        return self.result


def make_person(first_name: str = "Jane", last_name: str = "Doe") -> PersonEnrichmentResult:
    return PersonEnrichmentResult(
        first_name=first_name,
        last_name=last_name,
        phones=[PhoneNumber("7725550100", "mobile")],
        emails=["jane@example.com"],
        age=52,
    )
