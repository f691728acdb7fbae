from __future__ import annotations

import asyncio

from parcelscope.domain.model import LookupInput, LookupResult
from parcelscope.domain.registry import AdapterRegistry
from parcelscope.domain.resolution import ResolutionOrchestrator
from tests.helpers.lookups import FakePropertyAdapter, make_result


def _orchestrator(
    county: FakePropertyAdapter,
    fallback: FakePropertyAdapter | None,
) -> ResolutionOrchestrator:
    return ResolutionOrchestrator(
        registry=AdapterRegistry([("St. Lucie County", county)]),
        fallback=fallback,
    )


def test_strong_primary_skips_fallback() -> None:
    county = FakePropertyAdapter(
        "county",
        make_result("county", 75, owner_name="JANE DOE", owner_mailing_address="PO BOX 1"),
    )
    fallback = FakePropertyAdapter("fallback", make_result("fallback", 70, parcel_id="X"))

    result = asyncio.run(
        _orchestrator(county, fallback).resolve(
            LookupInput(address="4510 Sample Drive", jurisdiction="saint lucie")
        )
    )

    assert result.owner_name == "JANE DOE"
    assert result.source == "county"
    assert fallback.calls == []


def test_weak_primary_escalates_and_keeps_primary_fields() -> None:
    county = FakePropertyAdapter("county", make_result("county", 40, owner_name="JANE DOE"))
    fallback = FakePropertyAdapter(
        "fallback",
        make_result(
            "fallback", 70, owner_name="OTHER", owner_mailing_address="PO BOX 1, STUART FL"
        ),
    )

    result = asyncio.run(
        _orchestrator(county, fallback).resolve(
            LookupInput(address="4510 Sample Drive", jurisdiction="St. Lucie County")
        )
    )

    assert result.owner_name == "JANE DOE"
    assert result.owner_mailing_address == "PO BOX 1, STUART FL"
    assert result.confidence_score == 70
    assert len(fallback.calls) == 1


def test_unregistered_jurisdiction_goes_straight_to_fallback() -> None:
    county = FakePropertyAdapter("county", make_result("county", 75, owner_name="X"))
    fallback = FakePropertyAdapter("fallback", make_result("fallback", 60, owner_name="JANE DOE"))

    result = asyncio.run(
        _orchestrator(county, fallback).resolve(
            LookupInput(address="1 Main St", jurisdiction="Miami-Dade County")
        )
    )

    assert county.calls == []
    assert result.source == "fallback"
    assert result.owner_name == "JANE DOE"


def test_failing_adapters_never_raise() -> None:
    county = FakePropertyAdapter("county", error=RuntimeError("layer down"))
    fallback = FakePropertyAdapter("fallback", error=ValueError("bad payload"))

    result = asyncio.run(
        _orchestrator(county, fallback).resolve(
            LookupInput(address="1 Main St", jurisdiction="St. Lucie County")
        )
    )

    assert result.confidence_score == 0
    assert result.populated_fields() == ()
    assert result.diagnostics == ("RuntimeError: layer down", "ValueError: bad payload")


def test_slow_fallback_is_cut_off_at_the_input_timeout() -> None:
    county = FakePropertyAdapter("county", make_result("county", 40, owner_name="JANE DOE"))
    fallback = FakePropertyAdapter(
        "fallback", make_result("fallback", 90, owner_mailing_address="X"), delay=1.0
    )

    result = asyncio.run(
        _orchestrator(county, fallback).resolve(
            LookupInput(
                address="1 Main St", jurisdiction="St. Lucie County", timeout_seconds=0.01
            )
        )
    )

    assert result.owner_name == "JANE DOE"
    assert result.owner_mailing_address is None
    assert result.confidence_score == 40
    assert any("timed out" in diagnostic for diagnostic in result.diagnostics)


def test_no_fallback_and_no_hint_returns_empty() -> None:
    orchestrator = ResolutionOrchestrator(registry=AdapterRegistry())

    result = asyncio.run(orchestrator.resolve(LookupInput(address="1 Main St")))

    assert result == LookupResult.empty("none", diagnostic="no provider returned data")


def test_fallback_none_is_no_data() -> None:
    county = FakePropertyAdapter("county", make_result("county", 40, owner_name="JANE DOE"))
    fallback = FakePropertyAdapter("fallback", None)

    result = asyncio.run(
        _orchestrator(county, fallback).resolve(
            LookupInput(address="1 Main St", jurisdiction="St. Lucie County")
        )
    )

    assert result.source == "county"
    assert result.confidence_score == 40
