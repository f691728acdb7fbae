"""Merge policy for partial property results.

Values from the jurisdiction-specific result are authoritative: once that source
populated a field, no fallback may replace it, whatever its confidence. Fields it
left empty are filled from the fallbacks, most confident first.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from parcelscope.domain.model import LookupField, LookupResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from parcelscope.domain.model import FieldValue

DEFAULT_ESCALATION_THRESHOLD: Final[int] = 70
NO_SOURCE: Final[str] = "none"


def needs_escalation(
    result: LookupResult | None,
    *,
    threshold: int = DEFAULT_ESCALATION_THRESHOLD,
) -> bool:
    """Return whether the fallback stage should run after ``result``."""

    if result is None:
        return True
    return (
        result.confidence_score < threshold
        or not result.has_value(LookupField.OWNER_NAME)
        or not result.has_value(LookupField.OWNER_MAILING_ADDRESS)
    )


def merge_results(
    primary: LookupResult | None,
    fallbacks: Sequence[LookupResult | None] = (),
) -> LookupResult:
    """Combine a primary result and fallbacks into one record."""

    ordered: list[LookupResult] = [primary] if primary is not None else []
    # sorted() is stable: equal confidences keep their chain order
    ordered.extend(
        sorted(
            (result for result in fallbacks if result is not None),
            key=lambda result: result.confidence_score,
            reverse=True,
        )
    )
    if not ordered:
        return LookupResult.empty(NO_SOURCE, diagnostic="no provider returned data")

    values: dict[LookupField, FieldValue] = {}
    field_sources: dict[LookupField, str] = {}
    contributors: list[LookupResult] = []
    for result in ordered:
        if result.confidence_score == 0:
            continue
        contributed = False
        for name in result.populated_fields():
            if name in values:
                continue
            values[name] = result.get(name)
            field_sources[name] = result.source
            contributed = True
        if contributed:
            contributors.append(result)

    diagnostics = tuple(diag for result in ordered for diag in result.diagnostics)
    raw: dict[str, object] = {result.source: result.raw for result in ordered}

    if not contributors:
        return LookupResult(
            source=ordered[0].source,
            confidence_score=0,
            raw=raw,
            diagnostics=diagnostics,
        )

    return LookupResult(
        source="+".join(dict.fromkeys(result.source for result in contributors)),
        confidence_score=max(result.confidence_score for result in contributors),
        raw=raw,
        diagnostics=diagnostics,
        field_sources=field_sources,
        **{name.value: value for name, value in values.items()},  # pyright: ignore[reportArgumentType]
    )
