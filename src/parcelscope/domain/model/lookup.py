"""Property lookup inputs and partial results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from parcelscope.domain.address import normalize_address
from parcelscope.domain.model.enums import LookupField

MIN_CONFIDENCE: Final[int] = 0
MAX_CONFIDENCE: Final[int] = 100
DEFAULT_LOOKUP_TIMEOUT_SECONDS: Final[float] = 10.0

# Providers and older records use these in place of a missing owner.
OWNER_PLACEHOLDERS: Final[frozenset[str]] = frozenset(
    {"UNKNOWN", "UNKNOWN OWNER", "N/A", "NA", "NONE", "NULL", "PRIMARY OWNER"}
)

type FieldValue = str | bool | float | int | None


def is_absent(field_name: LookupField, value: object) -> bool:
    """Return whether ``value`` carries no usable data for ``field_name``."""

    if value is None:
        return True
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return True
        if field_name is LookupField.OWNER_NAME and stripped.upper() in OWNER_PLACEHOLDERS:
            return True
    return False


@dataclass(frozen=True, slots=True, kw_only=True)
class LookupInput:
    """Immutable request for a single property resolution."""

    address: str | None = None
    jurisdiction: str | None = None
    state: str | None = None
    lat: float | None = None
    lng: float | None = None
    timeout_seconds: float = DEFAULT_LOOKUP_TIMEOUT_SECONDS

    @property
    def normalized_address(self) -> str:
        return normalize_address(self.address or "")

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


@dataclass(slots=True, kw_only=True)
class LookupResult:
    """Partial (or merged) property record produced by a provider adapter.

    ``confidence_score`` is always within [0, 100]. A zero-confidence result only
    carries diagnostics: constructing one with canonical fields raises.
    """

    source: str
    confidence_score: int
    parcel_id: str | None = None
    owner_name: str | None = None
    owner_mailing_address: str | None = None
    property_address: str | None = None
    homestead: bool | None = None
    assessed_value: float | None = None
    last_sale_date: str | None = None
    last_sale_amount: float | None = None
    mortgage_lender: str | None = None
    raw: dict[str, object] = field(default_factory=dict[str, object])
    diagnostics: tuple[str, ...] = ()
    field_sources: dict[LookupField, str] = field(default_factory=dict[LookupField, str])

    def __post_init__(self) -> None:
        if not MIN_CONFIDENCE <= self.confidence_score <= MAX_CONFIDENCE:
            raise ValueError(
                f"confidence_score must be within [{MIN_CONFIDENCE}, {MAX_CONFIDENCE}], "
                f"got {self.confidence_score}"
            )
        if self.confidence_score == 0 and self.populated_fields():
            raise ValueError("A zero-confidence result cannot carry inferred fields")

    @classmethod
    def empty(
        cls,
        source: str,
        *,
        diagnostic: str | None = None,
        raw: dict[str, object] | None = None,
    ) -> LookupResult:
        return cls(
            source=source,
            confidence_score=0,
            raw=raw or {},
            diagnostics=(diagnostic,) if diagnostic else (),
        )

    def get(self, field_name: LookupField) -> FieldValue:
        return getattr(self, field_name.value)

    def has_value(self, field_name: LookupField) -> bool:
        return not is_absent(field_name, self.get(field_name))

    def populated_fields(self) -> tuple[LookupField, ...]:
        return tuple(name for name in LookupField if self.has_value(name))

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {name.value: self.get(name) for name in LookupField}
        payload["source"] = self.source
        payload["confidence_score"] = self.confidence_score
        payload["raw"] = self.raw
        payload["diagnostics"] = list(self.diagnostics)
        payload["field_sources"] = {name.value: src for name, src in self.field_sources.items()}
        return payload
