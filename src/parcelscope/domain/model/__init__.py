"""Public domain model surface."""

from __future__ import annotations

from parcelscope.domain.model.enums import JobStatus, LookupField, TransformKind
from parcelscope.domain.model.jobs import (
    EnrichmentJob,
    EnrichmentLog,
    JobFilter,
    JobTransitionError,
)
from parcelscope.domain.model.lookup import (
    OWNER_PLACEHOLDERS,
    FieldValue,
    LookupInput,
    LookupResult,
    is_absent,
)
from parcelscope.domain.model.person import (
    MAX_EMAILS,
    MAX_PHONES,
    MAX_RELATIVES,
    PersonEnrichmentResult,
    PersonLookupInput,
    PhoneNumber,
)

__all__ = [
    "MAX_EMAILS",
    "MAX_PHONES",
    "MAX_RELATIVES",
    "OWNER_PLACEHOLDERS",
    "EnrichmentJob",
    "EnrichmentLog",
    "FieldValue",
    "JobFilter",
    "JobStatus",
    "JobTransitionError",
    "LookupField",
    "LookupInput",
    "LookupResult",
    "PersonEnrichmentResult",
    "PersonLookupInput",
    "PhoneNumber",
    "TransformKind",
    "is_absent",
]
