"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class LookupField(StrEnum):
    """Canonical property fields every provider result is mapped onto."""

    PARCEL_ID = "parcel_id"
    OWNER_NAME = "owner_name"
    OWNER_MAILING_ADDRESS = "owner_mailing_address"
    PROPERTY_ADDRESS = "property_address"
    HOMESTEAD = "homestead"
    ASSESSED_VALUE = "assessed_value"
    LAST_SALE_DATE = "last_sale_date"
    LAST_SALE_AMOUNT = "last_sale_amount"
    MORTGAGE_LENDER = "mortgage_lender"


class TransformKind(StrEnum):
    """Closed set of value transforms a provider field mapping may request."""

    PASSTHROUGH = "passthrough"
    TEXT = "text"
    BOOLEAN = "boolean"
    POSITIVE_NUMBER = "positive_number"
    EPOCH_DATE = "epoch_date"


class JobStatus(StrEnum):
    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in {JobStatus.DONE, JobStatus.ERROR}
