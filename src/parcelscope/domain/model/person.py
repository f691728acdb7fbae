"""Person/contact enrichment values produced by skip tracing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

MAX_PHONES: Final[int] = 5
MAX_EMAILS: Final[int] = 5
MAX_RELATIVES: Final[int] = 10


@dataclass(frozen=True, slots=True, kw_only=True)
class PersonLookupInput:
    first_name: str | None = None
    last_name: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None

    @classmethod
    def from_owner_name(
        cls,
        owner_name: str | None,
        *,
        address: str | None = None,
        city: str | None = None,
        state: str | None = None,
        zip_code: str | None = None,
    ) -> PersonLookupInput:
        """Split a single owner-name string into first/last name parts.

        Assessor rolls usually list ``LAST FIRST`` when a comma is present and
        ``FIRST LAST`` otherwise.
        """

        first: str | None = None
        last: str | None = None
        if owner_name and owner_name.strip():
            if "," in owner_name:
                last_part, _, first_part = owner_name.partition(",")
                last = last_part.strip() or None
                first = first_part.strip().split(" ")[0] or None
            else:
                parts = owner_name.split()
                first = parts[0]
                last = " ".join(parts[1:]) or None
        return cls(
            first_name=first,
            last_name=last,
            address=address,
            city=city,
            state=state,
            zip_code=zip_code,
        )

    @property
    def is_empty(self) -> bool:
        return not any((self.first_name, self.last_name, self.address))


@dataclass(frozen=True, slots=True)
class PhoneNumber:
    number: str
    phone_type: str | None = None
    do_not_call: bool = False


@dataclass(slots=True, kw_only=True)
class PersonEnrichmentResult:
    """Contact details for one person; list fields are capped on construction."""

    first_name: str | None = None
    last_name: str | None = None
    phones: list[PhoneNumber] = field(default_factory=list[PhoneNumber])
    emails: list[str] = field(default_factory=list[str])
    age: int | None = None
    relatives: list[str] = field(default_factory=list[str])
    raw: dict[str, object] = field(default_factory=dict[str, object])

    def __post_init__(self) -> None:
        self.phones = self.phones[:MAX_PHONES]
        self.emails = self.emails[:MAX_EMAILS]
        self.relatives = self.relatives[:MAX_RELATIVES]

    def to_payload(self) -> dict[str, object]:
        return {
            "found": True,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phones": [
                {"number": phone.number, "type": phone.phone_type, "dnc": phone.do_not_call}
                for phone in self.phones
            ],
            "emails": list(self.emails),
            "age": self.age,
            "relatives": list(self.relatives),
            "raw": self.raw,
        }
