"""Address canonicalization for provider query keys.

GIS services store situs addresses uppercased, without unit designators and with
USPS street-suffix abbreviations, so queries must be built the same way before a
substring match can hit.
"""

from __future__ import annotations

import re
from typing import Final

STREET_SUFFIXES: Final[dict[str, str]] = {
    "STREET": "ST",
    "DRIVE": "DR",
    "AVENUE": "AVE",
    "BOULEVARD": "BLVD",
    "ROAD": "RD",
    "LANE": "LN",
    "COURT": "CT",
    "CIRCLE": "CIR",
    "PLACE": "PL",
    "TERRACE": "TER",
    "PARKWAY": "PKWY",
    "HIGHWAY": "HWY",
    "TRAIL": "TRL",
    "WAY": "WAY",
}

UNIT_DESIGNATORS: Final[tuple[str, ...]] = (
    "APARTMENT",
    "APT",
    "UNIT",
    "SUITE",
    "STE",
    "LOT",
    "BUILDING",
    "BLDG",
)

_NOISE = re.compile(r"[,.]")
# "#" marks a unit as reliably as the spelled-out designators do. A designator
# counts only when a unit number or letter follows it (or nothing does), so
# street names such as STE GENEVIEVE survive.
_UNIT = re.compile(
    r"(?:#|\b(?:"
    + "|".join(UNIT_DESIGNATORS)
    + r")\b(?=\s*$|\s+(?:[A-Z]?\d|[A-Z]\b))).*$"
)
_WHITESPACE = re.compile(r"\s+")


def normalize_address(raw: str) -> str:
    """Return the canonical query form of ``raw``.

    >>> normalize_address("4510 Sample Drive Apt 3")
    '4510 SAMPLE DR'
    >>> normalize_address("12 Ste. Genevieve Ave")
    '12 STE GENEVIEVE AVE'
    """

    value = raw.upper()
    value = _NOISE.sub(" ", value)
    value = _UNIT.sub("", value)
    words = _WHITESPACE.split(value.strip())
    return " ".join(STREET_SUFFIXES.get(word, word) for word in words if word)


def address_key(raw: str | None) -> str | None:
    """Deduplication key for stored addresses (``None`` when nothing is left)."""

    if raw is None:
        return None
    return normalize_address(raw) or None
