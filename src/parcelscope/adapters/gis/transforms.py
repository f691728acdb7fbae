"""Named value transforms applied to mapped GIS attributes.

Every transform returns ``None`` to drop a value that carries no usable data.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Final

from parcelscope.domain.model import FieldValue, TransformKind

_TRUE_STRINGS: Final[frozenset[str]] = frozenset({"Y", "YES", "TRUE", "T", "1", "X", "HX", "H"})
_FALSE_STRINGS: Final[frozenset[str]] = frozenset({"N", "NO", "FALSE", "F", "0", ""})
_NUMERIC_NOISE = re.compile(r"[$,\s]")
_WHITESPACE = re.compile(r"\s+")


def passthrough(value: object) -> FieldValue:
    if isinstance(value, str | bool | int | float):
        return value
    return None


def to_text(value: object) -> FieldValue:
    if value is None:
        return None
    text = _WHITESPACE.sub(" ", str(value)).strip()
    return text or None


def to_boolean(value: object) -> FieldValue:
    """Coerce flag-like values; anything unrecognized is dropped rather than guessed."""

    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value != 0
    if isinstance(value, str):
        token = value.strip().upper()
        if token in _TRUE_STRINGS:
            return True
        if token in _FALSE_STRINGS:
            return False
    return None


def to_positive_number(value: object) -> FieldValue:
    if isinstance(value, bool):
        return None
    number: float
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(_NUMERIC_NOISE.sub("", value))
        except ValueError:
            return None
    else:
        return None
    if number <= 0 or number != number:  # NaN
        return None
    return number


def to_epoch_date(value: object) -> FieldValue:
    """ArcGIS date fields are epoch milliseconds; ISO strings pass through as dates."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        try:
            moment = datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
        return moment.date().isoformat()
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return to_epoch_date(int(text))
        try:
            return datetime.fromisoformat(text).date().isoformat()
        except ValueError:
            return None
    return None


TRANSFORMS: Final[dict[TransformKind, Callable[[object], FieldValue]]] = {
    TransformKind.PASSTHROUGH: passthrough,
    TransformKind.TEXT: to_text,
    TransformKind.BOOLEAN: to_boolean,
    TransformKind.POSITIVE_NUMBER: to_positive_number,
    TransformKind.EPOCH_DATE: to_epoch_date,
}


def apply_transform(kind: TransformKind | None, value: object) -> FieldValue:
    return TRANSFORMS[kind or TransformKind.PASSTHROUGH](value)
