"""Jurisdiction -> adapter lookup table."""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from parcelscope.domain.ports.lookup import PropertyLookupAdapter

_WHITESPACE = re.compile(r"\s+")
_COUNTY_SUFFIX = re.compile(r"\s*\bcounty$")
_SAINT = re.compile(r"\b(?:saint|st\.?)\s+")


def jurisdiction_key(name: str) -> str:
    """Normalize a jurisdiction name into its registry key.

    >>> jurisdiction_key("St. Lucie County")
    'st. lucie'
    >>> jurisdiction_key("saint lucie")
    'st. lucie'
    >>> jurisdiction_key("Port Saint Lucie")
    'port st. lucie'
    """

    key = _WHITESPACE.sub(" ", name.strip().lower())
    key = _COUNTY_SUFFIX.sub("", key).strip()
    return _SAINT.sub("st. ", key)


@dataclass(frozen=True, slots=True)
class NotFound:
    """No adapter is registered for ``key``; the caller should escalate."""

    key: str


class AdapterRegistry:
    """Read-only mapping from jurisdiction key to property adapter.

    Built once at startup; lookups never mutate state and are safe to share
    across concurrent resolutions.
    """

    def __init__(self, entries: Iterable[tuple[str, PropertyLookupAdapter]] = ()) -> None:
        table: dict[str, PropertyLookupAdapter] = {}
        for name, adapter in entries:
            key = jurisdiction_key(name)
            if key in table:
                raise ValueError(f"Duplicate jurisdiction key {key!r} (from {name!r})")
            table[key] = adapter
        self._table: Mapping[str, PropertyLookupAdapter] = MappingProxyType(table)

    def resolve(self, name: str | None) -> PropertyLookupAdapter | NotFound:
        key = jurisdiction_key(name) if name else ""
        adapter = self._table.get(key)
        if adapter is None:
            return NotFound(key)
        return adapter

    def keys(self) -> tuple[str, ...]:
        return tuple(self._table)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and jurisdiction_key(name) in self._table

    def __len__(self) -> int:
        return len(self._table)

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)
