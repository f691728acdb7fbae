from __future__ import annotations

import pytest

from parcelscope.domain.registry import AdapterRegistry, NotFound, jurisdiction_key
from tests.helpers.lookups import FakePropertyAdapter


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("St. Lucie County", "st. lucie"),
        ("saint lucie", "st. lucie"),
        ("ST LUCIE", "st. lucie"),
        ("Port Saint Lucie", "port st. lucie"),
        ("Port St. Lucie", "port st. lucie"),
        ("port st lucie", "port st. lucie"),
        ("  Palm   Beach  County ", "palm beach"),
        ("Miami-Dade County", "miami-dade"),
        ("Martin", "martin"),
    ],
)
def test_jurisdiction_key(name: str, expected: str) -> None:
    assert jurisdiction_key(name) == expected


def test_spelling_variants_resolve_to_the_same_adapter() -> None:
    adapter = FakePropertyAdapter(name="st_lucie_pa")
    registry = AdapterRegistry([("St. Lucie County", adapter)])

    assert registry.resolve("St. Lucie County") is adapter
    assert registry.resolve("saint lucie") is adapter
    assert "st lucie county" in registry


def test_saint_inside_a_name_resolves_to_the_same_adapter() -> None:
    adapter = FakePropertyAdapter(name="port_st_lucie")
    registry = AdapterRegistry([("Port St. Lucie", adapter)])

    assert registry.resolve("Port Saint Lucie") is adapter


def test_unregistered_jurisdiction_is_not_found() -> None:
    registry = AdapterRegistry([("St. Lucie County", FakePropertyAdapter())])

    resolved = registry.resolve("Miami-Dade County")

    assert resolved == NotFound("miami-dade")


def test_missing_hint_is_not_found() -> None:
    registry = AdapterRegistry([("Lee County", FakePropertyAdapter())])

    assert isinstance(registry.resolve(None), NotFound)
    assert isinstance(registry.resolve(""), NotFound)


def test_duplicate_keys_are_rejected_at_construction() -> None:
    with pytest.raises(ValueError, match="st. lucie"):
        AdapterRegistry(
            [
                ("St. Lucie County", FakePropertyAdapter()),
                ("Saint Lucie", FakePropertyAdapter()),
            ]
        )


def test_registry_is_read_only() -> None:
    registry = AdapterRegistry([("Lee County", FakePropertyAdapter())])

    assert registry.keys() == ("lee",)
    assert len(registry) == 1
    assert list(registry) == ["lee"]
    with pytest.raises(TypeError):
        registry._table["martin"] = FakePropertyAdapter()  # type: ignore[index]  # noqa: SLF001
