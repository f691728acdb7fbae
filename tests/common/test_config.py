from __future__ import annotations

import pytest

from parcelscope.config import (
    ConfigurationError,
    ProviderAdapterConfig,
    get_batch_limits,
    get_fallback_config,
    get_jurisdiction_configs,
    get_skiptrace_config,
    optional_env_var,
)
from parcelscope.config.fallback import FALLBACK_BASE_URL, found_parcels
from parcelscope.domain.model import LookupField, TransformKind
from parcelscope.domain.registry import jurisdiction_key


def test_optional_env_var_strips_and_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PADDED_VAR", "  value ")
    monkeypatch.setenv("BLANK_VAR", "")

    assert optional_env_var("PADDED_VAR") == "value"
    assert optional_env_var("BLANK_VAR", "fallback") == "fallback"


def test_fallback_config_without_key_is_not_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PROPERTY_FALLBACK_API_KEY", raising=False)
    monkeypatch.delenv("PROPERTY_FALLBACK_BASE_URL", raising=False)

    config = get_fallback_config()

    assert not config.is_configured
    assert config.base_url == FALLBACK_BASE_URL
    assert config.resilience.base_url == FALLBACK_BASE_URL


def test_fallback_config_reads_key_and_base_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROPERTY_FALLBACK_API_KEY", "secret")
    monkeypatch.setenv("PROPERTY_FALLBACK_BASE_URL", "https://parcels.test/api")

    config = get_fallback_config()

    assert config.is_configured
    assert config.resilience.base_url == "https://parcels.test/api"


def test_skiptrace_config_keeps_transport_retries_off(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SKIPTRACE_API_KEY", "token")

    config = get_skiptrace_config()

    assert config.is_configured
    assert config.retries == 2
    assert config.resilience.retry.total == 0


def test_batch_limits_default_and_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PARCELSCOPE_BATCH_CONCURRENCY", raising=False)
    assert get_batch_limits().default_concurrency == 4

    monkeypatch.setenv("PARCELSCOPE_BATCH_CONCURRENCY", "50")
    assert get_batch_limits().default_concurrency == 10


def test_batch_limits_reject_non_integer(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PARCELSCOPE_BATCH_CONCURRENCY", "many")

    with pytest.raises(ConfigurationError):
        get_batch_limits()


def test_jurisdiction_configs_have_unique_keys() -> None:
    configs = get_jurisdiction_configs()

    keys = [jurisdiction_key(config.jurisdiction) for config in configs]
    assert len(keys) == len(set(keys))
    assert all(config.search_field in config.field_map for config in configs)


def test_provider_config_rejects_transform_for_unmapped_field() -> None:
    with pytest.raises(ValueError, match="unmapped"):
        ProviderAdapterConfig(
            source="test_pa",
            jurisdiction="Test County",
            endpoint="https://gis.test/query",
            search_field="SITE",
            out_fields=("SITE",),
            field_map={"SITE": LookupField.PROPERTY_ADDRESS},
            transforms={LookupField.HOMESTEAD: TransformKind.BOOLEAN},
        )


def test_provider_config_freezes_field_map() -> None:
    field_map = {"SITE": LookupField.PROPERTY_ADDRESS}
    config = ProviderAdapterConfig(
        source="test_pa",
        jurisdiction="Test County",
        endpoint="https://gis.test/query",
        search_field="SITE",
        out_fields=(),
        field_map=field_map,
    )
    field_map["OWNER"] = LookupField.OWNER_NAME

    assert "OWNER" not in config.field_map
    assert config.out_fields_param == "*"
    assert config.resilience is not None
    assert config.resilience.retry.total == 0


def test_fallback_cache_keeps_only_hits() -> None:
    cache = get_fallback_config().resilience.cache

    assert cache is not None
    assert cache.should_cache is found_parcels
    assert found_parcels({"parcels": {"type": "FeatureCollection", "features": [{}]}})
    assert found_parcels({"results": [{"properties": {}}]})
    assert not found_parcels({"parcels": {"features": []}})
    assert not found_parcels(["unexpected"])
