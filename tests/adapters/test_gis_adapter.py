from __future__ import annotations

import asyncio
import logging

import httpx
import pytest

from parcelscope.adapters.gis import GenericGISAdapter, build_where_clause
from parcelscope.config.gis import JURISDICTION_CONFIGS, ProviderAdapterConfig
from parcelscope.domain.model import LookupField, LookupInput, LookupResult, TransformKind
from tests.helpers.http import RecordingHandler, make_client_factory

ENDPOINT = "https://gis.example.gov/arcgis/rest/services/Parcels/MapServer/0/query"


def _config(**overrides: object) -> ProviderAdapterConfig:
    values: dict[str, object] = {
        "source": "example_pa",
        "jurisdiction": "Example County",
        "endpoint": ENDPOINT,
        "search_field": "SITE_ADDR",
        "out_fields": ("PARCEL", "OWNER", "MAIL_ADDR", "SITE_ADDR", "HMSTD", "JUST_VAL"),
        "field_map": {
            "PARCEL": LookupField.PARCEL_ID,
            "OWNER": LookupField.OWNER_NAME,
            "MAIL_ADDR": LookupField.OWNER_MAILING_ADDRESS,
            "SITE_ADDR": LookupField.PROPERTY_ADDRESS,
            "HMSTD": LookupField.HOMESTEAD,
            "JUST_VAL": LookupField.ASSESSED_VALUE,
        },
        "transforms": {
            LookupField.HOMESTEAD: TransformKind.BOOLEAN,
            LookupField.ASSESSED_VALUE: TransformKind.POSITIVE_NUMBER,
        },
    }
    values.update(overrides)
    return ProviderAdapterConfig(**values)  # type: ignore[arg-type]


def _features(*attributes: dict[str, object]) -> httpx.Response:
    return httpx.Response(200, json={"features": [{"attributes": attrs} for attrs in attributes]})


def _lookup(adapter: GenericGISAdapter, address: str = "4510 Sample Drive Apt 3") -> LookupResult:
    return asyncio.run(adapter.lookup(LookupInput(address=address)))


def test_query_uses_normalized_address() -> None:
    handler = RecordingHandler(_features())
    adapter = GenericGISAdapter(_config(), client_factory=make_client_factory(handler))

    _lookup(adapter)

    params = handler.requests[0].url.params
    assert params["where"] == "SITE_ADDR LIKE '%4510 SAMPLE DR%'"
    assert params["outFields"] == "PARCEL,OWNER,MAIL_ADDR,SITE_ADDR,HMSTD,JUST_VAL"
    assert params["returnGeometry"] == "false"
    assert params["resultRecordCount"] == "3"
    assert params["f"] == "json"


def test_single_quotes_are_doubled() -> None:
    assert build_where_clause("SITE", "1 O'HARA ST") == "SITE LIKE '%1 O''HARA ST%'"


def test_zero_features_is_zero_confidence() -> None:
    handler = RecordingHandler(_features())
    adapter = GenericGISAdapter(_config(), client_factory=make_client_factory(handler))

    result = _lookup(adapter)

    assert result.confidence_score == 0
    assert result.owner_name is None
    assert result.source == "example_pa"
    assert result.diagnostics == ("no features for SITE_ADDR LIKE '%4510 SAMPLE DR%'",)


def test_first_feature_is_mapped_and_transformed() -> None:
    handler = RecordingHandler(
        _features(
            {
                "PARCEL": "3420-501-0012-000-1",
                "OWNER": "  DOE  JANE ",
                "MAIL_ADDR": "PO BOX 1, STUART FL 34994",
                "SITE_ADDR": "4510 SAMPLE DR",
                "HMSTD": "Y",
                "JUST_VAL": 0,
            },
            {"PARCEL": "second", "OWNER": "SOMEONE ELSE"},
        )
    )
    adapter = GenericGISAdapter(_config(), client_factory=make_client_factory(handler))

    result = _lookup(adapter)

    assert result.confidence_score == 75
    assert result.parcel_id == "3420-501-0012-000-1"
    assert result.owner_name == "  DOE  JANE "
    assert result.homestead is True
    assert result.assessed_value is None
    assert result.raw["PARCEL"] == "3420-501-0012-000-1"


def test_missing_owner_is_partial_confidence() -> None:
    handler = RecordingHandler(_features({"PARCEL": "P-1", "OWNER": "", "HMSTD": None}))
    adapter = GenericGISAdapter(_config(), client_factory=make_client_factory(handler))

    result = _lookup(adapter)

    assert result.confidence_score == 40
    assert result.parcel_id == "P-1"
    assert result.owner_name is None
    assert result.homestead is None


def test_placeholder_owner_counts_as_missing() -> None:
    handler = RecordingHandler(_features({"PARCEL": "P-1", "OWNER": "UNKNOWN OWNER"}))
    adapter = GenericGISAdapter(_config(), client_factory=make_client_factory(handler))

    result = _lookup(adapter)

    assert result.confidence_score == 40
    assert result.owner_name is None


def test_layer_error_payload_is_absorbed() -> None:
    handler = RecordingHandler(
        httpx.Response(200, json={"error": {"code": 400, "message": "Invalid query"}})
    )
    adapter = GenericGISAdapter(_config(), client_factory=make_client_factory(handler))

    result = _lookup(adapter)

    assert result.confidence_score == 0
    assert result.diagnostics == ("GISQueryError: Invalid query",)


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="unavailable"),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.ConnectError("connection refused"),
    ],
)
def test_transport_failures_are_absorbed(response: httpx.Response | Exception) -> None:
    adapter = GenericGISAdapter(
        _config(), client_factory=make_client_factory(RecordingHandler(response))
    )

    result = _lookup(adapter)

    assert result.confidence_score == 0
    assert result.source == "example_pa"
    assert len(result.diagnostics) == 1


def test_timeout_yields_zero_confidence() -> None:
    async def slow(_request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return _features()

    adapter = GenericGISAdapter(
        _config(timeout_seconds=0.01), client_factory=make_client_factory(slow)
    )

    result = _lookup(adapter)

    assert result.confidence_score == 0
    assert result.diagnostics == ("timed out after 0.01s",)


def test_blank_address_makes_no_request() -> None:
    handler = RecordingHandler()
    adapter = GenericGISAdapter(_config(), client_factory=make_client_factory(handler))

    result = _lookup(adapter, address="  ,  ")

    assert result.confidence_score == 0
    assert handler.requests == []


def test_config_rejects_transforms_for_unmapped_fields() -> None:
    with pytest.raises(ValueError, match="mortgage_lender"):
        _config(transforms={LookupField.MORTGAGE_LENDER: TransformKind.TEXT})


def test_jurisdiction_table_is_consistent() -> None:
    sources = [config.source for config in JURISDICTION_CONFIGS]
    assert len(sources) == len(set(sources))
    for config in JURISDICTION_CONFIGS:
        assert config.search_field in config.field_map
        assert config.resilience is not None
        assert config.resilience.retry.total == 0


def test_truncated_candidate_list_is_noted(caplog: pytest.LogCaptureFixture) -> None:
    handler = RecordingHandler(
        httpx.Response(
            200,
            json={
                "features": [{"attributes": {"OWNER": "DOE JANE"}}],
                "exceededTransferLimit": True,
            },
        )
    )
    adapter = GenericGISAdapter(_config(), client_factory=make_client_factory(handler))

    with caplog.at_level(logging.DEBUG, logger="parcelscope.adapters.gis.adapter"):
        result = _lookup(adapter)

    assert result.owner_name == "DOE JANE"
    assert "example_pa truncated its candidates" in caplog.text
