from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest

from photo_atlas.core.errors import GeocodingError, TimezoneLookupError
from photo_atlas.geo import GoogleMapsClient, GoogleMapsConfig


def _client(handler) -> GoogleMapsClient:
    config = GoogleMapsConfig(
        api_key="key", base_url="https://maps.example.test/api", timeout=0.1, language="en"
    )
    http = httpx.Client(base_url=config.base_url, transport=httpx.MockTransport(handler))
    return GoogleMapsClient(config, client=http)


def test_timezone_request_and_response() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "OK", "timeZoneId": "Asia/Bangkok"})

    client = _client(handler)
    at = datetime(2023, 6, 1, 14, 0, tzinfo=timezone.utc)
    assert client.timezone_id(18.5, 98.25, at) == "Asia/Bangkok"

    request = seen[0]
    assert request.url.path == "/api/timezone/json"
    assert request.url.params["location"] == "18.5,98.25"
    assert request.url.params["timestamp"] == str(int(at.timestamp()))
    assert request.url.params["key"] == "key"


def test_timezone_error_status_raises() -> None:
    client = _client(lambda request: httpx.Response(200, json={"status": "REQUEST_DENIED"}))
    with pytest.raises(TimezoneLookupError, match="REQUEST_DENIED"):
        client.timezone_id(1.0, 2.0, datetime(2023, 1, 1, tzinfo=timezone.utc))


def test_timezone_http_error_raises() -> None:
    client = _client(lambda request: httpx.Response(500))
    with pytest.raises(TimezoneLookupError):
        client.timezone_id(1.0, 2.0, datetime(2023, 1, 1, tzinfo=timezone.utc))


def test_reverse_geocode_returns_first_result_components() -> None:
    components = [{"long_name": "Thailand", "short_name": "TH", "types": ["country"]}]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/geocode/json"
        assert request.url.params["latlng"] == "13.75,100.5"
        return httpx.Response(
            200,
            json={
                "status": "OK",
                "results": [{"address_components": components}, {"address_components": []}],
            },
        )

    assert _client(handler).address_components(13.75, 100.5) == components


def test_reverse_geocode_zero_results_is_empty() -> None:
    client = _client(lambda request: httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []}))
    assert client.address_components(0.0, 0.0) == []


def test_reverse_geocode_error_status_raises() -> None:
    client = _client(lambda request: httpx.Response(200, json={"status": "OVER_QUERY_LIMIT"}))
    with pytest.raises(GeocodingError):
        client.address_components(0.0, 0.0)


def test_missing_api_key_is_rejected() -> None:
    config = GoogleMapsConfig(api_key=None, base_url="https://x", timeout=1.0, language="en")
    with pytest.raises(ValueError):
        GoogleMapsClient(config)
