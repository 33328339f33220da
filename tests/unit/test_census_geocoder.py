"""Tests for the Census geocoder adapter.

Covers: request shape, match parsing, unmatched addresses, and the
retryable flag on transport, HTTP and payload failures. ``httpx.Client``
is mocked; no network access.
"""

from __future__ import annotations

import unittest
from typing import Any
from unittest.mock import MagicMock, patch

import httpx

from spatial_kit.core.config import ToolkitConfig
from spatial_kit.models import GeocodeRequest
from spatial_kit.providers.base import GeocodeError
from spatial_kit.providers.census_geocoder import CensusGeocoder

REQUEST = GeocodeRequest(
    street="4600 Silver Hill Rd",
    city="Washington",
    state="DC",
    postal_code="20233",
)

MATCH_PAYLOAD: dict[str, Any] = {
    "result": {
        "input": {"benchmark": {"benchmarkName": "Public_AR_Current"}},
        "addressMatches": [
            {
                "matchedAddress": "4600 SILVER HILL RD, WASHINGTON, DC, 20233",
                "coordinates": {"x": -76.92744, "y": 38.845985},
                "tigerLine": {"tigerLineId": "76355984", "side": "L"},
                "matchType": "Exact",
            },
            {
                "matchedAddress": "4600 SILVER HILL RD, SUITLAND, MD, 20746",
                "coordinates": {"x": -76.9, "y": 38.8},
                "tigerLine": {"tigerLineId": "1", "side": "R"},
                "matchType": "Non_Exact",
            },
        ],
    }
}


def _mock_client(
    payload: Any = None,
    *,
    get_error: Exception | None = None,
    status_error: Exception | None = None,
    json_error: Exception | None = None,
) -> MagicMock:
    """Build a mocked ``httpx.Client`` context manager."""
    response = MagicMock()
    response.raise_for_status = MagicMock(side_effect=status_error)
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload

    client = MagicMock()
    client.__enter__ = MagicMock(return_value=client)
    client.__exit__ = MagicMock(return_value=False)
    if get_error is not None:
        client.get.side_effect = get_error
    else:
        client.get.return_value = response
    return client


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://geocoding.geo.census.gov/geocoder/locations/address")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestCensusGeocoder(unittest.TestCase):
    """CensusGeocoder.geocode parses the structured-address endpoint."""

    def setUp(self) -> None:
        self.geocoder = CensusGeocoder(ToolkitConfig(http_timeout_s=7.5))

    @patch("spatial_kit.providers.base.httpx.Client")
    def test_request_parameters(self, mock_client_cls: MagicMock) -> None:
        client = _mock_client(MATCH_PAYLOAD)
        mock_client_cls.return_value = client

        self.geocoder.geocode(REQUEST)

        mock_client_cls.assert_called_once_with(timeout=7.5)
        url = client.get.call_args.args[0]
        params = client.get.call_args.kwargs["params"]
        assert url == "https://geocoding.geo.census.gov/geocoder/locations/address"
        assert params == {
            "street": "4600 Silver Hill Rd",
            "city": "Washington",
            "state": "DC",
            "zip": "20233",
            "benchmark": "Public_AR_Current",
            "format": "json",
        }

    @patch("spatial_kit.providers.base.httpx.Client")
    def test_first_match_returned(self, mock_client_cls: MagicMock) -> None:
        mock_client_cls.return_value = _mock_client(MATCH_PAYLOAD)

        result = self.geocoder.geocode(REQUEST)

        assert result.matched is True
        assert result.longitude == -76.92744
        assert result.latitude == 38.845985
        assert result.matched_address == "4600 SILVER HILL RD, WASHINGTON, DC, 20233"
        assert result.match_type == "Exact"
        assert result.tiger_line_id == "76355984"
        assert result.side == "L"
        assert result.request == REQUEST

    @patch("spatial_kit.providers.base.httpx.Client")
    def test_no_match(self, mock_client_cls: MagicMock) -> None:
        mock_client_cls.return_value = _mock_client({"result": {"addressMatches": []}})

        result = self.geocoder.geocode(REQUEST)

        assert result.matched is False
        assert result.point() is None

    @patch("spatial_kit.providers.base.httpx.Client")
    def test_geocode_many_keeps_order(self, mock_client_cls: MagicMock) -> None:
        mock_client_cls.return_value = _mock_client(MATCH_PAYLOAD)
        other = GeocodeRequest(street="1 Main St")

        results = self.geocoder.geocode_many([REQUEST, other])

        assert [r.request for r in results] == [REQUEST, other]

    @patch("spatial_kit.providers.base.httpx.Client")
    def test_timeout_is_retryable(self, mock_client_cls: MagicMock) -> None:
        mock_client_cls.return_value = _mock_client(get_error=httpx.ReadTimeout("slow"))

        with self.assertRaises(GeocodeError) as ctx:
            self.geocoder.geocode(REQUEST)
        assert ctx.exception.retryable is True
        assert ctx.exception.provider == "census"

    @patch("spatial_kit.providers.base.httpx.Client")
    def test_transport_error_is_retryable(self, mock_client_cls: MagicMock) -> None:
        mock_client_cls.return_value = _mock_client(get_error=httpx.ConnectError("refused"))

        with self.assertRaises(GeocodeError) as ctx:
            self.geocoder.geocode(REQUEST)
        assert ctx.exception.retryable is True

    @patch("spatial_kit.providers.base.httpx.Client")
    def test_server_error_is_retryable(self, mock_client_cls: MagicMock) -> None:
        mock_client_cls.return_value = _mock_client(status_error=_status_error(503))

        with self.assertRaises(GeocodeError) as ctx:
            self.geocoder.geocode(REQUEST)
        assert ctx.exception.retryable is True
        assert "503" in str(ctx.exception)

    @patch("spatial_kit.providers.base.httpx.Client")
    def test_every_5xx_is_retryable(self, mock_client_cls: MagicMock) -> None:
        for status in (500, 501, 505, 507, 520, 599):
            with self.subTest(status=status):
                mock_client_cls.return_value = _mock_client(status_error=_status_error(status))

                with self.assertRaises(GeocodeError) as ctx:
                    self.geocoder.geocode(REQUEST)
                assert ctx.exception.retryable is True

    @patch("spatial_kit.providers.base.httpx.Client")
    def test_throttling_is_retryable(self, mock_client_cls: MagicMock) -> None:
        for status in (408, 425, 429):
            with self.subTest(status=status):
                mock_client_cls.return_value = _mock_client(status_error=_status_error(status))

                with self.assertRaises(GeocodeError) as ctx:
                    self.geocoder.geocode(REQUEST)
                assert ctx.exception.retryable is True

    @patch("spatial_kit.providers.base.httpx.Client")
    def test_client_error_is_not_retryable(self, mock_client_cls: MagicMock) -> None:
        mock_client_cls.return_value = _mock_client(status_error=_status_error(400))

        with self.assertRaises(GeocodeError) as ctx:
            self.geocoder.geocode(REQUEST)
        assert ctx.exception.retryable is False

    @patch("spatial_kit.providers.base.httpx.Client")
    def test_invalid_json_is_not_retryable(self, mock_client_cls: MagicMock) -> None:
        mock_client_cls.return_value = _mock_client(json_error=ValueError("no json"))

        with self.assertRaises(GeocodeError) as ctx:
            self.geocoder.geocode(REQUEST)
        assert ctx.exception.retryable is False

    @patch("spatial_kit.providers.base.httpx.Client")
    def test_unexpected_shape_is_not_retryable(self, mock_client_cls: MagicMock) -> None:
        mock_client_cls.return_value = _mock_client({"errors": ["bad address"]})

        with self.assertRaises(GeocodeError) as ctx:
            self.geocoder.geocode(REQUEST)
        assert ctx.exception.retryable is False
        assert ctx.exception.code == "GEOCODE_FAILED"

    @patch("spatial_kit.providers.base.httpx.Client")
    def test_match_without_coordinates(self, mock_client_cls: MagicMock) -> None:
        payload = {"result": {"addressMatches": [{"matchedAddress": "X"}]}}
        mock_client_cls.return_value = _mock_client(payload)

        with self.assertRaises(GeocodeError):
            self.geocoder.geocode(REQUEST)
