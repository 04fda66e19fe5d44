"""Tests for the EPC register source."""

import base64
import re
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from pytest_httpx import HTTPXMock

from sold_finder.config import Settings
from sold_finder.errors import (
    MalformedUpstreamPayloadError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from sold_finder.models import NormalizedPostcode
from sold_finder.sources.epc import (
    EPC_SEARCH_URL,
    EPCCredentials,
    EPCSource,
    build_certificate_request,
    parse_certificate_rows,
)

EPC_PATTERN = re.compile(re.escape(EPC_SEARCH_URL) + r"\?.*")
CREDENTIALS = EPCCredentials(user="someone@example.com", key="secret-key")


class TestEPCCredentials:
    def test_basic_auth_header(self) -> None:
        expected = base64.b64encode(b"someone@example.com:secret-key").decode()
        assert CREDENTIALS.authorization == f"Basic {expected}"

    def test_key_not_in_repr(self) -> None:
        assert "secret-key" not in repr(CREDENTIALS)


class TestBuildCertificateRequest:
    def test_keyed_on_compact_postcode(self, sw1a: NormalizedPostcode) -> None:
        request = build_certificate_request(sw1a, CREDENTIALS)
        assert request.url == EPC_SEARCH_URL
        assert request.params == {"postcode": "SW1A1AA"}
        assert request.headers["Authorization"] == CREDENTIALS.authorization
        assert request.headers["Accept"] == "application/json"

    def test_custom_url(self, sw1a: NormalizedPostcode) -> None:
        request = build_certificate_request(sw1a, CREDENTIALS, url="https://epc.example/search")
        assert request.url == "https://epc.example/search"


class TestParseCertificateRows:
    def test_parses_rows(self, make_row: Callable[..., dict[str, Any]]) -> None:
        rows = parse_certificate_rows(
            {"column-names": [], "rows": [make_row(address2="Westminster", rating="b")]}
        )

        assert len(rows) == 1
        cert = rows[0]
        assert cert.address_line1 == "10 Downing Street"
        assert cert.address_line2 == "Westminster"
        assert cert.address == "10 Downing Street, Westminster"
        assert cert.total_floor_area_sqm == 120
        assert cert.current_energy_rating == "B"
        assert cert.property_type == "House"
        assert cert.town_name == "LONDON"
        assert cert.postcode == "SW1A 1AA"

    def test_fractional_floor_area_truncates(self, make_row: Callable[..., dict[str, Any]]) -> None:
        rows = parse_certificate_rows({"rows": [make_row(total_floor_area="72.9")]})
        assert rows[0].total_floor_area_sqm == 72

    def test_missing_values(self, make_row: Callable[..., dict[str, Any]]) -> None:
        row = make_row(total_floor_area="", rating="")
        del row["address2"]
        cert = parse_certificate_rows({"rows": [row]})[0]
        assert cert.total_floor_area_sqm is None
        assert cert.current_energy_rating is None
        assert cert.address_line2 == ""

    def test_unparseable_floor_area(self, make_row: Callable[..., dict[str, Any]]) -> None:
        cert = parse_certificate_rows({"rows": [make_row(total_floor_area="n/a")]})[0]
        assert cert.total_floor_area_sqm is None

    def test_empty_body(self) -> None:
        assert parse_certificate_rows(None) == []

    def test_no_rows_key(self) -> None:
        assert parse_certificate_rows({"column-names": []}) == []

    def test_skips_non_dict_rows(self, make_row: Callable[..., dict[str, Any]]) -> None:
        rows = parse_certificate_rows({"rows": ["junk", make_row()]})
        assert len(rows) == 1

    @pytest.mark.parametrize("payload", [[], "rows", {"rows": "nope"}])
    def test_malformed(self, payload: Any) -> None:
        with pytest.raises(MalformedUpstreamPayloadError):
            parse_certificate_rows(payload)


class TestEPCSource:
    async def test_fetch(
        self,
        httpx_mock: HTTPXMock,
        sw1a: NormalizedPostcode,
        make_row: Callable[..., dict[str, Any]],
    ) -> None:
        httpx_mock.add_response(
            url=EPC_PATTERN, json={"rows": [make_row(), make_row(address1="11 Downing Street")]}
        )

        result = await EPCSource(CREDENTIALS).fetch(sw1a)

        assert result.ok
        assert [c.address_line1 for c in result.records] == [
            "10 Downing Street",
            "11 Downing Street",
        ]
        request = httpx_mock.get_requests()[0]
        assert request.url.params["postcode"] == "SW1A1AA"
        assert request.headers["Authorization"] == CREDENTIALS.authorization
        assert request.extensions["timeout"]["read"] == 3.0

    async def test_no_results_empty_body(
        self, httpx_mock: HTTPXMock, sw1a: NormalizedPostcode
    ) -> None:
        httpx_mock.add_response(url=EPC_PATTERN, content=b"")

        result = await EPCSource(CREDENTIALS).fetch(sw1a)

        assert result.ok
        assert result.records == []

    async def test_without_credentials_skips_network(
        self, httpx_mock: HTTPXMock, sw1a: NormalizedPostcode
    ) -> None:
        source = EPCSource(None)

        result = await source.fetch(sw1a)

        assert not source.enabled
        assert result.ok
        assert result.records == []
        assert httpx_mock.get_requests() == []

    async def test_unauthorized_is_empty(
        self, httpx_mock: HTTPXMock, sw1a: NormalizedPostcode
    ) -> None:
        httpx_mock.add_response(url=EPC_PATTERN, status_code=401)

        result = await EPCSource(CREDENTIALS).fetch(sw1a)

        assert result.records == []
        assert isinstance(result.error, UpstreamUnavailableError)

    async def test_timeout_is_empty(self, httpx_mock: HTTPXMock, sw1a: NormalizedPostcode) -> None:
        httpx_mock.add_exception(httpx.ConnectTimeout("slow"), url=EPC_PATTERN)

        result = await EPCSource(CREDENTIALS).fetch(sw1a)

        assert result.records == []
        assert isinstance(result.error, UpstreamTimeoutError)

    def test_from_settings_with_credentials(self, test_settings: Settings) -> None:
        source = EPCSource.from_settings(test_settings)
        assert source.enabled
        assert source.credentials == CREDENTIALS
        assert source.timeout == 3.0

    def test_from_settings_without_key(self) -> None:
        source = EPCSource.from_settings(Settings(epc_user="someone@example.com"))
        assert not source.enabled
