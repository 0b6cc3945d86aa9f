"""
tests/unit/test_ipinfo_client.py

Unit tests for network/ipinfo_client.py.
Verifies field scanning, happy-path lookups, and that every failure mode
collapses into an invalid record instead of raising.
"""

from __future__ import annotations

import httpx
import pytest

from exceptions import IpFetchError
from network.ipinfo_client import IpInfoClient, extract_field, parse_record
from network.models import FetchEndpoint, RemoteAddressRecord

_IPINFO_URL = "https://ipinfo.io/json"

_IPINFO_BODY = """
{
  "ip": "203.0.113.7",
  "city": "Los Angeles",
  "region": "California",
  "country": "US",
  "loc": "34.0522,-118.2437",
  "org": "AS906 DMIT Cloud Services",
  "timezone": "America/Los_Angeles"
}
"""


# ---------------------------------------------------------------------------
# extract_field / parse_record
# ---------------------------------------------------------------------------


def test_extract_field_tolerates_whitespace_around_colon():
    assert extract_field('{"ip" :\t "1.2.3.4"}', "ip") == "1.2.3.4"
    assert extract_field('{"ip":"1.2.3.4"}', "ip") == "1.2.3.4"
    assert extract_field('{"ip":\n  "1.2.3.4"}', "ip") == "1.2.3.4"


def test_extract_field_missing_returns_empty():
    assert extract_field('{"origin": "1.2.3.4"}', "ip") == ""


def test_extract_field_uses_first_textual_occurrence_only():
    """If the first "ip" is not a string value the field is absent, later ones are ignored."""
    body = '{"ip": 12345, "nested": {"ip": "1.2.3.4"}}'
    assert extract_field(body, "ip") == ""


def test_extract_field_ignores_key_order_and_nesting():
    body = '{"meta": {"source": "x"}, "data": {"country": "DE", "ip": "5.6.7.8"}}'
    assert extract_field(body, "ip") == "5.6.7.8"
    assert extract_field(body, "country") == "DE"


def test_parse_record_reads_ip_country_and_org():
    record = parse_record(_IPINFO_BODY)
    assert record == RemoteAddressRecord(
        address="203.0.113.7",
        country="US",
        organization="AS906 DMIT Cloud Services",
    )


def test_parse_record_falls_back_to_origin_field():
    """httpbin-style bodies carry the address under "origin"."""
    record = parse_record('{\n  "origin": "198.51.100.20"\n}')
    assert record.address == "198.51.100.20"
    assert record.country == ""
    assert record.is_valid


def test_parse_record_without_address_raises():
    with pytest.raises(IpFetchError):
        parse_record('{"country": "US"}')


def test_parse_record_with_empty_address_raises():
    with pytest.raises(IpFetchError):
        parse_record('{"ip": "", "origin": ""}')


# ---------------------------------------------------------------------------
# IpInfoClient.fetch
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_returns_record(mock_http, http_client):
    """IpInfoClient must return the parsed record from the provider."""
    mock_http.get(_IPINFO_URL).mock(return_value=httpx.Response(200, text=_IPINFO_BODY))

    record = await IpInfoClient(http_client).fetch(FetchEndpoint())

    assert record.address == "203.0.113.7"
    assert record.country == "US"
    assert record.organization == "AS906 DMIT Cloud Services"


@pytest.mark.asyncio
async def test_fetch_uses_configured_host_and_path(mock_http, http_client):
    """The request goes to https://{host}{path} exactly once."""
    route = mock_http.get("https://httpbin.org/ip").mock(
        return_value=httpx.Response(200, text='{"origin": "198.51.100.20"}')
    )

    record = await IpInfoClient(http_client).fetch(FetchEndpoint(host="httpbin.org", path="/ip"))

    assert route.call_count == 1
    assert record.address == "198.51.100.20"


@pytest.mark.asyncio
async def test_fetch_returns_invalid_on_network_error(mock_http, http_client):
    """A connect failure yields an invalid record rather than an exception."""
    mock_http.get(_IPINFO_URL).mock(side_effect=httpx.ConnectError("unreachable"))

    record = await IpInfoClient(http_client).fetch(FetchEndpoint())

    assert record == RemoteAddressRecord.empty()
    assert not record.is_valid


@pytest.mark.asyncio
async def test_fetch_returns_invalid_on_timeout(mock_http, http_client):
    mock_http.get(_IPINFO_URL).mock(side_effect=httpx.ReadTimeout("slow"))

    record = await IpInfoClient(http_client).fetch(FetchEndpoint())

    assert not record.is_valid


@pytest.mark.asyncio
async def test_fetch_returns_invalid_on_http_error(mock_http, http_client):
    """A non-2xx status is a failure even if the body looks usable."""
    mock_http.get(_IPINFO_URL).mock(return_value=httpx.Response(429, text='{"ip": "1.2.3.4"}'))

    record = await IpInfoClient(http_client).fetch(FetchEndpoint())

    assert not record.is_valid


@pytest.mark.asyncio
async def test_fetch_returns_invalid_when_body_has_no_address(mock_http, http_client):
    """A successful call with no extractable address is treated like a failure."""
    mock_http.get(_IPINFO_URL).mock(return_value=httpx.Response(200, text="<html>rate limited</html>"))

    record = await IpInfoClient(http_client).fetch(FetchEndpoint())

    assert not record.is_valid


def test_endpoint_url_adds_leading_slash():
    assert FetchEndpoint(host="example.net", path="json").url == "https://example.net/json"
