"""
network/ipinfo_client.py

Responsibility: Implements the RemoteAddressProvider protocol against an
ipinfo.io-style JSON endpoint. All public-address HTTP calls are concentrated
here. No other file may call the lookup provider directly.
Does NOT: cache results, decide when to refresh, or format display strings.
"""

from __future__ import annotations

import logging
import re

import httpx

from exceptions import IpFetchError
from network.models import FetchEndpoint, RemoteAddressRecord

logger = logging.getLogger(__name__)

_USER_AGENT = "ipbeacon/1.0"

# NOTE: httpbin.org/ip answers {"origin": "..."} instead of {"ip": "..."}.
_ADDRESS_FIELDS = ("ip", "origin")

# Colon and a double-quoted string value, with any whitespace around the colon
_STRING_VALUE = re.compile(r'\s*:\s*"([^"]*)"')


def extract_field(body: str, field: str) -> str:
    """
    Returns the string value of the first textual occurrence of "field".

    This is a tolerant scan, not a JSON parser: nesting and key order are
    irrelevant. Only the first occurrence of the quoted field name is
    considered; if it is not followed by a colon and a string value the field
    counts as absent.

    Args:
        body: Raw response text.
        field: Field name without quotes, e.g. "ip".

    Returns:
        The unquoted value, or an empty string when absent.
    """
    needle = f'"{field}"'
    start = body.find(needle)
    if start == -1:
        return ""
    match = _STRING_VALUE.match(body, start + len(needle))
    if match is None:
        return ""
    return match.group(1)


def parse_record(body: str) -> RemoteAddressRecord:
    """
    Builds a RemoteAddressRecord from a lookup response body.

    Args:
        body: Raw response text from the provider.

    Returns:
        A valid RemoteAddressRecord.

    Raises:
        IpFetchError: If no address field can be extracted.
    """
    text = body.strip()
    address = ""
    for field in _ADDRESS_FIELDS:
        address = extract_field(text, field)
        if address:
            break
    if not address:
        raise IpFetchError("Response contained no 'ip' or 'origin' field.")

    return RemoteAddressRecord(
        address=address,
        country=extract_field(text, "country"),
        organization=extract_field(text, "org"),
    )


class IpInfoClient:
    """
    Looks up the host's public IPv4 address plus country and organisation.

    Uses an injected httpx.AsyncClient so the client is fully testable
    without real network calls (use respx.mock in tests).

    Collaborators:
        - httpx.AsyncClient: injected; must be kept alive externally
        - RemoteAddressProvider: this class satisfies the protocol contract
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        """
        Initialises the client with a shared HTTP client.

        Args:
            http_client: A long-lived httpx.AsyncClient instance created
                         during application startup.
        """
        self._client = http_client

    async def fetch(self, endpoint: FetchEndpoint) -> RemoteAddressRecord:
        """
        Performs one lookup and returns the parsed record.

        Transport failures, non-2xx statuses and bodies without an address
        all collapse into RemoteAddressRecord.empty().

        Args:
            endpoint: Host, path and timeouts for the request.

        Returns:
            The parsed record, or an invalid record on any failure.
        """
        try:
            body = await self._get_body(endpoint)
            record = parse_record(body)
        except IpFetchError as exc:
            logger.warning("Public IP lookup via %s failed: %s", endpoint.host, exc)
            return RemoteAddressRecord.empty()

        logger.debug(
            "Public IP from %s: %s (country=%s, org=%s)",
            endpoint.host,
            record.address,
            record.country or "-",
            record.organization or "-",
        )
        return record

    async def _get_body(self, endpoint: FetchEndpoint) -> str:
        """
        Issues the GET request and returns the response text.

        Raises:
            IpFetchError: On connect/send/receive failure, timeout, or a
                          non-success status.
        """
        timeout = httpx.Timeout(
            connect=endpoint.connect_timeout_ms / 1000,
            write=endpoint.send_timeout_ms / 1000,
            read=endpoint.receive_timeout_ms / 1000,
            pool=endpoint.connect_timeout_ms / 1000,
        )
        url = endpoint.url
        try:
            response = await self._client.get(
                url,
                headers={"User-Agent": _USER_AGENT, "Accept": "application/json"},
                timeout=timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise IpFetchError(
                f"IP provider returned status {exc.response.status_code}."
            ) from exc
        except httpx.RequestError as exc:
            raise IpFetchError(f"Could not reach IP provider ({url}): {exc}") from exc
        except httpx.InvalidURL as exc:
            raise IpFetchError(f"Invalid IP provider URL ({url}): {exc}") from exc
        return response.text
