"""
network/models.py

Responsibility: Defines the value objects shared by the network layer
(InterfaceCandidate, RemoteAddressRecord, FetchEndpoint) and the
RemoteAddressProvider Protocol the cache depends on.
Does NOT: make HTTP calls, enumerate interfaces, or hold any cache state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from ipaddress import IPv4Address
from typing import Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Local interfaces
# ---------------------------------------------------------------------------


class InterfaceKind(str, Enum):
    """Coarse classification of a network interface."""

    PHYSICAL = "physical"
    LOOPBACK = "loopback"
    OTHER = "other"


@dataclass(frozen=True)
class InterfaceCandidate:
    """
    One unicast IPv4 address bound to a local network interface.

    Recomputed on every enumeration; carries no persistent identity.
    """

    address: IPv4Address

    # Operational state as reported by the OS at enumeration time
    is_up: bool

    kind: InterfaceKind

    # Human-facing alias (e.g. "Wi-Fi"); equals system_name when none is set
    friendly_name: str

    # OS interface name, e.g. "eth0" or "wlp2s0"
    system_name: str

    def matches(self, interface_name: str) -> bool:
        """Exact, case-sensitive match against either interface name."""
        return interface_name in (self.friendly_name, self.system_name)


# ---------------------------------------------------------------------------
# Public address lookup
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RemoteAddressRecord:
    """
    Public IPv4 address and optional metadata returned by a lookup provider.

    A record is valid only when address is non-empty. Records are never
    mutated; the cache replaces the whole object.
    """

    address: str = ""

    # ISO country code such as "US"; empty when the provider omits it
    country: str = ""

    # Raw provider organisation string, e.g. "AS13335 Cloudflare, Inc."
    organization: str = ""

    @property
    def is_valid(self) -> bool:
        return bool(self.address)

    @classmethod
    def empty(cls) -> RemoteAddressRecord:
        """Returns the explicit invalid record used for every failure path."""
        return cls()


@dataclass(frozen=True)
class FetchEndpoint:
    """HTTPS endpoint and per-phase timeouts for one public-address lookup."""

    host: str = "ipinfo.io"
    path: str = "/json"
    connect_timeout_ms: int = 3000
    send_timeout_ms: int = 3000
    receive_timeout_ms: int = 5000

    @property
    def url(self) -> str:
        path = self.path if self.path.startswith("/") else f"/{self.path}"
        return f"https://{self.host}{path}"


# ---------------------------------------------------------------------------
# Abstract interface: the cache depends on this, not on a concrete client
# ---------------------------------------------------------------------------


@runtime_checkable
class RemoteAddressProvider(Protocol):
    """
    Abstract protocol for public-address lookups.

    AdaptiveIpCache depends on this abstraction so tests can substitute a
    counting fake without patching httpx.
    """

    async def fetch(self, endpoint: FetchEndpoint) -> RemoteAddressRecord:
        """
        Performs exactly one lookup against the given endpoint.

        Args:
            endpoint: Host, path and timeouts for the request.

        Returns:
            A valid RemoteAddressRecord on success, or
            RemoteAddressRecord.empty() on any failure. Never raises.
        """
        ...
