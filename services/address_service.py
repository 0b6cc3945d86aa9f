"""
services/address_service.py

Responsibility: Picks the single most relevant local IPv4 address from the
enumerated interface candidates using a fixed priority policy.
Does NOT: query the OS directly, call the public lookup provider, or cache.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from ipaddress import IPv4Address, IPv4Network

from network.interfaces import enumerate_interfaces
from network.models import InterfaceCandidate, InterfaceKind

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Priority policy: higher wins, 0 is never selected
# ---------------------------------------------------------------------------

_RANKED_NETWORKS: tuple[tuple[IPv4Network, int], ...] = (
    (IPv4Network("192.168.0.0/16"), 100),  # home routers
    (IPv4Network("10.0.0.0/8"), 50),
    (IPv4Network("172.16.0.0/12"), 30),
)
_OTHER_PRIORITY = 10


def address_priority(address: IPv4Address) -> int:
    """
    Returns the selection priority of an IPv4 address.

    Args:
        address: The address to rank.

    Returns:
        100 for 192.168/16, 50 for 10/8, 30 for 172.16/12, 10 for any other
        usable address, and 0 for loopback or 0.0.0.0.
    """
    if address.is_loopback or address.is_unspecified:
        return 0
    for network, priority in _RANKED_NETWORKS:
        if address in network:
            return priority
    return _OTHER_PRIORITY


def _eligible(candidate: InterfaceCandidate) -> bool:
    return candidate.is_up and candidate.kind is not InterfaceKind.LOOPBACK


def _pick(candidates: Iterable[InterfaceCandidate]) -> IPv4Address | None:
    """Highest priority wins; on ties the first one seen is kept."""
    best: IPv4Address | None = None
    best_priority = 0
    for candidate in candidates:
        priority = address_priority(candidate.address)
        if priority > best_priority:
            best = candidate.address
            best_priority = priority
    return best


def select_best(
    candidates: Sequence[InterfaceCandidate],
    preferred_interface: str | None = None,
) -> IPv4Address | None:
    """
    Selects the best local address, honouring a preferred interface first.

    When preferred_interface is given, only interfaces whose friendly or
    system name matches it exactly are searched. If that yields nothing
    (no such interface, or no usable address on it) the selection falls
    back to every up, non-loopback interface so a stale adapter name never
    leaves the host without a local address.

    Args:
        candidates: Enumerated interface candidates, in OS order.
        preferred_interface: Optional adapter name to try first.

    Returns:
        The winning address, or None if no candidate has priority > 0.
    """
    eligible = [c for c in candidates if _eligible(c)]

    if preferred_interface:
        preferred = _pick(c for c in eligible if c.matches(preferred_interface))
        if preferred is not None:
            return preferred
        logger.debug(
            "Preferred interface %r has no usable address; using global best.",
            preferred_interface,
        )

    return _pick(eligible)


class AddressService:
    """
    Resolves the host's best local IPv4 address.

    The enumerator is injectable so tests and the cache's change probe can
    run against a fixed candidate list.

    Collaborators:
        - enumerate_interfaces: default OS-backed candidate source
    """

    def __init__(
        self,
        enumerator: Callable[[], list[InterfaceCandidate]] = enumerate_interfaces,
    ) -> None:
        """
        Initialises the service with a candidate source.

        Args:
            enumerator: Zero-argument callable returning interface candidates.
        """
        self._enumerate = enumerator

    def list_interfaces(self) -> list[InterfaceCandidate]:
        """Returns the current interface candidates."""
        return self._enumerate()

    def get_best_local_address(self, preferred_interface: str | None = None) -> str | None:
        """
        Returns the best local address as a dotted string.

        Args:
            preferred_interface: Optional adapter name to try first.

        Returns:
            e.g. "192.168.1.12", or None when no usable address exists.
        """
        best = select_best(self._enumerate(), preferred_interface)
        return str(best) if best is not None else None
