"""
network/interfaces.py

Responsibility: Lists the host's up, non-loopback network interfaces and
their unicast IPv4 addresses as InterfaceCandidate value objects.
Does NOT: rank addresses, choose a preferred adapter, or touch the network.
"""

from __future__ import annotations

import logging
import socket
import sys
from ipaddress import IPv4Address
from pathlib import Path

import psutil

from exceptions import InterfaceEnumerationError
from network.models import InterfaceCandidate, InterfaceKind

logger = logging.getLogger(__name__)

_SYSFS_NET = Path("/sys/class/net")


def _query_platform() -> tuple[dict, dict]:
    """
    Returns psutil's per-interface address and stats maps.

    Raises:
        InterfaceEnumerationError: If the OS query fails.
    """
    try:
        return psutil.net_if_addrs(), psutil.net_if_stats()
    except (OSError, psutil.Error) as exc:
        raise InterfaceEnumerationError(f"Could not list network interfaces: {exc}") from exc


def _classify(system_name: str, flags: str) -> InterfaceKind:
    """Maps psutil interface flags (POSIX) or the name (Windows) to a kind."""
    flag_set = set(flags.split(",")) if flags else set()
    if "loopback" in flag_set or system_name.lower().startswith("loopback"):
        return InterfaceKind.LOOPBACK
    # Tunnels (WireGuard, OpenVPN tun, PPP) are point-to-point links
    if "pointopoint" in flag_set:
        return InterfaceKind.OTHER
    return InterfaceKind.PHYSICAL


def _friendly_name(system_name: str) -> str:
    """
    Returns the interface alias where the platform exposes one.

    psutil already reports friendly names on Windows; on Linux the alias set
    with `ip link set <dev> alias <name>` lives in sysfs.
    """
    if not sys.platform.startswith("linux"):
        return system_name
    try:
        alias = (_SYSFS_NET / system_name / "ifalias").read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError):
        return system_name
    return alias or system_name


def _parse_ipv4(value: str) -> IPv4Address | None:
    try:
        return IPv4Address(value)
    except ValueError:
        return None


def enumerate_interfaces() -> list[InterfaceCandidate]:
    """
    Returns one candidate per usable unicast IPv4 address.

    Only interfaces that are operationally up and not loopback are listed.
    The loopback range and 0.0.0.0 are dropped regardless of interface type.
    A failing platform query yields an empty list rather than an exception.

    Returns:
        Candidates in the order the OS reports interfaces and addresses.
    """
    try:
        addresses_by_name, stats_by_name = _query_platform()
    except InterfaceEnumerationError as exc:
        logger.warning("%s", exc)
        return []

    candidates: list[InterfaceCandidate] = []
    for system_name, addresses in addresses_by_name.items():
        stats = stats_by_name.get(system_name)
        if stats is None or not stats.isup:
            continue

        kind = _classify(system_name, stats.flags)
        if kind is InterfaceKind.LOOPBACK:
            continue

        friendly_name = _friendly_name(system_name)
        for entry in addresses:
            if entry.family != socket.AF_INET:
                continue
            address = _parse_ipv4(entry.address)
            if address is None or address.is_loopback or address.is_unspecified:
                continue
            candidates.append(
                InterfaceCandidate(
                    address=address,
                    is_up=True,
                    kind=kind,
                    friendly_name=friendly_name,
                    system_name=system_name,
                )
            )

    logger.debug("Enumerated %d IPv4 candidate(s).", len(candidates))
    return candidates
