"""
services/display_service.py

Responsibility: Turns resolved addresses and settings into the strings the
host shows: the combined display text, the two stacked display lines and
the tooltip. Also cleans provider organisation names for display.
Does NOT: decide when to refresh, perform HTTP calls, or persist anything.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from db.models import AppConfig
from network.models import RemoteAddressRecord
from services.address_service import AddressService
from services.config_service import to_cache_config
from services.ip_cache_service import AdaptiveIpCache

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
NOTHING_ENABLED_TEXT = "Enable IP display"
NOTHING_ENABLED_TOOLTIP = "Enable IP display in settings"

# "AS906 DMIT Cloud Services" -> "DMIT Cloud Services"
_AS_PREFIX = re.compile(r"^AS\d+(?=\s|$)")

# Checked in order; at most one is stripped
_COMPANY_SUFFIXES = (" Inc.", " LLC", " Ltd.", " Corp.", " Corporation", " Services")


# ---------------------------------------------------------------------------
# Pure formatting helpers
# ---------------------------------------------------------------------------


def format_record(record: RemoteAddressRecord) -> str:
    """
    Formats a public address record for display.

    Args:
        record: The record to format.

    Returns:
        "US 8.8.8.8" when a country is known, "8.8.8.8" otherwise, and an
        empty string for an invalid record.
    """
    if not record.is_valid:
        return ""
    if not record.country:
        return record.address
    return f"{record.country} {record.address}"


def clean_company_name(raw: str) -> str:
    """
    Shortens a provider organisation string to a company name.

    Strips a leading AS number, keeps only the text before the first comma,
    then drops one known legal-form suffix. A step that would leave nothing
    is skipped.

    Args:
        raw: e.g. "AS13335 Cloudflare, Inc."

    Returns:
        e.g. "Cloudflare"; the raw string unchanged if nothing usable remains.
    """
    name = raw.strip()

    without_as = _AS_PREFIX.sub("", name, count=1).strip()
    if without_as:
        name = without_as

    before_comma = name.split(",", 1)[0].strip()
    if before_comma:
        name = before_comma

    for suffix in _COMPANY_SUFFIXES:
        if name.endswith(suffix):
            trimmed = name[: -len(suffix)].strip()
            if trimmed:
                name = trimmed
            break

    return name or raw


# ---------------------------------------------------------------------------
# Snapshot value object
# ---------------------------------------------------------------------------


@dataclass
class DisplaySnapshot:
    """Everything the host renders for one refresh tick."""

    # Single-line text, e.g. "192.168.1.12 | US 8.8.8.8"
    text: str

    tooltip: str

    # Upper and lower line of the stacked two-line layout
    internal_line: str
    external_line: str

    internal_address: str | None = None
    record: RemoteAddressRecord = field(default_factory=RemoteAddressRecord.empty)
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def company_name(self) -> str:
        if not self.record.organization:
            return ""
        return clean_company_name(self.record.organization)


class DisplayService:
    """
    Composes display strings from the local address and the cached record.

    Collaborators:
        - AddressService: resolves the local address for the preferred adapter
        - AdaptiveIpCache: supplies the public address record
    """

    def __init__(self, cache: AdaptiveIpCache, address_service: AddressService) -> None:
        """
        Initialises the service with its two address sources.

        Args:
            cache: The application-wide adaptive cache.
            address_service: Local address resolver.
        """
        self._cache = cache
        self._addresses = address_service
        self._latest: DisplaySnapshot | None = None

    @property
    def latest(self) -> DisplaySnapshot | None:
        """The snapshot built by the most recent update(), if any."""
        return self._latest

    async def update(self, config: AppConfig, force_refresh: bool = False) -> DisplaySnapshot:
        """
        Resolves both addresses once and builds every display string.

        The public lookup only runs when external display is enabled.

        Args:
            config: Current settings.
            force_refresh: Bypass the cache freshness check.

        Returns:
            A DisplaySnapshot for this tick.
        """
        internal_address: str | None = None
        if config.show_internal:
            internal_address = self._addresses.get_best_local_address(config.preferred_adapter or None)

        record = RemoteAddressRecord.empty()
        if config.show_external:
            record = await self._cache.resolve(to_cache_config(config), force_refresh)

        internal_text = internal_address or NOT_AVAILABLE
        external_text = format_record(record) or NOT_AVAILABLE

        snapshot = DisplaySnapshot(
            text=self._compose_text(config, internal_text, external_text),
            tooltip=self._compose_tooltip(config, internal_text, external_text),
            internal_line=self._internal_line(config, internal_text, record),
            external_line=external_text if config.show_external else "",
            internal_address=internal_address,
            record=record,
        )
        self._latest = snapshot
        return snapshot

    async def get_text(self, config: AppConfig, force_refresh: bool = False) -> str:
        """Returns only the single-line display text."""
        snapshot = await self.update(config, force_refresh)
        return snapshot.text

    # ---------------------------------------------------------------------------
    # Composition helpers
    # ---------------------------------------------------------------------------

    @staticmethod
    def _compose_text(config: AppConfig, internal_text: str, external_text: str) -> str:
        if config.show_internal and config.show_external:
            return f"{internal_text}{config.separator}{external_text}"
        if config.show_internal:
            return internal_text
        if config.show_external:
            return external_text
        return NOTHING_ENABLED_TEXT

    @staticmethod
    def _compose_tooltip(config: AppConfig, internal_text: str, external_text: str) -> str:
        lines: list[str] = []
        if config.show_internal:
            lines.append(f"Internal: {internal_text}")
        if config.show_external:
            lines.append(f"External: {external_text}")
        return "\n".join(lines) if lines else NOTHING_ENABLED_TOOLTIP

    @staticmethod
    def _internal_line(config: AppConfig, internal_text: str, record: RemoteAddressRecord) -> str:
        # With the internal address hidden, its slot shows the provider's name
        if config.show_internal:
            return internal_text
        if config.show_external and record.is_valid and record.organization:
            return clean_company_name(record.organization)
        return ""
