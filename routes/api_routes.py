"""
routes/api_routes.py

Responsibility: Read-only JSON and plain-text endpoints polled by the host
UI: display snapshot, structured record, interfaces, settings.
Does NOT: mutate settings, force lookups, or render HTML.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from db.models import AppConfig
from dependencies import (
    get_address_service,
    get_config_service,
    get_display_service,
    get_ip_cache,
)
from network.models import InterfaceCandidate, RemoteAddressRecord
from services.address_service import AddressService, address_priority
from services.config_service import ConfigService
from services.display_service import DisplayService, DisplaySnapshot, clean_company_name
from services.ip_cache_service import AdaptiveIpCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------


def record_to_dict(record: RemoteAddressRecord) -> dict[str, Any]:
    """Serialises a RemoteAddressRecord, including the cleaned company name."""
    return {
        "valid": record.is_valid,
        "address": record.address,
        "country": record.country,
        "organization": record.organization,
        "company": clean_company_name(record.organization) if record.organization else "",
    }


def snapshot_to_dict(snapshot: DisplaySnapshot) -> dict[str, Any]:
    """Serialises a DisplaySnapshot for the host UI."""
    return {
        "text": snapshot.text,
        "tooltip": snapshot.tooltip,
        "internal_line": snapshot.internal_line,
        "external_line": snapshot.external_line,
        "internal_address": snapshot.internal_address,
        "record": record_to_dict(snapshot.record),
        "updated_at": snapshot.updated_at.isoformat(),
    }


def settings_to_dict(config: AppConfig) -> dict[str, Any]:
    """Serialises the settings row without its primary key."""
    return config.model_dump(exclude={"id"})


def _interface_to_dict(candidate: InterfaceCandidate) -> dict[str, Any]:
    return {
        "address": str(candidate.address),
        "priority": address_priority(candidate.address),
        "is_up": candidate.is_up,
        "kind": candidate.kind.value,
        "friendly_name": candidate.friendly_name,
        "system_name": candidate.system_name,
    }


async def current_snapshot(
    display_service: DisplayService,
    config_service: ConfigService,
) -> DisplaySnapshot:
    """Returns the latest tick's snapshot, computing one if no tick has run yet."""
    snapshot = display_service.latest
    if snapshot is None:
        config = await config_service.get_config()
        snapshot = await display_service.update(config)
    return snapshot


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/health/json")
async def health_json() -> dict:
    """
    Returns application health as a JSON response.

    Returns:
        A dict with a "status" key set to "ok".
    """
    return {"status": "ok"}


@router.get("/ip")
async def get_ip(
    display_service: DisplayService = Depends(get_display_service),
    config_service: ConfigService = Depends(get_config_service),
) -> dict:
    """
    Returns the most recent display snapshot as JSON.

    Args:
        display_service: Holds the snapshot from the last refresh tick.
        config_service: Provides settings when no tick has run yet.

    Returns:
        The serialised DisplaySnapshot.
    """
    snapshot = await current_snapshot(display_service, config_service)
    return snapshot_to_dict(snapshot)


@router.get("/ip/text", response_class=PlainTextResponse)
async def get_ip_text(
    display_service: DisplayService = Depends(get_display_service),
    config_service: ConfigService = Depends(get_config_service),
) -> str:
    """
    Returns the single-line display text, e.g. "192.168.1.12 | US 8.8.8.8".

    Args:
        display_service: Holds the snapshot from the last refresh tick.
        config_service: Provides settings when no tick has run yet.

    Returns:
        The display text as plain text.
    """
    snapshot = await current_snapshot(display_service, config_service)
    return snapshot.text


@router.get("/ip/record")
async def get_ip_record(
    ip_cache: AdaptiveIpCache = Depends(get_ip_cache),
    config_service: ConfigService = Depends(get_config_service),
) -> dict:
    """
    Returns the structured public address record plus cache diagnostics.

    Goes through the adaptive cache, so this only reaches the network when
    the cached record is stale.

    Args:
        ip_cache: The application-wide adaptive cache.
        config_service: Provides the CacheConfig.

    Returns:
        A dict with "record" and "cache" keys.
    """
    record = await ip_cache.resolve(await config_service.get_cache_config())
    state = ip_cache.snapshot()
    return {
        "record": record_to_dict(record),
        "cache": {
            "cached": record_to_dict(state.record),
            "seconds_since_fetch": ip_cache.seconds_since(state.last_fetch),
            "seconds_since_change": ip_cache.seconds_since(state.last_change),
            "fast_mode_cycles": state.fast_mode_cycles,
            "last_local_address": state.last_local_address,
        },
    }


@router.get("/interfaces")
async def get_interfaces(
    address_service: AddressService = Depends(get_address_service),
) -> list[dict]:
    """
    Lists every usable local IPv4 address with its priority.

    Args:
        address_service: Enumerates the host's interfaces.

    Returns:
        One dict per InterfaceCandidate, in OS order.
    """
    # NOTE: psutil enumeration runs inline on the event loop; it is a local,
    # short query, like the cache's own change probe.
    return [_interface_to_dict(c) for c in address_service.list_interfaces()]


@router.get("/local-ip")
async def get_local_ip(
    preferred: str = Query(default=""),
    address_service: AddressService = Depends(get_address_service),
) -> dict:
    """
    Returns the best local address, optionally preferring one adapter.

    Args:
        preferred: Adapter friendly name or system name to try first.
        address_service: Resolves the address.

    Returns:
        A dict with "address" (str or None) and the echoed "preferred" name.
    """
    address = address_service.get_best_local_address(preferred or None)
    return {"address": address, "preferred": preferred}


@router.get("/settings")
async def get_settings(
    config_service: ConfigService = Depends(get_config_service),
) -> dict:
    """
    Returns the current settings.

    Args:
        config_service: Loads the settings row.

    Returns:
        All AppConfig fields except the primary key.
    """
    return settings_to_dict(await config_service.get_config())


@router.get("/next-tick-in")
async def next_tick_in(
    request: Request,
    config_service: ConfigService = Depends(get_config_service),
) -> dict:
    """
    Returns the seconds remaining until the next scheduled refresh tick.

    Args:
        request: The incoming FastAPI request.
        config_service: Provides the configured tick interval.

    Returns:
        A dict with "seconds" (int) and "interval" (int) keys.
    """
    interval = await config_service.get_tick_seconds()
    seconds_remaining = interval

    scheduler = getattr(request.app.state, "scheduler", None)
    job = scheduler.get_job("ip_refresh") if scheduler is not None else None
    if job is not None and job.next_run_time:
        delta = job.next_run_time - datetime.now(timezone.utc)
        seconds_remaining = max(0, int(delta.total_seconds()))

    return {"seconds": seconds_remaining, "interval": interval}
