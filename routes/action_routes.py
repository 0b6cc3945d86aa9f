"""
routes/action_routes.py

Responsibility: POST handlers that mutate state: forced refresh, settings
updates and the show-internal/show-external toggle commands. Every handler
returns JSON, never redirects.
Does NOT: call the lookup provider directly or manage DB sessions.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from dependencies import get_config_service, get_display_service
from routes.api_routes import settings_to_dict, snapshot_to_dict
from scheduler import reschedule
from services.config_service import ConfigService
from services.display_service import DisplayService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class SettingsUpdate(BaseModel):
    """Partial settings update; omitted fields keep their stored value."""

    show_internal: Optional[bool] = None
    show_external: Optional[bool] = None
    preferred_adapter: Optional[str] = None
    external_refresh_minutes: Optional[int] = None
    enable_smart_cache: Optional[bool] = None
    cache_strategy: Optional[str] = None
    fast_refresh_seconds: Optional[int] = None
    max_refresh_minutes: Optional[int] = None
    adaptive_cycles: Optional[int] = None
    separator: Optional[str] = None
    ip_provider_host: Optional[str] = None
    ip_provider_path: Optional[str] = None
    tick_seconds: Optional[int] = None


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------


@router.post("/ip/refresh")
async def refresh_ip(
    display_service: DisplayService = Depends(get_display_service),
    config_service: ConfigService = Depends(get_config_service),
) -> dict:
    """
    Forces a public IP lookup, bypassing the cache interval.

    Args:
        display_service: Rebuilds the snapshot with force_refresh=True.
        config_service: Provides the current settings.

    Returns:
        The serialised DisplaySnapshot after the forced lookup.
    """
    config = await config_service.get_config()
    snapshot = await display_service.update(config, force_refresh=True)
    logger.info("Forced IP refresh: %s", snapshot.text)
    return snapshot_to_dict(snapshot)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@router.post("/settings")
async def update_settings(
    request: Request,
    body: SettingsUpdate,
    config_service: ConfigService = Depends(get_config_service),
    display_service: DisplayService = Depends(get_display_service),
) -> dict:
    """
    Saves a partial settings update and reschedules the refresh tick.

    Args:
        request: The incoming FastAPI request (for app.state.scheduler).
        body: Fields to change.
        config_service: Persists the settings.
        display_service: Rebuilds the snapshot under the new settings.

    Returns:
        The saved settings.
    """
    config = await config_service.update_settings(body.model_dump(exclude_unset=True, exclude_none=True))

    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is not None:
        reschedule(scheduler, config.tick_seconds)

    await display_service.update(config)
    return settings_to_dict(config)


# ---------------------------------------------------------------------------
# Toggle commands
# ---------------------------------------------------------------------------


@router.post("/commands/toggle-internal")
async def toggle_internal(
    config_service: ConfigService = Depends(get_config_service),
    display_service: DisplayService = Depends(get_display_service),
) -> dict:
    """
    Shows or hides the internal address.

    Returns:
        A dict with the new "show_internal" flag and the refreshed "text".
    """
    enabled = await config_service.toggle_show_internal()
    snapshot = await display_service.update(await config_service.get_config())
    return {"show_internal": enabled, "text": snapshot.text}


@router.post("/commands/toggle-external")
async def toggle_external(
    config_service: ConfigService = Depends(get_config_service),
    display_service: DisplayService = Depends(get_display_service),
) -> dict:
    """
    Shows or hides the external address.

    Returns:
        A dict with the new "show_external" flag and the refreshed "text".
    """
    enabled = await config_service.toggle_show_external()
    snapshot = await display_service.update(await config_service.get_config())
    return {"show_external": enabled, "text": snapshot.text}
