"""
scheduler.py

Responsibility: Sets up the APScheduler AsyncIOScheduler and registers the
periodic display refresh tick. Exposes create/reschedule helpers.
Does NOT: contain address-resolution logic or HTTP calls directly; those
are delegated entirely to DisplayService and its collaborators.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import Session

from db.database import engine
from db.models import AppConfig
from exceptions import ConfigLoadError
from repositories.config_repository import ConfigRepository
from services.display_service import DisplayService

logger = logging.getLogger(__name__)

# Job ID used to identify the refresh tick in APScheduler
_JOB_ID = "ip_refresh"


# ---------------------------------------------------------------------------
# Scheduler job
# ---------------------------------------------------------------------------


async def _ip_refresh_job(display_service: DisplayService) -> None:
    """
    APScheduler job: runs one display refresh tick.

    Opens a fresh DB session to read the current settings, then lets
    DisplayService resolve both addresses. The adaptive cache decides
    whether this tick actually reaches the network.

    Args:
        display_service: The application-wide DisplayService from app.state.

    Returns:
        None
    """
    logger.debug("IP refresh tick triggered.")

    with Session(engine) as session:
        try:
            config = ConfigRepository(session).load()
        except ConfigLoadError as exc:
            logger.error("Using default settings for this tick: %s", exc)
            config = AppConfig()

    snapshot = await display_service.update(config)
    logger.debug("Display text: %s", snapshot.text)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def create_scheduler(display_service: DisplayService, interval_seconds: int = 10) -> AsyncIOScheduler:
    """
    Creates and returns a configured AsyncIOScheduler with the refresh tick.

    The job runs immediately on startup (next_run_time=now) and then at the
    configured interval.

    Args:
        display_service: The DisplayService to pass into the job.
        interval_seconds: Seconds between refresh ticks (default 10).

    Returns:
        A configured but not yet started AsyncIOScheduler.
    """
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        _ip_refresh_job,
        trigger="interval",
        seconds=interval_seconds,
        id=_JOB_ID,
        kwargs={"display_service": display_service},
        # NOTE: next_run_time=now fills the first snapshot immediately on startup
        # rather than waiting a full interval before the first run.
        next_run_time=datetime.now(timezone.utc),
        max_instances=1,  # A slow lookup must not stack up ticks
    )
    logger.info("IP refresh tick scheduled, interval: %ds.", interval_seconds)
    return scheduler


def reschedule(scheduler: AsyncIOScheduler, interval_seconds: int) -> None:
    """
    Changes the refresh tick interval without restarting the scheduler.

    Called by action routes when the user saves a new tick interval.

    Args:
        scheduler: The running AsyncIOScheduler instance from app.state.
        interval_seconds: New interval in seconds.

    Returns:
        None
    """
    scheduler.reschedule_job(
        _JOB_ID,
        trigger="interval",
        seconds=interval_seconds,
    )
    logger.info("IP refresh tick rescheduled, new interval: %ds.", interval_seconds)
