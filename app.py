"""
app.py

Responsibility: Creates the FastAPI application, wires the shared HTTP
client, adaptive cache and scheduler in the lifespan, and mounts routers.
Does NOT: contain address-resolution logic or route handlers beyond /health.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from sqlmodel import Session

from db.database import engine, init_db
from network.ipinfo_client import IpInfoClient
from repositories.config_repository import ConfigRepository
from routes import action_routes, api_routes
from scheduler import create_scheduler
from services.address_service import AddressService
from services.display_service import DisplayService
from services.ip_cache_service import AdaptiveIpCache

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _scheduler_enabled() -> bool:
    return os.getenv("SCHEDULER_ENABLED", "true").lower() not in ("0", "false", "no")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan: builds long-lived collaborators on startup and
    tears them down on shutdown.

    Args:
        app: The FastAPI application.

    Yields:
        None while the application is serving.
    """
    init_db()

    http_client = httpx.AsyncClient()
    address_service = AddressService()
    # NOTE: the change probe ignores the preferred adapter on purpose; it only
    # needs to notice that the host's best address moved.
    ip_cache = AdaptiveIpCache(
        provider=IpInfoClient(http_client),
        local_probe=address_service.get_best_local_address,
    )
    display_service = DisplayService(ip_cache, address_service)

    app.state.http_client = http_client
    app.state.address_service = address_service
    app.state.ip_cache = ip_cache
    app.state.display_service = display_service
    app.state.scheduler = None

    if _scheduler_enabled():
        with Session(engine) as session:
            tick_seconds = ConfigRepository(session).load().tick_seconds
        scheduler = create_scheduler(display_service, interval_seconds=tick_seconds)
        scheduler.start()
        app.state.scheduler = scheduler

    logger.info("ipbeacon started.")
    try:
        yield
    finally:
        if app.state.scheduler is not None:
            app.state.scheduler.shutdown(wait=False)
        await http_client.aclose()
        logger.info("ipbeacon stopped.")


app = FastAPI(title="ipbeacon", lifespan=lifespan)
app.include_router(api_routes.router)
app.include_router(action_routes.router)


@app.get("/health")
async def health() -> dict:
    """
    Liveness probe.

    Returns:
        A dict with a "status" key set to "ok".
    """
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8080")))
