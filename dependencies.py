"""
dependencies.py

Responsibility: Declares all FastAPI Depends() provider functions for
services and repositories used throughout the application.
Does NOT: contain business logic, HTTP handlers, or DB schema definitions.
"""

from __future__ import annotations

import httpx
from fastapi import Depends, Request
from sqlmodel import Session

from db.database import get_session
from repositories.config_repository import ConfigRepository
from services.address_service import AddressService
from services.config_service import ConfigService
from services.display_service import DisplayService
from services.ip_cache_service import AdaptiveIpCache

# ---------------------------------------------------------------------------
# Infrastructure: shared app-level resources
# ---------------------------------------------------------------------------


def get_http_client(request: Request) -> httpx.AsyncClient:
    """
    Returns the shared httpx.AsyncClient stored on app.state.

    The client is created once during the FastAPI lifespan and reused for
    all lookups to avoid connection-pool overhead.

    Args:
        request: The current FastAPI Request (injected automatically).

    Returns:
        The application-level httpx.AsyncClient.
    """
    return request.app.state.http_client


def get_ip_cache(request: Request) -> AdaptiveIpCache:
    """
    Returns the single AdaptiveIpCache created during the lifespan.

    Args:
        request: The current FastAPI Request (injected automatically).

    Returns:
        The application-wide cache instance.
    """
    return request.app.state.ip_cache


def get_address_service(request: Request) -> AddressService:
    """
    Returns the AddressService stored on app.state.

    Args:
        request: The current FastAPI Request (injected automatically).

    Returns:
        The application-level AddressService.
    """
    return request.app.state.address_service


def get_display_service(request: Request) -> DisplayService:
    """
    Returns the DisplayService shared with the scheduler tick.

    Sharing one instance means the API and the tick see the same latest
    snapshot.

    Args:
        request: The current FastAPI Request (injected automatically).

    Returns:
        The application-level DisplayService.
    """
    return request.app.state.display_service


# ---------------------------------------------------------------------------
# Repository providers
# ---------------------------------------------------------------------------


def get_config_repo(session: Session = Depends(get_session)) -> ConfigRepository:
    """
    Provides a ConfigRepository for the current request's DB session.

    Args:
        session: The DB session injected by get_session.

    Returns:
        A ConfigRepository instance.
    """
    return ConfigRepository(session)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------


def get_config_service(
    config_repo: ConfigRepository = Depends(get_config_repo),
) -> ConfigService:
    """
    Provides a ConfigService backed by the current request's DB session.

    Args:
        config_repo: The repository injected by get_config_repo.

    Returns:
        A ConfigService instance.
    """
    return ConfigService(config_repo)
