"""
services/config_service.py

Responsibility: Provides a clean, business-level API for reading and writing
application settings, and converts them into the CacheConfig the adaptive
cache consumes. Delegates all persistence to ConfigRepository.
Does NOT: make HTTP calls, resolve addresses, or interact with the scheduler.
"""

from __future__ import annotations

import logging
from typing import Any

from db.models import AppConfig
from network.models import FetchEndpoint
from repositories.config_repository import ConfigRepository
from services.ip_cache_service import CacheConfig, CacheStrategy

logger = logging.getLogger(__name__)

# Fields that may be changed through update_settings()
_EDITABLE_FIELDS = frozenset(
    {
        "show_internal",
        "show_external",
        "preferred_adapter",
        "external_refresh_minutes",
        "enable_smart_cache",
        "cache_strategy",
        "fast_refresh_seconds",
        "max_refresh_minutes",
        "adaptive_cycles",
        "separator",
        "ip_provider_host",
        "ip_provider_path",
        "tick_seconds",
    }
)


def to_cache_config(config: AppConfig) -> CacheConfig:
    """
    Builds the per-call cache parameters from the stored settings.

    With smart caching disabled the strategy is forced to FIXED at the
    standard interval.

    Args:
        config: A clamped AppConfig row.

    Returns:
        An immutable CacheConfig.
    """
    endpoint = FetchEndpoint(host=config.ip_provider_host, path=config.ip_provider_path)
    standard = config.external_refresh_minutes * 60.0

    if not config.enable_smart_cache:
        return CacheConfig(
            strategy=CacheStrategy.FIXED,
            standard_interval=standard,
            endpoint=endpoint,
        )

    return CacheConfig(
        strategy=CacheStrategy(config.cache_strategy),
        standard_interval=standard,
        fast_interval=float(config.fast_refresh_seconds),
        max_interval=config.max_refresh_minutes * 60.0,
        adaptive_cycles=config.adaptive_cycles,
        endpoint=endpoint,
    )


class ConfigService:
    """
    High-level API for reading and writing application settings.

    Provides intent-named methods such as toggle_show_internal() that route
    handlers can call directly.

    Collaborators:
        - ConfigRepository: handles all database access
    """

    def __init__(self, config_repo: ConfigRepository) -> None:
        """
        Initialises the service with a config repository.

        Args:
            config_repo: An initialised ConfigRepository for the current session.
        """
        self._repo = config_repo

    # ---------------------------------------------------------------------------
    # Read operations
    # ---------------------------------------------------------------------------

    async def get_config(self) -> AppConfig:
        """
        Returns the current AppConfig row (creating defaults if absent).

        Returns:
            The AppConfig ORM instance.
        """
        return self._repo.load()

    async def get_cache_config(self) -> CacheConfig:
        """Returns the CacheConfig derived from the current settings."""
        return to_cache_config(self._repo.load())

    async def get_tick_seconds(self) -> int:
        """
        Returns the background refresh tick interval in seconds.

        Returns:
            The interval as an integer number of seconds.
        """
        return self._repo.load().tick_seconds

    # ---------------------------------------------------------------------------
    # Write operations
    # ---------------------------------------------------------------------------

    async def update_settings(self, changes: dict[str, Any]) -> AppConfig:
        """
        Applies a partial settings update and saves it.

        Unknown keys and None values are ignored. Out-of-range values are
        clamped by the repository on save.

        Args:
            changes: Mapping of AppConfig field name to new value.

        Returns:
            The saved AppConfig instance.
        """
        config = self._repo.load()
        for name, value in changes.items():
            if name not in _EDITABLE_FIELDS:
                logger.warning("Ignoring unknown setting %r.", name)
                continue
            if value is None:
                # null keeps the stored value; every column is non-nullable
                continue
            setattr(config, name, value)
        config = self._repo.save(config)
        logger.info("Settings updated: %s.", ", ".join(sorted(changes)) or "nothing")
        return config

    async def toggle_show_internal(self) -> bool:
        """
        Flips the show_internal flag.

        Returns:
            The new value of show_internal.
        """
        config = self._repo.load()
        config.show_internal = not config.show_internal
        self._repo.save(config)
        logger.info("Internal IP display %s.", "enabled" if config.show_internal else "disabled")
        return config.show_internal

    async def toggle_show_external(self) -> bool:
        """
        Flips the show_external flag.

        Returns:
            The new value of show_external.
        """
        config = self._repo.load()
        config.show_external = not config.show_external
        self._repo.save(config)
        logger.info("External IP display %s.", "enabled" if config.show_external else "disabled")
        return config.show_external
