"""
repositories/config_repository.py

Responsibility: Provides low-level read/write access to the AppConfig table
in SQLite via SQLModel, clamping out-of-range values on the way in and out.
Does NOT: contain business logic, IP lookups, or UI concerns.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from db.models import AppConfig
from exceptions import ConfigLoadError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Default values: single source of truth for clamped config keys
# ---------------------------------------------------------------------------

_DEFAULTS: dict[str, Any] = {
    "external_refresh_minutes": 5,
    "fast_refresh_seconds": 30,
    "max_refresh_minutes": 15,
    "adaptive_cycles": 6,
    "tick_seconds": 10,
    "cache_strategy": "hybrid",
    "ip_provider_host": "ipinfo.io",
    "ip_provider_path": "/json",
}

_STRATEGIES = frozenset({"fixed", "adaptive", "network-event", "hybrid"})

# Integer fields that must be strictly positive
_POSITIVE_FIELDS = (
    "external_refresh_minutes",
    "fast_refresh_seconds",
    "max_refresh_minutes",
    "tick_seconds",
)


def clamp_config(config: AppConfig) -> bool:
    """
    Replaces out-of-range values on an AppConfig with safe defaults.

    Args:
        config: The AppConfig instance to fix (in place).

    Returns:
        True if any field was changed.
    """
    changed = False

    for name in _POSITIVE_FIELDS:
        if getattr(config, name) <= 0:
            logger.warning(
                "Config %s=%s is not positive; using %s.",
                name,
                getattr(config, name),
                _DEFAULTS[name],
            )
            setattr(config, name, _DEFAULTS[name])
            changed = True

    if config.adaptive_cycles < 0:
        logger.warning("Config adaptive_cycles=%s is negative; using default.", config.adaptive_cycles)
        config.adaptive_cycles = _DEFAULTS["adaptive_cycles"]
        changed = True

    if config.cache_strategy not in _STRATEGIES:
        logger.warning("Unknown cache strategy %r; using hybrid.", config.cache_strategy)
        config.cache_strategy = _DEFAULTS["cache_strategy"]
        changed = True

    if not config.ip_provider_host.strip():
        config.ip_provider_host = _DEFAULTS["ip_provider_host"]
        changed = True

    path = config.ip_provider_path.strip()
    if not path.startswith("/"):
        config.ip_provider_path = f"/{path}" if path else _DEFAULTS["ip_provider_path"]
        changed = True

    return changed


class ConfigRepository:
    """
    Manages persistence of the single AppConfig row in the database.

    Every row read or written passes through clamp_config(), so callers
    never see a non-positive interval or an unknown strategy.

    Collaborators:
        - Session: SQLModel DB session injected at construction time
    """

    def __init__(self, session: Session) -> None:
        """
        Initialises the repository with an active DB session.

        Args:
            session: An open SQLModel Session for the current request.
        """
        self._session = session

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    def load(self) -> AppConfig:
        """
        Returns the single AppConfig row, creating it with defaults if absent.

        Returns:
            The AppConfig ORM instance (never None).

        Raises:
            ConfigLoadError: If the database cannot be read.
        """
        try:
            config = self._session.exec(select(AppConfig)).first()
        except SQLAlchemyError as exc:
            raise ConfigLoadError(f"Could not read AppConfig: {exc}") from exc

        if config is None:
            logger.info("No AppConfig row found; seeding defaults.")
            return self.save(AppConfig())

        if clamp_config(config):
            return self.save(config)
        return config

    def save(self, config: AppConfig) -> AppConfig:
        """
        Persists an AppConfig instance to the database.

        Args:
            config: The AppConfig instance to save. May be new or existing.

        Returns:
            The refreshed AppConfig instance after commit.
        """
        clamp_config(config)
        self._session.add(config)
        self._session.commit()
        self._session.refresh(config)
        logger.debug("AppConfig saved (id=%s).", config.id)
        return config
