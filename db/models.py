"""
db/models.py

Responsibility: Defines all SQLModel table models used by the application.
Does NOT: contain business logic, repositories, or session management.
"""

from __future__ import annotations

from typing import Optional

from sqlmodel import Field, SQLModel

# ---------------------------------------------------------------------------
# AppConfig: single-row application configuration table
# ---------------------------------------------------------------------------


class AppConfig(SQLModel, table=True):
    """
    Stores the application's display and cache settings as a single DB row.

    Only one row is expected; it is loaded, clamped and saved by
    ConfigRepository.
    """

    id: Optional[int] = Field(default=None, primary_key=True)

    # Which addresses appear in the display text
    show_internal: bool = Field(default=True)
    show_external: bool = Field(default=True)

    # FriendlyName or system name of the adapter to prefer; "" = automatic
    preferred_adapter: str = Field(default="")

    # Standard public-IP refresh interval in minutes
    external_refresh_minutes: int = Field(default=5)

    # When False the cache always uses the "fixed" strategy
    enable_smart_cache: bool = Field(default=True)

    # "fixed" | "adaptive" | "network-event" | "hybrid"; used when smart cache is on
    cache_strategy: str = Field(default="hybrid")

    # Refresh interval in seconds while in fast mode after a network change
    fast_refresh_seconds: int = Field(default=30)

    # Refresh interval in minutes once the network has been stable for an hour
    max_refresh_minutes: int = Field(default=15)

    # Number of fast-mode cache checks after a local-address change
    adaptive_cycles: int = Field(default=6)

    # Placed between the internal and external address in the display text
    separator: str = Field(default=" | ")

    # Public IP lookup provider
    ip_provider_host: str = Field(default="ipinfo.io")
    ip_provider_path: str = Field(default="/json")

    # Seconds between background display refresh ticks
    tick_seconds: int = Field(default=10)
