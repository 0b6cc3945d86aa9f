"""
tests/unit/test_config_service.py

Unit tests for services/config_service.py.
Uses the in-memory SQLite db_session fixture from conftest.py.
"""

from __future__ import annotations

import pytest

from db.models import AppConfig
from network.models import FetchEndpoint
from repositories.config_repository import ConfigRepository
from services.config_service import ConfigService, to_cache_config
from services.ip_cache_service import CacheStrategy


def _make_service(db_session):
    repo = ConfigRepository(db_session)
    return ConfigService(repo)


# ---------------------------------------------------------------------------
# to_cache_config
# ---------------------------------------------------------------------------


def test_to_cache_config_converts_units():
    """Minutes become seconds; the strategy string becomes a CacheStrategy."""
    cache_config = to_cache_config(
        AppConfig(
            cache_strategy="adaptive",
            external_refresh_minutes=5,
            fast_refresh_seconds=20,
            max_refresh_minutes=30,
            adaptive_cycles=3,
        )
    )

    assert cache_config.strategy is CacheStrategy.ADAPTIVE
    assert cache_config.standard_interval == 300.0
    assert cache_config.fast_interval == 20.0
    assert cache_config.max_interval == 1800.0
    assert cache_config.adaptive_cycles == 3


def test_to_cache_config_smart_cache_off_forces_fixed():
    cache_config = to_cache_config(
        AppConfig(enable_smart_cache=False, cache_strategy="network-event", external_refresh_minutes=2)
    )

    assert cache_config.strategy is CacheStrategy.FIXED
    assert cache_config.standard_interval == 120.0


def test_to_cache_config_carries_provider_endpoint():
    cache_config = to_cache_config(AppConfig(ip_provider_host="httpbin.org", ip_provider_path="/ip"))

    assert cache_config.endpoint == FetchEndpoint(host="httpbin.org", path="/ip")


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_config_seeds_defaults(db_session):
    service = _make_service(db_session)
    config = await service.get_config()
    assert config.id is not None
    assert config.tick_seconds == 10


@pytest.mark.asyncio
async def test_get_cache_config_defaults_to_hybrid(db_session):
    service = _make_service(db_session)
    cache_config = await service.get_cache_config()
    assert cache_config.strategy is CacheStrategy.HYBRID
    assert cache_config.standard_interval == 300.0


@pytest.mark.asyncio
async def test_get_tick_seconds(db_session):
    service = _make_service(db_session)
    await service.update_settings({"tick_seconds": 25})
    assert await service.get_tick_seconds() == 25


# ---------------------------------------------------------------------------
# update_settings
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_update_settings_persists_known_fields(db_session):
    """Changed fields are saved; untouched fields keep their values."""
    service = _make_service(db_session)
    await service.update_settings({"preferred_adapter": "eth0", "separator": " / "})

    config = await service.get_config()
    assert config.preferred_adapter == "eth0"
    assert config.separator == " / "
    assert config.show_internal is True


@pytest.mark.asyncio
async def test_update_settings_ignores_unknown_keys(db_session):
    service = _make_service(db_session)
    config = await service.update_settings({"api_token": "secret", "id": 99, "separator": " - "})

    assert config.separator == " - "
    assert config.id != 99
    assert not hasattr(config, "api_token")


@pytest.mark.asyncio
async def test_update_settings_clamps_values(db_session):
    service = _make_service(db_session)
    config = await service.update_settings({"external_refresh_minutes": 0, "cache_strategy": "bogus"})

    assert config.external_refresh_minutes == 5
    assert config.cache_strategy == "hybrid"


# ---------------------------------------------------------------------------
# Toggles
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_toggle_show_internal_flips_and_persists(db_session):
    service = _make_service(db_session)

    assert await service.toggle_show_internal() is False
    assert (await service.get_config()).show_internal is False
    assert await service.toggle_show_internal() is True


@pytest.mark.asyncio
async def test_toggle_show_external_flips_and_persists(db_session):
    service = _make_service(db_session)

    assert await service.toggle_show_external() is False
    assert (await service.get_config()).show_external is False
    assert (await service.get_config()).show_internal is True


@pytest.mark.asyncio
async def test_update_settings_skips_none_values(db_session):
    """None means "leave unchanged" rather than clearing the column."""
    service = _make_service(db_session)
    config = await service.update_settings(
        {"tick_seconds": None, "ip_provider_host": None, "separator": None, "show_internal": False}
    )

    assert config.tick_seconds == 10
    assert config.ip_provider_host == "ipinfo.io"
    assert config.separator == " | "
    assert config.show_internal is False
