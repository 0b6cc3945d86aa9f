"""
tests/unit/test_config_repository.py

Unit tests for repositories/config_repository.py.
Uses the in-memory SQLite db_session fixture from conftest.py.
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from db.models import AppConfig
from exceptions import ConfigLoadError
from repositories.config_repository import ConfigRepository, clamp_config


# ---------------------------------------------------------------------------
# load: creates defaults when no row exists
# ---------------------------------------------------------------------------


def test_load_creates_default_row(db_session):
    """load() must seed a default AppConfig row when the table is empty."""
    repo = ConfigRepository(db_session)
    config = repo.load()

    assert config is not None
    assert config.id is not None
    assert config.show_internal is True
    assert config.show_external is True
    assert config.external_refresh_minutes == 5
    assert config.cache_strategy == "hybrid"
    assert config.separator == " | "
    assert config.ip_provider_host == "ipinfo.io"


def test_load_returns_existing_row(db_session):
    """load() must not create a duplicate row on subsequent calls."""
    repo = ConfigRepository(db_session)
    first = repo.load()
    second = repo.load()

    assert first.id == second.id


def test_load_clamps_and_persists_bad_stored_values(db_session):
    """A row written with out-of-range values is repaired on the next load()."""
    db_session.add(AppConfig(tick_seconds=0, external_refresh_minutes=-3, cache_strategy="sometimes"))
    db_session.commit()

    config = ConfigRepository(db_session).load()

    assert config.tick_seconds == 10
    assert config.external_refresh_minutes == 5
    assert config.cache_strategy == "hybrid"


def test_load_wraps_database_errors():
    """A failing query surfaces as ConfigLoadError, not a raw SQLAlchemy error."""

    class _BrokenSession:
        def exec(self, statement):
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    with pytest.raises(ConfigLoadError):
        ConfigRepository(_BrokenSession()).load()


# ---------------------------------------------------------------------------
# save
# ---------------------------------------------------------------------------


def test_save_persists_changes(db_session):
    """save() must persist mutations so a subsequent load() reads them back."""
    repo = ConfigRepository(db_session)
    config = repo.load()
    config.preferred_adapter = "Corp VPN"
    repo.save(config)

    reloaded = repo.load()
    assert reloaded.preferred_adapter == "Corp VPN"


def test_save_clamps_before_writing(db_session):
    repo = ConfigRepository(db_session)
    config = repo.load()
    config.fast_refresh_seconds = 0

    saved = repo.save(config)

    assert saved.fast_refresh_seconds == 30


# ---------------------------------------------------------------------------
# clamp_config
# ---------------------------------------------------------------------------


def test_clamp_leaves_valid_config_untouched():
    assert clamp_config(AppConfig()) is False


@pytest.mark.parametrize(
    ("field", "bad", "expected"),
    [
        ("external_refresh_minutes", 0, 5),
        ("fast_refresh_seconds", -1, 30),
        ("max_refresh_minutes", 0, 15),
        ("tick_seconds", -10, 10),
        ("adaptive_cycles", -1, 6),
    ],
)
def test_clamp_replaces_out_of_range_numbers(field, bad, expected):
    config = AppConfig(**{field: bad})

    assert clamp_config(config) is True
    assert getattr(config, field) == expected


def test_clamp_allows_zero_adaptive_cycles():
    """Zero cycles disables fast mode; it is not an error."""
    config = AppConfig(adaptive_cycles=0)

    assert clamp_config(config) is False
    assert config.adaptive_cycles == 0


def test_clamp_unknown_strategy_becomes_hybrid():
    config = AppConfig(cache_strategy="FIXED")

    assert clamp_config(config) is True
    assert config.cache_strategy == "hybrid"


def test_clamp_restores_blank_provider_host():
    config = AppConfig(ip_provider_host="   ")

    clamp_config(config)

    assert config.ip_provider_host == "ipinfo.io"


def test_clamp_prefixes_provider_path_with_slash():
    config = AppConfig(ip_provider_path="ip")

    clamp_config(config)

    assert config.ip_provider_path == "/ip"


def test_clamp_restores_empty_provider_path():
    config = AppConfig(ip_provider_path="")

    clamp_config(config)

    assert config.ip_provider_path == "/json"
