"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from inventory_engine.config import Settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.default_reservation_minutes == 30
    assert settings.default_low_stock_threshold == 5
    assert settings.sweep_interval_seconds == 600
    assert settings.sync_interval_seconds == 3600


def test_environment_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("DEFAULT_RESERVATION_MINUTES", "15")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.storage_backend == "memory"
    assert settings.default_reservation_minutes == 15
    assert settings.log_level == "DEBUG"


def test_invalid_log_level() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, log_level="loud")


def test_scheduler_inactive_in_test_environment() -> None:
    assert Settings(_env_file=None, environment="test").scheduler_active is False
    assert Settings(_env_file=None, environment="production").scheduler_active is True
    assert Settings(_env_file=None, scheduler_enabled=False).scheduler_active is False
