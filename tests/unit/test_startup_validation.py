"""Tests for startup validation functions."""

from unittest.mock import patch

import pytest

from taskboard.core.config import settings
from taskboard.core.db_client import close_connection
from taskboard.main import check_database_connectivity, validate_startup_configuration


@pytest.fixture
async def sqlite_path(tmp_path, monkeypatch):
    """Point the record store at a temporary file."""
    monkeypatch.setattr(settings, "sqlite_db_path", str(tmp_path / "startup.db"))
    yield
    await close_connection()


async def test_check_database_connectivity_success(sqlite_path) -> None:
    """Test connectivity check passes against a writable SQLite file."""
    await check_database_connectivity()


async def test_check_database_connectivity_failure() -> None:
    """Test connectivity failures surface as ConnectionError."""
    with (
        patch("taskboard.main.get_connection", side_effect=OSError("disk unavailable")),
        pytest.raises(ConnectionError, match="Record store connectivity check failed"),
    ):
        await check_database_connectivity()


async def test_validate_startup_configuration_success(sqlite_path, monkeypatch) -> None:
    """Test validation passes in development without a Logfire token."""
    monkeypatch.setattr(settings, "environment", "development")
    monkeypatch.setattr(settings, "logfire_token", None)
    monkeypatch.setattr(settings, "timezone", "UTC")

    await validate_startup_configuration()


async def test_validate_startup_configuration_missing_token_in_production(sqlite_path, monkeypatch) -> None:
    """Test validation exits when production has no Logfire token."""
    monkeypatch.setattr(settings, "environment", "production")
    monkeypatch.setattr(settings, "logfire_token", None)
    monkeypatch.setattr(settings, "timezone", "UTC")

    with pytest.raises(SystemExit) as exc_info:
        await validate_startup_configuration()

    assert exc_info.value.code == 1


async def test_validate_startup_configuration_unknown_timezone(sqlite_path, monkeypatch) -> None:
    """Test validation exits on an unknown timezone name."""
    monkeypatch.setattr(settings, "environment", "development")
    monkeypatch.setattr(settings, "timezone", "Nowhere/Special")

    with pytest.raises(SystemExit) as exc_info:
        await validate_startup_configuration()

    assert exc_info.value.code == 1


async def test_validate_startup_configuration_database_unreachable(monkeypatch) -> None:
    """Test validation exits when the record store is unreachable."""
    monkeypatch.setattr(settings, "environment", "development")
    monkeypatch.setattr(settings, "timezone", "UTC")

    async def unreachable() -> None:
        raise ConnectionError("Record store connectivity check failed: locked")

    with (
        patch("taskboard.main.check_database_connectivity", side_effect=unreachable),
        pytest.raises(SystemExit) as exc_info,
    ):
        await validate_startup_configuration()

    assert exc_info.value.code == 1
