"""Pytest configuration and fixtures for unit tests."""

import pytest
from dateutil import tz

from taskboard.core.config import Settings
from taskboard.domain.category import Category
from taskboard.domain.profile import Profile, ProfileRole, Viewer
from taskboard.domain.task import AssignmentStatus
from tests.unit.mocks import FakeRecordSource, InMemoryDBClient, build_task


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches taskboard.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("taskboard.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("taskboard.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("taskboard.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("taskboard.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("taskboard.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("taskboard.core.db_client.get_first_record", in_memory_db.get_first_record)
    return in_memory_db


@pytest.fixture
def utc():
    """Viewer timezone used by due-date tests."""
    return tz.UTC


@pytest.fixture
def test_settings():
    """Settings pinned to UTC with the permissive creation policy."""
    return Settings(timezone="UTC", require_assignee=False, require_due_date=False)


@pytest.fixture
def alice():
    """Non-admin viewer."""
    return Viewer(id="alice", role=ProfileRole.USER)


@pytest.fixture
def admin():
    """Admin viewer."""
    return Viewer(id="root", role=ProfileRole.ADMIN)


@pytest.fixture
def profiles():
    """Known profiles in display order."""
    return [
        Profile(id="alice", email="alice@example.com", display_name="Alice"),
        Profile(id="bob", email="bob@example.com", display_name="Bob"),
        Profile(id="carol", email="carol@example.com"),
        Profile(id="root", email="root@example.com", display_name="Root", role=ProfileRole.ADMIN),
    ]


@pytest.fixture
def categories():
    """Active categories."""
    return [Category(id="c1", name="Errands", sort_order=1), Category(id="c2", name="Finance", sort_order=2)]


@pytest.fixture
def fake_source(profiles, categories):
    """Record source holding a shared task T1 (alice, bob) and an unassigned task T2."""
    return FakeRecordSource(
        [
            build_task("T1", assignees={"alice": AssignmentStatus.OPEN, "bob": AssignmentStatus.OPEN}),
            build_task("T2", assignees={}, created_at="2024-03-02T09:00:00Z"),
        ],
        profiles=profiles,
        categories=categories,
    )
