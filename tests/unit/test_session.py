"""Unit tests for BoardSession."""

import asyncio
from datetime import datetime

import pytest

from taskboard.board.reconciler import SyncOutcome
from taskboard.board.session import BoardSession
from taskboard.board.views import AdminView, SelfView, ViewFilters
from taskboard.core.config import Settings
from taskboard.core.errors import NotFoundError, ValidationError


@pytest.fixture
async def admin_session(fake_source, admin, test_settings):
    """Admin session with tasks and directory loaded."""
    session = BoardSession(fake_source, admin, settings=test_settings)
    await session.load_directory()
    await session.reload()
    fake_source.calls.clear()
    return session


@pytest.mark.unit
class TestLoading:
    """Tests for reload and directory loading."""

    async def test_reload_fills_store(self, fake_source, alice, test_settings):
        session = BoardSession(fake_source, alice, settings=test_settings)

        await session.reload()

        assert [t.id for t in session.store.all()] == ["T1"]

    async def test_load_directory(self, admin_session, profiles, categories):
        assert admin_session.profiles == profiles
        assert admin_session.categories == categories


@pytest.mark.unit
class TestCreateTask:
    """Tests for task creation policy."""

    async def test_create_then_reload(self, admin_session, fake_source):
        task_id = await admin_session.create_task(
            title="  Ship report ", due_at="2024-03-10", assignee_ids=["alice", "alice", "bob"]
        )

        assert fake_source.writes == [("create_task", "Ship report", ("alice", "bob"))]
        assert admin_session.store.get(task_id).title == "Ship report"
        assert admin_session.store.assignee_ids(task_id) == {"alice", "bob"}

    async def test_unassigned_task_allowed_by_default(self, admin_session):
        task_id = await admin_session.create_task(title="Ship report")

        assert admin_session.store.assignments_for(task_id) == []

    async def test_policy_requiring_assignee_rejects_empty_list(self, fake_source, admin):
        session = BoardSession(fake_source, admin, settings=Settings(timezone="UTC", require_assignee=True))

        with pytest.raises(ValidationError) as exc_info:
            await session.create_task(title="Ship report", due_at=None, assignee_ids=[])

        assert exc_info.value.details["fields"] == ["assignee_ids"]
        assert fake_source.writes == []

    async def test_policy_requiring_due_date(self, fake_source, admin):
        session = BoardSession(fake_source, admin, settings=Settings(timezone="UTC", require_due_date=True))

        with pytest.raises(ValidationError, match="Due date is required"):
            await session.create_task(title="Ship report", assignee_ids=["alice"])

    @pytest.mark.parametrize("title", ["", "   "])
    async def test_blank_title_rejected(self, admin_session, fake_source, title):
        with pytest.raises(ValidationError, match="Title cannot be blank"):
            await admin_session.create_task(title=title)

        assert fake_source.writes == []

    async def test_unparseable_due_date_rejected(self, admin_session):
        with pytest.raises(ValidationError, match="not a valid date"):
            await admin_session.create_task(title="Ship report", due_at="soon")


@pytest.mark.unit
class TestPatchAndDelete:
    """Tests for task edits."""

    async def test_patch_then_reload(self, admin_session, fake_source):
        await admin_session.patch_task("T1", title="Renamed", due_at="2024-03-12")

        assert fake_source.writes == [("patch_task", "T1", ("due_at", "title"))]
        assert admin_session.store.get("T1").title == "Renamed"

    async def test_patch_requires_a_change(self, admin_session):
        with pytest.raises(ValidationError, match="Nothing to update"):
            await admin_session.patch_task("T1")

    async def test_patch_unknown_task(self, admin_session):
        with pytest.raises(NotFoundError):
            await admin_session.patch_task("T9", title="x")

    async def test_delete_leaves_no_assignments(self, admin_session, fake_source):
        outcome = await admin_session.delete_task("T1")

        assert outcome == SyncOutcome.APPLIED
        assert fake_source.writes == [("delete_task", "T1")]
        assert admin_session.store.get("T1") is None
        assert admin_session.store.assignments_for("T1") == []

    async def test_delete_refused_while_sync_in_flight(self, admin_session, fake_source):
        fake_source.gate = asyncio.Event()
        pending = asyncio.create_task(admin_session.sync_assignees("T1", ["alice"]))
        await fake_source.write_started.wait()

        assert await admin_session.delete_task("T1") == SyncOutcome.IN_FLIGHT

        fake_source.gate.set()
        await pending


@pytest.mark.unit
class TestAssignmentsAndViews:
    """Tests for assignment operations routed through the session."""

    async def test_sync_removes_then_adds_and_reloads(self, admin_session, fake_source):
        result = await admin_session.sync_assignees("T1", ["bob", "carol"])

        assert result.outcome == SyncOutcome.APPLIED
        assert fake_source.writes == [
            ("remove_assignments", "T1", ("alice",)),
            ("add_assignments", "T1", ("carol",)),
        ]
        assert admin_session.store.assignee_ids("T1") == {"bob", "carol"}

    async def test_status_and_owner(self, admin_session):
        status = await admin_session.set_assignment_status("T1", "complete", acting_assignee_id="bob")
        owner = await admin_session.set_owner("T1", "alice")

        assert status.assignment.is_complete
        assert owner == SyncOutcome.APPLIED
        assert admin_session.store.assignment_for("T1", "alice").is_owner
        # the owner reload must not undo bob's completion
        assert admin_session.store.assignment_for("T1", "bob").is_complete

    async def test_view_per_role(self, admin_session, fake_source, alice, test_settings):
        assert isinstance(admin_session.view(now=datetime(2024, 3, 10, 9)), AdminView)

        session = BoardSession(fake_source, alice, settings=test_settings)
        await session.reload()
        view = session.view(ViewFilters(show_completed=False), now=datetime(2024, 3, 10, 9))

        assert isinstance(view, SelfView)
        assert [t.id for t in view.open] == ["T1"]

    async def test_admin_view_bucket_restriction(self, admin_session):
        view = admin_session.view(bucket_id="bob")

        assert [b.id for b in view.buckets] == ["bob"]
        assert [t.id for t in view.buckets[0].tasks] == ["T1"]
