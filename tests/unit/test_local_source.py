"""Board session over the local services."""

import pytest

from taskboard.board.reconciler import SyncOutcome
from taskboard.board.session import BoardSession
from taskboard.board.views import ViewFilters
from taskboard.domain.create_models import ProfileCreate
from taskboard.domain.profile import ProfileRole, Viewer
from taskboard.services import profile_service
from taskboard.services.local_source import LocalRecordSource


@pytest.fixture
async def people(patched_db):
    ids = {}
    for key, role in [("alice", ProfileRole.USER), ("bob", ProfileRole.USER), ("root", ProfileRole.ADMIN)]:
        profile = await profile_service.create_profile(
            payload=ProfileCreate(email=f"{key}@example.com", display_name=key.title(), role=role)
        )
        ids[key] = profile.id
    return ids


@pytest.mark.unit
class TestLocalRecordSource:
    """End-to-end flows through LocalRecordSource."""

    async def test_completion_is_per_assignee(self, people, test_settings):
        admin = BoardSession(LocalRecordSource(), Viewer(id=people["root"], role=ProfileRole.ADMIN), test_settings)
        task_id = await admin.create_task(title="Ship report", assignee_ids=[people["alice"], people["bob"]])

        alice = BoardSession(LocalRecordSource(), Viewer(id=people["alice"]), test_settings)
        await alice.reload()
        result = await alice.set_assignment_status(task_id, "complete")

        assert result.outcome == SyncOutcome.APPLIED
        await admin.reload()
        assert admin.store.assignment_for(task_id, people["alice"]).is_complete
        assert not admin.store.assignment_for(task_id, people["bob"]).is_complete

        view = alice.view(ViewFilters())
        assert [t.id for t in view.closed] == [task_id]

    async def test_delete_then_reload(self, people, test_settings, patched_db):
        admin = BoardSession(LocalRecordSource(), Viewer(id=people["root"], role=ProfileRole.ADMIN), test_settings)
        task_id = await admin.create_task(title="Ship report", assignee_ids=[people["alice"]])

        assert await admin.delete_task(task_id) == SyncOutcome.APPLIED
        assert admin.store.get(task_id) is None
        assert patched_db.records("task_assignments") == []

    async def test_admin_view_buckets_profiles(self, people, test_settings):
        admin = BoardSession(LocalRecordSource(), Viewer(id=people["root"], role=ProfileRole.ADMIN), test_settings)
        await admin.load_directory()
        await admin.create_task(title="Unowned")

        view = admin.view()

        assert [b.label for b in view.buckets] == ["Unassigned", "Alice", "Bob", "Root"]
        assert [t.title for t in view.buckets[0].tasks] == ["Unowned"]
