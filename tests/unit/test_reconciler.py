"""Unit tests for AssignmentReconciler."""

import asyncio

import pytest

from taskboard.board.merge import merge
from taskboard.board.reconciler import AssignmentReconciler, SyncOutcome
from taskboard.board.store import AssignmentStore
from taskboard.core.errors import ConflictError, NotAuthorizedError, NotFoundError, TransientError
from taskboard.domain.profile import Viewer
from taskboard.domain.task import Assignment, AssignmentStatus
from tests.unit.mocks import FakeRecordSource, build_task


async def make_reconciler(source, viewer) -> AssignmentReconciler:
    """Reconciler over a store loaded from ``source`` for ``viewer``."""
    store = AssignmentStore()

    async def reload() -> None:
        store.replace(merge(store.all(), await source.fetch_tasks(viewer)))

    await reload()
    return AssignmentReconciler(store=store, source=source, viewer=viewer, reload=reload)


@pytest.mark.unit
class TestSync:
    """Tests for assignee-set reconciliation."""

    async def test_minimal_diff_removes_then_adds(self, fake_source, admin):
        reconciler = await make_reconciler(fake_source, admin)

        result = await reconciler.sync("T1", ["bob", "carol"])

        assert result.outcome == SyncOutcome.APPLIED
        assert result.added == ["carol"]
        assert result.removed == ["alice"]
        assert fake_source.writes == [
            ("remove_assignments", "T1", ("alice",)),
            ("add_assignments", "T1", ("carol",)),
        ]
        assert reconciler.store.assignee_ids("T1") == {"bob", "carol"}

    async def test_duplicate_rows_refuse_the_whole_sync(self, admin):
        task = build_task("T9", assignees={"alice": "complete", "bob": "open"})
        task = task.model_copy(
            update={"assignments": [*task.assignments, Assignment(id="T9-alice-2", task_id="T9", assignee_id="alice")]}
        )
        source = FakeRecordSource([task])
        reconciler = await make_reconciler(source, admin)

        with pytest.raises(ConflictError) as exc_info:
            await reconciler.sync("T9", ["alice", "carol"])

        assert exc_info.value.duplicate_ids == ["T9-alice", "T9-alice-2"]
        assert source.writes == []
        assert not reconciler.guard.is_held("T9")

    async def test_reload_follows_successful_writes(self, fake_source, admin):
        reconciler = await make_reconciler(fake_source, admin)
        fake_source.calls.clear()

        await reconciler.sync("T1", ["alice"])

        assert [c[0] for c in fake_source.calls] == ["remove_assignments", "fetch_tasks"]

    async def test_second_identical_sync_issues_no_writes(self, fake_source, admin):
        reconciler = await make_reconciler(fake_source, admin)
        await reconciler.sync("T1", ["bob", "carol"])
        writes_before = len(fake_source.writes)

        result = await reconciler.sync("T1", ["carol", "bob"])

        assert result.outcome == SyncOutcome.UNCHANGED
        assert len(fake_source.writes) == writes_before

    async def test_concurrent_sync_rejected_without_writes(self, fake_source, admin):
        reconciler = await make_reconciler(fake_source, admin)
        fake_source.gate = asyncio.Event()

        first = asyncio.create_task(reconciler.sync("T1", ["bob", "carol"]))
        await fake_source.write_started.wait()

        second = await reconciler.sync("T1", ["alice"])

        assert second.outcome == SyncOutcome.IN_FLIGHT
        assert fake_source.writes == [("remove_assignments", "T1", ("alice",))]

        fake_source.gate.set()
        assert (await first).outcome == SyncOutcome.APPLIED
        assert not reconciler.guard.is_held("T1")

    async def test_other_tasks_not_blocked(self, fake_source, admin):
        reconciler = await make_reconciler(fake_source, admin)
        fake_source.gate = asyncio.Event()

        first = asyncio.create_task(reconciler.sync("T1", ["bob"]))
        await fake_source.write_started.wait()
        second = asyncio.create_task(reconciler.sync("T2", ["alice"]))
        await asyncio.sleep(0)

        fake_source.gate.set()
        results = await asyncio.gather(first, second)

        assert [r.outcome for r in results] == [SyncOutcome.APPLIED, SyncOutcome.APPLIED]

    async def test_failed_write_leaves_store_untouched(self, fake_source, admin):
        reconciler = await make_reconciler(fake_source, admin)
        fake_source.failures["add_assignments"] = TransientError("network down")
        fetches_before = sum(1 for c in fake_source.calls if c[0] == "fetch_tasks")

        with pytest.raises(TransientError):
            await reconciler.sync("T1", ["bob", "carol"])

        assert reconciler.store.assignee_ids("T1") == {"alice", "bob"}
        assert sum(1 for c in fake_source.calls if c[0] == "fetch_tasks") == fetches_before
        assert not reconciler.guard.is_held("T1")

    async def test_unknown_task(self, fake_source, admin):
        reconciler = await make_reconciler(fake_source, admin)

        with pytest.raises(NotFoundError):
            await reconciler.sync("T9", ["alice"])

        assert fake_source.writes == []
        assert not reconciler.guard.is_held("T9")


@pytest.mark.unit
class TestSetStatus:
    """Tests for complete/reopen of a single assignment."""

    async def test_self_service_complete_patches_store(self, fake_source, alice):
        reconciler = await make_reconciler(fake_source, alice)

        result = await reconciler.set_status("T1", AssignmentStatus.COMPLETE, completion_note="done")

        assert result.outcome == SyncOutcome.APPLIED
        assert result.assignment.is_complete
        assert fake_source.writes == [("set_assignment_status", "T1", "alice", "complete")]
        held = reconciler.store.assignment_for("T1", "alice")
        assert held.is_complete
        assert held.completion_note == "done"
        assert not reconciler.store.assignment_for("T1", "bob").is_complete

    async def test_completion_survives_stale_reload(self, fake_source, alice):
        reconciler = await make_reconciler(fake_source, alice)
        await reconciler.set_status("T1", "complete")
        fake_source.stale_fetch = [build_task("T1", assignees={"alice": "open", "bob": "open"})]

        await reconciler._reload()

        assert reconciler.store.assignment_for("T1", "alice").is_complete

    async def test_non_admin_cannot_target_someone_else(self, fake_source, alice):
        reconciler = await make_reconciler(fake_source, alice)

        with pytest.raises(NotAuthorizedError):
            await reconciler.set_status("T1", "complete", acting_assignee_id="bob")

        assert fake_source.writes == []

    async def test_non_admin_without_row_is_not_authorized(self, profiles):
        source = FakeRecordSource([build_task("T3", assignees={"bob": "open"})], profiles=profiles)
        reconciler = await make_reconciler(source, Viewer(id="alice"))

        with pytest.raises(NotAuthorizedError):
            await reconciler.set_status("T3", "complete", acting_assignee_id="alice")

        assert source.writes == []

    async def test_non_admin_without_row_on_held_task(self, alice):
        store = AssignmentStore([build_task("T3", assignees={"bob": "open"})])
        source = FakeRecordSource()

        async def reload() -> None:
            return None

        reconciler = AssignmentReconciler(store=store, source=source, viewer=alice, reload=reload)

        with pytest.raises(NotAuthorizedError):
            await reconciler.set_status("T3", "complete")

        assert source.writes == []

    async def test_admin_acts_for_assignee(self, fake_source, admin):
        reconciler = await make_reconciler(fake_source, admin)

        result = await reconciler.set_status("T1", "complete", acting_assignee_id="bob")

        assert result.assignment.assignee_id == "bob"
        assert reconciler.store.assignment_for("T1", "bob").is_complete

    async def test_admin_missing_row_is_not_found(self, fake_source, admin):
        reconciler = await make_reconciler(fake_source, admin)

        with pytest.raises(NotFoundError):
            await reconciler.set_status("T1", "complete", acting_assignee_id="carol")
        with pytest.raises(NotFoundError):
            await reconciler.set_status("T9", "complete", acting_assignee_id="carol")

    async def test_duplicate_rows_refused(self, admin):
        task = build_task("T1", assignees={"bob": "open"})
        task = task.model_copy(
            update={"assignments": [*task.assignments, Assignment(id="dup", task_id="T1", assignee_id="bob")]}
        )
        source = FakeRecordSource([task])
        reconciler = await make_reconciler(source, admin)

        with pytest.raises(ConflictError) as exc_info:
            await reconciler.set_status("T1", "complete", acting_assignee_id="bob")

        assert exc_info.value.duplicate_ids == ["T1-bob", "dup"]
        assert source.writes == []

    async def test_failed_write_applies_nothing(self, fake_source, alice):
        reconciler = await make_reconciler(fake_source, alice)
        fake_source.failures["set_assignment_status"] = TransientError("timeout")

        with pytest.raises(TransientError):
            await reconciler.set_status("T1", "complete")

        assert not reconciler.store.assignment_for("T1", "alice").is_complete
        assert not reconciler.guard.is_held("T1")

    async def test_same_status_is_unchanged(self, fake_source, alice):
        reconciler = await make_reconciler(fake_source, alice)

        result = await reconciler.set_status("T1", "open")

        assert result.outcome == SyncOutcome.UNCHANGED
        assert fake_source.writes == []

    async def test_toggle_refused_while_sync_in_flight(self, fake_source, admin):
        reconciler = await make_reconciler(fake_source, admin)
        fake_source.gate = asyncio.Event()

        pending = asyncio.create_task(reconciler.sync("T1", ["alice"]))
        await fake_source.write_started.wait()

        result = await reconciler.set_status("T1", "complete", acting_assignee_id="alice")

        assert result.outcome == SyncOutcome.IN_FLIGHT
        fake_source.gate.set()
        await pending


@pytest.mark.unit
class TestSetOwner:
    """Tests for the owner flag."""

    async def test_admin_sets_owner_and_reloads(self, fake_source, admin):
        reconciler = await make_reconciler(fake_source, admin)

        outcome = await reconciler.set_owner("T1", "bob", is_owner=True)

        assert outcome == SyncOutcome.APPLIED
        assert fake_source.writes == [("set_owner", "T1", "bob", True)]
        assert reconciler.store.assignment_for("T1", "bob").is_owner

    async def test_non_admin_refused(self, fake_source, alice):
        reconciler = await make_reconciler(fake_source, alice)

        with pytest.raises(NotAuthorizedError):
            await reconciler.set_owner("T1", "alice", is_owner=True)

    async def test_unchanged_flag_issues_no_write(self, fake_source, admin):
        reconciler = await make_reconciler(fake_source, admin)

        assert await reconciler.set_owner("T1", "bob", is_owner=False) == SyncOutcome.UNCHANGED
        assert fake_source.writes == []
