"""Assignment reconciliation: assignee-set diffs and per-assignee status writes."""

import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum

from pydantic import BaseModel, Field

from taskboard.board.guard import KeyedGuard
from taskboard.board.source import RecordSource
from taskboard.board.store import AssignmentStore
from taskboard.core.errors import NotAuthorizedError, NotFoundError
from taskboard.core.logging import span
from taskboard.domain.profile import Viewer
from taskboard.domain.task import Assignment, AssignmentStatus


logger = logging.getLogger(__name__)

Reload = Callable[[], Awaitable[None]]


class SyncOutcome(StrEnum):
    """What a guarded reconciliation call did."""

    APPLIED = "applied"
    UNCHANGED = "unchanged"
    IN_FLIGHT = "in_flight"


class SyncResult(BaseModel):
    """Result of reconciling one task's assignee set."""

    task_id: str
    outcome: SyncOutcome
    added: list[str] = Field(default_factory=list, description="Assignee ids added, sorted")
    removed: list[str] = Field(default_factory=list, description="Assignee ids removed, sorted")


class StatusChangeResult(BaseModel):
    """Result of a complete/reopen call on one assignment."""

    outcome: SyncOutcome
    assignment: Assignment | None = Field(None, description="Row as held after the call")


class AssignmentReconciler:
    """Moves assignee sets and statuses from what the store holds to what the caller wants.

    All three entry points share one per-task guard, so at most one write
    sequence is in flight per task. Writes go to the record source; the store
    only changes through ``reload`` (sync, owner) or the optimistic patch that
    follows a successful status write.
    """

    def __init__(
        self,
        *,
        store: AssignmentStore,
        source: RecordSource,
        viewer: Viewer,
        reload: Reload,
        guard: KeyedGuard[str] | None = None,
    ) -> None:
        self.store = store
        self.source = source
        self.viewer = viewer
        self._reload = reload
        self.guard: KeyedGuard[str] = guard if guard is not None else KeyedGuard(name="task_writes")

    def _require_task(self, task_id: str) -> None:
        if task_id not in self.store:
            raise NotFoundError(f"Task {task_id} is not loaded")

    async def sync(self, task_id: str, desired_assignee_ids: list[str] | set[str]) -> SyncResult:
        """Bring a task's assignee set to ``desired_assignee_ids`` with minimal writes.

        Removals are issued before additions. After both succeed the store is
        reloaded while the guard is still held. A failed write leaves the
        store at its last reload.

        Raises:
            NotFoundError: If the task is not held
            ConflictError: The task holds duplicate rows for some assignee
            TaskBoardError: Whatever the record source raises
        """
        token = self.guard.try_acquire(task_id)
        if token is None:
            return SyncResult(task_id=task_id, outcome=SyncOutcome.IN_FLIGHT)

        try:
            with span("reconciler.sync"):
                self._require_task(task_id)
                self.store.check_pairs(task_id)

                desired = {assignee_id for assignee_id in desired_assignee_ids if assignee_id}
                current = self.store.assignee_ids(task_id)
                to_add = sorted(desired - current)
                to_remove = sorted(current - desired)

                if not to_add and not to_remove:
                    return SyncResult(task_id=task_id, outcome=SyncOutcome.UNCHANGED)

                if to_remove:
                    await self.source.remove_assignments(task_id, to_remove)
                if to_add:
                    await self.source.add_assignments(task_id, to_add)

                logger.info(
                    "Assignees reconciled",
                    extra={"task_id": task_id, "added": to_add, "removed": to_remove},
                )
                await self._reload()
                return SyncResult(task_id=task_id, outcome=SyncOutcome.APPLIED, added=to_add, removed=to_remove)
        finally:
            self.guard.release(task_id, token)

    async def set_status(
        self,
        task_id: str,
        status: AssignmentStatus | str,
        acting_assignee_id: str | None = None,
        completion_note: str | None = None,
    ) -> StatusChangeResult:
        """Complete or reopen one assignee's row on a task.

        The row targeted is the viewer's own unless an admin names another
        assignee. A row already in the requested status is left alone.

        Raises:
            NotAuthorizedError: Non-admin targeting someone else, or holding no row on the task
            NotFoundError: Admin targeting a task or row that is not held
            ConflictError: Duplicate rows for the (task, assignee) pair
        """
        target_status = AssignmentStatus(status)
        assignee_id = acting_assignee_id or self.viewer.id

        if not self.viewer.is_admin and assignee_id != self.viewer.id:
            raise NotAuthorizedError("You can only update your own assignment", task_id=task_id)

        token = self.guard.try_acquire(task_id)
        if token is None:
            return StatusChangeResult(outcome=SyncOutcome.IN_FLIGHT)

        try:
            with span("reconciler.set_status"):
                # A non-admin's store never holds tasks they are not assigned to
                row = self.store.assignment_for(task_id, assignee_id)
                if row is None:
                    if not self.viewer.is_admin:
                        raise NotAuthorizedError("You are not assigned to this task", task_id=task_id)
                    self._require_task(task_id)
                    raise NotFoundError(f"No assignment for {assignee_id} on task {task_id}")

                if row.status == target_status:
                    return StatusChangeResult(outcome=SyncOutcome.UNCHANGED, assignment=row)

                updated = await self.source.set_assignment_status(
                    task_id,
                    assignee_id,
                    target_status,
                    actor=self.viewer,
                    completion_note=completion_note,
                )
                self.store.apply_assignment(task_id, updated)

                logger.info(
                    "Assignment %s on task %s set to %s",
                    assignee_id,
                    task_id,
                    target_status.value,
                )
                return StatusChangeResult(outcome=SyncOutcome.APPLIED, assignment=updated)
        finally:
            self.guard.release(task_id, token)

    async def set_owner(self, task_id: str, assignee_id: str, *, is_owner: bool = True) -> SyncOutcome:
        """Set or clear the owner flag on one assignment (admins only), then reload.

        Raises:
            NotAuthorizedError: If the viewer is not an admin
            NotFoundError: Task not held or assignee not on the task
            ConflictError: Duplicate rows for the (task, assignee) pair
        """
        if not self.viewer.is_admin:
            raise NotAuthorizedError("Only admins can change the task owner", task_id=task_id)

        token = self.guard.try_acquire(task_id)
        if token is None:
            return SyncOutcome.IN_FLIGHT

        try:
            with span("reconciler.set_owner"):
                self._require_task(task_id)

                row = self.store.assignment_for(task_id, assignee_id)
                if row is None:
                    raise NotFoundError(f"No assignment for {assignee_id} on task {task_id}")
                if row.is_owner == is_owner:
                    return SyncOutcome.UNCHANGED

                await self.source.set_owner(task_id, assignee_id, is_owner=is_owner)
                await self._reload()
                return SyncOutcome.APPLIED
        finally:
            self.guard.release(task_id, token)
