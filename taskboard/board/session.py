"""Client session: one viewer's board over a record source."""

import logging
from datetime import datetime

from taskboard.board.guard import KeyedGuard
from taskboard.board.merge import merge
from taskboard.board.reconciler import AssignmentReconciler, StatusChangeResult, SyncOutcome, SyncResult
from taskboard.board.source import RecordSource
from taskboard.board.store import AssignmentStore
from taskboard.board.views import AdminView, SelfView, ViewFilters, project
from taskboard.core import config
from taskboard.core.errors import NotFoundError
from taskboard.core.logging import log_with_viewer_context, span
from taskboard.domain.category import Category
from taskboard.domain.create_models import TaskCreate, validate_payload
from taskboard.domain.profile import Profile, Viewer
from taskboard.domain.task import AssignmentStatus
from taskboard.domain.update_models import TaskPatch


logger = logging.getLogger(__name__)


class BoardSession:
    """Holds the store for one viewer and routes every write through the source.

    Every successful write is followed by a full reload (fetch, merge,
    replace), except status changes, which patch the store optimistically
    and are superseded by the next reload.

    There is no cancellation: a caller that stops waiting on an operation
    does not stop it, and its result is still applied to the store.
    """

    def __init__(self, source: RecordSource, viewer: Viewer, settings: config.Settings | None = None) -> None:
        self.source = source
        self.viewer = viewer
        self.settings = settings or config.settings
        self.store = AssignmentStore()
        self.guard: KeyedGuard[str] = KeyedGuard(name="task_writes")
        self.reconciler = AssignmentReconciler(
            store=self.store,
            source=source,
            viewer=viewer,
            reload=self.reload,
            guard=self.guard,
        )
        self.profiles: list[Profile] = []
        self.categories: list[Category] = []

    async def reload(self) -> None:
        """Fetch the viewer's tasks and merge them over what the store holds."""
        with span("board_session.reload"):
            fresh = await self.source.fetch_tasks(self.viewer)
            self.store.replace(merge(self.store.all(), fresh))
            log_with_viewer_context(
                logger, "debug", "Board reloaded", viewer_id=self.viewer.id, task_count=len(self.store)
            )

    async def load_directory(self) -> None:
        """Load the profile and category lookups used by views."""
        with span("board_session.load_directory"):
            self.profiles = await self.source.list_profiles()
            self.categories = await self.source.list_categories()

    async def create_task(
        self,
        *,
        title: str,
        due_at: str | None = None,
        note: str | None = None,
        category_id: str | None = None,
        assignee_ids: list[str] | None = None,
    ) -> str:
        """Validate and create a task, then reload.

        Raises:
            ValidationError: Blank title, bad due date, or a creation policy violation
        """
        payload = validate_payload(
            TaskCreate,
            title=title,
            due_at=due_at,
            note=note,
            category_id=category_id,
            assignee_ids=assignee_ids or [],
        )
        payload.enforce_policy(
            require_assignee=self.settings.require_assignee,
            require_due_date=self.settings.require_due_date,
        )

        with span("board_session.create_task"):
            task_id = await self.source.create_task(payload, creator_id=self.viewer.id)
            log_with_viewer_context(logger, "info", "Task created", viewer_id=self.viewer.id, task_id=task_id)
            await self.reload()
            return task_id

    async def patch_task(self, task_id: str, **fields: object) -> None:
        """Change title, due date, note or category, then reload.

        Raises:
            ValidationError: If nothing is set or a field is invalid
            NotFoundError: If the task is not held
        """
        patch = validate_payload(TaskPatch, **fields)
        patch.changes(require_due_date=self.settings.require_due_date)
        if task_id not in self.store:
            raise NotFoundError(f"Task {task_id} is not loaded")

        with span("board_session.patch_task"):
            await self.source.patch_task(task_id, patch)
            await self.reload()

    async def delete_task(self, task_id: str) -> SyncOutcome:
        """Delete a task (assignments first, on the source side), then reload.

        Refused with ``in_flight`` while another write for the task is pending.
        """
        token = self.guard.try_acquire(task_id)
        if token is None:
            return SyncOutcome.IN_FLIGHT

        try:
            with span("board_session.delete_task"):
                await self.source.delete_task(task_id)
                log_with_viewer_context(logger, "info", "Task deleted", viewer_id=self.viewer.id, task_id=task_id)
                await self.reload()
                return SyncOutcome.APPLIED
        finally:
            self.guard.release(task_id, token)

    async def sync_assignees(self, task_id: str, assignee_ids: list[str]) -> SyncResult:
        """Reconcile the task's assignee set to exactly ``assignee_ids``."""
        return await self.reconciler.sync(task_id, assignee_ids)

    async def set_assignment_status(
        self,
        task_id: str,
        status: AssignmentStatus | str,
        *,
        acting_assignee_id: str | None = None,
        completion_note: str | None = None,
    ) -> StatusChangeResult:
        """Complete or reopen the viewer's (or, for admins, any assignee's) row."""
        return await self.reconciler.set_status(
            task_id, status, acting_assignee_id=acting_assignee_id, completion_note=completion_note
        )

    async def set_owner(self, task_id: str, assignee_id: str, *, is_owner: bool = True) -> SyncOutcome:
        """Flag one assignee as the task owner (admins only)."""
        return await self.reconciler.set_owner(task_id, assignee_id, is_owner=is_owner)

    def view(
        self,
        filters: ViewFilters | None = None,
        *,
        now: datetime | None = None,
        bucket_id: str | None = None,
    ) -> SelfView | AdminView:
        """Project the held tasks for this viewer."""
        return project(
            self.store.all(),
            self.viewer,
            filters,
            profiles=self.profiles,
            now=now,
            categories=self.categories,
            tz=self.settings.local_timezone(),
            bucket_id=bucket_id,
        )
