"""RecordSource backed directly by the local services (no network hop)."""

from taskboard.domain.category import Category
from taskboard.domain.create_models import TaskCreate
from taskboard.domain.profile import Profile, Viewer
from taskboard.domain.task import Assignment, AssignmentStatus, Task
from taskboard.domain.update_models import TaskPatch
from taskboard.services import assignment_service, category_service, profile_service, task_service


class LocalRecordSource:
    """Adapter from the async service functions to the RecordSource protocol."""

    def __init__(self, *, require_due_date: bool = False) -> None:
        self.require_due_date = require_due_date

    async def fetch_tasks(self, viewer: Viewer) -> list[Task]:
        return await task_service.fetch_tasks(viewer=viewer)

    async def list_profiles(self) -> list[Profile]:
        return await profile_service.list_profiles()

    async def list_categories(self) -> list[Category]:
        return await category_service.list_categories()

    async def create_task(self, payload: TaskCreate, *, creator_id: str) -> str:
        task = await task_service.create_task(payload=payload, creator_id=creator_id)
        return task.id

    async def patch_task(self, task_id: str, patch: TaskPatch) -> None:
        await task_service.patch_task(task_id=task_id, patch=patch, require_due_date=self.require_due_date)

    async def delete_task(self, task_id: str) -> None:
        await task_service.delete_task(task_id=task_id)

    async def set_assignment_status(
        self,
        task_id: str,
        assignee_id: str,
        status: AssignmentStatus,
        *,
        actor: Viewer,
        completion_note: str | None = None,
    ) -> Assignment:
        return await assignment_service.set_assignment_status(
            task_id=task_id,
            assignee_id=assignee_id,
            status=status,
            actor=actor,
            completion_note=completion_note,
        )

    async def add_assignments(self, task_id: str, assignee_ids: list[str]) -> None:
        await assignment_service.add_assignments(task_id=task_id, assignee_ids=assignee_ids)

    async def remove_assignments(self, task_id: str, assignee_ids: list[str]) -> None:
        await assignment_service.remove_assignments(task_id=task_id, assignee_ids=assignee_ids)

    async def sync_assignments(self, task_id: str, assignee_ids: list[str]) -> None:
        await assignment_service.sync_assignments(task_id=task_id, assignee_ids=assignee_ids)

    async def set_owner(self, task_id: str, assignee_id: str, *, is_owner: bool) -> None:
        await assignment_service.set_owner(task_id=task_id, assignee_id=assignee_id, is_owner=is_owner)
