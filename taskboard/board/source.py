"""RecordSource Protocol: the remote record operations the board core depends on."""

from typing import Protocol

from taskboard.domain.category import Category
from taskboard.domain.create_models import TaskCreate
from taskboard.domain.profile import Profile, Viewer
from taskboard.domain.task import Assignment, AssignmentStatus, Task
from taskboard.domain.update_models import TaskPatch


class RecordSource(Protocol):
    """Authoritative remote store of tasks, assignments, profiles and categories.

    Every method is a single request/response call. Implementations raise the
    ``taskboard.core.errors`` taxonomy; network failures surface as
    ``TransientError``.
    """

    async def fetch_tasks(self, viewer: Viewer) -> list[Task]:
        """Return tasks visible to the viewer with all their assignments embedded.

        Admins get every task; other viewers only tasks they are assigned to.
        """
        ...

    async def list_profiles(self) -> list[Profile]:
        """Return all known profiles."""
        ...

    async def list_categories(self) -> list[Category]:
        """Return active categories in display order."""
        ...

    async def create_task(self, payload: TaskCreate, *, creator_id: str) -> str:
        """Create a task with its initial assignments and return the new task id."""
        ...

    async def patch_task(self, task_id: str, patch: TaskPatch) -> None:
        """Change title, due date, note or category of a task."""
        ...

    async def delete_task(self, task_id: str) -> None:
        """Delete a task, removing its assignments first."""
        ...

    async def set_assignment_status(
        self,
        task_id: str,
        assignee_id: str,
        status: AssignmentStatus,
        *,
        actor: Viewer,
        completion_note: str | None = None,
    ) -> Assignment:
        """Complete or reopen one assignee's row and return the updated row."""
        ...

    async def add_assignments(self, task_id: str, assignee_ids: list[str]) -> None:
        """Add open assignments for the given assignees (existing pairs are left alone)."""
        ...

    async def remove_assignments(self, task_id: str, assignee_ids: list[str]) -> None:
        """Remove the given assignees' rows from a task."""
        ...

    async def sync_assignments(self, task_id: str, assignee_ids: list[str]) -> None:
        """Make the remote assignee set equal to ``assignee_ids`` in one call."""
        ...

    async def set_owner(self, task_id: str, assignee_id: str, *, is_owner: bool) -> None:
        """Set or clear the informational owner flag on one assignment."""
        ...
