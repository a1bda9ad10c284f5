"""In-memory store of tasks and their assignments, keyed by task id."""

import logging

from taskboard.core.errors import ConflictError, NotFoundError
from taskboard.domain.task import Assignment, Task


logger = logging.getLogger(__name__)


class AssignmentStore:
    """Authoritative-so-far collection of tasks held by the client.

    Only two things write here: ``replace`` after a merge pass, and
    ``apply_assignment`` for the optimistic patch that follows a successful
    status write. The next reload supersedes either.
    """

    def __init__(self, tasks: list[Task] | None = None) -> None:
        self._tasks: dict[str, Task] = {}
        if tasks:
            self.replace(tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def get(self, task_id: str) -> Task | None:
        """Return the task with this id, or None."""
        return self._tasks.get(task_id)

    def all(self) -> list[Task]:
        """Return all tasks in snapshot order."""
        return list(self._tasks.values())

    def assignments_for(self, task_id: str) -> list[Assignment]:
        """Return a task's assignments (empty for an unknown task)."""
        task = self._tasks.get(task_id)
        return list(task.assignments) if task else []

    def assignment_for(self, task_id: str, assignee_id: str) -> Assignment | None:
        """Return the single assignment for a (task, assignee) pair.

        Raises:
            ConflictError: If more than one row exists for the pair
        """
        rows = [a for a in self.assignments_for(task_id) if a.assignee_id == assignee_id]
        if len(rows) > 1:
            duplicate_ids = [a.id for a in rows]
            logger.error(
                "Duplicate assignment rows",
                extra={"task_id": task_id, "assignee_id": assignee_id, "duplicate_ids": duplicate_ids},
            )
            raise ConflictError(
                f"Multiple assignment rows exist for task {task_id} and assignee {assignee_id}",
                duplicate_ids=duplicate_ids,
            )
        return rows[0] if rows else None

    def check_pairs(self, task_id: str) -> None:
        """Refuse a task that holds duplicate rows for any assignee.

        Raises:
            ConflictError: Listing every duplicated row id on the task
        """
        task = self._tasks.get(task_id)
        duplicates = task.duplicate_rows() if task else {}
        if not duplicates:
            return

        duplicate_ids = [row_id for ids in duplicates.values() for row_id in ids]
        logger.error(
            "Duplicate assignment rows",
            extra={"task_id": task_id, "assignee_ids": sorted(duplicates), "duplicate_ids": duplicate_ids},
        )
        raise ConflictError(
            f"Multiple assignment rows exist on task {task_id} for {', '.join(sorted(duplicates))}",
            duplicate_ids=duplicate_ids,
        )

    def assignee_ids(self, task_id: str) -> set[str]:
        """Return the currently known assignee set of a task."""
        return {a.assignee_id for a in self.assignments_for(task_id)}

    def replace(self, tasks: list[Task]) -> None:
        """Swap in a freshly merged snapshot."""
        self._tasks = {task.id: task for task in tasks}
        logger.debug("Store replaced", extra={"task_count": len(self._tasks)})

    def apply_assignment(self, task_id: str, assignment: Assignment) -> Task:
        """Optimistically patch one assignee's row after a successful write.

        Raises:
            NotFoundError: If the task or the assignee's row is not held
        """
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} is not loaded")

        if not any(a.assignee_id == assignment.assignee_id for a in task.assignments):
            raise NotFoundError(f"No assignment for {assignment.assignee_id} on task {task_id}")

        patched = [assignment if a.assignee_id == assignment.assignee_id else a for a in task.assignments]
        updated = task.model_copy(update={"assignments": patched})
        self._tasks[task_id] = updated
        return updated
