"""Task service for CRUD operations with embedded assignments."""

import logging
from datetime import UTC, datetime

from taskboard.core import db_client
from taskboard.core.errors import NotFoundError
from taskboard.core.logging import span
from taskboard.domain.create_models import TaskCreate
from taskboard.domain.profile import Viewer
from taskboard.domain.task import Task
from taskboard.domain.update_models import TaskPatch
from taskboard.services import assignment_service


logger = logging.getLogger(__name__)

COLLECTION = "tasks"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


async def _with_assignments(records: list[dict]) -> list[Task]:
    """Attach every assignment row of each task (not only the viewer's)."""
    task_ids = [r["id"] for r in records]
    by_task: dict[str, list] = {task_id: [] for task_id in task_ids}
    for assignment in await assignment_service.list_assignments(task_ids=task_ids):
        by_task.setdefault(assignment.task_id, []).append(assignment)
    return [Task.model_validate({**r, "assignments": by_task[r["id"]]}) for r in records]


async def fetch_tasks(*, viewer: Viewer) -> list[Task]:
    """Get the tasks a viewer may see, newest first.

    Admins see every task. Other viewers see only tasks they hold an
    assignment on, each with all of its assignments so co-assignees are
    visible.

    Args:
        viewer: Signed-in identity

    Returns:
        Tasks with embedded assignments
    """
    with span("task_service.fetch_tasks"):
        if viewer.is_admin:
            records = await db_client.list_all_records(
                collection=COLLECTION,
                sort="+id",
            )
            records.sort(key=lambda r: r.get("created_at") or "", reverse=True)
            return await _with_assignments(records)

        task_ids = await assignment_service.list_task_ids_for_assignee(assignee_id=viewer.id)
        if not task_ids:
            return []

        records: list[dict] = []
        for start in range(0, len(task_ids), assignment_service.TASK_ID_BATCH_SIZE):
            batch = task_ids[start : start + assignment_service.TASK_ID_BATCH_SIZE]
            records.extend(
                await db_client.list_all_records(
                    collection=COLLECTION,
                    filter_query=db_client.any_of_filter("id", batch),
                    sort="-created_at",
                )
            )
        records.sort(key=lambda r: r.get("created_at") or "", reverse=True)
        return await _with_assignments(records)


async def get_task(*, task_id: str) -> Task:
    """Get a single task with its assignments.

    Raises:
        NotFoundError: If the task does not exist
    """
    try:
        record = await db_client.get_record(collection=COLLECTION, record_id=task_id)
    except db_client.RecordNotFoundError as e:
        raise NotFoundError(f"Task {task_id} not found") from e
    return (await _with_assignments([record]))[0]


async def create_task(*, payload: TaskCreate, creator_id: str) -> Task:
    """Create a task and one open assignment per initial assignee.

    Args:
        payload: Validated task payload (policy already applied by the caller)
        creator_id: Profile ID of the creator

    Returns:
        The created task with its assignments
    """
    with span("task_service.create_task"):
        record = await db_client.create_record(
            collection=COLLECTION,
            data={
                "title": payload.title,
                "note": payload.note,
                "due_at": payload.due_at,
                "category_id": payload.category_id,
                "created_by": creator_id,
                "created_at": _now_iso(),
            },
        )

        if payload.assignee_ids:
            await assignment_service.add_assignments(task_id=record["id"], assignee_ids=payload.assignee_ids)

        logger.info(
            "Created task '%s' with %d assignee(s)",
            payload.title,
            len(payload.assignee_ids),
            extra={"task_id": record["id"], "creator_id": creator_id},
        )
        return await get_task(task_id=record["id"])


async def patch_task(*, task_id: str, patch: TaskPatch, require_due_date: bool = False) -> Task:
    """Update the fields set on ``patch``.

    Raises:
        ValidationError: If nothing is set or a required field is cleared
        NotFoundError: If the task does not exist
    """
    with span("task_service.patch_task"):
        changes = patch.changes(require_due_date=require_due_date)
        try:
            await db_client.update_record(collection=COLLECTION, record_id=task_id, data=changes)
        except db_client.RecordNotFoundError as e:
            raise NotFoundError(f"Task {task_id} not found") from e

        logger.info("Updated task", extra={"task_id": task_id, "fields": sorted(changes)})
        return await get_task(task_id=task_id)


async def delete_task(*, task_id: str) -> None:
    """Delete a task and its assignments, assignments first.

    Raises:
        NotFoundError: If the task does not exist
    """
    with span("task_service.delete_task"):
        try:
            await db_client.get_record(collection=COLLECTION, record_id=task_id)
        except db_client.RecordNotFoundError as e:
            raise NotFoundError(f"Task {task_id} not found") from e

        removed = await assignment_service.delete_for_task(task_id=task_id)
        await db_client.delete_record(collection=COLLECTION, record_id=task_id)

        logger.info("Deleted task", extra={"task_id": task_id, "assignments_removed": removed})
