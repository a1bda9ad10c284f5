"""Assignment service: per-assignee rows of a task, their status and owner flag."""

import logging
from datetime import UTC, datetime

from taskboard.core import db_client
from taskboard.core.errors import ConflictError, NotAuthorizedError, NotFoundError
from taskboard.core.logging import span
from taskboard.domain.profile import Viewer
from taskboard.domain.task import Assignment, AssignmentStatus


logger = logging.getLogger(__name__)

COLLECTION = "task_assignments"
TASK_ID_BATCH_SIZE = 100  # keeps OR groups in filter strings short


def _now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


async def _rows_for(*, task_id: str, assignee_id: str) -> list[dict]:
    return await db_client.list_all_records(
        collection=COLLECTION,
        filter_query=(
            f'task_id = "{db_client.sanitize_param(task_id)}" && '
            f'assignee_id = "{db_client.sanitize_param(assignee_id)}"'
        ),
    )


async def _require_task(task_id: str) -> None:
    try:
        await db_client.get_record(collection="tasks", record_id=task_id)
    except db_client.RecordNotFoundError as e:
        raise NotFoundError(f"Task {task_id} not found") from e


def _single_row(rows: list[dict], *, task_id: str, assignee_id: str) -> dict:
    if len(rows) > 1:
        duplicate_ids = [r["id"] for r in rows]
        logger.error(
            "Duplicate assignment rows",
            extra={"task_id": task_id, "assignee_id": assignee_id, "duplicate_ids": duplicate_ids},
        )
        raise ConflictError(
            "Multiple assignment rows exist for the same task and assignee. Delete the duplicates first.",
            duplicate_ids=duplicate_ids,
        )
    return rows[0]


async def _task_rows(task_id: str) -> list[Assignment]:
    """Return a task's rows, refusing a task with duplicate rows for any assignee."""
    rows = await list_assignments(task_ids=[task_id])
    by_assignee: dict[str, list[str]] = {}
    for row in rows:
        by_assignee.setdefault(row.assignee_id, []).append(row.id)

    duplicate_ids = [row_id for ids in by_assignee.values() if len(ids) > 1 for row_id in ids]
    if duplicate_ids:
        logger.error("Duplicate assignment rows", extra={"task_id": task_id, "duplicate_ids": duplicate_ids})
        raise ConflictError(
            "Multiple assignment rows exist for the same task and assignee. Delete the duplicates first.",
            duplicate_ids=duplicate_ids,
        )
    return rows


async def list_assignments(*, task_ids: list[str]) -> list[Assignment]:
    """Return every assignment row of the given tasks, oldest first."""
    with span("assignment_service.list_assignments"):
        assignments: list[Assignment] = []
        for start in range(0, len(task_ids), TASK_ID_BATCH_SIZE):
            batch = task_ids[start : start + TASK_ID_BATCH_SIZE]
            records = await db_client.list_all_records(
                collection=COLLECTION,
                filter_query=db_client.any_of_filter("task_id", batch),
                sort="+id",
            )
            assignments.extend(Assignment.model_validate(r) for r in records)
        return assignments


async def list_task_ids_for_assignee(*, assignee_id: str) -> list[str]:
    """Return ids of the tasks this assignee holds a row on (no repeats)."""
    records = await db_client.list_all_records(
        collection=COLLECTION,
        filter_query=f'assignee_id = "{db_client.sanitize_param(assignee_id)}"',
    )
    return list(dict.fromkeys(r["task_id"] for r in records))


async def set_assignment_status(
    *,
    task_id: str,
    assignee_id: str,
    status: AssignmentStatus,
    actor: Viewer,
    completion_note: str | None = None,
) -> Assignment:
    """Complete or reopen exactly one (task, assignee) row.

    Non-admins may only target their own row. ``completed_at`` is set when
    the row becomes complete and cleared when it is reopened.

    Args:
        task_id: Task ID
        assignee_id: Assignee whose row changes
        status: Target status
        actor: Viewer issuing the change
        completion_note: Optional note stored with a completion

    Returns:
        The updated assignment

    Raises:
        NotAuthorizedError: Non-admin targeting someone else, or holding no row on the task
        NotFoundError: Task missing, or no row for the assignee (admin)
        ConflictError: More than one row for the pair
    """
    with span("assignment_service.set_assignment_status"):
        if not actor.is_admin and assignee_id != actor.id:
            raise NotAuthorizedError("You can only update your own assignment", task_id=task_id)

        await _require_task(task_id)
        rows = await _rows_for(task_id=task_id, assignee_id=assignee_id)
        if not rows:
            if actor.is_admin:
                raise NotFoundError(f"No assignment for {assignee_id} on task {task_id}")
            raise NotAuthorizedError("You are not assigned to this task", task_id=task_id)

        row = _single_row(rows, task_id=task_id, assignee_id=assignee_id)

        complete = status == AssignmentStatus.COMPLETE
        updated = await db_client.update_record(
            collection=COLLECTION,
            record_id=row["id"],
            data={
                "status": status.value,
                "completed_at": _now_iso() if complete else None,
                "completion_note": completion_note if complete else None,
            },
        )

        logger.info(
            "Assignment status changed",
            extra={"task_id": task_id, "assignee_id": assignee_id, "status": status.value, "actor_id": actor.id},
        )
        return Assignment.model_validate(updated)


async def add_assignments(*, task_id: str, assignee_ids: list[str]) -> list[Assignment]:
    """Create open rows for assignees not yet on the task.

    Returns:
        The rows created (existing pairs are skipped)

    Raises:
        NotFoundError: If the task does not exist
        ConflictError: If the task already holds duplicate rows for any assignee
    """
    with span("assignment_service.add_assignments"):
        await _require_task(task_id)
        existing = {a.assignee_id for a in await _task_rows(task_id)}

        created: list[Assignment] = []
        for assignee_id in dict.fromkeys(assignee_ids):
            if not assignee_id or assignee_id in existing:
                continue
            record = await db_client.create_record(
                collection=COLLECTION,
                data={
                    "task_id": task_id,
                    "assignee_id": assignee_id,
                    "status": AssignmentStatus.OPEN.value,
                    "completed_at": None,
                    "is_owner": False,
                    "created_at": _now_iso(),
                },
            )
            created.append(Assignment.model_validate(record))

        if created:
            logger.info("Added assignments", extra={"task_id": task_id, "count": len(created)})
        return created


async def remove_assignments(*, task_id: str, assignee_ids: list[str]) -> int:
    """Delete every row the given assignees hold on the task.

    This is also how duplicate rows for a pair are cleared.

    Returns:
        Number of rows deleted
    """
    with span("assignment_service.remove_assignments"):
        wanted = set(assignee_ids)
        removed = 0
        for assignment in await list_assignments(task_ids=[task_id]):
            if assignment.assignee_id in wanted:
                await db_client.delete_record(collection=COLLECTION, record_id=assignment.id)
                removed += 1

        if removed:
            logger.info("Removed assignments", extra={"task_id": task_id, "count": removed})
        return removed


async def sync_assignments(*, task_id: str, assignee_ids: list[str]) -> dict[str, list[str]]:
    """Make the task's assignee set equal to ``assignee_ids``.

    Removals run before additions.

    Returns:
        Dict with sorted ``added`` and ``removed`` assignee ids

    Raises:
        NotFoundError: If the task does not exist
        ConflictError: If the task holds duplicate rows for any assignee
    """
    with span("assignment_service.sync_assignments"):
        await _require_task(task_id)
        current = {a.assignee_id for a in await _task_rows(task_id)}
        desired = {assignee_id for assignee_id in assignee_ids if assignee_id}

        to_remove = sorted(current - desired)
        to_add = sorted(desired - current)

        if to_remove:
            await remove_assignments(task_id=task_id, assignee_ids=to_remove)
        if to_add:
            await add_assignments(task_id=task_id, assignee_ids=to_add)

        return {"added": to_add, "removed": to_remove}


async def set_owner(*, task_id: str, assignee_id: str, is_owner: bool) -> Assignment:
    """Set or clear the owner flag on one row; setting it clears every other owner on the task.

    Raises:
        NotFoundError: Task missing or assignee not on the task
        ConflictError: More than one row for the pair
    """
    with span("assignment_service.set_owner"):
        await _require_task(task_id)
        rows = await _rows_for(task_id=task_id, assignee_id=assignee_id)
        if not rows:
            raise NotFoundError(f"No assignment for {assignee_id} on task {task_id}")
        row = _single_row(rows, task_id=task_id, assignee_id=assignee_id)

        if is_owner:
            for other in await list_assignments(task_ids=[task_id]):
                if other.is_owner and other.id != row["id"]:
                    await db_client.update_record(collection=COLLECTION, record_id=other.id, data={"is_owner": False})

        updated = await db_client.update_record(collection=COLLECTION, record_id=row["id"], data={"is_owner": is_owner})
        logger.info("Owner flag changed", extra={"task_id": task_id, "assignee_id": assignee_id, "is_owner": is_owner})
        return Assignment.model_validate(updated)


async def delete_for_task(*, task_id: str) -> int:
    """Delete all rows of a task (used before deleting the task itself)."""
    removed = 0
    for assignment in await list_assignments(task_ids=[task_id]):
        await db_client.delete_record(collection=COLLECTION, record_id=assignment.id)
        removed += 1
    return removed
