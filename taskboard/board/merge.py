"""Merge policy for combining held state with a freshly fetched snapshot.

The read path and the write path are not transactionally linked from the
client's side: a reload issued right after a completion write can observe the
pre-write row. So a completion held locally is never downgraded to ``open``
by a reload. Accepted cost: an admin who reopens an assignment between our
write and our next read stays invisible until a later independent reload
shows it. This is an asymmetric consistency rule, not last-writer-wins.
"""

import logging
from datetime import UTC, datetime

from taskboard.domain.task import Assignment, AssignmentStatus, Task


logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def _keep_completion(previous: Assignment, fresh: Assignment, now: str) -> Assignment:
    return fresh.model_copy(
        update={
            "status": AssignmentStatus.COMPLETE,
            "completed_at": previous.completed_at or now,
            "completion_note": previous.completion_note or fresh.completion_note,
        }
    )


def merge(previous: list[Task], next: list[Task], now: datetime | None = None) -> list[Task]:  # noqa: A002
    """Merge ``next`` over ``previous`` without losing a held completion.

    Tasks only in ``next`` are taken as-is; tasks missing from ``next`` are
    dropped. For an assignee present in both snapshots of a task, a previous
    ``complete`` wins over a fresh ``open``; every other field comes from
    ``next``. An assignee with duplicate rows in either snapshot is taken from
    ``next`` untouched, so the conflict stays visible.
    """
    if not previous:
        return list(next)

    stamp = now.isoformat() if now is not None else _now_iso()
    held: dict[str, dict[str, Assignment]] = {}
    for task in previous:
        ambiguous = task.duplicate_rows()
        held[task.id] = {a.assignee_id: a for a in task.assignments if a.assignee_id not in ambiguous}

    merged: list[Task] = []
    kept = 0
    for task in next:
        prior = held.get(task.id)
        if not prior:
            merged.append(task)
            continue

        ambiguous = task.duplicate_rows()
        assignments = []
        for fresh in task.assignments:
            before = None if fresh.assignee_id in ambiguous else prior.get(fresh.assignee_id)
            if before is not None and before.is_complete and not fresh.is_complete:
                assignments.append(_keep_completion(before, fresh, stamp))
                kept += 1
            else:
                assignments.append(fresh)

        merged.append(task.model_copy(update={"assignments": assignments}))

    if kept:
        logger.info("Kept held completions over stale reads", extra={"kept": kept})
    return merged
