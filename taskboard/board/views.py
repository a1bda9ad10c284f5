"""Projection of held tasks into the self view and the admin view.

Pure functions of (tasks, viewer, profiles, filters, now); nothing here
touches the store or the record source.
"""

from datetime import UTC, datetime, tzinfo

from dateutil import parser as dateutil_parser
from pydantic import BaseModel, Field

from taskboard.board.due import DueBucket, DueFilter, bucket, hides_future, matches_filter
from taskboard.core.config import constants
from taskboard.domain.category import Category
from taskboard.domain.profile import Profile, Viewer
from taskboard.domain.task import Assignment, Task


class ViewFilters(BaseModel):
    """Filter set chosen by the viewer."""

    due_filter: DueFilter = Field(default=DueFilter.ALL, description="Due-date filter")
    category_id: str = Field(default=constants.ALL_CATEGORIES, description='"all" or a category id')
    search: str = Field(default="", description="Case-insensitive text over title, note and category name")
    show_completed: bool = Field(default=True, description="Include completed rows in task lists")


class SelfView(BaseModel):
    """A non-admin viewer's tasks, split by the status of their own assignment.

    Tasks where the viewer holds duplicate rows go to ``conflicted`` instead
    of being placed by one of those rows.
    """

    open: list[Task] = Field(default_factory=list)
    closed: list[Task] = Field(default_factory=list)
    conflicted: list[Task] = Field(default_factory=list, description="Tasks with duplicate rows for the viewer")


class AdminBucket(BaseModel):
    """One column of the admin view: the unassigned tasks, or one assignee's tasks."""

    id: str
    label: str
    tasks: list[Task] = Field(default_factory=list)
    open_count: int = 0
    done_count: int = 0
    conflicted_count: int = Field(default=0, description="Tasks with duplicate rows for this assignee")


class AdminView(BaseModel):
    """All buckets shown to an admin, Unassigned first."""

    buckets: list[AdminBucket] = Field(default_factory=list)

    def bucket(self, bucket_id: str) -> AdminBucket | None:
        """Return the bucket with this id, or None."""
        return next((b for b in self.buckets if b.id == bucket_id), None)


def _created_key(task: Task) -> tuple[int, float]:
    if not task.created_at:
        return (1, 0.0)
    try:
        created = dateutil_parser.isoparse(task.created_at)
    except ValueError:
        return (1, 0.0)
    if created.tzinfo is None:
        created = created.replace(tzinfo=UTC)
    return (0, -created.timestamp())


def newest_first(tasks: list[Task]) -> list[Task]:
    """Sort by ``created_at`` descending; tasks without a timestamp go last."""
    return sorted(tasks, key=_created_key)


def filter_tasks(
    tasks: list[Task],
    filters: ViewFilters,
    *,
    now: datetime | None = None,
    categories: list[Category] | None = None,
    tz: tzinfo | None = None,
) -> list[Task]:
    """Apply the due, category and search filters, keeping input order.

    Future-dated tasks are hidden under every due filter except ``all`` and
    ``not_due_yet``.
    """
    names = {c.id: c.name for c in categories or []}
    needle = filters.search.strip().lower()
    hide_future = hides_future(filters.due_filter)

    kept = []
    for task in tasks:
        if hide_future and bucket(task.due_at, now, tz) == DueBucket.FUTURE:
            continue
        if not matches_filter(task.due_at, now, filters.due_filter, tz):
            continue
        if filters.category_id != constants.ALL_CATEGORIES and task.category_id != filters.category_id:
            continue
        if needle:
            haystack = " ".join([task.title, task.note or "", names.get(task.category_id or "", "")])
            if needle not in haystack.lower():
                continue
        kept.append(task)
    return kept


def _rows_for(task: Task, assignee_id: str) -> list[Assignment]:
    return [a for a in task.assignments if a.assignee_id == assignee_id]


def project_self_view(
    tasks: list[Task],
    viewer: Viewer,
    filters: ViewFilters | None = None,
    *,
    now: datetime | None = None,
    categories: list[Category] | None = None,
    tz: tzinfo | None = None,
) -> SelfView:
    """Split the viewer's tasks into open and closed.

    A task the viewer holds no assignment on appears in neither list.
    """
    filters = filters or ViewFilters()
    view = SelfView()

    for task in newest_first(filter_tasks(tasks, filters, now=now, categories=categories, tz=tz)):
        rows = _rows_for(task, viewer.id)
        if not rows:
            continue
        if len(rows) > 1:
            view.conflicted.append(task)
        elif rows[0].is_complete:
            if filters.show_completed:
                view.closed.append(task)
        else:
            view.open.append(task)
    return view


def _assignee_bucket(bucket_id: str, label: str, tasks: list[Task], show_completed: bool) -> AdminBucket:
    bucket = AdminBucket(id=bucket_id, label=label)
    for task in tasks:
        rows = _rows_for(task, bucket_id)
        if not rows:
            continue
        if len(rows) > 1:
            bucket.conflicted_count += 1
            bucket.tasks.append(task)
        elif rows[0].is_complete:
            bucket.done_count += 1
            if show_completed:
                bucket.tasks.append(task)
        else:
            bucket.open_count += 1
            bucket.tasks.append(task)
    return bucket


def project_admin_view(
    tasks: list[Task],
    profiles: list[Profile],
    filters: ViewFilters | None = None,
    *,
    now: datetime | None = None,
    categories: list[Category] | None = None,
    tz: tzinfo | None = None,
    bucket_id: str | None = None,
) -> AdminView:
    """Bucket filtered tasks by assignee.

    Buckets are Unassigned, then every known profile in the given order,
    then assignee ids with no known profile. A task with several assignees
    appears in each of their buckets; counts come from the bucket's own rows.
    """
    filters = filters or ViewFilters()
    visible = newest_first(filter_tasks(tasks, filters, now=now, categories=categories, tz=tz))

    buckets = [
        AdminBucket(
            id=constants.UNASSIGNED_BUCKET_ID,
            label=constants.UNASSIGNED_BUCKET_LABEL,
            tasks=[task for task in visible if not task.assignments],
        )
    ]

    known = {p.id for p in profiles}
    buckets.extend(_assignee_bucket(p.id, p.label, visible, filters.show_completed) for p in profiles)

    unknown: list[str] = []
    for task in visible:
        for assignee_id in task.assignee_ids:
            if assignee_id not in known and assignee_id not in unknown:
                unknown.append(assignee_id)
    buckets.extend(_assignee_bucket(a, a, visible, filters.show_completed) for a in unknown)

    if bucket_id and bucket_id != constants.ALL_BUCKETS:
        buckets = [b for b in buckets if b.id == bucket_id]
    return AdminView(buckets=buckets)


def project(
    tasks: list[Task],
    viewer: Viewer,
    filters: ViewFilters | None = None,
    *,
    profiles: list[Profile] | None = None,
    now: datetime | None = None,
    categories: list[Category] | None = None,
    tz: tzinfo | None = None,
    bucket_id: str | None = None,
) -> SelfView | AdminView:
    """Project the view that matches the viewer's role."""
    if viewer.is_admin:
        return project_admin_view(
            tasks, profiles or [], filters, now=now, categories=categories, tz=tz, bucket_id=bucket_id
        )
    return project_self_view(tasks, viewer, filters, now=now, categories=categories, tz=tz)
