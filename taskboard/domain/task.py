"""Task and assignment domain models.

Completion lives only on Assignment. Legacy completion fields a remote may
still send on a task (``status``, ``is_done``) are ignored.
"""

from datetime import date, datetime
from enum import StrEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class AssignmentStatus(StrEnum):
    """Per-assignee completion state."""

    OPEN = "open"
    COMPLETE = "complete"


def _record_id(v: object) -> object:
    return str(v) if isinstance(v, int) and not isinstance(v, bool) else v


class Assignment(BaseModel):
    """One person's responsibility for, and completion of, one task."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Unique assignment ID")
    task_id: str = Field(..., description="Task this assignment belongs to")
    assignee_id: str = Field(..., description="Profile ID of the assignee")
    status: AssignmentStatus = Field(default=AssignmentStatus.OPEN, description="open or complete")
    completed_at: str | None = Field(default=None, description="Completion timestamp (ISO format)")
    completion_note: str | None = Field(default=None, description="Optional note left on completion")
    is_owner: bool = Field(default=False, description="Informational owner flag")
    created_at: str | None = Field(default=None, description="Creation timestamp (ISO format)")

    @field_validator("id", "task_id", "assignee_id", mode="before")
    @classmethod
    def coerce_ids(cls, v: object) -> object:
        """Accept integer ids from SQLite rows."""
        return _record_id(v)

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v: object) -> object:
        """A missing status means the assignment is still open."""
        return AssignmentStatus.OPEN if v in (None, "") else v

    @property
    def is_complete(self) -> bool:
        """Whether this assignee has completed the task."""
        return self.status == AssignmentStatus.COMPLETE


class Task(BaseModel):
    """Task data transfer object with its embedded assignments."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., description="Unique task ID")
    title: str = Field(..., description="Task title")
    note: str | None = Field(default=None, description="Optional free-text note")
    due_at: str | None = Field(default=None, description="Due timestamp or date-only value (ISO format)")
    category_id: str | None = Field(default=None, description="Optional category reference")
    created_by: str | None = Field(default=None, description="Profile ID of the creator")
    created_at: str | None = Field(default=None, description="Creation timestamp (ISO format)")
    assignments: list[Assignment] = Field(
        default_factory=list,
        validation_alias=AliasChoices("assignments", "task_assignments"),
        description="Assignments embedded by the record source",
    )

    @field_validator("id", "category_id", "created_by", mode="before")
    @classmethod
    def coerce_ids(cls, v: object) -> object:
        """Accept integer ids from SQLite rows."""
        return _record_id(v)

    @field_validator("due_at", mode="before")
    @classmethod
    def serialize_due(cls, v: object) -> object:
        """Store date and datetime values in their ISO form, blanks as None."""
        if isinstance(v, date | datetime):
            return v.isoformat()
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("assignments", mode="before")
    @classmethod
    def normalize_assignments(cls, v: object) -> object:
        """Remotes may embed a single assignment object or null instead of a list."""
        if v is None:
            return []
        if isinstance(v, dict):
            return [v]
        return v

    @property
    def assignee_ids(self) -> list[str]:
        """Assignee ids in row order (duplicates preserved)."""
        return [a.assignee_id for a in self.assignments]

    def duplicate_rows(self) -> dict[str, list[str]]:
        """Map each assignee holding more than one row to those row ids."""
        rows: dict[str, list[str]] = {}
        for assignment in self.assignments:
            rows.setdefault(assignment.assignee_id, []).append(assignment.id)
        return {assignee_id: ids for assignee_id, ids in rows.items() if len(ids) > 1}
