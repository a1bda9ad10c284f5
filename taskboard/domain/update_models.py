"""Update models for task and assignment writes."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from taskboard.core.errors import ValidationError
from taskboard.domain.create_models import DueValue, Note, Title


class TaskPatch(BaseModel):
    """Fields to change on a task; unset fields are left alone."""

    title: Title | None = None
    due_at: DueValue = None
    note: Note = None
    category_id: str | None = None

    def changes(self, *, require_due_date: bool = False) -> dict[str, Any]:
        """Return only the fields the caller set.

        Raises:
            ValidationError: If nothing is set, the title is cleared, or policy requires a due date
        """
        data = self.model_dump(exclude_unset=True)
        if not data:
            raise ValidationError("Nothing to update")
        if "title" in data and data["title"] is None:
            raise ValidationError("Title cannot be blank", fields=["title"])
        if require_due_date and "due_at" in data and data["due_at"] is None:
            raise ValidationError("Due date cannot be blank", fields=["due_at"])
        return data


class AssignmentAction(BaseModel):
    """Body of the task-assignments PATCH endpoint."""

    action: Literal["complete", "reopen", "set_owner", "sync", "add", "remove"]
    task_id: str = Field(..., min_length=1)
    assignee_id: str | None = None
    assignee_ids: list[str] = Field(default_factory=list)
    is_owner: bool | None = None
    completion_note: str | None = None
