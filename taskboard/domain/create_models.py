"""Pydantic models for creating records."""

from datetime import date, datetime
from typing import Annotated, TypeVar

from dateutil import parser as dateutil_parser
from pydantic import BaseModel, BeforeValidator, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from taskboard.core.errors import ValidationError
from taskboard.domain.profile import ProfileRole


ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_payload(model_cls: type[ModelT], **data: object) -> ModelT:
    """Build a payload model, reporting the first problem as a ValidationError."""
    try:
        return model_cls(**data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        message = str(first["msg"]).removeprefix("Value error, ")
        fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
        raise ValidationError(message, fields=fields) from e


def normalize_due(v: object) -> object:
    """Coerce a due value to its ISO string, rejecting values that cannot be parsed."""
    if v is None:
        return None
    if isinstance(v, date | datetime):
        return v.isoformat()
    if isinstance(v, str):
        stripped = v.strip()
        if not stripped:
            return None
        try:
            dateutil_parser.isoparse(stripped)
        except ValueError as e:
            raise ValueError(f"Due date is not a valid date: {v}") from e
        return stripped
    return v


def normalize_title(v: object) -> object:
    """Strip a title and reject blank ones."""
    if isinstance(v, str):
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be blank")
    return v


def normalize_note(v: object) -> object:
    """Blank notes are stored as None."""
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


Title = Annotated[str, BeforeValidator(normalize_title)]
DueValue = Annotated[str | None, BeforeValidator(normalize_due)]
Note = Annotated[str | None, BeforeValidator(normalize_note)]


class TaskCreate(BaseModel):
    """Payload for creating a task with its initial assignees."""

    title: Title = Field(..., description="Task title (non-empty)")
    due_at: DueValue = Field(default=None, description="Due timestamp or date-only value")
    note: Note = Field(default=None, description="Optional note")
    category_id: str | None = Field(default=None, description="Optional category reference")
    assignee_ids: list[str] = Field(default_factory=list, description="Initial assignees (may be empty)")

    @field_validator("assignee_ids", mode="before")
    @classmethod
    def dedupe_assignees(cls, v: object) -> object:
        """Drop blank and repeated ids, keeping first-seen order."""
        if v is None:
            return []
        if isinstance(v, list | tuple | set | frozenset):
            seen: dict[str, None] = {}
            for raw in v:
                assignee_id = str(raw).strip()
                if assignee_id:
                    seen.setdefault(assignee_id, None)
            return list(seen)
        return v

    def enforce_policy(self, *, require_assignee: bool, require_due_date: bool) -> None:
        """Apply the board's creation policy.

        Raises:
            ValidationError: If the policy requires assignees or a due date that are missing
        """
        if require_assignee and not self.assignee_ids:
            raise ValidationError("Assign at least one person to this task", fields=["assignee_ids"])
        if require_due_date and self.due_at is None:
            raise ValidationError("Due date is required", fields=["due_at"])


class ProfileCreate(BaseModel):
    """Payload for creating a profile record."""

    email: str | None = Field(default=None, description="Email address")
    display_name: str | None = Field(default=None, description="Full name")
    role: ProfileRole = Field(default=ProfileRole.USER, description="Board role")


class CategoryCreate(BaseModel):
    """Payload for creating a category record."""

    name: Title = Field(..., description="Display name")
    sort_order: int = Field(default=0, description="Ordering hint")
    is_active: bool = Field(default=True, description="Whether the category is offered")
