"""Domain models and DTOs."""

from taskboard.domain.category import Category
from taskboard.domain.create_models import CategoryCreate, ProfileCreate, TaskCreate, validate_payload
from taskboard.domain.profile import Profile, ProfileRole, Viewer
from taskboard.domain.task import Assignment, AssignmentStatus, Task
from taskboard.domain.update_models import AssignmentAction, TaskPatch


__all__ = [
    "Assignment",
    "AssignmentAction",
    "AssignmentStatus",
    "Category",
    "CategoryCreate",
    "Profile",
    "ProfileCreate",
    "ProfileRole",
    "Task",
    "TaskCreate",
    "TaskPatch",
    "Viewer",
    "validate_payload",
]
