from taskboard.services import (
    assignment_service,
    category_service,
    profile_service,
    task_service,
)


__all__ = [
    "assignment_service",
    "category_service",
    "profile_service",
    "task_service",
]
