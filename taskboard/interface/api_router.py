"""Task board JSON API.

Identity comes from the ``X-Viewer-Id`` header, set by the authentication
layer in front of this service. Every response carries ``ok`` and is
marked ``no-store``.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from taskboard.core import db_client
from taskboard.core.config import constants, settings
from taskboard.core.errors import (
    ErrorCode,
    NotAuthorizedError,
    TaskBoardError,
    ValidationError,
    classify_error_with_response,
)
from taskboard.domain.create_models import TaskCreate, validate_payload
from taskboard.domain.profile import Viewer
from taskboard.domain.task import AssignmentStatus
from taskboard.domain.update_models import AssignmentAction, TaskPatch
from taskboard.services import assignment_service, category_service, profile_service, task_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["tasks"])

STATUS_BY_CODE: dict[str, int] = {
    ErrorCode.ERR_VALIDATION: constants.HTTP_BAD_REQUEST,
    ErrorCode.ERR_NOT_AUTHORIZED: constants.HTTP_FORBIDDEN,
    ErrorCode.ERR_NOT_FOUND: constants.HTTP_NOT_FOUND,
    ErrorCode.ERR_CONFLICT: constants.HTTP_CONFLICT,
    ErrorCode.ERR_TRANSIENT: constants.HTTP_SERVICE_UNAVAILABLE,
}

NO_STORE = {"Cache-Control": "no-store"}


def no_store(content: dict[str, Any], status_code: int = constants.HTTP_OK) -> JSONResponse:
    """JSON response that clients and proxies must not cache."""
    return JSONResponse(content=content, status_code=status_code, headers=NO_STORE)


def error_response(exc: TaskBoardError, status_code: int | None = None) -> JSONResponse:
    """Render a taxonomy error as ``{"ok": false, "error", "code", ...}``."""
    response = classify_error_with_response(exc)
    content: dict[str, Any] = {
        "ok": False,
        "error": response.message,
        "code": response.code,
        "suggestion": response.suggestion,
    }
    for key, value in exc.details.items():
        content.setdefault(key, value)
    return no_store(content, status_code or STATUS_BY_CODE.get(exc.code, constants.HTTP_SERVER_ERROR))


async def _taskboard_error_handler(_request: Request, exc: TaskBoardError) -> JSONResponse:
    if isinstance(exc, NotAuthorizedError) and exc.details.get("unauthenticated"):
        return error_response(exc, constants.HTTP_UNAUTHORIZED)
    return error_response(exc)


async def _database_error_handler(_request: Request, exc: db_client.DatabaseError) -> JSONResponse:
    logger.error("Record store failure", extra={"error": str(exc)})
    return no_store(
        {"ok": False, "error": "The record store is unavailable.", "code": ErrorCode.ERR_TRANSIENT},
        constants.HTTP_SERVICE_UNAVAILABLE,
    )


async def _request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = str(errors[0].get("msg", "Invalid request")) if errors else "Invalid request"
    fields = [".".join(str(part) for part in err.get("loc", ()) if part != "body") for err in errors]
    return error_response(ValidationError(message, fields=fields))


def register_error_handlers(app: FastAPI) -> None:
    """Map the error taxonomy (and record store failures) to JSON error bodies."""
    app.add_exception_handler(TaskBoardError, _taskboard_error_handler)
    app.add_exception_handler(db_client.DatabaseError, _database_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)


async def get_current_viewer(
    viewer_id: str | None = Header(default=None, alias=constants.VIEWER_HEADER),
) -> Viewer:
    """Resolve the signed-in viewer; missing or unknown identities get 401."""
    try:
        return await profile_service.get_viewer(viewer_id=viewer_id)
    except NotAuthorizedError as e:
        raise NotAuthorizedError(e.message, unauthenticated=True) from e


@router.get("/tasks")
async def list_tasks(viewer: Viewer = Depends(get_current_viewer)) -> JSONResponse:
    """Tasks visible to the viewer, each with all of its assignments."""
    tasks = await task_service.fetch_tasks(viewer=viewer)
    return no_store({"ok": True, "tasks": [t.model_dump(mode="json") for t in tasks]})


@router.post("/tasks")
async def create_task(
    body: dict[str, Any] = Body(...),
    viewer: Viewer = Depends(get_current_viewer),
) -> JSONResponse:
    """Create a task with its initial assignees."""
    payload = validate_payload(TaskCreate, **body)
    payload.enforce_policy(require_assignee=settings.require_assignee, require_due_date=settings.require_due_date)
    task = await task_service.create_task(payload=payload, creator_id=viewer.id)
    return no_store({"ok": True, "id": task.id, "task": task.model_dump(mode="json")})


@router.patch("/tasks")
async def patch_task(
    body: dict[str, Any] = Body(...),
    viewer: Viewer = Depends(get_current_viewer),
) -> JSONResponse:
    """Change title, due date, note or category of a task."""
    fields = dict(body)
    task_id = str(fields.pop("id", "") or "")
    if not task_id:
        raise ValidationError("Missing task id", fields=["id"])

    patch = validate_payload(TaskPatch, **fields)
    task = await task_service.patch_task(task_id=task_id, patch=patch, require_due_date=settings.require_due_date)
    logger.info("Task patched", extra={"task_id": task_id, "viewer_id": viewer.id})
    return no_store({"ok": True, "task": task.model_dump(mode="json")})


@router.delete("/tasks")
async def delete_task(
    task_id: str = Query(..., alias="id", min_length=1),
    viewer: Viewer = Depends(get_current_viewer),
) -> JSONResponse:
    """Delete a task and its assignments."""
    await task_service.delete_task(task_id=task_id)
    logger.info("Task deleted", extra={"task_id": task_id, "viewer_id": viewer.id})
    return no_store({"ok": True})


@router.patch("/task-assignments")
async def update_assignments(
    body: AssignmentAction,
    viewer: Viewer = Depends(get_current_viewer),
) -> JSONResponse:
    """Apply one assignment action to a task.

    ``complete``/``reopen`` target the viewer's row unless an admin names
    ``assignee_id``; ``set_owner`` is admin-only; ``sync``, ``add`` and
    ``remove`` edit the assignee set.
    """
    task_id = body.task_id

    if body.action in ("complete", "reopen"):
        status = AssignmentStatus.COMPLETE if body.action == "complete" else AssignmentStatus.OPEN
        updated = await assignment_service.set_assignment_status(
            task_id=task_id,
            assignee_id=body.assignee_id or viewer.id,
            status=status,
            actor=viewer,
            completion_note=body.completion_note,
        )
        return no_store({"ok": True, "updated": updated.model_dump(mode="json")})

    if body.action == "set_owner":
        if not viewer.is_admin:
            raise NotAuthorizedError("Only admins can change the task owner", task_id=task_id)
        if not body.assignee_id or body.is_owner is None:
            raise ValidationError("Missing assignee_id or is_owner", fields=["assignee_id", "is_owner"])
        updated = await assignment_service.set_owner(
            task_id=task_id, assignee_id=body.assignee_id, is_owner=body.is_owner
        )
        return no_store({"ok": True, "updated": updated.model_dump(mode="json")})

    if body.action == "sync":
        diff = await assignment_service.sync_assignments(task_id=task_id, assignee_ids=body.assignee_ids)
        return no_store({"ok": True, **diff})

    if body.action == "add":
        created = await assignment_service.add_assignments(task_id=task_id, assignee_ids=body.assignee_ids)
        return no_store({"ok": True, "added": [a.assignee_id for a in created]})

    removed = await assignment_service.remove_assignments(task_id=task_id, assignee_ids=body.assignee_ids)
    return no_store({"ok": True, "removed_count": removed})


@router.get("/users")
async def list_users(_viewer: Viewer = Depends(get_current_viewer)) -> JSONResponse:
    """Profiles tasks can be assigned to."""
    profiles = await profile_service.list_profiles()
    return no_store({"ok": True, "users": [p.model_dump(mode="json") for p in profiles]})


@router.get("/task-categories")
async def list_categories(_viewer: Viewer = Depends(get_current_viewer)) -> JSONResponse:
    """Active categories in display order."""
    categories = await category_service.list_categories()
    return no_store({"ok": True, "categories": [c.model_dump(mode="json") for c in categories]})
