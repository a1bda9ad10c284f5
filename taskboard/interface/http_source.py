"""RecordSource over the task board JSON API, using httpx."""

import logging
from typing import Any

import httpx

from taskboard.core.config import constants, settings
from taskboard.core.errors import TransientError, error_from_code
from taskboard.domain.category import Category
from taskboard.domain.create_models import TaskCreate
from taskboard.domain.profile import Profile, Viewer
from taskboard.domain.task import Assignment, AssignmentStatus, Task
from taskboard.domain.update_models import TaskPatch


logger = logging.getLogger(__name__)


class HttpRecordSource:
    """Remote record source reached over HTTP as one signed-in viewer.

    Every call is a single request. Network failures and 5xx responses
    become ``TransientError``; error bodies are mapped back to the error
    taxonomy by their ``code``.
    """

    def __init__(
        self,
        *,
        viewer_id: str,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.viewer_id = viewer_id
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.api_timeout_seconds
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", constants.VIEWER_HEADER: self.viewer_id}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}/api{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, json=json, params=params, headers=self._headers())
        except httpx.RequestError as e:
            logger.error("Record source connection error", extra={"method": method, "path": path, "error": str(e)})
            raise TransientError(f"Could not reach the task board: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_success and body.get("ok", True):
            return body

        message = str(body.get("error") or f"Request failed with status {response.status_code}")
        logger.warning(
            "Record source error response",
            extra={"method": method, "path": path, "status": response.status_code, "code": body.get("code")},
        )
        if response.status_code >= constants.HTTP_SERVER_ERROR:
            raise TransientError(message, status=response.status_code)

        details = {k: v for k, v in body.items() if k not in ("ok", "error", "code", "suggestion")}
        raise error_from_code(body.get("code"), message, **details)

    async def fetch_tasks(self, viewer: Viewer) -> list[Task]:
        if viewer.id != self.viewer_id:
            logger.warning("Fetching as a different viewer than the source is bound to", extra={"viewer_id": viewer.id})
        body = await self._request("GET", "/tasks")
        return [Task.model_validate(t) for t in body.get("tasks") or []]

    async def list_profiles(self) -> list[Profile]:
        body = await self._request("GET", "/users")
        return [Profile.model_validate(p) for p in body.get("users") or []]

    async def list_categories(self) -> list[Category]:
        body = await self._request("GET", "/task-categories")
        return [Category.model_validate(c) for c in body.get("categories") or []]

    async def create_task(self, payload: TaskCreate, *, creator_id: str) -> str:
        body = await self._request("POST", "/tasks", json=payload.model_dump(mode="json"))
        return str(body["id"])

    async def patch_task(self, task_id: str, patch: TaskPatch) -> None:
        await self._request("PATCH", "/tasks", json={"id": task_id, **patch.model_dump(mode="json", exclude_unset=True)})

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", "/tasks", params={"id": task_id})

    async def set_assignment_status(
        self,
        task_id: str,
        assignee_id: str,
        status: AssignmentStatus,
        *,
        actor: Viewer,
        completion_note: str | None = None,
    ) -> Assignment:
        action = "complete" if status == AssignmentStatus.COMPLETE else "reopen"
        body = await self._request(
            "PATCH",
            "/task-assignments",
            json={
                "action": action,
                "task_id": task_id,
                "assignee_id": assignee_id,
                "completion_note": completion_note,
            },
        )
        return Assignment.model_validate(body["updated"])

    async def add_assignments(self, task_id: str, assignee_ids: list[str]) -> None:
        await self._assignment_action("add", task_id, assignee_ids=assignee_ids)

    async def remove_assignments(self, task_id: str, assignee_ids: list[str]) -> None:
        await self._assignment_action("remove", task_id, assignee_ids=assignee_ids)

    async def sync_assignments(self, task_id: str, assignee_ids: list[str]) -> None:
        await self._assignment_action("sync", task_id, assignee_ids=assignee_ids)

    async def set_owner(self, task_id: str, assignee_id: str, *, is_owner: bool) -> None:
        await self._assignment_action("set_owner", task_id, assignee_id=assignee_id, is_owner=is_owner)

    async def _assignment_action(self, action: str, task_id: str, **fields: Any) -> dict[str, Any]:
        return await self._request("PATCH", "/task-assignments", json={"action": action, "task_id": task_id, **fields})
