"""
Synchronous HTTP client for the Taskboard API.

``move_task`` implements the optimistic Kanban move: the local task dict
gets the new status right away and is put back to its last known-good status
if the server rejects the change or cannot be reached.
"""
import logging

import httpx

from app.models.enums import TaskStatus

logger = logging.getLogger(__name__)


class TaskBoardError(Exception):
    def __init__(self, message: str, status_code: int | None = None, kind: str | None = None, reason: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.kind = kind
        self.reason = reason


class TaskBoardClient:
    def __init__(self, base_url: str, token: str | None = None, transport: httpx.BaseTransport | None = None, timeout: float = 10.0):
        self.token = token
        self._http = httpx.Client(base_url=base_url, transport=transport, timeout=timeout)

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method: str, path: str, **kwargs):
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise TaskBoardError(f"Request to {path} failed: {exc}") from exc

        if response.is_error:
            try:
                error = response.json().get("error", {})
            except ValueError:
                error = {}
            raise TaskBoardError(
                error.get("message") or response.text or f"HTTP {response.status_code}",
                status_code=response.status_code,
                kind=error.get("kind"),
                reason=error.get("reason"),
            )
        return response.json()

    # ── Auth ──
    def register(self, username: str, email: str, password: str, **extra) -> dict:
        data = self._request("POST", "/auth/register", json={"username": username, "email": email, "password": password, **extra})
        self.token = data["token"]
        return data

    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["token"]
        return data

    # ── Tasks ──
    def my_tasks(self) -> list[dict]:
        return self._request("GET", "/tasks")

    def project_tasks(self, project_id: int) -> list[dict]:
        return self._request("GET", f"/tasks/project/{project_id}")

    def create_task(self, title: str, project_id: int, **fields) -> dict:
        return self._request("POST", "/tasks", json={"title": title, "project_id": project_id, **fields})["task"]

    def update_task(self, task_id: int, **fields) -> dict:
        return self._request("PUT", f"/tasks/{task_id}", json=fields)["task"]

    def delete_task(self, task_id: int) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    def move_task(self, task: dict, new_status) -> dict:
        """
        Move ``task`` to ``new_status`` optimistically.

        ``task`` is updated in place before the request is sent. On success it
        takes the server's copy; on failure its previous status is restored
        and the error is re-raised.
        """
        new_status = TaskStatus(new_status).value
        previous = task["status"]
        task["status"] = new_status
        try:
            updated = self.update_task(task["id"], status=new_status)
        except TaskBoardError:
            task["status"] = previous
            logger.warning("Reverted task %s to %s after failed move to %s", task["id"], previous, new_status)
            raise
        task.update(updated)
        return task

    # ── Comments ──
    def comments(self, task_id: int) -> list[dict]:
        return self._request("GET", f"/comments/task/{task_id}")

    def add_comment(self, task_id: int, content: str) -> dict:
        return self._request("POST", "/comments", json={"task_id": task_id, "content": content})["comment"]

    def delete_comment(self, comment_id: int) -> None:
        self._request("DELETE", f"/comments/{comment_id}")
