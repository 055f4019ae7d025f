"""HTTP client for the TaskWave API with a local copy of the caller's tasks.

``TaskClient`` keeps the token and public user in a ``TokenCache`` (a small
JSON file, or memory only), sends the bearer token with every call, and
merges each successful response into its in-memory task list. Any 401/403
clears the cache and raises ``SessionExpired``.

Views over the local list (status/priority filters, priority sort, the
three workflow columns) never hit the network.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
PRIORITY_ORDER = {"low": 1, "medium": 2, "high": 3}
STATUS_FILTERS = ("all", "active", "completed")
PRIORITY_SORTS = ("none", "asc", "desc")


class ApiError(Exception):
    """Non-2xx response other than 401/403."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class SessionExpired(ApiError):
    def __init__(self, status_code: int = 401):
        super().__init__(status_code, "Session expired. Please login again.")


class TokenCache:
    """Token and public user, persisted to a JSON file when a path is given."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path else None
        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None
        self._read()

    def _read(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text("utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable token cache %s: %r", self.path, exc)
            return
        self.token = data.get("token")
        self.user = data.get("user")

    def store(self, token: str, user: Dict[str, Any]) -> None:
        self.token, self.user = token, user
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps({"token": token, "user": user}), "utf-8")
        os.replace(tmp, self.path)

    def clear(self) -> None:
        self.token, self.user = None, None
        if self.path is not None and self.path.exists():
            self.path.unlink()


class TaskClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        http: httpx.Client | None = None,
        cache: TokenCache | None = None,
    ) -> None:
        self.http = http if http is not None else httpx.Client(base_url=base_url, timeout=10.0)
        self.cache = cache if cache is not None else TokenCache()
        self.tasks: List[Dict[str, Any]] = []
        self.status_filter = "all"
        self.priority_filter = "all"
        self.priority_sort = "none"

    # ---- transport ----

    def _request(self, method: str, url: str, *, auth: bool = True, **kwargs) -> Any:
        """Send a JSON request.

        With ``auth=False`` (login/register forms) no bearer token is sent and
        a 401/403 is an ordinary ``ApiError`` rather than a session expiry.
        """
        headers = {"Content-Type": "application/json", **kwargs.pop("headers", {})}
        if auth and self.cache.token:
            headers["Authorization"] = f"Bearer {self.cache.token}"
        response = self.http.request(method, url, headers=headers, **kwargs)
        if auth and response.status_code in (401, 403) and self.cache.token:
            # Token expired or invalid
            self.logout()
            raise SessionExpired(response.status_code)
        if response.is_error:
            try:
                message = response.json().get("error") or response.reason_phrase
            except ValueError:
                message = response.reason_phrase
            raise ApiError(response.status_code, message)
        return response.json()

    # ---- session ----

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self.cache.user

    @property
    def is_authenticated(self) -> bool:
        return bool(self.cache.token and self.cache.user)

    def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        data = self._request(
            "POST",
            "/api/register",
            auth=False,
            json={"username": username, "email": email, "password": password},
        )
        self.cache.store(data["token"], data["user"])
        return data["user"]

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._request(
            "POST", "/api/login", auth=False, json={"email": email, "password": password}
        )
        self.cache.store(data["token"], data["user"])
        return data["user"]

    def logout(self) -> None:
        self.cache.clear()
        self.tasks = []

    def check_auth(self) -> bool:
        """Confirm the cached session against /api/me; log out if it fails."""
        if not self.is_authenticated:
            return False
        try:
            user = self._request("GET", "/api/me")
        except ApiError:
            self.logout()
            return False
        self.cache.store(self.cache.token, user)
        return True

    # ---- tasks ----

    def _replace(self, updated: Dict[str, Any]) -> Dict[str, Any]:
        self.tasks = [updated if t["id"] == updated["id"] else t for t in self.tasks]
        return updated

    def _find(self, task_id: str) -> Optional[Dict[str, Any]]:
        return next((t for t in self.tasks if t["id"] == str(task_id)), None)

    def load_tasks(self) -> List[Dict[str, Any]]:
        data = self._request("GET", "/api/tasks")
        self.tasks = [{**t, "status": t.get("status") or "todo", "id": str(t["id"])} for t in data]
        return self.tasks

    def add_task(self, text: str, priority: str = "low") -> Optional[Dict[str, Any]]:
        text = text.strip()
        if not text:
            return None
        task = self._request(
            "POST", "/api/tasks", json={"text": text, "priority": priority, "status": "todo"}
        )
        self.tasks = [task, *self.tasks]
        return task

    def toggle_task(self, task_id: str) -> Optional[Dict[str, Any]]:
        task = self._find(task_id)
        if task is None:
            return None
        updated = self._request(
            "PUT", f"/api/tasks/{task_id}", json={"completed": not task["completed"]}
        )
        return self._replace(updated)

    def edit_task(self, task_id: str, text: str, priority: str | None = None) -> Dict[str, Any]:
        text = text.strip()
        if not text:
            raise ValueError("Task text cannot be empty")
        body: Dict[str, Any] = {"text": text}
        if priority is not None:
            body["priority"] = priority
        return self._replace(self._request("PUT", f"/api/tasks/{task_id}", json=body))

    def change_status(self, task_id: str, status: str) -> Dict[str, Any]:
        return self._replace(self._request("PUT", f"/api/tasks/{task_id}", json={"status": status}))

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/api/tasks/{task_id}")
        self.tasks = [t for t in self.tasks if t["id"] != str(task_id)]

    def clear_completed(self) -> None:
        self._request("DELETE", "/api/tasks")
        self.tasks = [t for t in self.tasks if not t["completed"]]

    # ---- views ----

    def visible_tasks(self) -> List[Dict[str, Any]]:
        items = self.tasks
        if self.status_filter == "active":
            items = [t for t in items if not t["completed"]]
        elif self.status_filter == "completed":
            items = [t for t in items if t["completed"]]

        if self.priority_filter != "all":
            items = [t for t in items if (t.get("priority") or "low") == self.priority_filter]

        if self.priority_sort != "none":
            items = sorted(
                items,
                key=lambda t: PRIORITY_ORDER[t.get("priority") or "low"],
                reverse=self.priority_sort == "desc",
            )
        return list(items)

    def column(self, status: str) -> List[Dict[str, Any]]:
        """Visible tasks in a workflow column; completed tasks also show under done."""
        return [
            t
            for t in self.visible_tasks()
            if (t.get("status") or "todo") == status or (status == "done" and t["completed"])
        ]

    @property
    def active_count(self) -> int:
        return sum(1 for t in self.tasks if not t["completed"])

    @property
    def has_completed(self) -> bool:
        return any(t["completed"] for t in self.tasks)
