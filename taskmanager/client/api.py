"""HTTP client for the task management API.

Wraps an ``httpx.Client``; every JSON response is unwrapped from the
``{success, message, data}`` envelope and failures are raised as
:class:`ApiError`.
"""
import logging
from typing import Any, BinaryIO, Callable, Dict, Iterable, Optional, Tuple, Union

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000"

FileSpec = Tuple[str, Union[bytes, BinaryIO]]


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


class ApiClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        http: Optional[httpx.Client] = None,
        prefix: str = "/api",
        token: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.prefix = prefix
        self.token = token
        self.on_unauthorized: Optional[Callable[[], None]] = None

    def close(self) -> None:
        self.http.close()

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        authenticated = self.token is not None
        if authenticated:
            headers["Authorization"] = f"Bearer {self.token}"

        response = self.http.request(method, f"{self.prefix}{path}", headers=headers, **kwargs)
        if response.is_success:
            return response

        try:
            message = response.json().get("message") or response.reason_phrase
        except ValueError:
            message = response.reason_phrase

        # Only a rejected credential ends the session; other failures leave it intact.
        if response.status_code == 401 and authenticated and self.on_unauthorized is not None:
            logger.info("Server rejected the stored token: %s", message)
            self.on_unauthorized()
        raise ApiError(response.status_code, message)

    def request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        body = self._send(method, path, **kwargs).json()
        return body.get("data") or {}

    # Auth

    def register(self, email: str, password: str) -> Dict[str, Any]:
        return self.request("POST", "/auth/register", json={"email": email, "password": password})

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self.request("POST", "/auth/login", json={"email": email, "password": password})

    def me(self) -> Dict[str, Any]:
        return self.request("GET", "/auth/me")["user"]

    # Tasks

    def list_tasks(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.request("GET", "/tasks", params=params or {})

    def get_task(self, task_id: str) -> Dict[str, Any]:
        return self.request("GET", f"/tasks/{task_id}")["task"]

    def create_task(self, task: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("POST", "/tasks", json=task)["task"]

    def update_task(self, task_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("PUT", f"/tasks/{task_id}", json=changes)["task"]

    def delete_task(self, task_id: str) -> None:
        self.request("DELETE", f"/tasks/{task_id}")

    def upload_attachments(self, task_id: str, files: Iterable[FileSpec]) -> list:
        parts = [("files", (name, content, "application/pdf")) for name, content in files]
        return self.request("POST", f"/tasks/{task_id}/attachments", files=parts)["attachments"]

    def download_attachment(self, task_id: str, filename: str) -> bytes:
        return self._send("GET", f"/tasks/{task_id}/attachments/{filename}").content

    # Users (admin)

    def list_users(self, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        return self.request("GET", "/users", params={"page": page, "limit": limit})

    def create_user(self, email: str, password: str, role: str = "user") -> Dict[str, Any]:
        return self.request("POST", "/users", json={"email": email, "password": password, "role": role})["user"]

    def update_user(self, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self.request("PUT", f"/users/{user_id}", json=changes)["user"]

    def delete_user(self, user_id: str) -> None:
        self.request("DELETE", f"/users/{user_id}")

    def health(self) -> Dict[str, Any]:
        return self.request("GET", "/health")
