"""Task Manager API client.

A small wrapper around the REST surface of the Task Manager API built on
the ``requests`` library.  Every public method returns a tuple
``(data, error)``: on success ``data`` holds the ``data`` member of the
response envelope (or ``True`` for operations that only return a
message) and ``error`` is ``None``; on failure ``data`` is ``None`` and
``error`` is a dictionary with ``status_code``, ``code`` and
``message``.

After a successful :meth:`TaskManagerClient.login`,
:meth:`TaskManagerClient.register` or
:meth:`TaskManagerClient.refresh_token` the returned token is kept and
sent as ``Authorization: Bearer <token>`` on later requests.

Example::

    client = TaskManagerClient(base_url="http://localhost:8000")
    _, error = client.login("user@test.com", "user123")
    page, error = client.list_tasks(completed=False, limit=20)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

Result = Tuple[Optional[Any], Optional[Dict[str, Any]]]


class TaskManagerClient:
    """Client for the Task Manager REST API."""

    def __init__(
        self,
        *,
        base_url: str,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        api_prefix: str = "/api/v1",
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the server, e.g. ``http://localhost:8000``.
            token: Optional access token obtained earlier.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            api_prefix: Path prefix of the versioned REST routes.
            timeout: Timeout in seconds for every request.
        """
        self.base_url = base_url.rstrip("/")
        self.api_prefix = api_prefix
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _request(
        self, method: str, path: str, *, params: Dict[str, Any] | None = None,
        json_body: Any | None = None, prefixed: bool = True,
    ) -> Result:
        """Perform an HTTP request to the API.

        Args:
            method: HTTP method (``GET``, ``POST``, ``PUT``, ``DELETE``).
            path: Path relative to the API prefix (e.g. ``/tasks``).
            params: Query parameters; ``None`` values are dropped.
            json_body: JSON body to send with the request.
            prefixed: Whether ``path`` lives under :attr:`api_prefix`.
        Returns:
            A tuple ``(body, error)`` with the parsed JSON body on success.
        """
        url = f"{self.base_url}{self.api_prefix if prefixed else ''}{path}"
        headers: Dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            code = None
            message = ""
            if exc.response is not None:
                try:
                    error = exc.response.json().get("error") or {}
                    code = error.get("code")
                    message = error.get("message") or ""
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s %s): %s", status, code, message)
            return None, {"status_code": status, "code": code, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "code": None, "message": str(exc)}

    def _call(self, method: str, path: str, **kwargs: Any) -> Result:
        """Like :meth:`_request` but unwrap the ``data`` member of the envelope."""
        body, error = self._request(method, path, **kwargs)
        if error:
            return None, error
        if isinstance(body, dict) and "data" in body:
            return body["data"], None
        return True, None

    def _keep_token(self, result: Result) -> Result:
        data, error = result
        if not error and isinstance(data, dict) and data.get("token"):
            self.token = data["token"]
        return result

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    def register(self, name: str, email: str, password: str, role: Optional[str] = None) -> Result:
        payload: Dict[str, Any] = {"name": name, "email": email, "password": password}
        if role:
            payload["role"] = role
        return self._keep_token(self._call("POST", "/auth/register", json_body=payload))

    def login(self, email: str, password: str) -> Result:
        """Log in and remember the issued token."""
        return self._keep_token(
            self._call("POST", "/auth/login", json_body={"email": email, "password": password})
        )

    def profile(self) -> Result:
        return self._call("GET", "/auth/profile")

    def refresh_token(self) -> Result:
        return self._keep_token(self._call("POST", "/auth/refresh"))

    def logout(self) -> None:
        """Forget the stored token.  Tokens are stateless, so nothing is sent."""
        self.token = None

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    def list_tasks(
        self,
        *,
        completed: Optional[bool] = None,
        priority: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Result:
        """Retrieve one page of tasks.

        Returns:
            A tuple ``(page, error)`` where ``page`` has ``tasks`` and
            ``pagination`` keys.
        """
        params = {
            "completed": None if completed is None else str(completed).lower(),
            "priority": priority,
            "page": page,
            "limit": limit,
        }
        return self._call("GET", "/tasks", params=params)

    def my_tasks(self, *, completed: Optional[bool] = None, priority: Optional[str] = None) -> Result:
        params = {
            "completed": None if completed is None else str(completed).lower(),
            "priority": priority,
        }
        return self._call("GET", "/tasks/my", params=params)

    def get_task(self, task_id: str) -> Result:
        return self._call("GET", f"/tasks/{task_id}")

    def create_task(
        self,
        title: str,
        *,
        description: Optional[str] = None,
        priority: Optional[str] = None,
        completed: Optional[bool] = None,
    ) -> Result:
        payload: Dict[str, Any] = {"title": title}
        if description is not None:
            payload["description"] = description
        if priority is not None:
            payload["priority"] = priority
        if completed is not None:
            payload["completed"] = completed
        return self._call("POST", "/tasks", json_body=payload)

    def update_task(self, task_id: str, **changes: Any) -> Result:
        """Update a task.  Keyword arguments use the API's camelCase names."""
        return self._call("PUT", f"/tasks/{task_id}", json_body=changes)

    def delete_task(self, task_id: str) -> Result:
        return self._call("DELETE", f"/tasks/{task_id}")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def list_users(self) -> Result:
        return self._call("GET", "/users")

    def get_user(self, user_id: str) -> Result:
        return self._call("GET", f"/users/{user_id}")

    def update_user(self, user_id: str, **changes: Any) -> Result:
        return self._call("PUT", f"/users/{user_id}", json_body=changes)

    def delete_user(self, user_id: str) -> Result:
        return self._call("DELETE", f"/users/{user_id}")

    def change_password(self, current_password: str, new_password: str) -> Result:
        payload = {
            "currentPassword": current_password,
            "newPassword": new_password,
            "confirmPassword": new_password,
        }
        return self._call("POST", "/users/change-password", json_body=payload)

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------
    def health(self) -> Result:
        return self._request("GET", "/health", prefixed=False)
