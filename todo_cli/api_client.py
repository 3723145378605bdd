from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from .cli_shared import OpError


class ApiError(OpError):
    def __init__(self, status_code: int, error: str, message: str) -> None:
        super().__init__(f"{error} ({status_code}): {message}")
        self.status_code = status_code
        self.error = error
        self.message = message


HTTP_TIMEOUT_SECONDS = 30


def _http_request(
    method: str,
    url: str,
    *,
    headers: dict[str, str],
    body: bytes | None = None,
) -> tuple[int, bytes]:
    """Send one request; non-2xx answers are returned, not raised."""
    req = Request(url, data=body, headers=headers, method=method.upper())
    try:
        with urlopen(req, timeout=HTTP_TIMEOUT_SECONDS) as resp:
            return int(getattr(resp, "status", 200)), resp.read()
    except HTTPError as e:
        return int(e.code or 0), e.read() or b""
    except URLError as e:
        raise OpError(f"cannot reach {url}: {e.reason}") from e


def _api_error(status: int, text: str) -> ApiError:
    try:
        parsed = json.loads(text) if text else {}
    except json.JSONDecodeError:
        parsed = {}
    if not isinstance(parsed, dict):
        parsed = {}
    return ApiError(
        int(parsed.get("statusCode") or status),
        str(parsed.get("error") or "Unknown Error"),
        str(parsed.get("message") or text or "request failed"),
    )


@dataclass
class TodoApiClient:
    base_url: str
    token: str = ""

    def request(self, method: str, path: str, body_obj: dict[str, Any] | None = None) -> Any:
        url = self.base_url.rstrip("/") + (path if path.startswith("/") else f"/{path}")
        headers: dict[str, str] = {"accept": "application/json"}
        if self.token:
            headers["authorization"] = f"Bearer {self.token}"
        body_bytes = None
        if body_obj is not None:
            body_bytes = json.dumps(body_obj, separators=(",", ":")).encode("utf-8")
            headers["content-type"] = "application/json"

        status, data = _http_request(method, url, headers=headers, body=body_bytes)
        text = data.decode("utf-8", errors="replace")
        if status < 200 or status >= 300:
            raise _api_error(status, text)
        if not text.strip():
            return {}
        try:
            return json.loads(text)
        except Exception as e:
            raise OpError(f"invalid JSON from {method} {path}: {e}; body={text}") from e

    def signup(self, *, email: str, password: str, username: str | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {"email": email, "password": password}
        if username:
            body["username"] = username
        return self.request("POST", "/auth/signup", body)

    def login(self, *, email: str, password: str) -> dict[str, Any]:
        return self.request("POST", "/auth/login", {"email": email, "password": password})

    def list_tasks(self) -> list[dict[str, Any]]:
        out = self.request("GET", "/todo")
        return out if isinstance(out, list) else []

    def create_task(self, *, title: str, description: str | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {"title": title}
        if description is not None:
            body["description"] = description
        return self.request("POST", "/todo", body)

    def update_task(self, task_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        return self.request("PUT", f"/todo/{quote(task_id, safe='')}", changes)

    def delete_task(self, task_id: str) -> dict[str, Any]:
        return self.request("DELETE", f"/todo/{quote(task_id, safe='')}")

    def complete_task(self, task_id: str) -> dict[str, Any]:
        return self.request("PATCH", f"/todo/{quote(task_id, safe='')}/done")
