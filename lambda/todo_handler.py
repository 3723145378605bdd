from __future__ import annotations

import json
import time
from typing import Any

from todo_errors import AppError, now_iso
from todo_http import ApiRequest, error_response, json_response
from todo_identity import Identity, resolve_identity
from todo_settings import Settings, load_settings
from todo_store import TodoStore


def _outcome(status_code: int) -> str:
    if status_code < 400:
        return "success"
    if status_code == 401:
        return "unauthorized"
    if status_code < 500:
        return "client_error"
    return "error"


class ApiHandler:
    """One API operation: configuration check, identity, validation, a single
    storage call and a JSON response, with every failure routed through the
    error mapper.

    Subclasses implement ``handle`` and return ``(status_code, body)``.
    Instances are built once per process and reused across invocations.
    """

    event_name = "todo_api"
    requires_users_table = False
    requires_tasks_table = False

    def __init__(self, *, settings: Settings | None = None, store: TodoStore | None = None) -> None:
        self.settings = settings if settings is not None else load_settings()
        self.store = store if store is not None else TodoStore.from_settings(self.settings)

    def handle(self, request: ApiRequest, wide_event: dict[str, Any]) -> tuple[int, Any]:
        raise NotImplementedError

    def _check_configuration(self) -> None:
        if self.requires_users_table:
            self.settings.require_users_table()
        if self.requires_tasks_table:
            self.settings.require_tasks_table()

    def identity(self, request: ApiRequest, wide_event: dict[str, Any]) -> Identity:
        identity = resolve_identity(
            request.event,
            secret=self.settings.signing_secret,
            allow_dev_identity=self.settings.allow_dev_identity,
        )
        wide_event["principal"] = {"user_id": identity.user_id, "source": identity.source}
        return identity

    def __call__(self, event: dict[str, Any], _context: Any = None) -> dict[str, Any]:
        start = time.time()
        request = ApiRequest.from_event(event if isinstance(event, dict) else {})

        wide_event: dict[str, Any] = {
            "event": self.event_name,
            "schema_version": self.settings.schema_version,
            "request_id": request.request_id,
            "ts": now_iso(),
            "method": request.method,
            "path": request.path,
        }

        status_code = 500
        try:
            self._check_configuration()
            status_code, body = self.handle(request, wide_event)
            return json_response(
                status_code,
                body,
                request_id=request.request_id,
                cors_origin=self.settings.cors_allow_origin,
            )
        except Exception as exc:
            out = error_response(
                exc,
                path=request.path,
                production=self.settings.is_production,
                request_id=request.request_id,
                cors_origin=self.settings.cors_allow_origin,
            )
            status_code = int(out["statusCode"])
            wide_event["error"] = {"type": type(exc).__name__, "message": str(exc)}
            if isinstance(exc, AppError):
                wide_event["error"]["category"] = exc.error
            return out
        finally:
            wide_event["status_code"] = status_code
            wide_event["outcome"] = _outcome(status_code)
            wide_event["duration_ms"] = int((time.time() - start) * 1000)
            # Never log passwords, hashes or tokens.
            print(json.dumps(wide_event, separators=(",", ":"), sort_keys=True, default=str))
