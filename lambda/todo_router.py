from __future__ import annotations

from typing import Any

from auth_login import LoginHandler
from auth_signup import SignupHandler
from task_create import CreateTaskHandler
from task_delete import DeleteTaskHandler
from task_done import MarkTaskDoneHandler
from task_list import ListTasksHandler
from task_update import UpdateTaskHandler
from todo_errors import NotFound
from todo_handler import ApiHandler
from todo_http import ApiRequest, empty_response, error_response
from todo_settings import Settings, load_settings
from todo_store import TodoStore

ROOT_SEGMENTS = {"auth", "todo"}


def _segments(path: str) -> list[str]:
    segments = [s for s in path.split("/") if s]
    # Best effort for stage and custom-domain base-path prefixes.
    for idx, seg in enumerate(segments):
        if seg in ROOT_SEGMENTS:
            return segments[idx:]
    return segments


class TodoRouter:
    """Single-function entry point dispatching every route to its handler.

    All handlers share one settings object and one store.
    """

    def __init__(self, *, settings: Settings | None = None, store: TodoStore | None = None) -> None:
        self.settings = settings if settings is not None else load_settings()
        self.store = store if store is not None else TodoStore.from_settings(self.settings)
        shared = {"settings": self.settings, "store": self.store}
        self.signup = SignupHandler(**shared)
        self.login = LoginHandler(**shared)
        self.create_task = CreateTaskHandler(**shared)
        self.list_tasks = ListTasksHandler(**shared)
        self.update_task = UpdateTaskHandler(**shared)
        self.delete_task = DeleteTaskHandler(**shared)
        self.mark_done = MarkTaskDoneHandler(**shared)

    def route(self, method: str, path: str) -> tuple[ApiHandler | None, dict[str, str]]:
        segments = _segments(path)

        # /auth/signup, /auth/login
        if method == "POST" and segments == ["auth", "signup"]:
            return self.signup, {}
        if method == "POST" and segments == ["auth", "login"]:
            return self.login, {}

        # /todo
        if segments == ["todo"]:
            if method == "POST":
                return self.create_task, {}
            if method == "GET":
                return self.list_tasks, {}

        # /todo/{taskId}
        if len(segments) == 2 and segments[0] == "todo":
            params = {"taskId": segments[1]}
            if method == "PUT":
                return self.update_task, params
            if method == "DELETE":
                return self.delete_task, params

        # /todo/{taskId}/done
        if method == "PATCH" and len(segments) == 3 and segments[0] == "todo" and segments[2] == "done":
            return self.mark_done, {"taskId": segments[1]}

        return None, {}

    def __call__(self, event: dict[str, Any], context: Any = None) -> dict[str, Any]:
        request = ApiRequest.from_event(event if isinstance(event, dict) else {})
        if request.method == "OPTIONS":
            return empty_response(
                204,
                request_id=request.request_id,
                cors_origin=self.settings.cors_allow_origin,
            )

        target, params = self.route(request.method, request.path)
        if target is None:
            return error_response(
                NotFound(f"route not found: {request.method} {request.path}"),
                path=request.path,
                production=self.settings.is_production,
                request_id=request.request_id,
                cors_origin=self.settings.cors_allow_origin,
            )

        if params:
            event = dict(event)
            event["pathParameters"] = {**(event.get("pathParameters") or {}), **params}
        return target(event, context)


_instance: TodoRouter | None = None


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    global _instance
    if _instance is None:
        _instance = TodoRouter()
    return _instance(event, context)
