from __future__ import annotations

from typing import Any

from todo_handler import ApiHandler
from todo_http import ApiRequest


class ListTasksHandler(ApiHandler):
    event_name = "todo_task_list"
    requires_tasks_table = True

    def handle(self, request: ApiRequest, wide_event: dict[str, Any]) -> tuple[int, Any]:
        user_id = self.identity(request, wide_event).user_id
        tasks = self.store.list_tasks(user_id)
        wide_event["count"] = len(tasks)
        return 200, tasks


_instance: ListTasksHandler | None = None


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    global _instance
    if _instance is None:
        _instance = ListTasksHandler()
    return _instance(event, context)
