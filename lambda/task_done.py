from __future__ import annotations

from typing import Any

from todo_errors import now_iso
from todo_handler import ApiHandler
from todo_http import ApiRequest
from todo_validation import validate_task_id


class MarkTaskDoneHandler(ApiHandler):
    event_name = "todo_task_done"
    requires_tasks_table = True

    def handle(self, request: ApiRequest, wide_event: dict[str, Any]) -> tuple[int, Any]:
        user_id = self.identity(request, wide_event).user_id
        task_id = validate_task_id(request.path_param("taskId"))
        wide_event["task_id"] = task_id

        return 200, self.store.complete_task(user_id, task_id, now_iso())


_instance: MarkTaskDoneHandler | None = None


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    global _instance
    if _instance is None:
        _instance = MarkTaskDoneHandler()
    return _instance(event, context)
