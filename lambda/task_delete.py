from __future__ import annotations

from typing import Any

from todo_handler import ApiHandler
from todo_http import ApiRequest
from todo_validation import validate_task_id


class DeleteTaskHandler(ApiHandler):
    event_name = "todo_task_delete"
    requires_tasks_table = True

    def handle(self, request: ApiRequest, wide_event: dict[str, Any]) -> tuple[int, Any]:
        user_id = self.identity(request, wide_event).user_id
        task_id = validate_task_id(request.path_param("taskId"))
        wide_event["task_id"] = task_id

        self.store.delete_task(user_id, task_id)
        return 200, {"message": "Task deleted successfully", "taskId": task_id}


_instance: DeleteTaskHandler | None = None


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    global _instance
    if _instance is None:
        _instance = DeleteTaskHandler()
    return _instance(event, context)
