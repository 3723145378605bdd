from __future__ import annotations

from typing import Any

from todo_errors import now_iso
from todo_handler import ApiHandler
from todo_http import ApiRequest
from todo_validation import validate_task_id, validate_update_task_input


class UpdateTaskHandler(ApiHandler):
    event_name = "todo_task_update"
    requires_tasks_table = True

    def handle(self, request: ApiRequest, wide_event: dict[str, Any]) -> tuple[int, Any]:
        user_id = self.identity(request, wide_event).user_id
        task_id = validate_task_id(request.path_param("taskId"))
        wide_event["task_id"] = task_id
        changes = validate_update_task_input(request.json_body()).changes()
        wide_event["fields"] = sorted(changes)

        updated = self.store.update_task(user_id, task_id, changes, now_iso())
        return 200, updated


_instance: UpdateTaskHandler | None = None


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    global _instance
    if _instance is None:
        _instance = UpdateTaskHandler()
    return _instance(event, context)
