from __future__ import annotations

import uuid
from typing import Any

from todo_errors import now_iso
from todo_handler import ApiHandler
from todo_http import ApiRequest
from todo_validation import STATUS_PENDING, validate_create_task_input


class CreateTaskHandler(ApiHandler):
    event_name = "todo_task_create"
    requires_tasks_table = True

    def handle(self, request: ApiRequest, wide_event: dict[str, Any]) -> tuple[int, Any]:
        user_id = self.identity(request, wide_event).user_id
        task_input = validate_create_task_input(request.json_body())

        created_at = now_iso()
        task = {
            "userId": user_id,
            "taskId": str(uuid.uuid4()),
            "title": task_input.title,
            "description": task_input.description,
            "status": STATUS_PENDING,
            "createdAt": created_at,
            "updatedAt": created_at,
        }
        self.store.put_task(task)
        wide_event["task_id"] = task["taskId"]
        return 201, task


_instance: CreateTaskHandler | None = None


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    global _instance
    if _instance is None:
        _instance = CreateTaskHandler()
    return _instance(event, context)
