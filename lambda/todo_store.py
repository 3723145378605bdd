from __future__ import annotations

from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from todo_errors import Conflict, NotFound, client_error_code
from todo_settings import Settings
from todo_validation import STATUS_COMPLETED

TASK_EXISTS_CONDITION = "attribute_exists(userId) AND attribute_exists(taskId)"


def _conditional_check_failed(exc: ClientError) -> bool:
    return client_error_code(exc) == "ConditionalCheckFailedException"


class TodoStore:
    """Single-item access to the users and tasks tables.

    Every method issues exactly one DynamoDB call (``list_tasks`` follows
    pagination of a single query). Conditional writes are the only
    concurrency guard; nothing is retried here.
    """

    def __init__(
        self,
        resource: Any | None = None,
        *,
        users_table_name: str = "",
        tasks_table_name: str = "",
        region_name: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        self._resource = resource
        self.users_table_name = users_table_name
        self.tasks_table_name = tasks_table_name
        self.region_name = region_name
        self.endpoint_url = endpoint_url

    @classmethod
    def from_settings(cls, settings: Settings) -> "TodoStore":
        return cls(
            users_table_name=settings.users_table_name,
            tasks_table_name=settings.tasks_table_name,
            region_name=settings.aws_region,
            endpoint_url=settings.dynamodb_endpoint_url,
        )

    def _ddb(self) -> Any:
        if self._resource is None:
            kwargs: dict[str, Any] = {}
            if self.region_name:
                kwargs["region_name"] = self.region_name
            if self.endpoint_url:
                kwargs["endpoint_url"] = self.endpoint_url
            self._resource = boto3.resource("dynamodb", **kwargs)
        return self._resource

    def _users(self) -> Any:
        return self._ddb().Table(self.users_table_name)

    def _tasks(self) -> Any:
        return self._ddb().Table(self.tasks_table_name)

    # users

    def get_user(self, email: str) -> dict[str, Any] | None:
        out = self._users().get_item(Key={"email": email}, ConsistentRead=True)
        item = out.get("Item") if isinstance(out, dict) else None
        return item or None

    def create_user(self, item: dict[str, Any]) -> None:
        try:
            self._users().put_item(
                Item=item,
                ConditionExpression="attribute_not_exists(email)",
            )
        except ClientError as e:
            if _conditional_check_failed(e):
                raise Conflict("An account with this email already exists") from e
            raise

    def record_login(self, email: str, now: str) -> None:
        self._users().update_item(
            Key={"email": email},
            UpdateExpression="SET lastLoginAt = :now, updatedAt = :now",
            ExpressionAttributeValues={":now": now},
        )

    # tasks

    def put_task(self, item: dict[str, Any]) -> None:
        self._tasks().put_item(
            Item=item,
            ConditionExpression="attribute_not_exists(taskId)",
        )

    def list_tasks(self, user_id: str) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        start_key: dict[str, Any] | None = None
        while True:
            kwargs: dict[str, Any] = {
                "KeyConditionExpression": Key("userId").eq(user_id),
            }
            if start_key:
                kwargs["ExclusiveStartKey"] = start_key
            page = self._tasks().query(**kwargs)
            out.extend(item for item in page.get("Items", []) or [] if isinstance(item, dict))
            start_key = page.get("LastEvaluatedKey")
            if not start_key:
                return out

    def update_task(self, user_id: str, task_id: str, changes: dict[str, Any], now: str) -> dict[str, Any]:
        assignments: list[str] = []
        expr_names: dict[str, str] = {}
        expr_values: dict[str, Any] = {}
        for attr, value in {**changes, "updatedAt": now}.items():
            assignments.append(f"#{attr} = :{attr}")
            expr_names[f"#{attr}"] = attr
            expr_values[f":{attr}"] = value

        try:
            out = self._tasks().update_item(
                Key={"userId": user_id, "taskId": task_id},
                UpdateExpression="SET " + ", ".join(assignments),
                ExpressionAttributeNames=expr_names,
                ExpressionAttributeValues=expr_values,
                ConditionExpression=TASK_EXISTS_CONDITION,
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if _conditional_check_failed(e):
                raise NotFound("Task not found") from e
            raise
        attributes = out.get("Attributes") if isinstance(out, dict) else None
        if not attributes:
            raise NotFound("Task not found")
        return attributes

    def complete_task(self, user_id: str, task_id: str, now: str) -> dict[str, Any]:
        return self.update_task(user_id, task_id, {"status": STATUS_COMPLETED}, now)

    def delete_task(self, user_id: str, task_id: str) -> None:
        try:
            self._tasks().delete_item(
                Key={"userId": user_id, "taskId": task_id},
                ConditionExpression=TASK_EXISTS_CONDITION,
            )
        except ClientError as e:
            if _conditional_check_failed(e):
                raise NotFound("Task not found") from e
            raise
