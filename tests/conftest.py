from __future__ import annotations

import copy
import json
import re
import sys
from typing import Any

import pytest
from botocore.exceptions import ClientError

if "lambda" not in sys.path:
    sys.path.insert(0, "lambda")


TEST_SECRET = "test-signing-secret-0123456789abcdef"

_CONDITION_TERM_RE = re.compile(r"(attribute_exists|attribute_not_exists)\((\w+)\)")
_SET_CLAUSE_RE = re.compile(r"^\s*([#\w]+)\s*=\s*(:\w+)\s*$")


def client_error(code: str, operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeTable:
    """In-memory stand-in for a boto3 ``Table`` covering the calls the store makes."""

    def __init__(self, name: str, key_names: tuple[str, ...], *, missing: bool = False) -> None:
        self.name = name
        self.key_names = key_names
        self.missing = missing
        self.items: dict[tuple[Any, ...], dict[str, Any]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fail_with: str = ""
        self.page_size: int = 0

    def _record(self, op: str, kwargs: dict[str, Any]) -> None:
        self.calls.append((op, kwargs))
        if self.missing:
            raise client_error("ResourceNotFoundException", op)
        if self.fail_with:
            raise client_error(self.fail_with, op)

    def _key(self, obj: dict[str, Any]) -> tuple[Any, ...]:
        return tuple(obj[k] for k in self.key_names)

    def _check(self, condition: str | None, existing: dict[str, Any] | None, op: str) -> None:
        if not condition:
            return
        for fn, attr in _CONDITION_TERM_RE.findall(condition):
            present = existing is not None and attr in existing
            if (fn == "attribute_exists") != present:
                raise client_error("ConditionalCheckFailedException", op)

    def put(self, item: dict[str, Any]) -> None:
        self.items[self._key(item)] = copy.deepcopy(item)

    def put_item(self, *, Item, ConditionExpression=None):
        self._record("PutItem", {"Item": Item, "ConditionExpression": ConditionExpression})
        self._check(ConditionExpression, self.items.get(self._key(Item)), "PutItem")
        self.put(Item)
        return {}

    def get_item(self, *, Key, ConsistentRead=False):
        self._record("GetItem", {"Key": Key, "ConsistentRead": ConsistentRead})
        item = self.items.get(self._key(Key))
        return {"Item": copy.deepcopy(item)} if item is not None else {}

    def update_item(
        self,
        *,
        Key,
        UpdateExpression,
        ExpressionAttributeValues,
        ExpressionAttributeNames=None,
        ConditionExpression=None,
        ReturnValues="NONE",
    ):
        self._record(
            "UpdateItem",
            {
                "Key": Key,
                "UpdateExpression": UpdateExpression,
                "ExpressionAttributeNames": ExpressionAttributeNames,
                "ExpressionAttributeValues": ExpressionAttributeValues,
                "ConditionExpression": ConditionExpression,
                "ReturnValues": ReturnValues,
            },
        )
        key = self._key(Key)
        existing = self.items.get(key)
        self._check(ConditionExpression, existing, "UpdateItem")

        assert UpdateExpression.startswith("SET ")
        item = copy.deepcopy(existing) if existing is not None else dict(Key)
        names = ExpressionAttributeNames or {}
        for clause in UpdateExpression[len("SET "):].split(","):
            m = _SET_CLAUSE_RE.match(clause)
            assert m, clause
            attr, placeholder = m.groups()
            item[names.get(attr, attr)] = ExpressionAttributeValues[placeholder]
        self.items[key] = item
        if ReturnValues == "ALL_NEW":
            return {"Attributes": copy.deepcopy(item)}
        return {}

    def delete_item(self, *, Key, ConditionExpression=None):
        self._record("DeleteItem", {"Key": Key, "ConditionExpression": ConditionExpression})
        key = self._key(Key)
        self._check(ConditionExpression, self.items.get(key), "DeleteItem")
        self.items.pop(key, None)
        return {}

    def query(self, *, KeyConditionExpression, ExclusiveStartKey=None):
        self._record("Query", {"KeyConditionExpression": KeyConditionExpression, "ExclusiveStartKey": ExclusiveStartKey})
        expr = KeyConditionExpression.get_expression()
        assert expr["operator"] == "="
        key_attr, value = expr["values"]
        matches = [
            copy.deepcopy(item)
            for k, item in sorted(self.items.items())
            if item.get(key_attr.name) == value
        ]
        if ExclusiveStartKey:
            start = self._key(ExclusiveStartKey)
            matches = [m for m in matches if self._key(m) > start]
        if self.page_size and len(matches) > self.page_size:
            page = matches[: self.page_size]
            last = page[-1]
            return {"Items": page, "LastEvaluatedKey": {k: last[k] for k in self.key_names}}
        return {"Items": matches}


class FakeResource:
    def __init__(self) -> None:
        self.tables = {
            "Users": FakeTable("Users", ("email",)),
            "Tasks": FakeTable("Tasks", ("userId", "taskId")),
        }

    def Table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name, ("id",), missing=True)
        return self.tables[name]


@pytest.fixture
def app_env(monkeypatch):
    monkeypatch.setenv("USERS_TABLE_NAME", "Users")
    monkeypatch.setenv("TASKS_TABLE_NAME", "Tasks")
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("SCHEMA_VERSION", "2026-10-19")
    for name in ("ALLOW_DEV_IDENTITY", "CORS_ALLOW_ORIGIN", "DYNAMODB_ENDPOINT_URL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def ddb() -> FakeResource:
    return FakeResource()


@pytest.fixture
def settings(app_env):
    from todo_settings import load_settings

    return load_settings()


@pytest.fixture
def store(ddb):
    from todo_store import TodoStore

    return TodoStore(ddb, users_table_name="Users", tasks_table_name="Tasks")


@pytest.fixture
def bearer():
    from todo_credentials import issue_token

    def _bearer(user_id: str = "user-1", email: str = "user1@example.com") -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(user_id, email, secret=TEST_SECRET)}"}

    return _bearer


@pytest.fixture
def make_event():
    def _make_event(
        *,
        method: str,
        path: str,
        body: Any = None,
        headers: dict[str, str] | None = None,
        path_params: dict[str, str] | None = None,
        raw_body: str | None = None,
    ) -> dict[str, Any]:
        if raw_body is None and body is not None:
            raw_body = json.dumps(body)
        return {
            "httpMethod": method,
            "path": path,
            "headers": headers or {},
            "pathParameters": path_params,
            "body": raw_body,
            "requestContext": {"requestId": "req-1"},
        }

    return _make_event


def wide_events(capsys) -> list[dict[str, Any]]:
    lines = [ln for ln in capsys.readouterr().out.splitlines() if ln.strip()]
    return [json.loads(ln) for ln in lines]


@pytest.fixture
def read_log(capsys):
    return lambda: wide_events(capsys)
