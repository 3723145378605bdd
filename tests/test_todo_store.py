import pytest
from botocore.exceptions import ClientError

from todo_errors import Conflict, NotFound
from todo_settings import Settings
from todo_store import TodoStore


def _task(user_id="user-1", task_id="task-1", **extra):
    item = {
        "userId": user_id,
        "taskId": task_id,
        "title": "t",
        "description": "",
        "status": "pending",
        "createdAt": "2026-10-19T00:00:00.000Z",
        "updatedAt": "2026-10-19T00:00:00.000Z",
    }
    item.update(extra)
    return item


def test_from_settings_defers_resource_creation(monkeypatch):
    import todo_store

    created = []
    monkeypatch.setattr(todo_store.boto3, "resource", lambda *a, **kw: created.append((a, kw)) or object())
    store = TodoStore.from_settings(
        Settings(users_table_name="U", tasks_table_name="T", aws_region="us-east-1", dynamodb_endpoint_url="http://x")
    )
    assert created == []
    store._ddb()
    store._ddb()
    assert created == [(("dynamodb",), {"region_name": "us-east-1", "endpoint_url": "http://x"})]


def test_create_user_is_conditional(store, ddb):
    store.create_user({"email": "a@example.com", "userId": "u1"})
    assert ddb.tables["Users"].calls[-1][1]["ConditionExpression"] == "attribute_not_exists(email)"
    with pytest.raises(Conflict):
        store.create_user({"email": "a@example.com", "userId": "u2"})
    assert store.get_user("a@example.com")["userId"] == "u1"


def test_get_user_missing_returns_none(store, ddb):
    assert store.get_user("nobody@example.com") is None
    assert ddb.tables["Users"].calls[-1][1]["ConsistentRead"] is True


def test_record_login_sets_timestamps(store, ddb):
    store.create_user({"email": "a@example.com", "userId": "u1"})
    store.record_login("a@example.com", "2026-10-19T10:00:00.000Z")
    user = store.get_user("a@example.com")
    assert user["lastLoginAt"] == "2026-10-19T10:00:00.000Z"
    assert user["updatedAt"] == "2026-10-19T10:00:00.000Z"


def test_list_tasks_is_scoped_and_follows_pagination(store, ddb):
    tasks = ddb.tables["Tasks"]
    tasks.page_size = 2
    for i in range(5):
        tasks.put(_task(task_id=f"task-{i}"))
    tasks.put(_task(user_id="user-2", task_id="task-x"))

    out = store.list_tasks("user-1")
    assert sorted(t["taskId"] for t in out) == [f"task-{i}" for i in range(5)]
    assert len([c for c in tasks.calls if c[0] == "Query"]) == 3
    assert store.list_tasks("user-3") == []


def test_update_task_returns_new_item(store, ddb):
    ddb.tables["Tasks"].put(_task())
    out = store.update_task("user-1", "task-1", {"title": "new", "status": "in-progress"}, "2026-10-20T00:00:00.000Z")
    assert out["title"] == "new"
    assert out["status"] == "in-progress"
    assert out["updatedAt"] == "2026-10-20T00:00:00.000Z"
    assert out["createdAt"] == "2026-10-19T00:00:00.000Z"
    kwargs = ddb.tables["Tasks"].calls[-1][1]
    assert kwargs["ReturnValues"] == "ALL_NEW"
    assert kwargs["ExpressionAttributeNames"]["#status"] == "status"


def test_update_task_unknown_is_not_found_and_creates_nothing(store, ddb):
    with pytest.raises(NotFound):
        store.update_task("user-1", "missing", {"title": "x"}, "now")
    assert ddb.tables["Tasks"].items == {}


def test_update_task_other_users_task_is_not_found(store, ddb):
    ddb.tables["Tasks"].put(_task(user_id="user-2"))
    with pytest.raises(NotFound):
        store.complete_task("user-1", "task-1", "now")
    assert ddb.tables["Tasks"].items[("user-2", "task-1")]["status"] == "pending"


def test_complete_task_sets_completed(store, ddb):
    ddb.tables["Tasks"].put(_task())
    assert store.complete_task("user-1", "task-1", "now")["status"] == "completed"


def test_delete_task(store, ddb):
    ddb.tables["Tasks"].put(_task())
    store.delete_task("user-1", "task-1")
    assert ddb.tables["Tasks"].items == {}
    with pytest.raises(NotFound):
        store.delete_task("user-1", "task-1")


def test_other_storage_errors_propagate(store, ddb):
    ddb.tables["Tasks"].fail_with = "ProvisionedThroughputExceededException"
    with pytest.raises(ClientError):
        store.put_task(_task())
