import importlib
import json

import pytest

from todo_router import TodoRouter


@pytest.fixture
def router(settings, store):
    return TodoRouter(settings=settings, store=store)


def _invoke(router, make_event, **kwargs):
    out = router(make_event(**kwargs))
    return out, (json.loads(out["body"]) if out["body"] else None)


@pytest.mark.parametrize(
    "method, path, handler_attr, params",
    [
        ("POST", "/auth/signup", "signup", {}),
        ("POST", "/auth/login", "login", {}),
        ("POST", "/todo", "create_task", {}),
        ("GET", "/todo", "list_tasks", {}),
        ("PUT", "/todo/abc", "update_task", {"taskId": "abc"}),
        ("DELETE", "/todo/abc", "delete_task", {"taskId": "abc"}),
        ("PATCH", "/todo/abc/done", "mark_done", {"taskId": "abc"}),
        ("GET", "/prod/todo", "list_tasks", {}),
        ("PATCH", "/v1/api/todo/abc/done", "mark_done", {"taskId": "abc"}),
    ],
)
def test_route_table(router, method, path, handler_attr, params):
    target, got = router.route(method, path)
    assert target is getattr(router, handler_attr)
    assert got == params


@pytest.mark.parametrize(
    "method, path",
    [("GET", "/auth/signup"), ("PATCH", "/todo/abc"), ("POST", "/todo/abc/done"), ("GET", "/other")],
)
def test_unknown_routes(router, method, path):
    assert router.route(method, path) == (None, {})


def test_handlers_share_store(router, store):
    assert router.signup.store is store
    assert router.mark_done.store is store
    assert router.list_tasks.settings is router.settings


def test_options_preflight(router, make_event):
    out, body = _invoke(router, make_event, method="OPTIONS", path="/todo")
    assert out["statusCode"] == 204
    assert body is None
    assert out["headers"]["access-control-allow-origin"] == "*"


def test_unknown_route_is_404(router, make_event):
    out, body = _invoke(router, make_event, method="GET", path="/nope")
    assert out["statusCode"] == 404
    assert body["error"] == "Not Found"
    assert body["path"] == "/nope"


def test_end_to_end_flow(router, make_event):
    creds = {"email": "flow@example.com", "password": "Passw0rdOK"}
    out, _ = _invoke(router, make_event, method="POST", path="/auth/signup", body=creds)
    assert out["statusCode"] == 201

    out, body = _invoke(router, make_event, method="POST", path="/auth/login", body=creds)
    auth = {"Authorization": f"Bearer {body['token']}"}

    out, task = _invoke(router, make_event, method="POST", path="/todo", headers=auth, body={"title": "Ship it"})
    assert out["statusCode"] == 201

    out, done = _invoke(router, make_event, method="PATCH", path=f"/todo/{task['taskId']}/done", headers=auth)
    assert out["statusCode"] == 200
    assert done["status"] == "completed"

    out, tasks = _invoke(router, make_event, method="GET", path="/todo", headers=auth)
    assert [t["status"] for t in tasks] == ["completed"]

    out, _ = _invoke(router, make_event, method="DELETE", path=f"/todo/{task['taskId']}", headers=auth)
    assert out["statusCode"] == 200
    out, tasks = _invoke(router, make_event, method="GET", path="/todo", headers=auth)
    assert tasks == []


def test_module_handler_builds_router_once(monkeypatch, app_env, store):
    import todo_router

    mod = importlib.reload(todo_router)
    built = []

    class _Router:
        def __init__(self):
            built.append(self)

        def __call__(self, event, context):
            return {"statusCode": 200, "body": ""}

    monkeypatch.setattr(mod, "TodoRouter", _Router)
    mod.handler({}, None)
    mod.handler({}, None)
    assert len(built) == 1
