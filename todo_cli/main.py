from __future__ import annotations

import sys
import time
from typing import Any

import click
import typer
from rich.console import Console

from . import __version__
from .api_client import TodoApiClient
from .cli_shared import (
    DEFAULT_TOKEN_CACHE,
    TODO_API_URL,
    TODO_TOKEN_CACHE,
    GlobalOpts,
    OpError,
    UsageError,
    _api_url_or_usage,
    _env,
    _load_token_cache,
    _print_json,
    _save_token_cache,
    _token_cache_path,
    _token_payload,
)

VALID_STATUSES = ("pending", "in-progress", "completed", "cancelled")

app = typer.Typer(
    name="todo",
    help="Manage todo tasks through the REST API.",
    no_args_is_help=True,
    add_completion=False,
)

_ERROR_CONSOLE = Console(stderr=True)


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]error:[/bold red] {msg}")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"todo {__version__}")
        raise typer.Exit(code=0)


@app.callback()
def app_callback(
    ctx: typer.Context,
    api_url: str = typer.Option("", "--api-url", help=f"API base URL (env: {TODO_API_URL})"),
    token_cache: str = typer.Option(
        "",
        "--token-cache",
        help=f"Token cache file (env: {TODO_TOKEN_CACHE}, default {DEFAULT_TOKEN_CACHE})",
    ),
    plain_json: bool = typer.Option(False, "--plain-json", help="Emit compact JSON output"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True),
) -> None:
    del version
    ctx.obj = {
        "g": GlobalOpts(
            api_url=(api_url or _env(TODO_API_URL) or "").strip(),
            token_cache_path=(token_cache or _env(TODO_TOKEN_CACHE) or DEFAULT_TOKEN_CACHE),
            plain_json=plain_json,
        )
    }


def _g(ctx: typer.Context) -> GlobalOpts:
    obj = ctx.obj if isinstance(ctx.obj, dict) else {}
    g = obj.get("g")
    if not isinstance(g, GlobalOpts):
        raise UsageError("missing global options")
    return g


def _emit(g: GlobalOpts, obj: Any) -> None:
    _print_json(obj, compact=g.plain_json)


def _client(g: GlobalOpts, *, authenticated: bool) -> TodoApiClient:
    token = ""
    api_url = g.api_url
    if authenticated:
        cache = _load_token_cache(_token_cache_path(g.token_cache_path))
        token = str(cache.get("token") or "")
        api_url = api_url or str(cache.get("apiUrl") or "")
    return TodoApiClient(base_url=_api_url_or_usage(api_url), token=token)


@app.command("signup", help="Create an account.")
def signup(
    ctx: typer.Context,
    email: str = typer.Option(..., "--email", help="Account email"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="Account password"),
    username: str = typer.Option("", "--username", help="Display name"),
) -> None:
    g = _g(ctx)
    out = _client(g, authenticated=False).signup(email=email, password=password, username=username)
    _emit(g, out)


@app.command("login", help="Log in and cache the session token.")
def login(
    ctx: typer.Context,
    email: str = typer.Option(..., "--email", help="Account email"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="Account password"),
) -> None:
    g = _g(ctx)
    client = _client(g, authenticated=False)
    out = client.login(email=email, password=password)
    token = str(out.get("token") or "").strip() if isinstance(out, dict) else ""
    if not token:
        raise OpError("login response did not include a token")
    path = _token_cache_path(g.token_cache_path)
    _save_token_cache(
        path,
        {
            "apiUrl": client.base_url,
            "token": token,
            "user": out.get("user") or {},
            "expiresAt": _token_payload(token).get("exp"),
        },
    )
    _emit(g, {"user": out.get("user") or {}, "tokenCache": str(path)})


@app.command("logout", help="Remove the cached session token.")
def logout(ctx: typer.Context) -> None:
    g = _g(ctx)
    path = _token_cache_path(g.token_cache_path)
    removed = path.exists()
    if removed:
        path.unlink()
    _emit(g, {"removed": removed, "tokenCache": str(path)})


@app.command("whoami", help="Show the identity in the cached token.")
def whoami(ctx: typer.Context) -> None:
    g = _g(ctx)
    cache = _load_token_cache(_token_cache_path(g.token_cache_path))
    payload = _token_payload(str(cache.get("token") or ""))
    exp = payload.get("exp")
    expired = not isinstance(exp, int) or exp <= int(time.time())
    _emit(
        g,
        {
            "userId": payload.get("userId"),
            "email": payload.get("email"),
            "expiresAt": exp,
            "expired": expired,
            "apiUrl": cache.get("apiUrl"),
        },
    )


@app.command("add", help="Create a task.")
def add(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Task title"),
    description: str = typer.Option("", "--description", "-d", help="Task description"),
) -> None:
    g = _g(ctx)
    _emit(g, _client(g, authenticated=True).create_task(title=title, description=description or None))


@app.command("list", help="List your tasks.")
def list_tasks(
    ctx: typer.Context,
    status: str = typer.Option("", "--status", help="Only show tasks with this status"),
) -> None:
    g = _g(ctx)
    if status and status not in VALID_STATUSES:
        raise UsageError(f"--status must be one of: {', '.join(VALID_STATUSES)}")
    tasks = _client(g, authenticated=True).list_tasks()
    if status:
        tasks = [t for t in tasks if isinstance(t, dict) and t.get("status") == status]
    _emit(g, {"items": tasks, "count": len(tasks)})


@app.command("update", help="Update a task's title, description or status.")
def update(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task id"),
    title: str = typer.Option("", "--title", help="New title"),
    description: str = typer.Option("", "--description", "-d", help="New description"),
    status: str = typer.Option("", "--status", help="New status"),
) -> None:
    g = _g(ctx)
    changes = {
        k: v
        for k, v in (("title", title), ("description", description), ("status", status))
        if v
    }
    if not changes:
        raise UsageError("provide at least one of --title, --description or --status")
    _emit(g, _client(g, authenticated=True).update_task(task_id, changes))


@app.command("rm", help="Delete a task.")
def remove(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task id"),
) -> None:
    g = _g(ctx)
    _emit(g, _client(g, authenticated=True).delete_task(task_id))


@app.command("done", help="Mark a task as completed.")
def done(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task id"),
) -> None:
    g = _g(ctx)
    _emit(g, _client(g, authenticated=True).complete_task(task_id))


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    try:
        result = app(args=argv, prog_name="todo", standalone_mode=False)
        if result is None:
            return 0
        return int(result)
    except typer.Exit as e:
        return int(e.exit_code)
    except click.exceptions.Abort:
        _rich_error("aborted")
        return 1
    except click.ClickException as e:
        _rich_error(e.format_message())
        return int(e.exit_code)
    except UsageError as e:
        _rich_error(str(e))
        return 2
    except OpError as e:
        _rich_error(str(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
