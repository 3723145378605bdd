from __future__ import annotations

import base64
import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any


class TodoCliError(Exception):
    pass


class UsageError(TodoCliError):
    pass


class OpError(TodoCliError):
    pass


TODO_API_URL = "TODO_API_URL"
TODO_TOKEN_CACHE = "TODO_TOKEN_CACHE"
DEFAULT_TOKEN_CACHE = "~/.todo/token.json"
TOKEN_CACHE_MODE = 0o600


@dataclass(frozen=True)
class GlobalOpts:
    api_url: str
    token_cache_path: str
    plain_json: bool = False


def _env(name: str) -> str:
    return (os.environ.get(name) or "").strip()


def _api_url_or_usage(api_url: str) -> str:
    url = (api_url or "").strip().rstrip("/")
    if not url:
        raise UsageError(f"missing API URL (pass --api-url or set {TODO_API_URL})")
    if not url.startswith(("http://", "https://")):
        raise UsageError(f"API URL must start with http:// or https:// (got {url!r})")
    return url


def _print_json(obj: Any, *, compact: bool = False) -> None:
    if compact:
        text = json.dumps(obj, separators=(",", ":"), sort_keys=True)
    else:
        text = json.dumps(obj, indent=2, sort_keys=True)
    sys.stdout.write(text + "\n")


def _token_payload(token: str) -> dict[str, Any]:
    """Decode the payload segment of a session token without verifying it."""
    parts = (token or "").split(".")
    if len(parts) != 3:
        raise OpError("invalid token: expected 3 dot-separated parts")
    segment = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        val = json.loads(base64.urlsafe_b64decode(segment.encode("ascii")).decode("utf-8"))
    except Exception as e:
        raise OpError(f"invalid token payload: {e}") from e
    if not isinstance(val, dict):
        raise OpError("invalid token payload: expected JSON object")
    return val


def _token_cache_path(raw: str | None) -> Path:
    return Path(os.path.expanduser(raw or DEFAULT_TOKEN_CACHE))


def _save_token_cache(path: Path, cache: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    # chmod as well: O_CREAT only applies the mode to new files.
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, TOKEN_CACHE_MODE)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        fh.write(json.dumps(cache, indent=2, sort_keys=True) + "\n")
    try:
        os.chmod(path, TOKEN_CACHE_MODE)
    except OSError as e:
        raise OpError(f"failed to restrict permissions on {path}: {e}") from e


def _load_token_cache(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise UsageError(f"not logged in (no token cache at {path}; run `todo login`)")
    try:
        val = json.loads(path.read_text(encoding="utf-8"))
    except Exception as e:
        raise OpError(f"invalid token cache {path}: {e}") from e
    if not isinstance(val, dict) or not str(val.get("token") or "").strip():
        raise OpError(f"invalid token cache {path}: missing token")
    return val
