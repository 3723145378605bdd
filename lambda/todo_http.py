from __future__ import annotations

import base64
import json
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from todo_errors import BadRequest, error_payload

CORS_ALLOW_HEADERS = "Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token"
CORS_ALLOW_METHODS = "GET,POST,PUT,DELETE,PATCH,OPTIONS"


def response_headers(
    extra: dict[str, str] | None = None,
    *,
    cors_origin: str = "*",
) -> dict[str, str]:
    headers = {
        "content-type": "application/json",
        "cache-control": "no-store",
        "x-content-type-options": "nosniff",
        "x-frame-options": "DENY",
        "x-xss-protection": "1; mode=block",
        "access-control-allow-origin": cors_origin or "*",
        "access-control-allow-headers": CORS_ALLOW_HEADERS,
        "access-control-allow-methods": CORS_ALLOW_METHODS,
    }
    if extra:
        headers.update(extra)
    return headers


def _json_default(value: Any) -> Any:
    # DynamoDB resources hand numbers back as Decimal.
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, set):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def json_response(
    status_code: int,
    body: Any,
    *,
    request_id: str = "",
    cors_origin: str = "*",
) -> dict[str, Any]:
    extra = {"x-request-id": request_id} if request_id else None
    return {
        "statusCode": int(status_code),
        "headers": response_headers(extra, cors_origin=cors_origin),
        "body": json.dumps(body, default=_json_default),
    }


def empty_response(status_code: int, *, request_id: str = "", cors_origin: str = "*") -> dict[str, Any]:
    out = json_response(status_code, None, request_id=request_id, cors_origin=cors_origin)
    out["body"] = ""
    return out


def error_response(
    exc: BaseException,
    *,
    path: str,
    production: bool,
    request_id: str = "",
    cors_origin: str = "*",
) -> dict[str, Any]:
    payload = error_payload(exc, path=path, production=production)
    return json_response(
        payload["statusCode"],
        payload,
        request_id=request_id,
        cors_origin=cors_origin,
    )


def get_header(event: dict[str, Any], name: str) -> str:
    headers = event.get("headers") or {}
    if not isinstance(headers, dict):
        return ""
    # API Gateway can canonicalize headers; treat them case-insensitively.
    for k, v in headers.items():
        if isinstance(k, str) and k.lower() == name.lower():
            return str(v) if v is not None else ""
    return ""


def _request_context(event: dict[str, Any]) -> dict[str, Any]:
    rc = event.get("requestContext") or {}
    return rc if isinstance(rc, dict) else {}


def request_id(event: dict[str, Any]) -> str:
    rid = str(_request_context(event).get("requestId") or "").strip()
    return rid or str(uuid.uuid4())


def request_method(event: dict[str, Any]) -> str:
    http = _request_context(event).get("http") or {}
    method = http.get("method") if isinstance(http, dict) else None
    return str(method or event.get("httpMethod") or "").upper()


def request_path(event: dict[str, Any]) -> str:
    http = _request_context(event).get("http") or {}
    candidates = [
        http.get("path") if isinstance(http, dict) else None,
        event.get("rawPath"),
        event.get("path"),
    ]
    for raw in candidates:
        val = str(raw or "").strip()
        if val:
            return val
    return ""


def decoded_body(event: dict[str, Any]) -> str:
    raw = event.get("body")
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raise BadRequest("Request body must be a JSON object")
    if bool(event.get("isBase64Encoded")):
        try:
            raw = base64.b64decode(raw.encode("utf-8")).decode("utf-8")
        except Exception as exc:
            raise BadRequest("Request body base64 decode failed") from exc
    return raw


@dataclass
class ApiRequest:
    event: dict[str, Any]
    method: str = ""
    path: str = ""
    request_id: str = ""
    path_parameters: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> "ApiRequest":
        params = event.get("pathParameters") or {}
        if not isinstance(params, dict):
            params = {}
        return cls(
            event=event,
            method=request_method(event),
            path=request_path(event),
            request_id=request_id(event),
            path_parameters={str(k): str(v) for k, v in params.items() if v is not None},
        )

    def header(self, name: str) -> str:
        return get_header(self.event, name)

    def path_param(self, name: str) -> str | None:
        return self.path_parameters.get(name)

    def json_body(self) -> dict[str, Any]:
        raw = decoded_body(self.event)
        if not raw.strip():
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise BadRequest("Invalid JSON in request body") from exc
        if not isinstance(parsed, dict):
            raise BadRequest("Request body must be a JSON object")
        return parsed
