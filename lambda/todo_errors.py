"""Error taxonomy and the mapper that turns any exception into the canonical
error payload ``{error, message, statusCode, timestamp, path}``.

Handlers raise ``AppError`` subclasses for expected failures and let storage
exceptions propagate; ``error_payload`` is the single place that decides the
status code and the client-visible wording.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from botocore.exceptions import ClientError

GENERIC_INTERNAL_MESSAGE = "An unexpected error occurred"

THROUGHPUT_ERROR_CODES = {
    "ProvisionedThroughputExceededException",
    "ThrottlingException",
    "RequestLimitExceeded",
}


class AppError(Exception):
    status_code = 500
    error = "Application Error"

    def __init__(self, message: str, *, status_code: int | None = None, error: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = int(status_code)
        if error is not None:
            self.error = error


class BadRequest(AppError):
    status_code = 400
    error = "Bad Request"


class Unauthorized(AppError):
    status_code = 401
    error = "Unauthorized"


class NotFound(AppError):
    status_code = 404
    error = "Not Found"


class Conflict(AppError):
    status_code = 409
    error = "Conflict"


class ConfigurationError(AppError):
    status_code = 500
    error = "Internal Server Error"


class Unavailable(AppError):
    status_code = 503
    error = "Service Unavailable"


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def client_error_code(exc: BaseException) -> str:
    if not isinstance(exc, ClientError):
        return ""
    return str((exc.response or {}).get("Error", {}).get("Code") or "")


def _classify(exc: BaseException, *, production: bool) -> tuple[int, str, str]:
    if isinstance(exc, AppError):
        message = exc.message
        if production and exc.status_code == 500:
            message = GENERIC_INTERNAL_MESSAGE
        return exc.status_code, exc.error, message

    if isinstance(exc, json.JSONDecodeError):
        return 400, "Bad Request", "Request body contains invalid JSON"

    code = client_error_code(exc)
    if code == "ResourceNotFoundException":
        return 404, "Resource Not Found", "The requested resource was not found"
    if code == "ConditionalCheckFailedException":
        return 409, "Conflict", "The operation conflicts with the current state"
    if code in THROUGHPUT_ERROR_CODES:
        return (
            Unavailable.status_code,
            Unavailable.error,
            "The service is temporarily unavailable. Please try again later.",
        )

    if production:
        return 500, "Internal Server Error", GENERIC_INTERNAL_MESSAGE
    return 500, "Internal Server Error", str(exc) or type(exc).__name__


def error_payload(exc: BaseException, *, path: str, production: bool) -> dict[str, Any]:
    status_code, error, message = _classify(exc, production=production)
    return {
        "error": error,
        "message": message,
        "statusCode": status_code,
        "timestamp": now_iso(),
        "path": path,
    }
