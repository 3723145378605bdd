"""Input validators for task and credential payloads.

Aggregate validators (task create/update) collect every violated rule before
raising; single-field validators raise on the first problem they find.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from todo_errors import AppError

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
USERNAME_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 8

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
VALID_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_CANCELLED)

AT_LEAST_ONE_FIELD_MESSAGE = "At least one field (title, description, or status) must be provided"
INVALID_PASSWORD_CHARACTERS_MESSAGE = "Password contains invalid characters"

_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)

_MISSING = object()


class ValidationError(AppError):
    status_code = 400
    error = "Validation Error"

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")


@dataclass(frozen=True)
class CreateTaskInput:
    title: str
    description: str = ""


@dataclass(frozen=True)
class UpdateTaskInput:
    title: str | None = None
    description: str | None = None
    status: str | None = None

    def changes(self) -> dict[str, str]:
        out: dict[str, str] = {}
        if self.title is not None:
            out["title"] = self.title
        if self.description is not None:
            out["description"] = self.description
        if self.status is not None:
            out["status"] = self.status
        return out


@dataclass(frozen=True)
class SignupInput:
    email: str
    password: str
    username: str


@dataclass(frozen=True)
class LoginInput:
    email: str
    password: str


def _utf8_encodable(value: str) -> bool:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(_EMAIL_RE.fullmatch(value.strip()))


def validate_email(value: Any) -> str:
    if not is_valid_email(value):
        raise ValidationError(["Valid email is required"])
    return value.strip().lower()


def validate_password_strength(password: Any) -> tuple[bool, str]:
    if not isinstance(password, str) or not password:
        return False, "Password is required"
    if not _utf8_encodable(password):
        return False, INVALID_PASSWORD_CHARACTERS_MESSAGE
    if len(password) < PASSWORD_MIN_LENGTH:
        return False, f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
    if not re.search(r"[A-Z]", password):
        return False, "Password must contain at least one uppercase letter"
    if not re.search(r"[a-z]", password):
        return False, "Password must contain at least one lowercase letter"
    if not re.search(r"[0-9]", password):
        return False, "Password must contain at least one number"
    return True, ""


def validate_required(value: Any, field: str) -> None:
    if value is None or value is _MISSING or value == "":
        raise ValidationError([f"{field} is required"])


def validate_string(value: Any, field: str, max_length: int | None = None) -> str:
    if not isinstance(value, str):
        raise ValidationError([f"{field} must be a string"])
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError([f"{field} cannot be empty"])
    if max_length and len(trimmed) > max_length:
        raise ValidationError([f"{field} must not exceed {max_length} characters"])
    return trimmed


def validate_uuid(value: Any, field: str) -> str:
    if not isinstance(value, str) or not _UUID_RE.fullmatch(value):
        raise ValidationError([f"{field} must be a valid UUID"])
    return value


def validate_task_id(value: Any) -> str:
    if not value:
        raise ValidationError(["Task ID is required"])
    return validate_uuid(value, "taskId")


def validate_status(value: Any) -> str:
    if not isinstance(value, str) or value not in VALID_STATUSES:
        raise ValidationError([f"status must be one of: {', '.join(VALID_STATUSES)}"])
    return value


def _require_object(body: Any) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise ValidationError(["Request body must be a JSON object"])
    return body


def validate_create_task_input(body: Any) -> CreateTaskInput:
    body = _require_object(body)
    errors: list[str] = []
    title = ""
    description = ""

    raw_title = body.get("title", _MISSING)
    try:
        validate_required(raw_title, "title")
        title = validate_string(raw_title, "title", TITLE_MAX_LENGTH)
    except ValidationError as e:
        errors.extend(e.errors)

    if "description" in body:
        try:
            description = validate_string(body["description"], "description", DESCRIPTION_MAX_LENGTH)
        except ValidationError as e:
            errors.extend(e.errors)

    if errors:
        raise ValidationError(errors)
    return CreateTaskInput(title=title, description=description)


def validate_update_task_input(body: Any) -> UpdateTaskInput:
    body = _require_object(body)
    errors: list[str] = []
    values: dict[str, str] = {}

    for field, max_length in (("title", TITLE_MAX_LENGTH), ("description", DESCRIPTION_MAX_LENGTH)):
        if field not in body:
            continue
        try:
            values[field] = validate_string(body[field], field, max_length)
        except ValidationError as e:
            errors.extend(e.errors)

    if "status" in body:
        try:
            values["status"] = validate_status(body["status"])
        except ValidationError as e:
            errors.extend(e.errors)

    if errors:
        raise ValidationError(errors)
    if not values:
        raise ValidationError([AT_LEAST_ONE_FIELD_MESSAGE])
    return UpdateTaskInput(**values)


def validate_signup_input(body: Any) -> SignupInput:
    body = _require_object(body)
    email = validate_email(body.get("email"))
    ok, message = validate_password_strength(body.get("password"))
    if not ok:
        raise ValidationError([message])

    raw_username = body.get("username")
    username = ""
    if isinstance(raw_username, str) and raw_username.strip():
        username = validate_string(raw_username, "username", USERNAME_MAX_LENGTH)
    elif raw_username is not None and not isinstance(raw_username, str):
        raise ValidationError(["username must be a string"])
    if not username:
        username = email.split("@", 1)[0]
    return SignupInput(email=email, password=body["password"], username=username)


def validate_login_input(body: Any) -> LoginInput:
    body = _require_object(body)
    email = validate_email(body.get("email"))
    password = body.get("password")
    if not isinstance(password, str) or not password:
        raise ValidationError(["Password is required"])
    if not _utf8_encodable(password):
        raise ValidationError([INVALID_PASSWORD_CHARACTERS_MESSAGE])
    return LoginInput(email=email, password=password)
