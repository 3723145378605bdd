from __future__ import annotations

from typing import Any

from todo_credentials import issue_token, verify_password
from todo_errors import Unauthorized, now_iso
from todo_handler import ApiHandler
from todo_http import ApiRequest
from todo_validation import validate_login_input

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


class LoginHandler(ApiHandler):
    event_name = "todo_auth_login"
    requires_users_table = True

    def handle(self, request: ApiRequest, wide_event: dict[str, Any]) -> tuple[int, Any]:
        login = validate_login_input(request.json_body())
        secret = self.settings.signing_secret()

        user = self.store.get_user(login.email)
        # Same message for unknown email and wrong password to avoid enumeration.
        if not user:
            raise Unauthorized(INVALID_CREDENTIALS_MESSAGE)
        if not verify_password(
            login.password,
            str(user.get("passwordHash") or ""),
            str(user.get("passwordSalt") or ""),
        ):
            raise Unauthorized(INVALID_CREDENTIALS_MESSAGE)

        user_id = str(user.get("userId") or "")
        email = str(user.get("email") or login.email)
        self.store.record_login(login.email, now_iso())
        wide_event["principal"] = {"user_id": user_id, "source": "login"}

        return 200, {
            "message": "Login successful",
            "token": issue_token(user_id, email, secret=secret),
            "user": {
                "userId": user_id,
                "email": email,
                "username": str(user.get("username") or ""),
            },
        }


_instance: LoginHandler | None = None


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    global _instance
    if _instance is None:
        _instance = LoginHandler()
    return _instance(event, context)
