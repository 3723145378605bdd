from __future__ import annotations

import uuid
from typing import Any

from todo_credentials import hash_password
from todo_errors import now_iso
from todo_handler import ApiHandler
from todo_http import ApiRequest
from todo_validation import validate_signup_input


class SignupHandler(ApiHandler):
    event_name = "todo_auth_signup"
    requires_users_table = True

    def handle(self, request: ApiRequest, wide_event: dict[str, Any]) -> tuple[int, Any]:
        signup = validate_signup_input(request.json_body())

        hashed = hash_password(signup.password)
        user_id = str(uuid.uuid4())
        created_at = now_iso()
        # The conditional put is the duplicate-email guard.
        self.store.create_user(
            {
                "email": signup.email,
                "userId": user_id,
                "username": signup.username,
                "passwordHash": hashed.hash,
                "passwordSalt": hashed.salt,
                "createdAt": created_at,
                "updatedAt": created_at,
            }
        )
        wide_event["principal"] = {"user_id": user_id, "source": "signup"}

        return 201, {
            "message": "Account created successfully",
            "user": {
                "userId": user_id,
                "email": signup.email,
                "username": signup.username,
                "createdAt": created_at,
            },
        }


_instance: SignupHandler | None = None


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    global _instance
    if _instance is None:
        _instance = SignupHandler()
    return _instance(event, context)
