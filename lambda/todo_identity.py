from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from todo_credentials import verify_token
from todo_errors import Unauthorized
from todo_http import get_header

DEV_IDENTITY_USER_ID = "mock-user-id"

SOURCE_AUTHORIZER = "authorizer"
SOURCE_TOKEN = "token"
SOURCE_DEV_FALLBACK = "dev-fallback"


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str = ""
    source: str = SOURCE_TOKEN


def authorizer_claims(event: dict[str, Any]) -> dict[str, Any]:
    rc = event.get("requestContext") or {}
    if not isinstance(rc, dict):
        return {}
    auth = rc.get("authorizer") or {}
    if not isinstance(auth, dict):
        return {}
    claims = auth.get("claims")
    if isinstance(claims, dict):
        return claims
    jwt = auth.get("jwt") or {}
    jwt_claims = jwt.get("claims") if isinstance(jwt, dict) else None
    if isinstance(jwt_claims, dict):
        return jwt_claims
    return {}


def _identity_from_claims(event: dict[str, Any]) -> Identity | None:
    claims = authorizer_claims(event)
    user_id = str(claims.get("sub") or claims.get("cognito:username") or claims.get("username") or "").strip()
    if not user_id:
        return None
    email = str(claims.get("email") or "").strip()
    return Identity(user_id=user_id, email=email, source=SOURCE_AUTHORIZER)


def _identity_from_bearer(event: dict[str, Any], *, secret: str | Callable[[], str]) -> Identity:
    auth = get_header(event, "authorization").strip()
    if not auth:
        raise Unauthorized("Missing Authorization header")
    scheme, _, token = auth.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthorized("Missing bearer token")
    verified = verify_token(token, secret=secret() if callable(secret) else secret)
    if verified is None:
        raise Unauthorized("Invalid or expired token")
    return Identity(user_id=verified.user_id, email=verified.email, source=SOURCE_TOKEN)


def resolve_identity(
    event: dict[str, Any],
    *,
    secret: str | Callable[[], str],
    allow_dev_identity: bool = False,
) -> Identity:
    """Return the caller's identity or raise ``Unauthorized``.

    Claims attached by an upstream authorizer are trusted as-is; otherwise the
    bearer token is verified here. ``secret`` may be a callable, invoked only
    when a bearer token has to be checked. With ``allow_dev_identity`` a
    failed resolution yields the fixed placeholder identity instead of raising.
    """
    claimed = _identity_from_claims(event)
    if claimed is not None:
        return claimed
    try:
        return _identity_from_bearer(event, secret=secret)
    except Unauthorized:
        if allow_dev_identity:
            return Identity(user_id=DEV_IDENTITY_USER_ID, source=SOURCE_DEV_FALLBACK)
        raise


def resolve_user_id(
    event: dict[str, Any],
    *,
    secret: str | Callable[[], str],
    allow_dev_identity: bool = False,
) -> str:
    return resolve_identity(event, secret=secret, allow_dev_identity=allow_dev_identity).user_id
