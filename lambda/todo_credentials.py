"""Password hashing and the compact signed token used by the auth routes.

Tokens are three dot-separated URL-safe base64 segments (header, payload,
signature). The signature is HMAC-SHA256 over ``header.payload`` keyed by the
server secret. This is an internal format: only ``userId``, ``email``, ``iat``
and ``exp`` are ever carried.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
import time
from dataclasses import dataclass
from typing import Any

SALT_BYTES = 16
PBKDF2_ITERATIONS = 100_000
PBKDF2_KEY_BYTES = 64
PBKDF2_DIGEST = "sha512"

TOKEN_TTL_SECONDS = 24 * 60 * 60
TOKEN_HEADER = {"alg": "HS256", "typ": "JWT"}


@dataclass(frozen=True)
class PasswordHash:
    hash: str
    salt: str


@dataclass(frozen=True)
class TokenIdentity:
    user_id: str
    email: str


def _derive(password: str, salt: str) -> str:
    key = hashlib.pbkdf2_hmac(
        PBKDF2_DIGEST,
        password.encode("utf-8"),
        salt.encode("utf-8"),
        PBKDF2_ITERATIONS,
        dklen=PBKDF2_KEY_BYTES,
    )
    return key.hex()


def hash_password(password: str) -> PasswordHash:
    salt = secrets.token_bytes(SALT_BYTES).hex()
    return PasswordHash(hash=_derive(password, salt), salt=salt)


def verify_password(password: str, hash: str, salt: str) -> bool:
    if not isinstance(password, str) or not isinstance(hash, str) or not isinstance(salt, str):
        return False
    try:
        derived = _derive(password, salt)
    except UnicodeEncodeError:
        # Lone surrogates survive json.loads but have no UTF-8 encoding.
        return False
    return hmac.compare_digest(derived, hash)


def b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def b64url_decode(value: str) -> bytes:
    padded = value + ("=" * (-len(value) % 4))
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def _encode_segment(obj: dict[str, Any]) -> str:
    return b64url_encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def _sign(signing_input: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256).digest()
    return b64url_encode(digest)


def issue_token(
    user_id: str,
    email: str,
    *,
    secret: str,
    now: int | None = None,
    ttl_seconds: int = TOKEN_TTL_SECONDS,
) -> str:
    issued_at = int(time.time()) if now is None else int(now)
    payload = {
        "userId": user_id,
        "email": email,
        "iat": issued_at,
        "exp": issued_at + int(ttl_seconds),
    }
    signing_input = f"{_encode_segment(TOKEN_HEADER)}.{_encode_segment(payload)}"
    return f"{signing_input}.{_sign(signing_input, secret)}"


def _decode_payload(segment: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(b64url_decode(segment).decode("utf-8"))
    except Exception:
        return None
    return parsed if isinstance(parsed, dict) else None


def verify_token(token: str, *, secret: str, now: int | None = None) -> TokenIdentity | None:
    try:
        parts = str(token or "").split(".")
        if len(parts) != 3 or not all(parts):
            return None
        encoded_header, encoded_payload, signature = parts
        expected = _sign(f"{encoded_header}.{encoded_payload}", secret)
        if not hmac.compare_digest(signature.encode("ascii"), expected.encode("ascii")):
            return None

        payload = _decode_payload(encoded_payload)
        if payload is None:
            return None
        exp = payload.get("exp")
        if not isinstance(exp, int) or isinstance(exp, bool):
            return None
        current = int(time.time()) if now is None else int(now)
        if exp <= current:
            return None

        user_id = payload.get("userId")
        email = payload.get("email")
        if not isinstance(user_id, str) or not user_id or not isinstance(email, str):
            return None
        return TokenIdentity(user_id=user_id, email=email)
    except Exception:
        return None

