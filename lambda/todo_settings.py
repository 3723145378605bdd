from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from todo_errors import ConfigurationError

DEV_JWT_SECRET = "default-jwt-secret-for-development-only-not-for-production"
MIN_PRODUCTION_SECRET_LENGTH = 32
DEFAULT_SCHEMA_VERSION = "2026-10-19"
PRODUCTION_ENVIRONMENTS = {"production", "prod"}


def _truthy(raw: str | None) -> bool:
    return str(raw or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    users_table_name: str = ""
    tasks_table_name: str = ""
    jwt_secret: str = ""
    environment: str = "development"
    dev_identity_enabled: bool = False
    cors_allow_origin: str = "*"
    schema_version: str = DEFAULT_SCHEMA_VERSION
    aws_region: str | None = None
    dynamodb_endpoint_url: str | None = None

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in PRODUCTION_ENVIRONMENTS

    @property
    def allow_dev_identity(self) -> bool:
        # The placeholder identity never applies to production deployments.
        return self.dev_identity_enabled and not self.is_production

    def require_users_table(self) -> str:
        if not self.users_table_name:
            raise ConfigurationError("USERS_TABLE_NAME environment variable is not set")
        return self.users_table_name

    def require_tasks_table(self) -> str:
        if not self.tasks_table_name:
            raise ConfigurationError("TASKS_TABLE_NAME environment variable is not set")
        return self.tasks_table_name

    def signing_secret(self) -> str:
        secret = self.jwt_secret
        if self.is_production:
            if not secret:
                raise ConfigurationError("JWT_SECRET environment variable is not set")
            if len(secret) < MIN_PRODUCTION_SECRET_LENGTH:
                raise ConfigurationError(
                    f"JWT_SECRET must be at least {MIN_PRODUCTION_SECRET_LENGTH} characters in production"
                )
            return secret
        return secret or DEV_JWT_SECRET


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ

    def _get(name: str, default: str = "") -> str:
        return str(env.get(name) or default).strip()

    return Settings(
        users_table_name=_get("USERS_TABLE_NAME"),
        tasks_table_name=_get("TASKS_TABLE_NAME"),
        jwt_secret=_get("JWT_SECRET"),
        environment=_get("APP_ENV", "development"),
        dev_identity_enabled=_truthy(env.get("ALLOW_DEV_IDENTITY")),
        cors_allow_origin=_get("CORS_ALLOW_ORIGIN", "*"),
        schema_version=_get("SCHEMA_VERSION", DEFAULT_SCHEMA_VERSION),
        aws_region=_get("AWS_REGION") or _get("AWS_DEFAULT_REGION") or None,
        dynamodb_endpoint_url=_get("DYNAMODB_ENDPOINT_URL") or None,
    )
