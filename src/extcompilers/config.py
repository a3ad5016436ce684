"""Environment-driven configuration for extensibility compilers.

Settings are read once from the process environment into an immutable
model; secrets come from ``EXTCOMPILERS_SECRET_*`` variables.

Environment Variables:
    EXTCOMPILERS_LOG_FORMAT / EXTCOMPILERS_LOG_LEVEL / EXTCOMPILERS_SERVICE_NAME:
        see ``extcompilers.observability.logging``
    EXTCOMPILERS_BODYLESS_METHODS: Comma separated methods that skip body
        acquisition (default: GET,HEAD,OPTIONS)
    EXTCOMPILERS_SECRET_<NAME>: Secret ``<name>`` lower-cased with ``_``
        replaced by ``-`` (e.g. EXTCOMPILERS_SECRET_AUTH0_EXTENSION_SECRET
        becomes ``auth0-extension-secret``)

Example:
    >>> settings = load_settings({"EXTCOMPILERS_BODYLESS_METHODS": "get, delete"})
    >>> sorted(settings.bodyless_methods)
    ['DELETE', 'GET']
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from extcompilers.constants import DEFAULT_BODYLESS_METHODS
from extcompilers.observability.logging import (
    DEFAULT_LOG_FORMAT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_SERVICE_NAME,
    ENV_LOG_FORMAT,
    ENV_LOG_LEVEL,
    ENV_SERVICE_NAME,
)

ENV_BODYLESS_METHODS = "EXTCOMPILERS_BODYLESS_METHODS"
SECRET_ENV_PREFIX = "EXTCOMPILERS_SECRET_"


class Settings(BaseModel):
    """Process-wide settings for hosting compiled extensibility points."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    log_format: str = Field(default=DEFAULT_LOG_FORMAT, pattern="^(json|console)$")
    log_level: str = DEFAULT_LOG_LEVEL
    service_name: str = DEFAULT_SERVICE_NAME
    bodyless_methods: frozenset[str] = Field(default=DEFAULT_BODYLESS_METHODS)

    @field_validator("bodyless_methods", mode="before")
    @classmethod
    def _split_methods(cls, value: object) -> object:
        if isinstance(value, str):
            value = [part for part in value.split(",") if part.strip()]
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(str(part).strip().upper() for part in value)
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables (``os.environ`` by default)."""
    env = os.environ if environ is None else environ
    values: dict[str, object] = {}
    if env.get(ENV_LOG_FORMAT):
        values["log_format"] = env[ENV_LOG_FORMAT].lower()
    if env.get(ENV_LOG_LEVEL):
        values["log_level"] = env[ENV_LOG_LEVEL]
    if env.get(ENV_SERVICE_NAME):
        values["service_name"] = env[ENV_SERVICE_NAME]
    if env.get(ENV_BODYLESS_METHODS):
        values["bodyless_methods"] = env[ENV_BODYLESS_METHODS]
    return Settings(**values)


def load_secrets_from_env(
    environ: Mapping[str, str] | None = None,
    prefix: str = SECRET_ENV_PREFIX,
) -> dict[str, str]:
    """Collect secrets from prefixed environment variables.

    Example:
        >>> load_secrets_from_env({"EXTCOMPILERS_SECRET_AUTH0_EXTENSION_SECRET": "s3"})
        {'auth0-extension-secret': 's3'}
    """
    env = os.environ if environ is None else environ
    secrets: dict[str, str] = {}
    for key, value in env.items():
        if key.startswith(prefix) and len(key) > len(prefix):
            name = key[len(prefix) :].lower().replace("_", "-")
            secrets[name] = value
    return secrets
