"""Bearer authentication gate for extensibility points.

When the ``auth0-extension-secret`` secret is configured, a request must
carry ``Authorization: Bearer <secret>``. Without the secret the gate lets
every request through.

The token is everything after the ``Bearer `` prefix, untrimmed, and must
equal the secret exactly.
"""

from __future__ import annotations

from collections.abc import Mapping

from extcompilers.constants import EXTENSION_SECRET_KEY
from extcompilers.errors import AuthenticationError
from extcompilers.observability import get_logger

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


def get_bearer_token(headers: Mapping[str, str]) -> str | None:
    """Extract the Bearer token from lower-cased request headers."""
    auth = headers.get("authorization")
    if not auth or not auth.startswith(BEARER_PREFIX):
        return None
    return auth[len(BEARER_PREFIX) :] or None


def authenticate(
    headers: Mapping[str, str],
    secrets: Mapping[str, str],
    secret_key: str = EXTENSION_SECRET_KEY,
) -> None:
    """Check the request's bearer token against the configured secret.

    Raises:
        AuthenticationError: If a secret is configured and the token is
            missing or different
    """
    expected = secrets.get(secret_key)
    if not expected:
        return
    token = get_bearer_token(headers)
    if token is None:
        logger.warning("extcompilers.auth.missing_token", secret_key=secret_key)
        raise AuthenticationError()
    if token != expected:
        logger.warning("extcompilers.auth.invalid_token", secret_key=secret_key)
        raise AuthenticationError()
