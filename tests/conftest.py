"""Shared pytest fixtures for extcompilers tests.

This module provides request bodies for the built-in extensibility points
and isolates structlog context between tests.
"""

from __future__ import annotations

import copy
from typing import Any

import pytest

from extcompilers.observability import clear_context

# Load extcompilers.testing fixtures (memory_transport, compiler_registry, simulate_request)
pytest_plugins = ["extcompilers.testing.fixtures"]

EXTENSION_SECRET = "foo"

_PHONE_MESSAGE_BODY: dict[str, Any] = {
    "recipient": "1-999-888-657-2134",
    "text": "dis iz a text",
    "context": {
        "message_type": "sms",
        "action": "second-factor-authentication",
        "language": "korean",
        "code": "SOMEOTP12345",
        "ip": "127.0.0.1",
        "user_agent": "someAgent",
        "user": {},
        "client": {
            "client_id": "someClientId",
            "name": "Test Application",
            "client_metadata": {},
        },
    },
}


@pytest.fixture(autouse=True)
def _isolate_log_context() -> None:
    """Drop context variables bound by a previous test."""
    clear_context()


@pytest.fixture
def phone_message_body() -> dict[str, Any]:
    """A send-phone-message body that passes validation (fresh copy per test)."""
    return copy.deepcopy(_PHONE_MESSAGE_BODY)


@pytest.fixture
def client_credentials_body() -> dict[str, Any]:
    """A client-credentials-exchange body with scope and context."""
    return {
        "client": {"id": "client"},
        "scope": ["scope"],
        "audience": "audience",
        "context": {"hello": "world", "foo": "bar"},
    }


@pytest.fixture
def extension_secrets() -> dict[str, str]:
    """Secrets that turn on bearer authentication."""
    return {"auth0-extension-secret": EXTENSION_SECRET}
