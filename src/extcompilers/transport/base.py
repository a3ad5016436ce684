"""Transport seam between compiled handlers and the host's HTTP layer.

The host owns the raw request and response; compiled handlers only need
the request method and headers, a way to read the raw body once, and a
single-shot write primitive.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol, runtime_checkable

from extcompilers.errors import BodyParseError
from extcompilers.observability import get_logger
from extcompilers.types import UNDEFINED

logger = get_logger(__name__)


@runtime_checkable
class Transport(Protocol):
    """Request/response pair as seen by a compiled handler."""

    method: str
    headers: Mapping[str, str]

    async def read_body(self) -> bytes:
        """Return the raw request body."""
        ...

    def write_response(self, status_code: int, headers: dict[str, str], body: str) -> None:
        """Send the response; called exactly once per request."""
        ...


# Reads and decodes the request body from the transport
BodyReader = Callable[[Transport], Awaitable[Any]]


async def read_json_body(transport: Transport) -> Any:
    """Read the raw body and decode it as JSON.

    An empty body decodes to ``None``.

    Raises:
        BodyParseError: If the body cannot be read, is not UTF-8, or is not JSON
    """
    try:
        raw = await transport.read_body()
    except OSError as exc:
        raise BodyParseError(f"Failed to read body: {exc}") from exc
    if not raw or not raw.strip():
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as exc:
        logger.warning("extcompilers.request.invalid_encoding", error=str(exc))
        raise BodyParseError(f"Invalid UTF-8 encoding: {exc}") from exc
    except json.JSONDecodeError as exc:
        logger.warning("extcompilers.request.invalid_json", error=str(exc))
        raise BodyParseError(f"Invalid JSON: {exc}") from exc


@dataclass
class RequestContext:
    """State of one invocation, owned by the request handler.

    Attributes:
        transport: Host transport for this request
        method: Upper-cased HTTP method
        headers: Request headers with lower-cased names
        body: Parsed body, or ``UNDEFINED`` until it has been read
        secrets: Secrets injected by the host for this request
    """

    transport: Transport
    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = UNDEFINED
    secrets: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.headers = {str(name).lower(): value for name, value in self.headers.items()}

    @property
    def has_body(self) -> bool:
        return self.body is not UNDEFINED

    @classmethod
    def from_transport(
        cls,
        transport: Transport,
        body: Any = UNDEFINED,
        secrets: Mapping[str, str] | None = None,
    ) -> RequestContext:
        return cls(
            transport=transport,
            method=transport.method,
            headers=dict(transport.headers),
            body=body,
            secrets=dict(secrets or {}),
        )
