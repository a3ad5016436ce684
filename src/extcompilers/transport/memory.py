"""In-memory transport for the CLI and tests."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, NamedTuple


class WrittenResponse(NamedTuple):
    status_code: int
    headers: dict[str, str]
    body: str


class MemoryTransport:
    """Transport backed by a byte string that records every write.

    The recorded writes make the single-write invariant observable:
    ``writes`` must hold exactly one entry after a request completes.

    Example:
        >>> transport = MemoryTransport(body=b'{"text": "hi"}')
        >>> transport.write_response(200, {"Content-Type": "application/json"}, '{"status":"success"}')
        >>> transport.envelope
        {'status': 'success'}
    """

    def __init__(
        self,
        body: bytes | str = b"",
        method: str = "POST",
        headers: Mapping[str, str] | None = None,
        read_error: BaseException | None = None,
    ) -> None:
        self.method = method
        self.headers: dict[str, str] = dict(headers or {})
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        self._read_error = read_error
        self.reads = 0
        self.writes: list[WrittenResponse] = []

    async def read_body(self) -> bytes:
        self.reads += 1
        if self._read_error is not None:
            raise self._read_error
        return self._body

    def write_response(self, status_code: int, headers: dict[str, str], body: str) -> None:
        self.writes.append(WrittenResponse(status_code, dict(headers), body))

    @property
    def response(self) -> WrittenResponse:
        """The first written response.

        Raises:
            LookupError: If nothing has been written yet
        """
        if not self.writes:
            raise LookupError("No response written")
        return self.writes[0]

    @property
    def envelope(self) -> Any:
        """The first written response decoded from JSON."""
        return json.loads(self.response.body)
