"""Transport layer: the seam to the host's HTTP request/response objects.

The Starlette/FastAPI adapter lives in ``extcompilers.transport.asgi``.
"""

from extcompilers.transport.base import BodyReader, RequestContext, Transport, read_json_body
from extcompilers.transport.memory import MemoryTransport, WrittenResponse

__all__ = [
    "BodyReader",
    "MemoryTransport",
    "RequestContext",
    "Transport",
    "WrittenResponse",
    "read_json_body",
]
