"""Starlette/FastAPI hosting for compiled extensibility points.

``StarletteTransport`` adapts a Starlette request to the ``Transport``
protocol and keeps the single written response so the endpoint can return
it. ``create_app`` mounts a set of compiled handlers under ``/{point}``.

Example:
    >>> from extcompilers.registry import compile_extension
    >>> handler = compile_extension("send-phone-message", extension)
    >>> app = create_app({"send-phone-message": handler}, secrets={"auth0-extension-secret": "s3"})
    >>> # uvicorn.run(app)
"""

from __future__ import annotations

from collections.abc import Mapping

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from extcompilers import __version__
from extcompilers.adapter import RequestHandler
from extcompilers.envelope import encode_error_response
from extcompilers.errors import UnknownExtensibilityPointError
from extcompilers.observability import bind_context, get_logger
from extcompilers.transport.base import RequestContext

logger = get_logger(__name__)

HTTP_NOT_FOUND = 404
INVOKE_METHODS = ["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]


class StarletteTransport:
    """Transport over a Starlette request; the response is kept, not sent."""

    def __init__(self, request: Request) -> None:
        self.request = request
        self.method = request.method
        self.headers: dict[str, str] = dict(request.headers)
        self.response: Response | None = None

    async def read_body(self) -> bytes:
        return await self.request.body()

    def write_response(self, status_code: int, headers: dict[str, str], body: str) -> None:
        self.response = Response(content=body, status_code=status_code, headers=headers)


def create_app(
    handlers: Mapping[str, RequestHandler],
    secrets: Mapping[str, str] | None = None,
    path_prefix: str = "",
) -> FastAPI:
    """Create a FastAPI application serving compiled handlers.

    Args:
        handlers: Compiled handlers keyed by the route segment (usually the
            extensibility point type)
        secrets: Secrets injected into every request context
        path_prefix: Optional prefix for the invocation routes (e.g. "/ext")

    Returns:
        FastAPI application with ``GET /health`` and ``{prefix}/{point}``
    """
    app = FastAPI(title="extcompilers", version=__version__)
    injected = dict(secrets or {})
    prefix = path_prefix.rstrip("/")

    @app.get("/health")
    async def health() -> JSONResponse:
        return JSONResponse(status_code=200, content={"status": "ok", "points": sorted(handlers)})

    @app.api_route(prefix + "/{point}", methods=INVOKE_METHODS)
    async def invoke(point: str, request: Request) -> Response:
        handler = handlers.get(point)
        if handler is None:
            logger.warning("extcompilers.route.not_found", point=point)
            response = encode_error_response(UnknownExtensibilityPointError(point))
            return Response(
                content=response.body, status_code=HTTP_NOT_FOUND, headers=response.headers
            )

        bind_context(point=point)
        logger.debug(
            "extcompilers.request.received",
            method=request.method,
            headers=dict(request.headers),
        )
        transport = StarletteTransport(request)
        await handler(RequestContext.from_transport(transport, secrets=injected))
        if transport.response is None:
            raise RuntimeError(f"Handler for {point} finished without writing a response")
        return transport.response

    return app
