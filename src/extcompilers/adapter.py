"""Request handling for compiled extensibility points.

This module provides the two one-shot primitives the request path is built
on, and ``wrap`` which ties them to a transport:

- ``Completion``: the callback handed to a user function. Only its first
  call counts; it settles an asyncio future the handler awaits, and may be
  called from the event loop, from another task, or from another thread.
- ``Responder``: turns a completion outcome into the single transport write
  (success or error envelope). Later calls are ignored.
- ``RequestHandler`` (built by ``wrap``): acquires the body when needed and
  dispatches to a compiled handler with a ``Responder``.

Example:
    >>> request_handler = wrap(compiled_handler)
    >>> await request_handler(RequestContext.from_transport(transport))
    >>> len(transport.writes)
    1
"""

from __future__ import annotations

import asyncio
import inspect
import threading
from collections.abc import Awaitable, Iterable
from typing import Any, Callable, NamedTuple

from extcompilers.constants import DEFAULT_BODYLESS_METHODS
from extcompilers.envelope import encode_error_response, encode_success_response
from extcompilers.observability import get_logger
from extcompilers.transport.base import BodyReader, RequestContext, Transport, read_json_body
from extcompilers.types import Callback, ResultAdapter, UserFunction

logger = get_logger(__name__)


class Outcome(NamedTuple):
    """What a user function reported through its callback."""

    error: Any
    results: tuple[Any, ...]


class Completion:
    """One-shot completion callback bound to a single invocation.

    The first call settles the outcome; any later call is logged and
    ignored. Calls from threads other than the loop's are handed over with
    ``call_soon_threadsafe``.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future[Outcome] = self._loop.create_future()
        self._lock = threading.Lock()
        self._resolved = False
        self.calls = 0

    @property
    def resolved(self) -> bool:
        return self._resolved

    def __call__(self, error: Any = None, *results: Any) -> None:
        with self._lock:
            self.calls += 1
            first = not self._resolved
            self._resolved = True
        if not first:
            logger.warning("extcompilers.callback.duplicate", calls=self.calls)
            return

        outcome = Outcome(error, results)
        if self._in_loop_thread():
            self._settle(outcome)
        else:
            self._loop.call_soon_threadsafe(self._settle, outcome)

    def _in_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _settle(self, outcome: Outcome) -> None:
        if not self._future.done():
            self._future.set_result(outcome)

    async def wait(self) -> Outcome:
        return await self._future


async def invoke_user_function(user_function: UserFunction, args: tuple[Any, ...]) -> Outcome:
    """Call ``user_function(*args, callback)`` and wait for its outcome.

    The function may call back synchronously, return a coroutine that calls
    back, or call back later from elsewhere. An exception it raises, or its
    coroutine raises, counts as a callback error unless it already called
    back. No deadline is imposed.
    """
    completion = Completion()
    try:
        returned = user_function(*args, completion)
        if inspect.isawaitable(returned):
            await returned
    except Exception as exc:
        logger.warning(
            "extcompilers.user_function.raised",
            error=str(exc),
            error_type=type(exc).__name__,
            after_callback=completion.resolved,
        )
        completion(exc)
    return await completion.wait()


class Responder:
    """Single-write respond function for one request: ``(error, *results)``.

    A truthy ``error`` produces the error envelope; otherwise ``results`` go
    through the result adapter into the success envelope.
    """

    def __init__(self, transport: Transport, result_adapter: ResultAdapter | None = None) -> None:
        self._transport = transport
        self._result_adapter = result_adapter
        self._lock = threading.Lock()
        self._written = False

    @property
    def written(self) -> bool:
        return self._written

    def __call__(self, error: Any = None, *results: Any) -> None:
        with self._lock:
            if self._written:
                logger.warning("extcompilers.response.duplicate")
                return
            self._written = True

        if error:
            response = encode_error_response(error)
        else:
            response = encode_success_response(results, self._result_adapter)
        self._transport.write_response(response.status_code, response.headers, response.body)


# Compiled handler signature: (context, respond) -> awaitable
DispatchHandler = Callable[[RequestContext, Callback], Awaitable[None]]


class RequestHandler:
    """Per-request driver: awaiting body, then dispatched.

    Attributes:
        arity: Positional values the wrapped user function receives before
            its callback, when the dispatch handler declares it
    """

    def __init__(
        self,
        handler: DispatchHandler,
        result_adapter: ResultAdapter | None = None,
        body_reader: BodyReader = read_json_body,
        bodyless_methods: Iterable[str] = DEFAULT_BODYLESS_METHODS,
    ) -> None:
        self._handler = handler
        self._result_adapter = result_adapter
        self._body_reader = body_reader
        self._bodyless_methods = frozenset(method.upper() for method in bodyless_methods)
        self.arity: int | None = getattr(handler, "arity", None)

    async def __call__(self, context: RequestContext) -> None:
        respond = Responder(context.transport, self._result_adapter)

        if context.method not in self._bodyless_methods and not context.has_body:
            try:
                context.body = await self._body_reader(context.transport)
            except Exception as exc:
                logger.warning(
                    "extcompilers.request.body_failed",
                    method=context.method,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                respond(exc)
                return

        try:
            await self._handler(context, respond)
        except Exception as exc:
            logger.exception(
                "extcompilers.handler.error",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            respond(exc)


def wrap(
    handler: DispatchHandler,
    result_adapter: ResultAdapter | None = None,
    body_reader: BodyReader = read_json_body,
    bodyless_methods: Iterable[str] = DEFAULT_BODYLESS_METHODS,
) -> RequestHandler:
    """Wrap a dispatch handler into a request handler writing exactly once."""
    return RequestHandler(
        handler,
        result_adapter=result_adapter,
        body_reader=body_reader,
        bodyless_methods=bodyless_methods,
    )
