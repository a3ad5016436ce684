"""Compiler registry for extensibility points.

This module binds user functions to extensibility point types. Compiling a
function for a type yields a ``RequestHandler`` that, per request:

1. reads the body when the host has not parsed it (see ``adapter.wrap``),
2. runs the bearer gate and the point's body schema,
3. calls the user function with the argument tuple and a one-shot callback,
4. writes the success or error envelope exactly once.

Thread Safety:
    Registration and lookup are guarded by an internal RLock. Compiled
    handlers keep no state across requests.

Example:
    >>> registry = create_default_registry()
    >>> def extension(recipient, text, context, callback):
    ...     callback(None, {"sent": True})
    >>> handler = registry.compile("send-phone-message", extension)
    >>> handler.arity
    3
"""

from __future__ import annotations

import inspect
from collections.abc import Iterable, Mapping
from enum import Enum
from threading import RLock
from typing import Any

from extcompilers.adapter import RequestHandler, invoke_user_function, wrap
from extcompilers.auth import authenticate
from extcompilers.constants import DEFAULT_BODYLESS_METHODS, INVOCATION_METADATA_KEY
from extcompilers.errors import AuthenticationError, UnknownExtensibilityPointError, ValidationError
from extcompilers.observability import get_logger
from extcompilers.points import BUILTIN_POINTS, ExtensibilityPoint
from extcompilers.transport.base import BodyReader, RequestContext, read_json_body
from extcompilers.types import Callback, UserFunction

logger = get_logger(__name__)

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def _point_key(point_type: str | Enum) -> str:
    return str(point_type.value) if isinstance(point_type, Enum) else point_type


def validate_user_function(user_function: UserFunction, point: ExtensibilityPoint) -> None:
    """Check that a user function accepts the point's arguments plus a callback.

    Raises:
        TypeError: If the function is not callable, cannot be inspected, or
            cannot be called with ``point.arity + 1`` positional arguments.
            A ``*args`` parameter always qualifies.

    Example:
        >>> from extcompilers.points import SEND_PHONE_MESSAGE
        >>> def bad(recipient, callback): ...
        >>> validate_user_function(bad, SEND_PHONE_MESSAGE)
        Traceback (most recent call last):
            ...
        TypeError: User function for send-phone-message must accept (recipient, text, context, callback); got 2 positional parameters
    """
    if not callable(user_function):
        raise TypeError("User function must be callable")
    try:
        sig = inspect.signature(user_function)
    except (ValueError, TypeError):
        raise TypeError("User function signature could not be inspected") from None

    params = list(sig.parameters.values())
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return
    positional = [p for p in params if p.kind in _POSITIONAL_KINDS]
    required_positional = [p for p in positional if p.default is inspect.Parameter.empty]
    required_keyword = [
        p
        for p in params
        if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty
    ]
    expected = point.arity + 1
    if required_keyword or not len(required_positional) <= expected <= len(positional):
        signature = ", ".join((*point.argument_names, "callback"))
        raise TypeError(
            f"User function for {point.name} must accept ({signature}); "
            f"got {len(positional)} positional parameters"
        )


def invocation_metadata(
    point: ExtensibilityPoint, context: RequestContext, secrets: Mapping[str, str]
) -> dict[str, Any]:
    """Describe the current invocation for the user function's context object."""
    return {
        "point": point.name,
        "method": context.method,
        "headers": dict(context.headers),
        "secrets": dict(secrets),
    }


class CompiledHandler:
    """A user function specialised for one extensibility point.

    Called as ``await handler(context, respond)``. Authentication and
    validation failures are passed to ``respond`` without calling the user
    function; otherwise ``respond`` receives the user function's outcome.

    Attributes:
        point: The extensibility point this handler serves
        user_function: The extension author's function
        arity: Positional values the user function receives before its callback
    """

    def __init__(
        self,
        point: ExtensibilityPoint,
        user_function: UserFunction,
        secrets: Mapping[str, str] | None = None,
    ) -> None:
        validate_user_function(user_function, point)
        self.point = point
        self.user_function = user_function
        self._secrets = dict(secrets or {})

    @property
    def arity(self) -> int:
        return self.point.arity

    async def __call__(self, context: RequestContext, respond: Callback) -> None:
        log = logger.bind(point=self.point.name, method=context.method)
        secrets = {**self._secrets, **context.secrets}

        try:
            if self.point.authenticated:
                authenticate(context.headers, secrets)
            args = self.point.schema(context.body)
        except AuthenticationError as exc:
            log.info("extcompilers.auth.failed", error_code=exc.code)
            respond(exc)
            return
        except ValidationError as exc:
            log.info("extcompilers.validation.failed", path=exc.path, error_code=exc.code)
            respond(exc)
            return

        args[-1][INVOCATION_METADATA_KEY] = invocation_metadata(self.point, context, secrets)
        log.debug(
            "extcompilers.user_function.invoked",
            arity=self.arity,
            webtask=args[-1][INVOCATION_METADATA_KEY],
        )

        outcome = await invoke_user_function(self.user_function, args)
        log.debug(
            "extcompilers.user_function.completed",
            failed=bool(outcome.error),
            result_count=len(outcome.results),
        )
        respond(outcome.error, *outcome.results)


class CompilerRegistry:
    """Registry mapping extensibility point types to their definitions.

    Example:
        >>> from extcompilers.points import SEND_PHONE_MESSAGE
        >>> registry = CompilerRegistry()
        >>> registry.register(SEND_PHONE_MESSAGE)
        >>> registry.has_point("send-phone-message")
        True
    """

    def __init__(self, points: Iterable[ExtensibilityPoint] = ()) -> None:
        self._points: dict[str, ExtensibilityPoint] = {}
        self._lock = RLock()
        for point in points:
            self.register(point)

    def register(self, point: ExtensibilityPoint) -> None:
        with self._lock:
            is_override = point.name in self._points
            self._points[point.name] = point
            logger.debug(
                "extcompilers.point.registered",
                point=point.name,
                arguments=list(point.argument_names),
                is_override=is_override,
            )

    def has_point(self, point_type: str | Enum) -> bool:
        with self._lock:
            return _point_key(point_type) in self._points

    def get(self, point_type: str | Enum) -> ExtensibilityPoint:
        """Return the point registered under ``point_type``.

        Raises:
            UnknownExtensibilityPointError: If nothing is registered under it
        """
        key = _point_key(point_type)
        with self._lock:
            point = self._points.get(key)
        if point is None:
            logger.warning("extcompilers.point.not_found", point=key)
            raise UnknownExtensibilityPointError(key)
        return point

    def list_points(self) -> list[str]:
        with self._lock:
            return list(self._points.keys())

    def compile(
        self,
        point_type: str | Enum,
        user_function: UserFunction,
        secrets: Mapping[str, str] | None = None,
        body_reader: BodyReader = read_json_body,
        bodyless_methods: Iterable[str] = DEFAULT_BODYLESS_METHODS,
    ) -> RequestHandler:
        """Compile ``user_function`` into a request handler for ``point_type``.

        Args:
            point_type: Registered extensibility point type
            user_function: Extension taking the point's arguments and a callback
            secrets: Secrets known at construction time; per-request secrets
                on the RequestContext take precedence
            body_reader: Reads the body when the host has not parsed it
            bodyless_methods: Methods that skip body acquisition

        Raises:
            UnknownExtensibilityPointError: If the type is not registered
            TypeError: If the user function's signature does not fit
        """
        point = self.get(point_type)
        handler = CompiledHandler(point, user_function, secrets=secrets)
        return wrap(
            handler,
            result_adapter=point.result_adapter,
            body_reader=body_reader,
            bodyless_methods=bodyless_methods,
        )


def create_default_registry() -> CompilerRegistry:
    """Create a registry holding every built-in extensibility point."""
    return CompilerRegistry(BUILTIN_POINTS)


_default_registry: CompilerRegistry | None = None


def get_default_registry() -> CompilerRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = create_default_registry()
    return _default_registry


def compile_extension(
    point_type: str | Enum, user_function: UserFunction, **kwargs: Any
) -> RequestHandler:
    """Compile against the default registry. See ``CompilerRegistry.compile``."""
    return get_default_registry().compile(point_type, user_function, **kwargs)
