"""Compilers for callback-style extensibility points.

Binds user-authored functions of the form
``extension(*arguments, context, callback)`` to a host request: the body is
validated against the point's schema, the function is called with the
resulting positional arguments, and its callback outcome is written back as a
single JSON envelope.

Example:
    >>> from extcompilers import compile_extension, MemoryTransport, RequestContext
    >>> def extension(recipient, text, context, callback):
    ...     callback(None, {"delivered_to": recipient})
    >>> handler = compile_extension("send-phone-message", extension)
    >>> transport = MemoryTransport(body=b'{...}')
    >>> await handler(RequestContext.from_transport(transport))
    >>> transport.envelope["status"]
    'success'
"""

__version__ = "1.0.0"

from extcompilers.adapter import Completion, RequestHandler, Responder, wrap
from extcompilers.envelope import (
    ErrorEnvelope,
    SuccessEnvelope,
    build_error_envelope,
    build_success_envelope,
    first_result,
    named_results,
)
from extcompilers.errors import (
    AuthenticationError,
    BodyParseError,
    ExtensibilityError,
    ExtensibilityUserError,
    InvalidRequestError,
    InvalidScopeError,
    SendPhoneMessageError,
    SerializationError,
    ServerError,
    UnknownExtensibilityPointError,
    ValidationError,
)
from extcompilers.points import BUILTIN_POINTS, ExtensibilityPoint, PointType
from extcompilers.registry import (
    CompiledHandler,
    CompilerRegistry,
    compile_extension,
    create_default_registry,
    get_default_registry,
)
from extcompilers.transport import MemoryTransport, RequestContext, Transport
from extcompilers.types import UNDEFINED

__all__ = [
    "AuthenticationError",
    "BUILTIN_POINTS",
    "BodyParseError",
    "CompiledHandler",
    "CompilerRegistry",
    "Completion",
    "ErrorEnvelope",
    "ExtensibilityError",
    "ExtensibilityPoint",
    "ExtensibilityUserError",
    "InvalidRequestError",
    "InvalidScopeError",
    "MemoryTransport",
    "PointType",
    "RequestContext",
    "RequestHandler",
    "Responder",
    "SendPhoneMessageError",
    "SerializationError",
    "ServerError",
    "SuccessEnvelope",
    "Transport",
    "UNDEFINED",
    "UnknownExtensibilityPointError",
    "ValidationError",
    "__version__",
    "build_error_envelope",
    "build_success_envelope",
    "compile_extension",
    "create_default_registry",
    "first_result",
    "get_default_registry",
    "named_results",
    "wrap",
]
