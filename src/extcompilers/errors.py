"""Extensibility Error Taxonomy.

This module defines the error hierarchy used by the compilers. Every error
kind declares the closed set of fields that reach the caller in the error
envelope, so custom subtypes round-trip their extra data deterministically.

Two families live here:

- Adapter errors (``ValidationError``, ``AuthenticationError``,
  ``BodyParseError``, ``SerializationError``) raised by the compilers
  themselves and funneled into the error envelope.
- Author-facing errors (``ExtensibilityUserError`` and subclasses) that
  extension code passes to its completion callback.
"""

from __future__ import annotations

from typing import Any, ClassVar

from extcompilers.types import UNDEFINED


class ExtensibilityError(Exception):
    """Base exception for all extensibility adapter errors.

    Attributes:
        code: Error code following the extcompilers:area/reason pattern
        message: Human-readable error message

    Class Attributes:
        envelope_fields: Mapping of wire key to attribute name for the
            extra fields copied into the error envelope next to ``message``.
    """

    envelope_fields: ClassVar[dict[str, str]] = {}
    default_code: ClassVar[str] = "extcompilers:error/generic"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{message, <declared fields>}`` dict.

        A declared field set to None is kept (null on the wire); one that is
        missing or ``UNDEFINED`` is left out.
        """
        data: dict[str, Any] = {"message": self.message}
        for wire_key, attribute in self.envelope_fields.items():
            value = getattr(self, attribute, UNDEFINED)
            if value is not UNDEFINED:
                data[wire_key] = value
        return data


class ValidationError(ExtensibilityError):
    """Raised when a request body does not match an extensibility point schema.

    Attributes:
        path: Dotted path of the offending field (e.g. ``Body.context.ip``)
        expected: Description of the expected shape (e.g. ``a string``)
    """

    default_code = "extcompilers:validation/invalid_body"

    def __init__(self, path: str, expected: str) -> None:
        super().__init__(f"{path} received by extensibility point is not {expected}")
        self.path = path
        self.expected = expected


class AuthenticationError(ExtensibilityError):
    """Raised when the bearer credential is missing or does not match the secret."""

    default_code = "extcompilers:auth/unauthorized"

    def __init__(self, message: str = "Unauthorized extensibility point") -> None:
        super().__init__(message)


class BodyParseError(ExtensibilityError):
    """Raised when the raw request body cannot be read or decoded as JSON.

    Attributes:
        reason: Decoder failure description (kept out of the envelope)
    """

    default_code = "extcompilers:transport/invalid_body"

    def __init__(self, reason: str) -> None:
        super().__init__("Invalid request payload JSON format")
        self.reason = reason


class SerializationError(ExtensibilityError):
    """Generic error emitted when an envelope cannot be JSON encoded."""

    default_code = "extcompilers:envelope/serialization_failed"


class UnknownExtensibilityPointError(ExtensibilityError):
    """Raised when no compiler is registered for an extensibility point type.

    Attributes:
        point_type: The requested extensibility point type
    """

    default_code = "extcompilers:registry/unknown_point"

    def __init__(self, point_type: str) -> None:
        super().__init__(f"No compiler registered for extensibility point: {point_type}")
        self.point_type = point_type


class ExtensibilityUserError(ExtensibilityError):
    """Base class for errors raised by extension authors.

    The ``name`` field carries the concrete class name; it is the main piece
    of data consumers use to tell which error the extension produced.

    Example:
        >>> error = InvalidScopeError("bad scope")
        >>> error.to_dict()
        {'message': 'bad scope', 'name': 'InvalidScopeError'}
    """

    envelope_fields = {"name": "name"}
    default_code = "extcompilers:user/error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.name = type(self).__name__


class InvalidRequestError(ExtensibilityUserError):
    """The token request is malformed."""


class InvalidScopeError(ExtensibilityUserError):
    """The requested scope is invalid, unknown or exceeds what was granted."""


class ServerError(ExtensibilityUserError):
    """The extension hit an unexpected condition while serving the request."""


class SendPhoneMessageError(ExtensibilityUserError):
    """Raised by send-phone-message extensions when delivery fails.

    Attributes:
        friendly_message: Message safe to show to the end user
    """

    envelope_fields = {**ExtensibilityUserError.envelope_fields, "friendlyMessage": "friendly_message"}

    def __init__(self, message: str, friendly_message: str | None = None) -> None:
        super().__init__(message)
        self.friendly_message = friendly_message
