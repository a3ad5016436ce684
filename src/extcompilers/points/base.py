"""Extensibility point definitions.

An extensibility point pairs a type name with the schema that turns a
request body into positional arguments and the adapter that turns callback
results into the envelope ``data``. Points are immutable and registered once
at startup.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from extcompilers.envelope import first_result
from extcompilers.types import ResultAdapter
from extcompilers.validation.shapes import ArgumentSchema


class PointType(str, Enum):
    """Built-in extensibility point types."""

    CLIENT_CREDENTIALS_EXCHANGE = "client-credentials-exchange"
    PASSWORD_EXCHANGE = "password-exchange"
    PRE_USER_REGISTRATION = "pre-user-registration"
    POST_USER_REGISTRATION = "post-user-registration"
    POST_CHANGE_PASSWORD = "post-change-password"
    SEND_PHONE_MESSAGE = "send-phone-message"


@dataclass(frozen=True)
class ExtensibilityPoint:
    """One extensibility point type.

    Attributes:
        name: Type identifier (e.g. ``send-phone-message``)
        schema: Body schema producing the argument tuple (context last)
        result_adapter: Maps callback results to the envelope ``data``
        authenticated: Whether the bearer gate guards this point

    Example:
        >>> from extcompilers.points import SEND_PHONE_MESSAGE
        >>> SEND_PHONE_MESSAGE.argument_names
        ('recipient', 'text', 'context')
        >>> SEND_PHONE_MESSAGE.arity
        3
    """

    name: str
    schema: ArgumentSchema
    result_adapter: ResultAdapter = first_result
    authenticated: bool = True

    @property
    def argument_names(self) -> tuple[str, ...]:
        return self.schema.argument_names

    @property
    def arity(self) -> int:
        """Positional values handed to the user function before its callback."""
        return len(self.argument_names)
