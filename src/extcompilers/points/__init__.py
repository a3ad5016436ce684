"""Built-in extensibility points."""

from extcompilers.points.base import ExtensibilityPoint, PointType
from extcompilers.points.client_credentials_exchange import POINT as CLIENT_CREDENTIALS_EXCHANGE
from extcompilers.points.password_exchange import POINT as PASSWORD_EXCHANGE
from extcompilers.points.send_phone_message import POINT as SEND_PHONE_MESSAGE
from extcompilers.points.user_lifecycle import (
    POST_CHANGE_PASSWORD,
    POST_USER_REGISTRATION,
    PRE_USER_REGISTRATION,
)

BUILTIN_POINTS: tuple[ExtensibilityPoint, ...] = (
    CLIENT_CREDENTIALS_EXCHANGE,
    PASSWORD_EXCHANGE,
    PRE_USER_REGISTRATION,
    POST_USER_REGISTRATION,
    POST_CHANGE_PASSWORD,
    SEND_PHONE_MESSAGE,
)

__all__ = [
    "BUILTIN_POINTS",
    "CLIENT_CREDENTIALS_EXCHANGE",
    "ExtensibilityPoint",
    "PASSWORD_EXCHANGE",
    "POST_CHANGE_PASSWORD",
    "POST_USER_REGISTRATION",
    "PRE_USER_REGISTRATION",
    "PointType",
    "SEND_PHONE_MESSAGE",
]
