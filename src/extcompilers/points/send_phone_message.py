"""send-phone-message: deliver an out-of-band verification message.

User function::

    def extension(recipient, text, context, callback): ...

The context describes the message being sent and is checked field by field
in declaration order, so the first offending field is the one reported.
"""

from extcompilers.points.base import ExtensibilityPoint, PointType
from extcompilers.validation.shapes import (
    OBJECT,
    STRING,
    ArgumentSchema,
    ObjectShape,
    OneOf,
    optional,
    required,
)

MESSAGE_TYPES = ("sms", "voice")
ACTIONS = ("enrollment", "second-factor-authentication")

CLIENT = ObjectShape(
    required("client_id", STRING),
    required("name", STRING),
    optional("client_metadata", OBJECT),
)

CONTEXT = ObjectShape(
    required("message_type", OneOf(*MESSAGE_TYPES)),
    required("action", OneOf(*ACTIONS)),
    required("language", STRING),
    required("code", STRING),
    required("ip", STRING),
    required("user_agent", STRING),
    optional("client", CLIENT),
    required("user", OBJECT),
)

SCHEMA = ArgumentSchema(
    required("recipient", STRING),
    required("text", STRING),
    context=CONTEXT,
)

POINT = ExtensibilityPoint(PointType.SEND_PHONE_MESSAGE.value, SCHEMA)
