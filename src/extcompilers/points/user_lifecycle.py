"""User lifecycle points: pre/post user registration and post change password.

All three hand the user record and the context to the extension::

    def extension(user, context, callback): ...
"""

from extcompilers.points.base import ExtensibilityPoint, PointType
from extcompilers.validation.shapes import OBJECT, ArgumentSchema, required

SCHEMA = ArgumentSchema(required("user", OBJECT))

PRE_USER_REGISTRATION = ExtensibilityPoint(PointType.PRE_USER_REGISTRATION.value, SCHEMA)
POST_USER_REGISTRATION = ExtensibilityPoint(PointType.POST_USER_REGISTRATION.value, SCHEMA)
POST_CHANGE_PASSWORD = ExtensibilityPoint(PointType.POST_CHANGE_PASSWORD.value, SCHEMA)
