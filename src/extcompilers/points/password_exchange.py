"""password-exchange: customise tokens issued for the resource owner password grant.

User function::

    def extension(user, client, scope, audience, context, callback): ...
"""

from extcompilers.points.base import ExtensibilityPoint, PointType
from extcompilers.validation.shapes import ARRAY, OBJECT, STRING, ArgumentSchema, optional, required

SCHEMA = ArgumentSchema(
    required("user", OBJECT),
    required("client", OBJECT),
    optional("scope", ARRAY),
    required("audience", STRING),
)

POINT = ExtensibilityPoint(PointType.PASSWORD_EXCHANGE.value, SCHEMA)
