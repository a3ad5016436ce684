"""client-credentials-exchange: customise tokens issued for the client credentials grant.

User function::

    def extension(client, scope, audience, context, callback): ...

``scope`` is ``UNDEFINED`` when the request carried none.
"""

from extcompilers.points.base import ExtensibilityPoint, PointType
from extcompilers.validation.shapes import ARRAY, OBJECT, STRING, ArgumentSchema, optional, required

SCHEMA = ArgumentSchema(
    required("client", OBJECT),
    optional("scope", ARRAY),
    required("audience", STRING),
)

POINT = ExtensibilityPoint(PointType.CLIENT_CREDENTIALS_EXCHANGE.value, SCHEMA)
