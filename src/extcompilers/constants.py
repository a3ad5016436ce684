"""Constants for extensibility compilers.

This module defines wire-level constants shared across the codebase.
"""

# Name of the secret that turns on bearer authentication for a point
EXTENSION_SECRET_KEY = "auth0-extension-secret"

# HTTP methods that carry no body by convention
DEFAULT_BODYLESS_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

# Transport status used for every envelope; the envelope's own ``status``
# field carries success vs error
ENVELOPE_HTTP_STATUS = 200

JSON_CONTENT_TYPE = "application/json"

# Root of the dotted paths reported by validation errors
BODY_PATH = "Body"

# Key under which invocation metadata is injected into the context object
INVOCATION_METADATA_KEY = "webtask"

UNKNOWN_ERROR_MESSAGE = "Unknown error"
ERROR_SERIALIZATION_PREFIX = "Error serializing error: "
RESULT_SERIALIZATION_MESSAGE = "Error when JSON serializing the result of the extension point"
