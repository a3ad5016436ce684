"""Wire envelopes for extensibility point responses.

Every request produces exactly one envelope, written with HTTP status 200
and a JSON content type; the envelope's own ``status`` field tells success
from error::

    {"statusCode":200,"headers":{"Content-Type":"application/json"},"status":"success","data":...}
    {"status":"error","data":{"message":"...", ...}}

Both builders encode in a single ``json.dumps`` pass. When that pass fails
the response degrades to a generic error envelope whose payload is a plain
message and therefore always encodable.

Example:
    >>> response = encode_success_response(({"ok": True},))
    >>> response.body
    '{"statusCode":200,"headers":{"Content-Type":"application/json"},"status":"success","data":{"ok":true}}'
    >>> encode_error_response(ValueError("boom")).body
    '{"status":"error","data":{"message":"boom"}}'
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from extcompilers.constants import (
    ENVELOPE_HTTP_STATUS,
    ERROR_SERIALIZATION_PREFIX,
    JSON_CONTENT_TYPE,
    RESULT_SERIALIZATION_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
)
from extcompilers.errors import ExtensibilityError, SerializationError
from extcompilers.observability import get_logger, is_debug_mode
from extcompilers.types import UNDEFINED, ResultAdapter

logger = get_logger(__name__)

# Failures json.dumps raises for values it cannot represent
ENCODE_ERRORS = (TypeError, ValueError, RecursionError)


def _json_headers() -> dict[str, str]:
    return {"Content-Type": JSON_CONTENT_TYPE}


class SuccessEnvelope(BaseModel):
    """Envelope for a successful completion.

    ``data`` holds the result adapter output untouched; it may be any value,
    including ``UNDEFINED`` (omitted on the wire).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status_code: int = Field(default=ENVELOPE_HTTP_STATUS, alias="statusCode")
    headers: dict[str, str] = Field(default_factory=_json_headers)
    status: Literal["success"] = "success"
    data: Any = UNDEFINED

    def to_wire(self) -> dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "status": self.status,
            "data": self.data,
        }


class ErrorEnvelope(BaseModel):
    """Envelope for any failure: validation, authentication or user error."""

    model_config = ConfigDict(frozen=True)

    status: Literal["error"] = "error"
    data: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        return {"status": self.status, "data": self.data}


class EncodedResponse(NamedTuple):
    """Arguments of the transport's single write: status, headers, JSON text."""

    status_code: int
    headers: dict[str, str]
    body: str


def _without_undefined(value: Any, active: set[int]) -> Any:
    # Containers on the current path, to fail on cycles like json.dumps does
    if isinstance(value, dict):
        marker = id(value)
        if marker in active:
            raise ValueError("Circular reference detected")
        active.add(marker)
        try:
            return {
                key: _without_undefined(item, active)
                for key, item in value.items()
                if item is not UNDEFINED
            }
        finally:
            active.discard(marker)
    if isinstance(value, (list, tuple)):
        marker = id(value)
        if marker in active:
            raise ValueError("Circular reference detected")
        active.add(marker)
        try:
            return [None if item is UNDEFINED else _without_undefined(item, active) for item in value]
        finally:
            active.discard(marker)
    return value


def encode_json(value: Any) -> str:
    """Encode ``value`` as compact JSON.

    ``UNDEFINED`` members of objects are dropped and ``UNDEFINED`` list items
    become ``null``. NaN and infinities are rejected.

    Raises:
        TypeError: For values JSON cannot represent
        ValueError: For circular references and out-of-range floats
    """
    return json.dumps(
        _without_undefined(value, set()),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def _message_of(value: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get("message")
    return getattr(value, "message", None)


def error_data(error: Any) -> dict[str, Any]:
    """Collect the envelope ``data`` for any value passed as an error.

    ExtensibilityError subclasses contribute their declared fields. Other
    exceptions contribute their message followed by their public instance
    attributes, so fields set by custom exception classes reach the caller.
    Anything else is first wrapped into a generic error from its
    ``message``, its string form, or a fixed fallback.
    """
    if isinstance(error, ExtensibilityError):
        return error.to_dict()
    if isinstance(error, BaseException):
        data: dict[str, Any] = {"message": str(error)}
        data.update((key, value) for key, value in vars(error).items() if not key.startswith("_"))
        return data
    message = _message_of(error)
    text = str(message) if message else str(error)
    return ExtensibilityError(text or UNKNOWN_ERROR_MESSAGE).to_dict()


def build_error_envelope(error: Any) -> ErrorEnvelope:
    return ErrorEnvelope(data=error_data(error))


def encode_error_response(error: Any) -> EncodedResponse:
    """Build and encode the error envelope for ``error``.

    If encoding fails, a generic envelope carrying
    ``"Error serializing error: <encoder message>"`` is encoded instead.
    """
    try:
        body = encode_json(build_error_envelope(error).to_wire())
    except ENCODE_ERRORS as exc:
        logger.warning(
            "extcompilers.serialization.failed",
            stage="error",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return encode_error_response(SerializationError(f"{ERROR_SERIALIZATION_PREFIX}{exc}"))
    return EncodedResponse(ENVELOPE_HTTP_STATUS, _json_headers(), body)


def first_result(*results: Any) -> Any:
    """Default result adapter: the first positional result, if any."""
    return results[0] if results else UNDEFINED


def named_results(*names: str) -> ResultAdapter:
    """Build a result adapter mapping positional results to named keys.

    Example:
        >>> adapter = named_results("user", "context")
        >>> adapter({"id": 1}, {"k": "v"})
        {'user': {'id': 1}, 'context': {'k': 'v'}}
        >>> adapter({"id": 1})
        {'user': {'id': 1}, 'context': UNDEFINED}
    """

    def adapter(*results: Any) -> dict[str, Any]:
        return {
            name: results[index] if index < len(results) else UNDEFINED
            for index, name in enumerate(names)
        }

    adapter.__name__ = f"named_results({', '.join(names)})"
    return adapter


def build_success_envelope(
    results: tuple[Any, ...], result_adapter: ResultAdapter | None = None
) -> SuccessEnvelope:
    adapter = result_adapter or first_result
    return SuccessEnvelope(data=adapter(*results))


def encode_success_response(
    results: tuple[Any, ...], result_adapter: ResultAdapter | None = None
) -> EncodedResponse:
    """Build and encode the success envelope for the callback results.

    A result adapter that raises is reported as that error. An envelope that
    cannot be encoded is replaced by a generic serialization error.
    """
    try:
        envelope = build_success_envelope(results, result_adapter)
    except Exception as exc:
        logger.warning(
            "extcompilers.result_adapter.failed",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return encode_error_response(exc)

    try:
        body = encode_json(envelope.to_wire())
    except ENCODE_ERRORS as exc:
        logger.warning(
            "extcompilers.serialization.failed",
            stage="result",
            error=str(exc),
            error_type=type(exc).__name__,
            data=repr(envelope.data) if is_debug_mode() else None,
        )
        return encode_error_response(SerializationError(RESULT_SERIALIZATION_MESSAGE))
    return EncodedResponse(envelope.status_code, dict(envelope.headers), body)
