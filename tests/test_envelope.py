"""Tests for envelope construction and encoding."""

from __future__ import annotations

import copy
import json
import math
from typing import Any

import pytest

from extcompilers.constants import RESULT_SERIALIZATION_MESSAGE
from extcompilers.envelope import (
    ErrorEnvelope,
    SuccessEnvelope,
    encode_error_response,
    encode_json,
    encode_success_response,
    error_data,
    first_result,
    named_results,
)
from extcompilers.errors import ExtensibilityUserError, ValidationError
from extcompilers.types import UNDEFINED


class SetFieldError(ExtensibilityUserError):
    """User error declaring a field JSON cannot represent."""

    envelope_fields = {**ExtensibilityUserError.envelope_fields, "tags": "tags"}

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.tags = {"a"}


class CodedError(Exception):
    """Plain exception carrying its own fields."""

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code
        self.retryable = False


class UnencodableFieldError(Exception):
    """Plain exception with a field JSON cannot represent."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.num = {9007199254740991}


class TestWireFormat:
    """Exact bytes of the two envelopes."""

    def test_success_envelope_bytes(self) -> None:
        response = encode_success_response(({"ok": True},))

        assert response.status_code == 200
        assert response.headers == {"Content-Type": "application/json"}
        assert response.body == (
            '{"statusCode":200,"headers":{"Content-Type":"application/json"},'
            '"status":"success","data":{"ok":true}}'
        )

    def test_error_envelope_bytes(self) -> None:
        response = encode_error_response(ValidationError("Body.text", "a string"))

        assert response.status_code == 200
        assert response.headers == {"Content-Type": "application/json"}
        assert response.body == (
            '{"status":"error","data":'
            '{"message":"Body.text received by extensibility point is not a string"}}'
        )

    def test_non_ascii_kept_verbatim(self) -> None:
        response = encode_success_response(("héllo ✓",))

        assert '"héllo ✓"' in response.body

    def test_envelope_models(self) -> None:
        assert SuccessEnvelope(data=[1]).to_wire() == {
            "statusCode": 200,
            "headers": {"Content-Type": "application/json"},
            "status": "success",
            "data": [1],
        }
        assert ErrorEnvelope(data={"message": "m"}).to_wire() == {
            "status": "error",
            "data": {"message": "m"},
        }


class TestUndefined:
    """Absent values on the wire."""

    def test_undefined_members_dropped(self) -> None:
        assert encode_json({"a": 1, "b": UNDEFINED}) == '{"a":1}'

    def test_undefined_list_items_become_null(self) -> None:
        assert encode_json([1, UNDEFINED]) == "[1,null]"

    def test_none_is_null(self) -> None:
        assert encode_json({"a": None}) == '{"a":null}'

    def test_undefined_data_omitted(self) -> None:
        body = json.loads(encode_success_response(()).body)

        assert "data" not in body
        assert body["status"] == "success"

    def test_undefined_is_falsy_singleton(self) -> None:
        assert not UNDEFINED
        assert copy.deepcopy(UNDEFINED) is UNDEFINED
        assert repr(UNDEFINED) == "UNDEFINED"


class TestSerializationFailures:
    """Degrading to a generic envelope when encoding fails."""

    def test_unencodable_error_field(self) -> None:
        response = encode_error_response(SetFieldError("boom"))

        assert json.loads(response.body) == {
            "status": "error",
            "data": {"message": "Error serializing error: Object of type set is not JSON serializable"},
        }

    def test_unencodable_foreign_exception_field(self) -> None:
        response = encode_error_response(UnencodableFieldError())

        assert response.status_code == 200
        assert json.loads(response.body) == {
            "status": "error",
            "data": {"message": "Error serializing error: Object of type set is not JSON serializable"},
        }

    @pytest.mark.parametrize("result", [object(), math.nan, {"x": math.inf}])
    def test_unencodable_result(self, result: Any) -> None:
        response = encode_success_response((result,))

        assert response.status_code == 200
        assert json.loads(response.body) == {
            "status": "error",
            "data": {"message": RESULT_SERIALIZATION_MESSAGE},
        }

    def test_circular_result(self) -> None:
        data: dict[str, Any] = {}
        data["self"] = data

        response = encode_success_response((data,))

        assert json.loads(response.body)["data"]["message"] == RESULT_SERIALIZATION_MESSAGE

    def test_shared_reference_is_not_circular(self) -> None:
        shared = {"k": "v"}

        assert encode_json({"a": shared, "b": shared}) == '{"a":{"k":"v"},"b":{"k":"v"}}'

    def test_circular_error_field(self) -> None:
        error = ExtensibilityUserError("loop")
        loop: list[Any] = []
        loop.append(loop)
        error.name = loop  # type: ignore[assignment]

        response = encode_error_response(error)

        assert json.loads(response.body)["data"]["message"] == (
            "Error serializing error: Circular reference detected"
        )

    def test_result_adapter_error_becomes_error_envelope(self) -> None:
        def adapter(*results: Any) -> Any:
            raise RuntimeError("adapter broke")

        response = encode_success_response(({"a": 1},), adapter)

        assert json.loads(response.body) == {"status": "error", "data": {"message": "adapter broke"}}


class TestErrorData:
    """What different error values contribute to the envelope."""

    def test_plain_exception_contributes_message(self) -> None:
        assert error_data(ValueError("bad value")) == {"message": "bad value"}

    def test_foreign_exception_attributes_are_copied(self) -> None:
        error = CodedError("denied", "E42")
        error._internal = "kept private"  # type: ignore[attr-defined]

        assert error_data(error) == {"message": "denied", "code": "E42", "retryable": False}

    def test_foreign_exception_attributes_on_the_wire(self) -> None:
        response = encode_error_response(CodedError("denied", "E42"))

        assert response.body == (
            '{"status":"error","data":{"message":"denied","code":"E42","retryable":false}}'
        )

    def test_string_error_is_wrapped(self) -> None:
        assert error_data("plain failure") == {"message": "plain failure"}

    def test_mapping_error_uses_message_key(self) -> None:
        assert error_data({"message": "from mapping", "code": 7}) == {"message": "from mapping"}

    def test_truthy_value_without_text(self) -> None:
        class Opaque:
            def __str__(self) -> str:
                return ""

        assert error_data(Opaque()) == {"message": "Unknown error"}


class TestResultAdapters:
    """Mapping callback results to envelope data."""

    def test_first_result(self) -> None:
        assert first_result() is UNDEFINED
        assert first_result("a", "b") == "a"

    def test_named_results(self) -> None:
        adapter = named_results("user", "context")

        assert adapter({"id": 1}, {"k": "v"}) == {"user": {"id": 1}, "context": {"k": "v"}}
        assert adapter({"id": 1}) == {"user": {"id": 1}, "context": UNDEFINED}
        assert adapter.__name__ == "named_results(user, context)"

    def test_named_results_missing_values_dropped_on_wire(self) -> None:
        response = encode_success_response(({"id": 1},), named_results("user", "context"))

        assert json.loads(response.body)["data"] == {"user": {"id": 1}}
