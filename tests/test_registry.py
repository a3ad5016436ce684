"""Tests for the compiler registry and compiled handlers."""

from __future__ import annotations

from typing import Any

import pytest

from extcompilers.envelope import named_results
from extcompilers.errors import UnknownExtensibilityPointError
from extcompilers.points import BUILTIN_POINTS, SEND_PHONE_MESSAGE, ExtensibilityPoint, PointType
from extcompilers.registry import (
    CompilerRegistry,
    compile_extension,
    create_default_registry,
    get_default_registry,
    validate_user_function,
)
from extcompilers.testing import simulate
from extcompilers.validation import OBJECT, ArgumentSchema, required


class TestRegistry:
    """Registration and lookup of extensibility points."""

    def test_default_registry_has_builtin_points(self) -> None:
        registry = create_default_registry()

        assert registry.list_points() == [point.name for point in BUILTIN_POINTS]
        assert set(registry.list_points()) == {member.value for member in PointType}

    def test_get_accepts_enum_members(self) -> None:
        registry = create_default_registry()

        assert registry.get(PointType.SEND_PHONE_MESSAGE) is SEND_PHONE_MESSAGE
        assert registry.has_point(PointType.CLIENT_CREDENTIALS_EXCHANGE)

    def test_unknown_point(self) -> None:
        registry = CompilerRegistry()

        assert not registry.has_point("no-such-point")
        with pytest.raises(UnknownExtensibilityPointError) as exc_info:
            registry.compile("no-such-point", lambda *args: None)
        assert exc_info.value.point_type == "no-such-point"

    def test_register_overrides(self) -> None:
        registry = create_default_registry()
        replacement = ExtensibilityPoint("send-phone-message", ArgumentSchema())

        registry.register(replacement)

        assert registry.get("send-phone-message") is replacement
        assert registry.list_points().count("send-phone-message") == 1

    def test_default_registry_is_shared(self) -> None:
        assert get_default_registry() is get_default_registry()

    @pytest.mark.parametrize(
        ("point", "arity"),
        [
            ("client-credentials-exchange", 4),
            ("password-exchange", 5),
            ("pre-user-registration", 2),
            ("post-user-registration", 2),
            ("post-change-password", 2),
            ("send-phone-message", 3),
        ],
    )
    def test_arity(self, point: str, arity: int) -> None:
        def extension(*args: Any) -> None:
            args[-1]()

        assert compile_extension(point, extension).arity == arity


class TestValidateUserFunction:
    """Signature checks at compile time."""

    def test_exact_signature(self) -> None:
        def extension(recipient: Any, text: Any, context: Any, callback: Any) -> None: ...

        validate_user_function(extension, SEND_PHONE_MESSAGE)  # No raise

    def test_extra_defaulted_parameter_allowed(self) -> None:
        def extension(recipient: Any, text: Any, context: Any, callback: Any, extra: Any = None) -> None: ...

        validate_user_function(extension, SEND_PHONE_MESSAGE)  # No raise

    def test_var_positional_allowed(self) -> None:
        validate_user_function(lambda *args: None, SEND_PHONE_MESSAGE)  # No raise

    def test_too_few_parameters(self) -> None:
        def extension(recipient: Any, callback: Any) -> None: ...

        with pytest.raises(TypeError) as exc_info:
            validate_user_function(extension, SEND_PHONE_MESSAGE)
        assert str(exc_info.value) == (
            "User function for send-phone-message must accept "
            "(recipient, text, context, callback); got 2 positional parameters"
        )

    def test_too_many_required_parameters(self) -> None:
        def extension(a: Any, b: Any, c: Any, d: Any, e: Any) -> None: ...

        with pytest.raises(TypeError):
            validate_user_function(extension, SEND_PHONE_MESSAGE)

    def test_required_keyword_only_rejected(self) -> None:
        def extension(recipient: Any, text: Any, context: Any, callback: Any, *, flag: Any) -> None: ...

        with pytest.raises(TypeError):
            validate_user_function(extension, SEND_PHONE_MESSAGE)

    def test_not_callable(self) -> None:
        with pytest.raises(TypeError, match="callable"):
            validate_user_function("not a function", SEND_PHONE_MESSAGE)  # type: ignore[arg-type]

    def test_bound_method(self) -> None:
        class Extension:
            def handle(self, user: Any, context: Any, callback: Any) -> None:
                callback()

        point = create_default_registry().get("pre-user-registration")
        validate_user_function(Extension().handle, point)  # No raise


class TestCompiledHandler:
    """Per-request behavior of compiled handlers."""

    @pytest.mark.asyncio
    async def test_custom_point_with_named_results(self) -> None:
        registry = CompilerRegistry()
        registry.register(
            ExtensibilityPoint(
                "credentials-exchange-v2",
                ArgumentSchema(required("client", OBJECT)),
                result_adapter=named_results("accessToken", "context"),
                authenticated=False,
            )
        )

        def extension(client: Any, context: Any, callback: Any) -> None:
            del context["webtask"]
            callback(None, {"scope": ["read"]}, context)

        handler = registry.compile("credentials-exchange-v2", extension)
        transport = await simulate(handler, {"client": {}, "context": {"k": "v"}})

        assert transport.envelope["data"] == {
            "accessToken": {"scope": ["read"]},
            "context": {"k": "v"},
        }

    @pytest.mark.asyncio
    async def test_unauthenticated_point_ignores_secret(self) -> None:
        registry = CompilerRegistry(
            [ExtensibilityPoint("open", ArgumentSchema(), authenticated=False)]
        )

        def extension(context: Any, callback: Any) -> None:
            callback(None, "open")

        handler = registry.compile("open", extension, secrets={"auth0-extension-secret": "s"})
        transport = await simulate(handler, {})

        assert transport.envelope["data"] == "open"

    @pytest.mark.asyncio
    async def test_invocation_metadata(self, compiler_registry: Any) -> None:
        seen: dict[str, Any] = {}

        def extension(user: Any, context: Any, callback: Any) -> None:
            seen.update(context["webtask"])
            callback()

        handler = compiler_registry.compile(
            "post-change-password", extension, secrets={"api-key": "compiled", "region": "eu"}
        )
        await simulate(
            handler,
            {"user": {}},
            headers={"X-Request-Id": "r1"},
            secrets={"api-key": "request"},
        )

        assert seen == {
            "point": "post-change-password",
            "method": "POST",
            "headers": {"x-request-id": "r1"},
            "secrets": {"api-key": "request", "region": "eu"},
        }

    @pytest.mark.asyncio
    async def test_request_secret_overrides_compiled_secret(self, compiler_registry: Any) -> None:
        def extension(user: Any, context: Any, callback: Any) -> None:
            callback(None, "ok")

        handler = compiler_registry.compile(
            "pre-user-registration", extension, secrets={"auth0-extension-secret": "old"}
        )
        transport = await simulate(
            handler,
            {"user": {}},
            headers={"Authorization": "Bearer new"},
            secrets={"auth0-extension-secret": "new"},
        )

        assert transport.envelope["data"] == "ok"

    @pytest.mark.asyncio
    async def test_user_function_raises(self, compiler_registry: Any) -> None:
        def extension(user: Any, context: Any, callback: Any) -> None:
            raise KeyError("email")

        handler = compiler_registry.compile("post-user-registration", extension)
        transport = await simulate(handler, {"user": {}})

        assert len(transport.writes) == 1
        assert transport.envelope == {"status": "error", "data": {"message": "'email'"}}

    @pytest.mark.asyncio
    async def test_duplicate_callbacks_write_once(self, compiler_registry: Any) -> None:
        def extension(user: Any, context: Any, callback: Any) -> None:
            callback(None, "first")
            callback(None, "second")
            callback(RuntimeError("third"))

        handler = compiler_registry.compile("post-user-registration", extension)
        transport = await simulate(handler, {"user": {}})

        assert len(transport.writes) == 1
        assert transport.envelope["data"] == "first"
