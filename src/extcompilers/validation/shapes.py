"""Shape engine for extensibility point payloads.

Each extensibility point declares the shape of its request body with the
building blocks below; the engine walks the body and raises a
``ValidationError`` for the first field that does not match. Type checks
are strict: a string field must be a ``str`` (not merely stringifiable) and
an object field must be a ``dict`` (not a list, not ``None``).

Error messages follow a fixed template built from the dotted path of the
offending field::

    Body.context.client.client_id received by extensibility point is not a string

Example:
    >>> schema = ArgumentSchema(required("recipient", STRING), required("text", STRING))
    >>> schema.argument_names
    ('recipient', 'text', 'context')
    >>> schema({"recipient": "555", "text": "hi"})
    ('555', 'hi', {})
    >>> schema({"text": "hi"})
    Traceback (most recent call last):
        ...
    extcompilers.errors.ValidationError: Body.recipient received by extensibility point is not a string
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from extcompilers.constants import BODY_PATH
from extcompilers.errors import ValidationError
from extcompilers.types import UNDEFINED


class Shape:
    """Expected shape of a single JSON value."""

    description: str = "a value"

    def matches(self, value: Any) -> bool:
        raise NotImplementedError

    def check(self, value: Any, path: str) -> None:
        """Raise ValidationError naming ``path`` if ``value`` does not match."""
        if not self.matches(value):
            raise ValidationError(path, self.description)


class TypeShape(Shape):
    """Shape satisfied by instances of one exact JSON container or scalar type."""

    def __init__(self, python_type: type, description: str) -> None:
        self.python_type = python_type
        self.description = description

    def matches(self, value: Any) -> bool:
        return isinstance(value, self.python_type)

    def __repr__(self) -> str:
        return f"TypeShape({self.python_type.__name__})"


class OneOf(Shape):
    """Closed set of string literals (e.g. ``sms`` / ``voice``)."""

    def __init__(self, *literals: str) -> None:
        if not literals:
            raise ValueError("OneOf requires at least one literal")
        self.literals = literals
        self.description = " or ".join(f"`{literal}`" for literal in literals)

    def matches(self, value: Any) -> bool:
        return isinstance(value, str) and value in self.literals

    def __repr__(self) -> str:
        return f"OneOf{self.literals!r}"


@dataclass(frozen=True)
class Field:
    """Named member of an object shape."""

    name: str
    shape: Shape
    required: bool = True


def required(name: str, shape: Shape) -> Field:
    return Field(name, shape, required=True)


def optional(name: str, shape: Shape) -> Field:
    return Field(name, shape, required=False)


class ObjectShape(Shape):
    """A dict whose listed fields are checked in declaration order.

    Nested fields are only looked at once the object itself has matched.
    Keys that are not declared are left alone.
    """

    description = "an object"

    def __init__(self, *fields: Field) -> None:
        self.fields = fields

    def matches(self, value: Any) -> bool:
        return isinstance(value, dict)

    def check(self, value: Any, path: str) -> None:
        super().check(value, path)
        for field in self.fields:
            field_path = f"{path}.{field.name}"
            if field.name not in value:
                if field.required:
                    raise ValidationError(field_path, field.shape.description)
                continue
            field.shape.check(value[field.name], field_path)

    def __repr__(self) -> str:
        return f"ObjectShape({', '.join(field.name for field in self.fields)})"


STRING = TypeShape(str, "a string")
ARRAY = TypeShape(list, "an array")
OBJECT = ObjectShape()


class ArgumentSchema:
    """Turns a request body into the positional arguments of a user function.

    The body must be an object holding the declared fields plus an optional
    ``context`` object. The result is the declared field values in order,
    followed by the context dict (``{}`` when absent). Absent optional
    fields are passed as ``UNDEFINED``. Values are handed over as-is, so the
    user function sees (and may mutate) the very objects of the body.
    """

    def __init__(self, *fields: Field, context: ObjectShape = OBJECT) -> None:
        self.fields = fields
        self.context = context
        self._body_shape = ObjectShape(*fields, optional("context", context))

    @property
    def argument_names(self) -> tuple[str, ...]:
        return (*(field.name for field in self.fields), "context")

    def __call__(self, body: Any) -> tuple[Any, ...]:
        self._body_shape.check(body, BODY_PATH)
        values = tuple(body.get(field.name, UNDEFINED) for field in self.fields)
        context = body.get("context", UNDEFINED)
        if context is UNDEFINED:
            context = {}
        return (*values, context)
