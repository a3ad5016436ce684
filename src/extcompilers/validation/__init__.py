"""Payload validation for extensibility points."""

from extcompilers.validation.shapes import (
    ARRAY,
    OBJECT,
    STRING,
    ArgumentSchema,
    Field,
    ObjectShape,
    OneOf,
    Shape,
    TypeShape,
    optional,
    required,
)

__all__ = [
    "ARRAY",
    "OBJECT",
    "STRING",
    "ArgumentSchema",
    "Field",
    "ObjectShape",
    "OneOf",
    "Shape",
    "TypeShape",
    "optional",
    "required",
]
