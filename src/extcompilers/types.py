"""Shared types for extensibility compilers.

This module defines the ``UNDEFINED`` sentinel used for absent optional
fields and the callable aliases that describe user functions, completion
callbacks and result adapters.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol


class _Undefined:
    """Marker for a value that was not supplied at all.

    Distinct from ``None``, which is a JSON ``null`` the caller sent on
    purpose. Falsy, and dropped from objects by the envelope encoder.
    """

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __copy__(self) -> _Undefined:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Undefined:
        return self


UNDEFINED: Any = _Undefined()


class Callback(Protocol):
    """Completion callback handed to user functions: ``(error, *results)``."""

    def __call__(self, error: Any = None, *results: Any) -> None: ...


# User-authored extension function: positional arguments, then the callback
UserFunction = Callable[..., Any]

# Maps the non-error callback results to the envelope ``data`` value
ResultAdapter = Callable[..., Any]
