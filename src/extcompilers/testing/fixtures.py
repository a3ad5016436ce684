"""Pytest fixtures for extension tests.

Load with ``pytest_plugins = ["extcompilers.testing.fixtures"]``.

Fixtures:
    memory_transport: Empty POST MemoryTransport.
    compiler_registry: Fresh registry holding the built-in points.
    simulate_request: The ``simulate`` coroutine function.
"""

from __future__ import annotations

from typing import Any, Callable

import pytest

from extcompilers.registry import CompilerRegistry, create_default_registry
from extcompilers.testing.simulate import simulate
from extcompilers.transport.memory import MemoryTransport


@pytest.fixture
def memory_transport() -> MemoryTransport:
    """Create an empty POST transport that records writes."""
    return MemoryTransport()


@pytest.fixture
def compiler_registry() -> CompilerRegistry:
    """Create a registry with the built-in extensibility points (isolated per test)."""
    return create_default_registry()


@pytest.fixture
def simulate_request() -> Callable[..., Any]:
    """Provide ``simulate`` for driving compiled handlers."""
    return simulate
