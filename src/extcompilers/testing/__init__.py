"""Testing utilities for extensibility point authors and hosts.

Provides ``simulate`` to run a compiled handler against an in-memory
transport, and pytest fixtures in ``extcompilers.testing.fixtures``.
"""

from extcompilers.testing.simulate import simulate
from extcompilers.transport.memory import MemoryTransport

__all__ = ["MemoryTransport", "simulate"]
