"""Observability module for extensibility compilers.

Structured logging built on structlog, with request credentials masked
before any line is rendered.

Example:
    >>> from extcompilers.observability import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("extcompilers.request.received", point="send-phone-message")
"""

from extcompilers.observability.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    is_debug_mode,
    redact_headers,
    redact_request_fields,
)

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "is_debug_mode",
    "redact_headers",
    "redact_request_fields",
]
