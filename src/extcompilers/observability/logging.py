"""Structured logging configuration for extensibility compilers.

Configures structlog with a console renderer for development and a JSON
renderer for production hosts. Request handlers log lifecycle events
(``extcompilers.request.received``, ``extcompilers.validation.failed``, ...)
with the extensibility point type bound as context.

Request data is masked on its way out: every event passes through
``redact_request_fields``, which hides the values of ``secrets`` and of
credential headers, including the copies nested in a ``webtask`` entry.

Environment Variables:
    EXTCOMPILERS_LOG_FORMAT: "json" or "console"
    EXTCOMPILERS_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR
    EXTCOMPILERS_SERVICE_NAME: Service name included in every log line
    EXTCOMPILERS_DEBUG: "true"/"1" to log unencodable result data

Example:
    >>> from extcompilers.observability.logging import configure_logging, get_logger
    >>> configure_logging(log_format="json", log_level="INFO")
    >>> logger = get_logger("extcompilers.adapter")
    >>> logger.info("extcompilers.request.received", point="send-phone-message")
"""

import logging
import os
import sys
from collections.abc import Mapping, MutableMapping
from typing import Any

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "console"
DEFAULT_SERVICE_NAME = "extcompilers"

ENV_LOG_FORMAT = "EXTCOMPILERS_LOG_FORMAT"
ENV_LOG_LEVEL = "EXTCOMPILERS_LOG_LEVEL"
ENV_SERVICE_NAME = "EXTCOMPILERS_SERVICE_NAME"
ENV_DEBUG = "EXTCOMPILERS_DEBUG"

REDACTED_PLACEHOLDER = "***REDACTED***"

# Lower-cased header names whose values are credentials
CREDENTIAL_HEADERS = frozenset({"authorization", "proxy-authorization", "cookie", "x-api-key"})

_DEBUG_VALUES = frozenset({"true", "1", "yes", "on"})

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

_logging_configured = False


def redact_headers(headers: Mapping[str, Any]) -> dict[str, Any]:
    """Copy ``headers`` with credential values masked.

    The authorization scheme stays visible so a log reader can tell a
    missing bearer token from a wrong one.

    Example:
        >>> redact_headers({"Authorization": "Bearer s3", "X-Trace": "t-1"})
        {'Authorization': 'Bearer ***REDACTED***', 'X-Trace': 't-1'}
    """
    redacted: dict[str, Any] = {}
    for name, value in headers.items():
        if str(name).lower() not in CREDENTIAL_HEADERS:
            redacted[name] = value
        elif isinstance(value, str) and " " in value.strip():
            scheme = value.strip().split(" ", 1)[0]
            redacted[name] = f"{scheme} {REDACTED_PLACEHOLDER}"
        else:
            redacted[name] = REDACTED_PLACEHOLDER
    return redacted


def redact_secrets(secrets: Any) -> Any:
    """Keep the secret names, mask every value."""
    if isinstance(secrets, Mapping):
        return {name: REDACTED_PLACEHOLDER for name in secrets}
    return REDACTED_PLACEHOLDER


def redact_webtask(webtask: Mapping[str, Any]) -> dict[str, Any]:
    """Copy invocation metadata with its headers and secrets masked."""
    redacted = dict(webtask)
    if "secrets" in redacted:
        redacted["secrets"] = redact_secrets(redacted["secrets"])
    if isinstance(redacted.get("headers"), Mapping):
        redacted["headers"] = redact_headers(redacted["headers"])
    return redacted


def redact_request_fields(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """structlog processor masking request credentials in an event.

    Handles ``secrets`` and ``headers`` entries, a ``webtask`` entry, and a
    user-function ``context`` carrying its ``webtask`` metadata.
    """
    for key, value in list(event_dict.items()):
        if key == "secrets":
            event_dict[key] = redact_secrets(value)
        elif key == "headers" and isinstance(value, Mapping):
            event_dict[key] = redact_headers(value)
        elif key == "webtask" and isinstance(value, Mapping):
            event_dict[key] = redact_webtask(value)
        elif key == "context" and isinstance(value, Mapping):
            webtask = value.get("webtask")
            if isinstance(webtask, Mapping):
                event_dict[key] = {**value, "webtask": redact_webtask(webtask)}
    return event_dict


def is_debug_mode(environ: Mapping[str, str] | None = None) -> bool:
    """Return True if EXTCOMPILERS_DEBUG is set to a truthy value."""
    env = os.environ if environ is None else environ
    return env.get(ENV_DEBUG, "").strip().lower() in _DEBUG_VALUES


def _service_adder(service_name: str) -> Processor:
    def add_service(
        logger: WrappedLogger, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service


def _pre_chain(service_name: str) -> list[Processor]:
    # Runs for structlog events and for records from plain stdlib loggers
    return [
        structlog.contextvars.merge_contextvars,
        _service_adder(service_name),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_request_fields,
    ]


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stdout.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(
    log_format: str | None = None,
    log_level: str | None = None,
    service_name: str | None = None,
    force: bool = False,
) -> None:
    """Route structlog and stdlib logging to stdout through one formatter.

    Args:
        log_format: "json" or "console". Defaults to env var or "console"
        log_level: Minimum log level. Defaults to env var or "INFO"
        service_name: Service name added to every log line
        force: Reconfigure even if logging was already configured
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    log_format = (log_format or os.environ.get(ENV_LOG_FORMAT) or DEFAULT_LOG_FORMAT).lower()
    log_level = (log_level or os.environ.get(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper()
    service_name = service_name or os.environ.get(ENV_SERVICE_NAME) or DEFAULT_SERVICE_NAME

    pre_chain = _pre_chain(service_name)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(_LEVELS.get(log_level, logging.INFO))

    _logging_configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, configuring defaults on first use."""
    if not _logging_configured:
        configure_logging()
    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables included in all subsequent logs of this task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
