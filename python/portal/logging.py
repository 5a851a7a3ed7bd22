"""Structured logging configuration using structlog.

Every entry is a snake_case event with key/value fields. Context bound with
structlog's contextvars is merged into each entry:
- user_id: the signed-in user (bound by SessionContext on every change)
- request_id, path, method: the current service request (RequestIDMiddleware)

Values under secret-looking keys (tokens, passwords, api keys) are replaced
before rendering, whichever module logged them.

Usage:
    from portal.logging import configure_logging, get_logger

    configure_logging()
    logger = get_logger(__name__)
    logger.info("document_uploaded", file_size=1024)
"""

import logging
import sys

import structlog
from structlog.types import EventDict, WrappedLogger

REDACTED = "[redacted]"

SECRET_KEYS = frozenset(
    {
        "access_token",
        "refresh_token",
        "password",
        "confirm_password",
        "apikey",
        "api_key",
        "authorization",
        "service_role_key",
    }
)

REQUEST_KEYS = ("request_id", "path", "method")


def redact_secrets(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Replace values logged under secret keys."""
    for key in event_dict:
        if key.lower() in SECRET_KEYS:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(json_format: bool = True, level: int = logging.INFO) -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Args:
        json_format: JSON lines when True, console rendering otherwise.
        level: Root log level.
    """
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer = (
        structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # httpx logs every request URL at INFO, including signed-URL tokens
    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, typically `get_logger(__name__)`."""
    return structlog.get_logger(name)


def bind_user(user_id: str | None) -> None:
    """Attach the acting user to subsequent entries (None unbinds)."""
    if user_id is None:
        structlog.contextvars.unbind_contextvars("user_id")
    else:
        structlog.contextvars.bind_contextvars(user_id=user_id)


def set_request_context(request_id: str, *, path: str, method: str) -> None:
    """Bind the current service request; path never includes the query string."""
    structlog.contextvars.bind_contextvars(request_id=request_id, path=path, method=method)


def clear_request_context() -> None:
    """Unbind request fields at the end of a request."""
    structlog.contextvars.unbind_contextvars(*REQUEST_KEYS)
