"""Structured logging for the GolfMatch core.

Every event carries the service name and environment. Code that acts on
behalf of one user binds the user id with `user_context`, so nested service
calls (quota, ledger, rate limiter) log it without passing it around.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from golfmatch.config import settings


def add_service_info(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp the service name and environment on an event unless already set."""
    event_dict.setdefault("service", settings.APP_NAME)
    event_dict.setdefault("environment", settings.ENVIRONMENT)
    return event_dict


def configure_logging(log_level: Optional[str] = None) -> None:
    """
    Configure structlog on top of the standard library logger.

    Args:
        log_level (Optional[str]): Level name overriding `settings.LOG_LEVEL`.
    """
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        level=level,
        stream=sys.stdout,
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_info,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.ENVIRONMENT.lower() == "development":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger.

    Args:
        name (str): Logger name, usually `__name__`.
        **initial_values: Context bound to every event of this logger.

    Returns:
        structlog.stdlib.BoundLogger: The bound logger.
    """
    return structlog.get_logger(name).bind(**initial_values)  # type: ignore


@contextmanager
def user_context(user_id: str, **values: Any) -> Iterator[None]:
    """Bind `user_id` (and any extra values) to every log event inside the block."""
    with structlog.contextvars.bound_contextvars(user_id=user_id, **values):
        yield


def log_error(
    logger: structlog.stdlib.BoundLogger,
    error: Exception,
    message: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log an exception with its type, message and, for `GolfMatchError`, its details.

    Args:
        logger (structlog.stdlib.BoundLogger): Logger to write to.
        error (Exception): The exception to log.
        message (Optional[str]): Event name. Defaults to "An error occurred".
        extra (Optional[Dict[str, Any]]): Additional context. Not modified.
    """
    context = dict(extra or {})
    context["error_type"] = error.__class__.__name__
    context["error_message"] = str(error)
    details = getattr(error, "details", None)
    if details:
        context["error_details"] = details

    logger.error(message or "An error occurred", **context, exc_info=error)
