"""Logfire setup and helpers for structured log records.

Modules log through their own stdlib logger and pass context as ``extra``;
Logfire exports those records and the spans opened with ``span()`` when a
token is configured.
"""

import logging

import logfire
from fastapi import FastAPI

from tasktracker.core.config import Settings


def configure_logfire(settings: Settings) -> None:
    """Point Logfire at this service; export stays off until ``logfire_token`` is set."""
    logfire.configure(
        token=settings.logfire_token,
        service_name="tasktracker",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
        console=False,
    )

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def instrument_fastapi(app: FastAPI) -> None:
    """Trace every request handled by ``app``."""
    logfire.instrument_fastapi(app)
    logging.getLogger(__name__).info("FastAPI instrumentation configured")


def span(name: str) -> logfire.LogfireSpan:
    """Open a Logfire span named ``<module>.<operation>``, e.g. ``task_service.update_task``."""
    return logfire.span(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Emit ``message`` at ``level`` with ``context`` attached as record attributes.

    Args:
        logger: Module logger
        level: Level name, e.g. "info" or "warning"
        message: Event name or message
        **context: Fields such as task_id, version or operation_type
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_with_request_context(
    logger: logging.Logger,
    level: str,
    message: str,
    request_id: str | None = None,
    **extra: object,
) -> None:
    """Like ``log_with_context``, adding ``request_id`` when the client sent one."""
    context = {"request_id": request_id, **extra} if request_id else extra
    log_with_context(logger, level, message, **context)
