"""Logfire setup and structured logging helpers.

Modules log through `logging.getLogger(__name__)` with `extra={...}` fields;
Logfire picks those records up and ships them once a token is configured.
"""

import logging

import logfire
from fastapi import FastAPI

from taskpulse.core.config import settings


logger = logging.getLogger(__name__)


def configure_logfire() -> None:
    """Configure Logfire for this process.

    A production deployment without LOGFIRE_TOKEN fails here instead of running blind.
    """
    token = settings.require_credential("logfire_token", "Logfire") if settings.is_production else settings.logfire_token
    logfire.configure(
        token=token,
        service_name="taskpulse",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )
    logger.info("Logfire configured", extra={"environment": settings.environment, "shipping": token is not None})


def instrument_fastapi(app: FastAPI) -> None:
    logfire.instrument_fastapi(app)
    logger.info("FastAPI instrumentation configured")


def span(name: str) -> logfire.LogfireSpan:
    """Open a span named `<module>.<function>` around a service call."""
    return logfire.span(name)


def log_with_user_context(
    log: logging.Logger,
    level: str,
    message: str,
    user_id: str | None = None,
    **extra: object,
) -> None:
    """Log `message` at `level`, tagging it with the acting user and any task fields."""
    fields = {"user_id": user_id, **extra} if user_id else extra
    getattr(log, level.lower())(message, extra=fields)
