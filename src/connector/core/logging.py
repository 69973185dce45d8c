"""Structured logging configuration for the connector.

Production renders JSON lines, every other environment renders console
output. Context bound through ``bind_deployment`` (the Twenty domain a
process or task is talking to) is merged into every event, so log lines of
connectors for different deployments can be told apart.
"""

from __future__ import annotations

import logging

import structlog

from src.connector.config import Environment, get_settings


def configure_structlog() -> None:
    """Configure stdlib logging level and the structlog processor chain."""
    settings = get_settings()

    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(message)s")

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    if settings.ENVIRONMENT == Environment.production:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_deployment(domain: str) -> None:
    """Attach the Twenty domain to every event logged in the current context."""
    structlog.contextvars.bind_contextvars(twenty_domain=domain.rstrip("/"))
