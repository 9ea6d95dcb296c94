"""Structured logging for the gateway."""

import logging
import sys

import structlog

SERVICE_NAME = "llm-hub-server"


def add_service_name(logger, method_name: str, event_dict: dict) -> dict:
    """Tag every event with the emitting service."""
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(log_level: str = "info", json_logs: bool | None = None) -> None:
    """Configure structlog on top of the standard logging module.

    Request-scoped fields bound with ``structlog.contextvars`` (client
    address, route) are merged into every event logged while the request
    is being served, including the frames of a streamed response.

    Args:
        log_level: Logging level (debug, info, warning, error)
        json_logs: Render JSON lines; defaults to JSON unless stderr is a TTY
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    if json_logs is None:
        json_logs = not sys.stderr.isatty()
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            add_service_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None):
    """Get a structured logger bound to ``name``."""
    return structlog.get_logger(name)
