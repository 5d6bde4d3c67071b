import logging

import structlog

from settings import LOG_JSON, LOG_LEVEL


def configure_logging() -> None:
    """Configure structlog for the API process.

    Events are rendered for the console in development and as JSON lines when
    LOG_JSON is set.
    """
    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    renderer = structlog.processors.JSONRenderer() if LOG_JSON else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
