"""Logging setup for applications using the pgmq client.

The library itself only calls ``structlog.get_logger``; applications (and the
CLI) call :func:`configure_logging` once at startup to route those events.
"""

import logging
import sys

import structlog

from pgmq_client.config import LoggingConfig

_CONFIGURED = False


def configure_logging(config: LoggingConfig) -> None:
    """Configure stdlib logging and structlog in an idempotent way.

    Args:
        config: Logging configuration (level and json/text format)
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    level = getattr(logging, config.log_level.upper())

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s - %(message)s",
    )

    renderer: structlog.types.Processor
    if config.log_format.lower() == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True
