"""
Structured logging setup.

Modules log through ``structlog.get_logger(__name__)`` with event-name
messages and key/value context. configure_logging() is called once by the
embedding application; without it structlog's defaults apply.
"""

import logging

import structlog

from src.core.config import LogConfig, LogFormat, get_config


def configure_logging(config: LogConfig | None = None) -> None:
    """
    Configure structlog processors and level filtering.

    Args:
        config: logging config (default: get_config().log)
    """
    config = config or get_config().log

    renderer: structlog.types.Processor
    if config.format == LogFormat.JSON:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.level)
        ),
        cache_logger_on_first_use=False,
    )
