"""
Structlog configuration.

Usage:
    from rbac_engine.logging_config import configure_logging

    configure_logging()              # from RBAC_LOG_LEVEL / RBAC_LOG_FORMAT
    configure_logging(settings)      # explicit settings
"""

import logging

import structlog

from .config import RBACSettings, get_settings


def configure_logging(settings: RBACSettings | None = None) -> None:
    """
    Configure structlog for the engine's loggers.

    ``json`` renders one JSON object per event (production);
    ``text`` renders colourless key=value console lines (development).
    """
    settings = settings or get_settings()

    if settings.log_format == "json":
        renderer: structlog.typing.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
        cache_logger_on_first_use=False,
    )
