"""structlog configuration shared by the CLI and any embedding application."""

import logging
import sys
from typing import Optional

import structlog

from decor_search.config import settings


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """Configure structlog processors and the minimum log level.

    Args:
        level: Level name (e.g., "DEBUG"); defaults to DEBUG when
            settings.DEBUG is set, else settings.LOG_LEVEL
        json_output: Render JSON lines instead of the console renderer;
            defaults to settings.LOG_JSON
    """
    level_name = (level or ("DEBUG" if settings.DEBUG else settings.LOG_LEVEL)).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    if json_output is None:
        json_output = settings.LOG_JSON

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%H:%M:%S"),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        # ConsoleRenderer formats exceptions itself
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
