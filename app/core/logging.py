"""
structlog setup.

Call `configure_logging()` once at process start (app/main.py does this on
import). Modules then grab a logger with `structlog.get_logger(__name__)` and
log an event name plus key/value context:

    logger.info("behavior_alert_opened", worker_id=7, alert_type="ppe_non_compliance")
"""
from __future__ import annotations

import logging
import sys

import structlog

from app.core.config import settings


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    level_name = (level or settings.LOG_LEVEL).upper()
    renderer = (
        structlog.processors.JSONRenderer()
        if (fmt or settings.LOG_FORMAT) == "json"
        else structlog.dev.ConsoleRenderer()
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
