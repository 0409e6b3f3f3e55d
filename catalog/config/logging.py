"""
Logging Configuration for the Product Catalog Service

structlog events and plain stdlib records (uvicorn, gunicorn) share one
processor chain and are rendered as JSON lines or as colored console output.
"""

import logging
import sys
from typing import List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter

from catalog.config.settings import MonitoringSettings, Settings, get_settings

SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "gunicorn.error")


def _shared_processors() -> List:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _build_formatter(log_format: str, processors: List) -> ProcessorFormatter:
    if log_format == "json":
        renderer = JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return ProcessorFormatter(processor=renderer, foreign_pre_chain=processors)


def _build_handlers(monitoring: MonitoringSettings, formatter: ProcessorFormatter) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if monitoring.log_file:
        handlers.append(logging.FileHandler(monitoring.log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logging(settings: Optional[Settings] = None, log_level: Optional[str] = None) -> None:
    """
    Route structlog and stdlib logging through the catalog's handlers.

    Args:
        settings: Application settings; the cached ones when omitted
        log_level: Override for settings.monitoring.log_level
    """
    settings = settings or get_settings()
    monitoring = settings.monitoring
    level = (log_level or monitoring.log_level).upper()
    numeric_level = getattr(logging, level, logging.INFO)

    processors = _shared_processors()
    structlog.configure(
        processors=processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers = _build_handlers(monitoring, _build_formatter(monitoring.log_format, processors))

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    # server loggers propagate to root instead of printing twice
    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers = []
        server_logger.propagate = True
        server_logger.setLevel(numeric_level)

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level,
        format=monitoring.log_format,
        log_file=monitoring.log_file,
        environment=settings.app_env,
    )
