from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger
import structlog

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(app: Any | None = None, level: str | None = None, log_file: str | None = None) -> None:
    """Route structlog events through stdlib logging as JSON lines.

    ``level`` and ``log_file`` override the app config, which in turn overrides
    ``RESUME_DOCS_LOG_LEVEL`` / ``RESUME_DOCS_LOG_FILE``.
    """
    config = app.config if app is not None else {}
    log_level = level or config.get("LOG_LEVEL") or os.getenv("RESUME_DOCS_LOG_LEVEL") or "INFO"
    log_path = log_file or config.get("LOG_FILE") or os.getenv("RESUME_DOCS_LOG_FILE")

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    formatter = jsonlogger.JsonFormatter(_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_path:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(str(log_path), maxBytes=10_000_000, backupCount=5))
    for handler in handlers:
        handler.setFormatter(formatter)

    # Replace existing handlers to avoid duplicate logs during reloads
    root_logger.handlers = handlers

    # discovery cache warnings are expected with cache_discovery=False
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
