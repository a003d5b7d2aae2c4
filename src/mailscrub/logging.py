"""structlog over stdlib logging: readable lines on stderr, optional JSON file."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _handler(handler: logging.Handler, renderer, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=SHARED_PROCESSORS))
    return handler


def setup_logging(log_dir: str | None, log_name: str = "mailscrub", level: int = logging.INFO) -> structlog.stdlib.BoundLogger:
    """Route structlog through the root logger.

    stdout is left to CLI output. With *log_dir* set, every event down to
    DEBUG is also kept as JSON lines in ``<log_dir>/<log_name>.log``.
    """
    handlers = [_handler(logging.StreamHandler(sys.stderr), structlog.dev.ConsoleRenderer(colors=False), level)]
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(Path(log_dir) / f"{log_name}.log", maxBytes=1024 * 1024, backupCount=2)
        handlers.append(_handler(file_handler, structlog.processors.JSONRenderer(), logging.DEBUG))

    root = logging.getLogger()
    root.handlers[:] = handlers
    root.setLevel(logging.DEBUG)

    structlog.configure(
        processors=[
            *SHARED_PROCESSORS,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    return structlog.get_logger(log_name)
