"""Logging setup for the CLI and the animation loop.

Everything goes to stderr so ``predict --json`` and ``series`` keep stdout
clean. Run-wide fields (seed, data source, command) are bound once with
``bind_run`` and merged into every event.
"""
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import structlog

from candlecast.core.config import LoggingConfig


def setup_logging(config: Optional[LoggingConfig] = None, level: Optional[str] = None) -> None:
    config = config or LoggingConfig()
    log_level = getattr(logging, (level or config.level).upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        path = Path(config.log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    logging.basicConfig(format="%(message)s", level=log_level, handlers=handlers, force=True)

    renderer = (
        structlog.processors.JSONRenderer()
        if config.structured
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_run(**fields: Any) -> None:
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**{k: v for k, v in fields.items() if v is not None})


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
