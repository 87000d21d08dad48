"""Logging configuration and utilities.

Structured logging through structlog, rendered as JSON or as console
text, with an optional rotating log file.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, List

import structlog
from structlog.types import Processor

from .config import Settings

_SIZE_UNITS = {
    "KB": 1024,
    "MB": 1024 * 1024,
    "GB": 1024 * 1024 * 1024,
}


def setup_logging(settings: Settings) -> None:
    """Setup structured logging configuration.

    Args:
        settings: Application settings.
    """
    level = getattr(logging, settings.log_level)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    if settings.log_file:
        _add_file_handler(settings, level)

    structlog.configure(
        processors=_build_processors(settings.log_format),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _build_processors(log_format: str) -> List[Processor]:
    """Build the structlog processor chain for the given format."""
    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors.extend([
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])
    else:
        processors.extend([
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ])
    return processors


def _add_file_handler(settings: Settings, level: int) -> None:
    """Attach a rotating file handler to the root logger."""
    log_path = Path(settings.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_path,
        maxBytes=_parse_size(settings.log_max_size),
        backupCount=settings.log_backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    logging.getLogger().addHandler(file_handler)


def _parse_size(size_str: str) -> int:
    """Parse size string to bytes.

    Args:
        size_str: Size string like '10MB', '1GB', etc.

    Returns:
        int: Size in bytes.
    """
    size_str = size_str.upper().strip()

    for suffix, multiplier in _SIZE_UNITS.items():
        if size_str.endswith(suffix):
            return int(size_str[:-len(suffix)]) * multiplier
    return int(size_str)


def bind_context(**kwargs: Any) -> None:
    """Bind key-value pairs to the logging context of the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all context variables."""
    structlog.contextvars.clear_contextvars()
