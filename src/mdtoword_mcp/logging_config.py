"""Structured logging configuration for mdtoword-mcp.

JSON lines on stderr via structlog; stdout stays free for the MCP stdio
transport. Every event emitted while a conversion runs carries that
conversion's ``conversion_id`` (bound with ``conversion_context``), so the
image, tree-building and writer events of one request can be grouped.

Image sources are often multi-megabyte data URIs. Long string values are
clipped before rendering so a single event never carries a whole payload.
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Iterator

import structlog

from .config import settings

TRUNCATION_MARKER = "...[truncated]"


def truncate_long_values(logger, method_name: str, event_dict: dict) -> dict:
    """structlog processor: clip string values longer than settings.LOG_MAX_VALUE_LENGTH."""
    limit = settings.LOG_MAX_VALUE_LENGTH
    for key, value in event_dict.items():
        if key != "event" and isinstance(value, str) and len(value) > limit:
            event_dict[key] = value[:limit] + TRUNCATION_MARKER
    return event_dict


def configure_logging(level: str = None) -> None:
    """Configure structlog and route stdlib logging to stderr.

    Args:
        level: Level name overriding settings.LOG_LEVEL (e.g. "DEBUG")
    """
    level_name = (level or settings.LOG_LEVEL).upper()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            truncate_long_values,
            # Chinese font names and text stay readable in the output
            structlog.processors.JSONRenderer(ensure_ascii=False)
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name, logging.INFO),
    )


@contextmanager
def conversion_context(**extra) -> Iterator[str]:
    """Bind a fresh conversion_id (plus any extra fields) for the enclosed block.

    Yields:
        The conversion id
    """
    conversion_id = uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(conversion_id=conversion_id, **extra):
        yield conversion_id


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance bound with the module name.

    Args:
        name: Module name (typically __name__)
    """
    return structlog.get_logger(name)


configure_logging()
