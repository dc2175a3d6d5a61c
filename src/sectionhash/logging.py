"""Structured logging configuration for sectionhash."""

from __future__ import annotations

import logging
import sys
import typing

import structlog

_HANDLER_NAME = "sectionhash"


def configure_logging(
    level: int | str = logging.INFO,
    json_format: bool = False,
) -> None:
    """Route stdlib and structlog records through one structlog renderer.

    Library modules log with ``logging.getLogger(__name__)``; this only
    decides how those records are rendered. Output goes to stderr so command
    results on stdout stay machine-readable. Calling it again replaces the
    handler installed by the previous call.

    Args:
        level: Logging level (e.g., logging.INFO, "DEBUG").
        json_format: Emit one JSON object per record instead of the
            colored console renderer.
    """
    if isinstance(level, str):
        level = level.upper()

    shared_processors: list[typing.Callable] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    renderer = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Silence noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
