"""Logging utilities for specvault.

This module provides standalone structlog logger factories that write
JSON-formatted or text-formatted logs to a file or to stderr. Each logger is
self-contained and does not modify global structlog configuration.
"""

import logging
import sys
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from specvault.config import LoggingConfig

LogFormatType = Literal["json", "text"]


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, SPECVAULT_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("SPECVAULT_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def create_logger(
    *,
    level: str = "info",
    log_format: LogFormatType = "json",
    log_file: str = "",
    component: str = "",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger.

    The log level can be overridden by the SPECVAULT_DEBUG environment
    variable, which forces DEBUG regardless of ``level``.

    Args:
        level: Log level threshold (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        log_file: Path to a log file opened in append mode. Empty writes
            to stderr.
        component: Component name bound to every entry if provided.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = _log_level_from_string(level, respect_env=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger_factory = structlog.WriteLoggerFactory(file=log_path.open("a"))
    else:
        logger_factory = structlog.PrintLoggerFactory(file=sys.stderr)

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Text format: "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    logger = cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            logger_factory(),
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(effective_level),
            context_class=dict,
        ),
    )

    if component:
        return logger.bind(component=component)
    return logger


def logger_from_config(
    config: "LoggingConfig", *, component: str = ""
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger from a logging configuration section.

    Args:
        config: The logging configuration.
        component: Component name bound to every entry if provided.

    Returns:
        A FilteringBoundLogger configured from ``config``.
    """
    return create_logger(
        level=config.level.value,
        log_format=config.format.value,
        log_file=config.file,
        component=component,
    )


def null_logger() -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger that discards every entry.

    Used as the default for components constructed without a logger.
    """
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            structlog.ReturnLogger(),
            processors=[],
            wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL),
            context_class=dict,
        ),
    )
