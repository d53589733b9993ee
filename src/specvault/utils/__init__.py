"""Shared utilities for specvault."""

from specvault.utils._backoff import ExponentialBackoff
from specvault.utils._logging import create_logger, logger_from_config, null_logger

__all__ = [
    "ExponentialBackoff",
    "create_logger",
    "logger_from_config",
    "null_logger",
]
