"""Common configuration types."""

from enum import StrEnum


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class SerializationFormat(StrEnum):
    """On-disk encodings for document content."""

    YAML = "yaml"
    JSON = "json"
