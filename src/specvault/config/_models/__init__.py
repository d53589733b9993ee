"""Configuration models."""

from specvault.config._models._common import LogFormat, LogLevel, SerializationFormat
from specvault.config._models._config import Config
from specvault.config._models._logging import LoggingConfig
from specvault.config._models._policy import (
    AuditConfiguration,
    BreakingPolicyConfiguration,
)
from specvault.config._models._storage import LockConfiguration, StorageConfiguration

__all__ = [
    "AuditConfiguration",
    "BreakingPolicyConfiguration",
    "Config",
    "LockConfiguration",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "SerializationFormat",
    "StorageConfiguration",
]
