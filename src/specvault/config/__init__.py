"""Configuration for specvault.

Configuration is assembled from built-in defaults, an optional TOML file
and ``SPECVAULT_`` environment variables, in increasing precedence.
"""

from specvault.config._defaults import DEFAULT_CONFIG
from specvault.config._loader import (
    deep_merge,
    parse_env_vars,
    parse_string_value,
    read_toml_file,
)
from specvault.config._models import (
    AuditConfiguration,
    BreakingPolicyConfiguration,
    Config,
    LockConfiguration,
    LogFormat,
    LoggingConfig,
    LogLevel,
    SerializationFormat,
    StorageConfiguration,
)

__all__ = [
    "DEFAULT_CONFIG",
    "AuditConfiguration",
    "BreakingPolicyConfiguration",
    "Config",
    "LockConfiguration",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "SerializationFormat",
    "StorageConfiguration",
    "deep_merge",
    "parse_env_vars",
    "parse_string_value",
    "read_toml_file",
]
