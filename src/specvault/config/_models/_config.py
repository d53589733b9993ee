# pyright: reportAny=false, reportExplicitAny=false
"""Configuration container."""

from pathlib import Path
from typing import Any, ClassVar, Self

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from specvault.config._defaults import DEFAULT_CONFIG
from specvault.config._loader import deep_merge, parse_env_vars, read_toml_file
from specvault.config._models._logging import LoggingConfig
from specvault.config._models._policy import (
    AuditConfiguration,
    BreakingPolicyConfiguration,
)
from specvault.config._models._storage import LockConfiguration, StorageConfiguration
from specvault.exceptions import ConfigError


class Config(BaseModel):
    """Configuration container with typed access.

    Use the ``from_dict``, ``from_file`` and ``load`` factories rather than
    the constructor so that defaults are merged in first.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    storage: StorageConfiguration = Field(default_factory=StorageConfiguration)
    lock: LockConfiguration = Field(default_factory=LockConfiguration)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    breaking: BreakingPolicyConfiguration = Field(
        default_factory=BreakingPolicyConfiguration
    )
    audit: AuditConfiguration = Field(default_factory=AuditConfiguration)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Raises:
            ConfigError: If a value has the wrong type or is out of range.
        """
        merged = deep_merge(DEFAULT_CONFIG, data)
        try:
            return cls.model_validate(merged)
        except pydantic.ValidationError as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigError(msg) from e

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a single TOML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigError: If the values are invalid.
        """
        return cls.from_dict(read_toml_file(path))

    @classmethod
    def load(
        cls,
        path: Path | None = None,
        *,
        include_env: bool = True,
        environ: dict[str, str] | None = None,
    ) -> Self:
        """Load merged configuration.

        Sources are merged in precedence order: defaults, then ``path`` if
        given and present, then ``SPECVAULT_`` environment variables.

        Args:
            path: Optional TOML file. A missing file is skipped.
            include_env: Include environment variables as a source.
            environ: Mapping to read instead of ``os.environ``.

        Raises:
            ConfigLoadError: If the file cannot be parsed.
            ConfigError: If the merged values are invalid.
        """
        merged: dict[str, Any] = {}
        if path is not None and path.is_file():
            merged = deep_merge(merged, read_toml_file(path))
        if include_env:
            merged = deep_merge(merged, parse_env_vars(environ=environ))
        return cls.from_dict(merged)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-notation key.

        Examples:
            >>> Config().get("lock.retries")
            5
            >>> Config().get("missing.key", "fallback")
            'fallback'
        """
        current: Any = self.model_dump(mode="json")
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current
