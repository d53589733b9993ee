"""Storage and lock configuration models."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from specvault.config._models._common import SerializationFormat


class StorageConfiguration(BaseModel):
    """Document storage configuration.

    Attributes:
        root: Directory all storage keys are resolved against.
        default_format: Encoding used when saving new document content.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    root: str = Field(default="./data", min_length=1)
    default_format: SerializationFormat = SerializationFormat.YAML


class LockConfiguration(BaseModel):
    """Lock acquisition configuration.

    Attributes:
        retries: Retries after the first failed acquisition attempt.
        retry_interval: Delay in seconds before the first retry.
        max_interval: Upper bound in seconds on any single retry delay.
        multiplier: Backoff growth factor per retry.
        jitter: Fraction of each delay to randomize.
        stale_after: Age in seconds after which a held lock is considered
            abandoned and may be taken over.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    retries: int = Field(default=5, ge=0)
    retry_interval: float = Field(default=0.1, ge=0)
    max_interval: float = Field(default=2.0, gt=0)
    multiplier: float = Field(default=2.0, ge=1)
    jitter: float = Field(default=0.1, ge=0, le=1)
    stale_after: float = Field(default=10.0, gt=0)
