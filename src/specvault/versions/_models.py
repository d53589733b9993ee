"""Persisted registry models.

Document and version metadata are stored as JSON and validated with
pydantic on every read and write. All models are immutable; updates go
through ``model_copy``/``model_validate`` on a merged dict.
"""

from datetime import UTC, datetime
from typing import ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from specvault.versions._tags import validate_api_id, validate_version_tag


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


class ChangeSummary(BaseModel):
    """Summary of what changed relative to the parent version."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    endpoints_added: list[str] = Field(default_factory=list)
    endpoints_modified: list[str] = Field(default_factory=list)
    endpoints_deleted: list[str] = Field(default_factory=list)
    schemas_added: list[str] = Field(default_factory=list)
    schemas_modified: list[str] = Field(default_factory=list)
    schemas_deleted: list[str] = Field(default_factory=list)
    breaking_changes: list[str] = Field(default_factory=list)

    @property
    def has_breaking_changes(self) -> bool:
        """Return whether any breaking change was recorded."""
        return bool(self.breaking_changes)


class ValidationMessage(BaseModel):
    """One lint finding kept in a validation snapshot."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    severity: str
    message: str
    path: str | None = None


class ValidationSnapshot(BaseModel):
    """Lint results captured when a version was validated.

    Attributes:
        errors: Number of error-severity findings.
        warnings: Number of warning-severity findings.
        valid: Whether the document had no errors.
        messages: Individual findings, if recorded.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    errors: int = Field(default=0, ge=0)
    warnings: int = Field(default=0, ge=0)
    valid: bool = True
    messages: list[ValidationMessage] | None = None


class VersionStats(BaseModel):
    """Size statistics of a version's content."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    endpoint_count: int = Field(default=0, ge=0)
    schema_count: int = Field(default=0, ge=0)
    file_size_bytes: int = Field(default=0, ge=0)
    security_schemes_count: int = Field(default=0, ge=0)
    tags_count: int = Field(default=0, ge=0)


class VersionMetadata(BaseModel):
    """Write-once metadata of a single version."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    version: str
    created_at: datetime = Field(default_factory=utc_now)
    created_by: str
    parent_version: str | None = None
    description: str = ""
    changes: ChangeSummary = Field(default_factory=ChangeSummary)
    validation: ValidationSnapshot = Field(default_factory=ValidationSnapshot)
    stats: VersionStats = Field(default_factory=VersionStats)
    tags: list[str] | None = None

    @field_validator("version", "parent_version")
    @classmethod
    def _check_tag(cls, value: str | None) -> str | None:
        return None if value is None else validate_version_tag(value)


class ApiMetadata(BaseModel):
    """Metadata of a document and its version lineage.

    ``versions`` is ordered newest first. ``current_version`` and
    ``latest_stable`` always name a member of ``versions``.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    api_id: str
    name: str
    owner: str
    created_at: datetime = Field(default_factory=utc_now)
    versions: list[str] = Field(min_length=1)
    current_version: str
    latest_stable: str
    description: str | None = None
    tags: list[str] | None = None

    @field_validator("api_id")
    @classmethod
    def _check_api_id(cls, value: str) -> str:
        return validate_api_id(value)

    @field_validator("versions")
    @classmethod
    def _check_versions(cls, value: list[str]) -> list[str]:
        for tag in value:
            _ = validate_version_tag(tag)
        if len(set(value)) != len(value):
            msg = "versions must not contain duplicates"
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def _check_pointers(self) -> Self:
        for pointer in ("current_version", "latest_stable"):
            tag: str = getattr(self, pointer)
            if tag not in self.versions:
                msg = f"{pointer} {tag!r} is not a registered version"
                raise ValueError(msg)
        return self
