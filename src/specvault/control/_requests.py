# pyright: reportExplicitAny=false
"""Tagged workflow requests.

Each operation has one frozen request type whose identifiers are validated
once at construction, so a request that exists is well-formed.
"""

from dataclasses import dataclass, field
from typing import Any

from specvault.versions import validate_api_id, validate_version_tag


@dataclass(frozen=True, slots=True)
class ListVersions:
    """List the versions of a document."""

    api_id: str

    def __post_init__(self) -> None:
        _ = validate_api_id(self.api_id)


@dataclass(frozen=True, slots=True)
class CreateVersion:
    """Create a version by copying ``source_version`` (default: current)."""

    api_id: str
    version: str
    source_version: str | None = None
    description: str = ""
    make_current: bool = True
    actor: str = "system"
    reason: str | None = None

    def __post_init__(self) -> None:
        _ = validate_api_id(self.api_id)
        _ = validate_version_tag(self.version)
        if self.source_version is not None:
            _ = validate_version_tag(self.source_version)


@dataclass(frozen=True, slots=True)
class GetVersion:
    """Fetch the metadata of one version."""

    api_id: str
    version: str

    def __post_init__(self) -> None:
        _ = validate_api_id(self.api_id)
        _ = validate_version_tag(self.version)


@dataclass(frozen=True, slots=True)
class CompareVersions:
    """Diff two versions of a document."""

    api_id: str
    from_version: str
    to_version: str

    def __post_init__(self) -> None:
        _ = validate_api_id(self.api_id)
        _ = validate_version_tag(self.from_version)
        _ = validate_version_tag(self.to_version)


@dataclass(frozen=True, slots=True)
class SetCurrentVersion:
    """Point a document's current version at ``version``."""

    api_id: str
    version: str
    actor: str = "system"
    reason: str | None = None

    def __post_init__(self) -> None:
        _ = validate_api_id(self.api_id)
        _ = validate_version_tag(self.version)


@dataclass(frozen=True, slots=True)
class SetLatestStable:
    """Point a document's latest stable version at ``version``."""

    api_id: str
    version: str
    actor: str = "system"
    reason: str | None = None

    def __post_init__(self) -> None:
        _ = validate_api_id(self.api_id)
        _ = validate_version_tag(self.version)


@dataclass(frozen=True, slots=True)
class DeleteVersion:
    """Delete a version that is neither current nor latest stable."""

    api_id: str
    version: str
    actor: str = "system"
    reason: str | None = None

    def __post_init__(self) -> None:
        _ = validate_api_id(self.api_id)
        _ = validate_version_tag(self.version)


type VersionRequest = (
    ListVersions
    | CreateVersion
    | GetVersion
    | CompareVersions
    | SetCurrentVersion
    | SetLatestStable
    | DeleteVersion
)


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Outcome of an executed request.

    Attributes:
        message: Human-readable one-line description.
        data: JSON-compatible payload.
    """

    message: str
    data: dict[str, Any] = field(default_factory=dict)
