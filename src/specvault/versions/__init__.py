"""Version registry: document and version metadata and lineage."""

from specvault.versions._models import (
    ApiMetadata,
    ChangeSummary,
    ValidationMessage,
    ValidationSnapshot,
    VersionMetadata,
    VersionStats,
    utc_now,
)
from specvault.versions._registry import (
    METADATA_FILENAME,
    VersionRegistry,
    api_metadata_key,
    version_metadata_key,
)
from specvault.versions._tags import (
    API_ID_PATTERN,
    SEMVER_TAG_PATTERN,
    TIMESTAMP_TAG_PATTERN,
    is_semver_tag,
    next_timestamp_tag,
    validate_api_id,
    validate_version_tag,
)

__all__ = [
    "API_ID_PATTERN",
    "METADATA_FILENAME",
    "SEMVER_TAG_PATTERN",
    "TIMESTAMP_TAG_PATTERN",
    "ApiMetadata",
    "ChangeSummary",
    "ValidationMessage",
    "ValidationSnapshot",
    "VersionMetadata",
    "VersionRegistry",
    "VersionStats",
    "api_metadata_key",
    "is_semver_tag",
    "next_timestamp_tag",
    "utc_now",
    "validate_api_id",
    "validate_version_tag",
]
