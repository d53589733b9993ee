"""Version control workflows tying storage, registry, diff and audit together."""

from specvault.control._control import (
    DEFAULT_INITIAL_VERSION,
    Mutator,
    VersionControl,
    compute_stats,
    skeleton_document,
    summarize_issues,
)
from specvault.control._requests import (
    CompareVersions,
    CreateVersion,
    DeleteVersion,
    GetVersion,
    ListVersions,
    OperationResult,
    SetCurrentVersion,
    SetLatestStable,
    VersionRequest,
)

__all__ = [
    "DEFAULT_INITIAL_VERSION",
    "CompareVersions",
    "CreateVersion",
    "DeleteVersion",
    "GetVersion",
    "ListVersions",
    "Mutator",
    "OperationResult",
    "SetCurrentVersion",
    "SetLatestStable",
    "VersionControl",
    "VersionRequest",
    "compute_stats",
    "skeleton_document",
    "summarize_issues",
]
