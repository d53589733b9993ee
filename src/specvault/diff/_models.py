"""Data models for structural diffs.

All models are frozen dataclasses with slots; every sequence is a tuple
sorted lexicographically so that equal inputs always produce equal output.
"""

from dataclasses import dataclass

from specvault.versions import ChangeSummary


@dataclass(frozen=True, slots=True)
class EndpointGroup:
    """Methods added to or removed from one path."""

    path: str
    methods: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class EndpointChange:
    """A modified operation and the names of the fields that changed."""

    path: str
    method: str
    changes: tuple[str, ...]

    @property
    def key(self) -> str:
        """Return the canonical ``"{method} {path}"`` key."""
        return f"{self.method} {self.path}"


@dataclass(frozen=True, slots=True)
class SchemaEntry:
    """An added or deleted named schema."""

    name: str
    type: str


@dataclass(frozen=True, slots=True)
class SchemaChange:
    """A modified named schema and a description of each change."""

    name: str
    changes: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class DiffResult:
    """Structural delta between two document trees.

    Attributes:
        endpoints_added: Keys (``"post /invoices"``) only in the new tree.
        endpoints_modified: Keys present in both trees whose operation changed.
        endpoints_deleted: Keys only in the old tree.
        schemas_added: Schema names only in the new tree.
        schemas_modified: Schema names present in both trees that changed.
        schemas_deleted: Schema names only in the old tree.
        endpoints_added_detail: Added methods grouped by path.
        endpoints_deleted_detail: Deleted methods grouped by path.
        endpoints_modified_detail: Changed field names per operation.
        schemas_added_detail: Added schemas with their declared type.
        schemas_deleted_detail: Deleted schemas with their declared type.
        schemas_modified_detail: Change descriptions per schema.
        breaking_changes: Human-readable description of each change that
            could make a previously valid client interaction fail.
    """

    endpoints_added: tuple[str, ...] = ()
    endpoints_modified: tuple[str, ...] = ()
    endpoints_deleted: tuple[str, ...] = ()
    schemas_added: tuple[str, ...] = ()
    schemas_modified: tuple[str, ...] = ()
    schemas_deleted: tuple[str, ...] = ()
    endpoints_added_detail: tuple[EndpointGroup, ...] = ()
    endpoints_deleted_detail: tuple[EndpointGroup, ...] = ()
    endpoints_modified_detail: tuple[EndpointChange, ...] = ()
    schemas_added_detail: tuple[SchemaEntry, ...] = ()
    schemas_deleted_detail: tuple[SchemaEntry, ...] = ()
    schemas_modified_detail: tuple[SchemaChange, ...] = ()
    breaking_changes: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        """Return whether the two trees were structurally identical."""
        return not (
            self.endpoints_added
            or self.endpoints_modified
            or self.endpoints_deleted
            or self.schemas_added
            or self.schemas_modified
            or self.schemas_deleted
            or self.breaking_changes
        )

    @property
    def has_breaking_changes(self) -> bool:
        """Return whether any breaking change was detected."""
        return bool(self.breaking_changes)

    def summary_line(self) -> str:
        """Return a one-line summary of the delta.

        Example:
            ``endpoints +1 ~0 -1, schemas +0 ~2 -0, 1 breaking``
        """
        if self.is_empty:
            return "no changes"
        return (
            f"endpoints +{len(self.endpoints_added)} "
            f"~{len(self.endpoints_modified)} "
            f"-{len(self.endpoints_deleted)}, "
            f"schemas +{len(self.schemas_added)} "
            f"~{len(self.schemas_modified)} "
            f"-{len(self.schemas_deleted)}, "
            f"{len(self.breaking_changes)} breaking"
        )

    def to_change_summary(self) -> ChangeSummary:
        """Convert to the change summary stored in version metadata."""
        return ChangeSummary(
            endpoints_added=list(self.endpoints_added),
            endpoints_modified=list(self.endpoints_modified),
            endpoints_deleted=list(self.endpoints_deleted),
            schemas_added=list(self.schemas_added),
            schemas_modified=list(self.schemas_modified),
            schemas_deleted=list(self.schemas_deleted),
            breaking_changes=list(self.breaking_changes),
        )
