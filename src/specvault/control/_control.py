# pyright: reportAny=false, reportExplicitAny=false
"""Version control workflows.

Every mutating workflow follows the same sequence: take the document lock
(``{api_id}``), take the version lock (``{api_id}/{version}``) where content
is touched, load, mutate, save, update the registry, append an audit event,
release. Locks are always taken in that order.

Content and version metadata are written before a version is registered,
so a crash never leaves a registered version without either.
"""

import copy
import dataclasses
from collections.abc import Callable, Sequence
from typing import Any, Self, assert_never

from structlog.typing import FilteringBoundLogger

from specvault.audit import AuditEventType, AuditLog
from specvault.config import Config, SerializationFormat
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
from specvault.diff import BreakingPolicy, DiffResult, compare
from specvault.exceptions import ConflictError, NotFoundError
from specvault.spec import (
    ApiDocument,
    DialectParser,
    JsonObject,
    Linter,
    LintIssue,
    LintSeverity,
    OpenApiDialectParser,
    SpecStore,
)
from specvault.storage import FileSystemStorage, LockManager, StorageProvider
from specvault.utils import logger_from_config, null_logger
from specvault.versions import (
    ApiMetadata,
    ValidationMessage,
    ValidationSnapshot,
    VersionMetadata,
    VersionRegistry,
    VersionStats,
    validate_api_id,
    validate_version_tag,
)

type Mutator = Callable[[JsonObject], JsonObject | None]

DEFAULT_INITIAL_VERSION = "v1.0.0"


def skeleton_document(
    api_id: str,
    version: str,
    *,
    title: str | None = None,
    description: str | None = None,
) -> JsonObject:
    """Return a minimal OpenAPI 3.0 document for a new API."""
    return {
        "openapi": "3.0.0",
        "info": {
            "title": title or f"{api_id} API",
            "version": version.removeprefix("v"),
            "description": description or "API specification",
        },
        "paths": {},
    }


def compute_stats(tree: JsonObject, size_bytes: int) -> VersionStats:
    """Count endpoints, schemas, security schemes and tags of a tree."""
    document = ApiDocument(tree)
    return VersionStats(
        endpoint_count=len(document.endpoints()),
        schema_count=len(document.schemas()),
        file_size_bytes=size_bytes,
        security_schemes_count=len(document.security_schemes()),
        tags_count=len(document.tags),
    )


def summarize_issues(issues: Sequence[LintIssue]) -> ValidationSnapshot:
    """Condense lint findings into a validation snapshot."""
    errors = sum(1 for issue in issues if issue.severity is LintSeverity.ERROR)
    warnings = sum(1 for issue in issues if issue.severity is LintSeverity.WARNING)
    return ValidationSnapshot(
        errors=errors,
        warnings=warnings,
        valid=errors == 0,
        messages=[
            ValidationMessage(
                severity=issue.severity.name.lower(),
                message=issue.message,
                path=".".join(issue.path) or None,
            )
            for issue in issues
        ],
    )


def _version_resource(api_id: str, version: str) -> str:
    return f"{api_id}/{version}"


class VersionControl:
    """Mutating and read-only workflows over documents and their versions.

    Args:
        storage: Storage shared by every component.
        locks: Lock manager over ``storage``; one is created if omitted.
        audit: Audit log; one using ``locks`` is created if omitted.
        parser: Dialect parser for loaded and mutated trees.
        policy: Breaking-change rules for change summaries and comparisons.
        default_format: Encoding for content of new documents.
        logger: Optional structured logger.
    """

    def __init__(  # noqa: PLR0913
        self,
        storage: StorageProvider,
        locks: LockManager | None = None,
        *,
        audit: AuditLog | None = None,
        parser: DialectParser | None = None,
        policy: BreakingPolicy | None = None,
        default_format: SerializationFormat = SerializationFormat.YAML,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._logger: FilteringBoundLogger = logger or null_logger()
        self._locks: LockManager = locks or LockManager(storage, logger=self._logger)
        self._parser: DialectParser = parser or OpenApiDialectParser()
        self.specs: SpecStore = SpecStore(
            storage, parser=self._parser, logger=self._logger
        )
        self.registry: VersionRegistry = VersionRegistry(storage, logger=self._logger)
        self.audit: AuditLog = audit or AuditLog(
            storage, self._locks, logger=self._logger
        )
        self._policy: BreakingPolicy = policy or BreakingPolicy()
        self._default_format: SerializationFormat = default_format

    @classmethod
    def from_config(
        cls, config: Config, *, logger: FilteringBoundLogger | None = None
    ) -> Self:
        """Assemble every component from a loaded configuration."""
        log = logger or logger_from_config(config.logging, component="specvault")
        storage = FileSystemStorage(config.storage.root, logger=log)
        locks = LockManager(storage, config.lock, logger=log)
        audit = AuditLog(
            storage, locks if config.audit.lock_appends else None, logger=log
        )
        return cls(
            storage,
            locks,
            audit=audit,
            policy=BreakingPolicy.from_config(config.breaking),
            default_format=config.storage.default_format,
            logger=log,
        )

    # -------------------------------------------------------------------------
    # Document creation
    # -------------------------------------------------------------------------

    def create_api(  # noqa: PLR0913
        self,
        api_id: str,
        *,
        name: str,
        owner: str,
        version: str = DEFAULT_INITIAL_VERSION,
        tree: JsonObject | None = None,
        description: str | None = None,
        tags: list[str] | None = None,
        actor: str = "system",
        reason: str | None = None,
    ) -> ApiMetadata:
        """Create a document with its first version.

        Without ``tree`` the first version is a minimal OpenAPI 3.0
        skeleton. The first version becomes current and latest stable.

        Raises:
            ValidationError: If ``api_id`` or ``version`` is malformed.
            ConflictError: If the document already exists.
            DialectError: If ``tree`` is not a valid document.
        """
        _ = validate_api_id(api_id)
        _ = validate_version_tag(version)
        content = tree if tree is not None else skeleton_document(
            api_id, version, title=name, description=description
        )
        parsed = self._parser.parse(content)

        with self._locks.lock(api_id):
            if self.registry.api_exists(api_id):
                msg = f"API already exists: {api_id}"
                raise ConflictError(msg, api_id=api_id)
            _ = self.registry.discard_version_metadata(api_id, version)

            with self._locks.lock(_version_resource(api_id, version)):
                size = self.specs.save_spec(
                    api_id, version, parsed.tree, self._default_format
                )

            changes = compare({}, parsed.tree, self._policy).to_change_summary()
            self.registry.create_version_metadata(
                api_id,
                VersionMetadata(
                    version=version,
                    created_by=actor,
                    description=description or f"Version {version}",
                    changes=changes,
                    stats=compute_stats(parsed.tree, size),
                ),
            )
            metadata = self.registry.create_api_metadata(
                api_id,
                name=name,
                owner=owner,
                initial_version=version,
                description=description,
                tags=tags,
            )
            self.audit.log_event(
                self.audit.create_event(
                    api_id,
                    AuditEventType.DOCUMENT_CREATED,
                    version=version,
                    actor=actor,
                    reason=reason,
                    details={"name": name, "owner": owner},
                )
            )

        self._logger.info("api_created", api_id=api_id, version=version)
        return metadata

    def create_version(  # noqa: PLR0913
        self,
        api_id: str,
        version: str,
        *,
        source_version: str | None = None,
        tree: JsonObject | None = None,
        description: str = "",
        make_current: bool = True,
        actor: str = "system",
        reason: str | None = None,
    ) -> VersionMetadata:
        """Create a new version of an existing document.

        The content is ``tree`` if given, otherwise a copy of
        ``source_version`` (default: the current version). The parent is
        ``source_version`` or the current version, and the recorded change
        summary is the diff from the parent's content.

        Raises:
            ValidationError: If a tag is malformed.
            NotFoundError: If the document or ``source_version`` does not exist.
            ConflictError: If ``version`` already exists.
            DocumentUnavailableError: If the parent's content cannot be loaded.
            DialectError: If ``tree`` is not a valid document.
        """
        _ = validate_version_tag(version)
        with self._locks.lock(api_id):
            api = self.registry.get_api_metadata(api_id)
            if version in api.versions:
                msg = f"Version {version} already exists for API {api_id}"
                raise ConflictError(msg, api_id=api_id, version=version)
            parent = source_version or api.current_version
            if parent not in api.versions:
                msg = f"Source version {parent} not found for API {api_id}"
                raise NotFoundError(msg, api_id=api_id, version=parent)
            _ = self.registry.discard_version_metadata(api_id, version)

            parent_spec = self.specs.load_spec(api_id, parent)
            if tree is None:
                content = copy.deepcopy(parent_spec.tree)
            else:
                content = self._parser.parse(tree).tree

            with self._locks.lock(_version_resource(api_id, version)):
                size = self.specs.save_spec(api_id, version, content, parent_spec.format)

            diff = compare(parent_spec.tree, content, self._policy)
            metadata = VersionMetadata(
                version=version,
                created_by=actor,
                parent_version=parent,
                description=description or f"Version {version}",
                changes=diff.to_change_summary(),
                stats=compute_stats(content, size),
            )
            self.registry.create_version_metadata(api_id, metadata)
            _ = self.registry.add_version(api_id, version, make_current=make_current)
            self.audit.log_event(
                self.audit.create_event(
                    api_id,
                    AuditEventType.VERSION_CREATED,
                    version=version,
                    actor=actor,
                    reason=reason,
                    details={
                        "source_version": parent,
                        "copied": tree is None,
                        "description": description,
                    },
                )
            )

        self._logger.info(
            "version_created", api_id=api_id, version=version, parent=parent
        )
        return metadata

    # -------------------------------------------------------------------------
    # Content updates
    # -------------------------------------------------------------------------

    def update_spec(  # noqa: PLR0913
        self,
        api_id: str,
        version: str,
        mutate: Mutator,
        *,
        actor: str = "system",
        reason: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> DiffResult:
        """Apply ``mutate`` to a version's content under the version lock.

        ``mutate`` receives a deep copy of the tree and either edits it in
        place and returns None, or returns a replacement tree. The result
        must still be a valid document; it is saved in the version's
        existing encoding.

        Returns:
            The diff from the previous content to the saved content.

        Raises:
            NotFoundError: If the version is not registered.
            DocumentUnavailableError: If the content cannot be loaded.
            DialectError: If the mutated tree is not a valid document.
            LockTimeoutError: If the version lock cannot be acquired.
        """
        with self._locks.lock(_version_resource(api_id, version)):
            if version not in self.registry.list_versions(api_id):
                msg = f"Version {version} not found for API {api_id}"
                raise NotFoundError(msg, api_id=api_id, version=version)
            loaded = self.specs.load_spec(api_id, version)
            working = copy.deepcopy(loaded.tree)
            replacement = mutate(working)
            updated = self._parser.parse(
                working if replacement is None else replacement
            ).tree
            _ = self.specs.save_spec(api_id, version, updated, loaded.format)
            diff = compare(loaded.tree, updated, self._policy)
            self.audit.log_event(
                self.audit.create_event(
                    api_id,
                    AuditEventType.SPEC_UPDATED,
                    version=version,
                    actor=actor,
                    reason=reason,
                    details={
                        **(details or {}),
                        "summary": diff.summary_line(),
                        "breaking_changes": list(diff.breaking_changes),
                    },
                )
            )

        self._logger.info(
            "spec_updated", api_id=api_id, version=version, summary=diff.summary_line()
        )
        return diff

    def update_metadata(
        self,
        api_id: str,
        /,
        *,
        actor: str = "system",
        reason: str | None = None,
        **patch: Any,
    ) -> ApiMetadata:
        """Apply a partial update to document metadata and audit it.

        Raises:
            NotFoundError: If the document does not exist.
            ValidationError: If the patch is invalid.
        """
        with self._locks.lock(api_id):
            metadata = self.registry.update_api_metadata(api_id, **patch)
            self.audit.log_event(
                self.audit.create_event(
                    api_id,
                    AuditEventType.METADATA_UPDATED,
                    actor=actor,
                    reason=reason,
                    details={"fields": sorted(patch)},
                )
            )
        return metadata

    # -------------------------------------------------------------------------
    # Lineage
    # -------------------------------------------------------------------------

    def set_current_version(
        self,
        api_id: str,
        version: str,
        *,
        actor: str = "system",
        reason: str | None = None,
    ) -> ApiMetadata:
        """Point the current version at a registered version.

        Raises:
            NotFoundError: If the document or version does not exist.
        """
        with self._locks.lock(api_id):
            metadata = self.registry.set_current_version(api_id, version)
            self.audit.log_event(
                self.audit.create_event(
                    api_id,
                    AuditEventType.VERSION_SET_CURRENT,
                    version=version,
                    actor=actor,
                    reason=reason,
                )
            )
        return metadata

    def set_latest_stable(
        self,
        api_id: str,
        version: str,
        *,
        actor: str = "system",
        reason: str | None = None,
    ) -> ApiMetadata:
        """Point the latest stable version at a registered version.

        Raises:
            NotFoundError: If the document or version does not exist.
        """
        with self._locks.lock(api_id):
            metadata = self.registry.set_latest_stable(api_id, version)
            self.audit.log_event(
                self.audit.create_event(
                    api_id,
                    AuditEventType.VERSION_SET_STABLE,
                    version=version,
                    actor=actor,
                    reason=reason,
                )
            )
        return metadata

    def delete_version(
        self,
        api_id: str,
        version: str,
        *,
        actor: str = "system",
        reason: str | None = None,
    ) -> ApiMetadata:
        """Delete a version's registration, metadata and content.

        The registry entry goes first, so an interrupted delete leaves at
        worst unregistered content behind, never a registered version
        without content.

        Raises:
            NotFoundError: If the document or version does not exist.
            ConflictError: If the version is current or latest stable.
        """
        with self._locks.lock(api_id):
            with self._locks.lock(_version_resource(api_id, version)):
                metadata = self.registry.delete_version(api_id, version)
                self.specs.delete_spec(api_id, version)
            self.audit.log_event(
                self.audit.create_event(
                    api_id,
                    AuditEventType.VERSION_DELETED,
                    version=version,
                    actor=actor,
                    reason=reason,
                )
            )
        self._logger.info("version_removed", api_id=api_id, version=version)
        return metadata

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_version(self, api_id: str, version: str) -> VersionMetadata:
        """Return the metadata of one version.

        Raises:
            NotFoundError: If no metadata exists for the version.
        """
        return self.registry.get_version_metadata(api_id, version)

    def list_versions(self, api_id: str) -> ApiMetadata:
        """Return document metadata, including versions newest first."""
        return self.registry.get_api_metadata(api_id)

    def compare_versions(
        self, api_id: str, from_version: str, to_version: str
    ) -> DiffResult:
        """Diff the content of two versions.

        Raises:
            DocumentUnavailableError: If either version cannot be loaded.
        """
        old = self.specs.load_spec(api_id, from_version)
        new = self.specs.load_spec(api_id, to_version)
        return compare(old.tree, new.tree, self._policy)

    def validate_version(
        self, api_id: str, version: str, linter: Linter
    ) -> ValidationSnapshot:
        """Lint a version's content and summarize the findings.

        Version metadata is write-once, so the snapshot is returned rather
        than stored.

        Raises:
            DocumentUnavailableError: If the content cannot be loaded.
        """
        loaded = self.specs.load_spec(api_id, version)
        snapshot = summarize_issues(linter.lint(loaded.tree))
        self._logger.info(
            "version_validated",
            api_id=api_id,
            version=version,
            errors=snapshot.errors,
            warnings=snapshot.warnings,
        )
        return snapshot

    # -------------------------------------------------------------------------
    # Request dispatch
    # -------------------------------------------------------------------------

    def execute(self, request: VersionRequest) -> OperationResult:
        """Run a tagged request and describe its outcome.

        Raises:
            SpecVaultError: Whatever the underlying workflow raises.
        """
        match request:
            case ListVersions(api_id=api_id):
                api = self.list_versions(api_id)
                return OperationResult(
                    f"Found {len(api.versions)} versions for {api_id}",
                    {
                        "count": len(api.versions),
                        "versions": list(api.versions),
                        "current_version": api.current_version,
                        "latest_stable": api.latest_stable,
                    },
                )
            case CreateVersion():
                metadata = self.create_version(
                    request.api_id,
                    request.version,
                    source_version=request.source_version,
                    description=request.description,
                    make_current=request.make_current,
                    actor=request.actor,
                    reason=request.reason,
                )
                return OperationResult(
                    f"Created version {request.version} for {request.api_id}",
                    {"api_id": request.api_id, **metadata.model_dump(mode="json")},
                )
            case GetVersion(api_id=api_id, version=version):
                metadata = self.get_version(api_id, version)
                return OperationResult(
                    f"Retrieved metadata for {api_id} {version}",
                    metadata.model_dump(mode="json"),
                )
            case CompareVersions(api_id=api_id, from_version=old, to_version=new):
                diff = self.compare_versions(api_id, old, new)
                return OperationResult(
                    f"Compared {old} to {new}: {diff.summary_line()}",
                    {
                        "from_version": old,
                        "to_version": new,
                        "has_breaking_changes": diff.has_breaking_changes,
                        "changes": dataclasses.asdict(diff),
                    },
                )
            case SetCurrentVersion():
                api = self.set_current_version(
                    request.api_id,
                    request.version,
                    actor=request.actor,
                    reason=request.reason,
                )
                return OperationResult(
                    f"Set {request.version} as current version for {request.api_id}",
                    {"api_id": request.api_id, "current_version": api.current_version},
                )
            case SetLatestStable():
                api = self.set_latest_stable(
                    request.api_id,
                    request.version,
                    actor=request.actor,
                    reason=request.reason,
                )
                return OperationResult(
                    f"Set {request.version} as latest stable for {request.api_id}",
                    {"api_id": request.api_id, "latest_stable": api.latest_stable},
                )
            case DeleteVersion():
                _ = self.delete_version(
                    request.api_id,
                    request.version,
                    actor=request.actor,
                    reason=request.reason,
                )
                return OperationResult(
                    f"Deleted version {request.version} for {request.api_id}",
                    {"api_id": request.api_id, "deleted_version": request.version},
                )
            case _:
                assert_never(request)
