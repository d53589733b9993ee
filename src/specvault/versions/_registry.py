# pyright: reportAny=false, reportExplicitAny=false
"""Per-document version registry.

Layout::

    {api_id}/metadata.json             document metadata
    {api_id}/{version}/metadata.json   version metadata (write-once)

The registry performs no locking. Mutating callers hold the document lock
(``{api_id}``) around each call.
"""

from typing import Any, Final

import orjson
import pydantic
from structlog.typing import FilteringBoundLogger

from specvault.exceptions import (
    ConflictError,
    NotFoundError,
    StorageError,
    StorageNotFoundError,
    ValidationError,
)
from specvault.storage import StorageProvider
from specvault.utils import null_logger
from specvault.versions._models import ApiMetadata, VersionMetadata
from specvault.versions._tags import validate_api_id, validate_version_tag

METADATA_FILENAME: Final = "metadata.json"

# Fields fixed at creation time; patches naming them are ignored.
_IMMUTABLE_FIELDS: Final = frozenset({"api_id", "created_at"})


def api_metadata_key(api_id: str) -> str:
    """Return the storage key of a document's metadata."""
    return f"{api_id}/{METADATA_FILENAME}"


def version_metadata_key(api_id: str, version: str) -> str:
    """Return the storage key of a version's metadata."""
    return f"{api_id}/{version}/{METADATA_FILENAME}"


class VersionRegistry:
    """Document and version metadata store.

    Document state machine: absent until ``create_api_metadata``, then
    active with at least one version. ``current_version`` and
    ``latest_stable`` always reference a registered version, so a version
    cannot be deleted while either pointer names it.
    """

    def __init__(
        self,
        storage: StorageProvider,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._storage: StorageProvider = storage
        self._logger: FilteringBoundLogger = logger or null_logger()

    # -------------------------------------------------------------------------
    # Persistence helpers
    # -------------------------------------------------------------------------

    def _read_json(self, key: str) -> dict[str, Any]:
        content = self._storage.read(key)
        try:
            data = orjson.loads(content)
        except orjson.JSONDecodeError as e:
            msg = f"Corrupt metadata at {key}: {e}"
            raise StorageError(msg, operation="decode", key=key, cause=e) from e
        if not isinstance(data, dict):
            msg = f"Corrupt metadata at {key}: expected an object"
            raise StorageError(msg, operation="decode", key=key)
        return data

    def _write_model(self, key: str, model: pydantic.BaseModel) -> None:
        content = orjson.dumps(
            model.model_dump(mode="json", exclude_none=True),
            option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS,
        )
        self._storage.write(key, content)

    def _load_api(self, api_id: str) -> ApiMetadata:
        key = api_metadata_key(validate_api_id(api_id))
        try:
            data = self._read_json(key)
        except StorageNotFoundError as e:
            msg = f"API not found: {api_id}"
            raise NotFoundError(msg, api_id=api_id) from e
        try:
            return ApiMetadata.model_validate(data)
        except pydantic.ValidationError as e:
            msg = f"Invalid metadata for API {api_id}: {e}"
            raise StorageError(msg, operation="decode", key=key, cause=e) from e

    def _save_api(self, metadata: ApiMetadata) -> None:
        self._write_model(api_metadata_key(metadata.api_id), metadata)

    @staticmethod
    def _replace(metadata: ApiMetadata, **changes: Any) -> ApiMetadata:
        """Return ``metadata`` with ``changes`` applied and re-validated."""
        try:
            return ApiMetadata.model_validate(
                {**metadata.model_dump(), **changes}
            )
        except pydantic.ValidationError as e:
            msg = f"Invalid metadata update for API {metadata.api_id}: {e}"
            raise ValidationError(
                msg, field=", ".join(sorted(changes)), value=changes
            ) from e

    # -------------------------------------------------------------------------
    # Document metadata
    # -------------------------------------------------------------------------

    def api_exists(self, api_id: str) -> bool:
        """Return whether document metadata exists for ``api_id``."""
        return self._storage.exists(api_metadata_key(validate_api_id(api_id)))

    def get_api_metadata(self, api_id: str) -> ApiMetadata:
        """Return the metadata of a document.

        Raises:
            ValidationError: If ``api_id`` is malformed.
            NotFoundError: If the document does not exist.
            StorageError: If the metadata cannot be read or decoded.
        """
        return self._load_api(api_id)

    def list_apis(self) -> list[str]:
        """Return the identifiers of every registered document, sorted."""
        api_ids: set[str] = set()
        for key in self._storage.list(""):
            parts = key.split("/")
            if len(parts) == 2 and parts[1] == METADATA_FILENAME:  # noqa: PLR2004
                api_ids.add(parts[0])
        return sorted(api_ids)

    def create_api_metadata(  # noqa: PLR0913
        self,
        api_id: str,
        *,
        name: str,
        owner: str,
        initial_version: str,
        description: str | None = None,
        tags: list[str] | None = None,
    ) -> ApiMetadata:
        """Register a new document with its first version.

        The first version becomes both current and latest stable.

        Raises:
            ValidationError: If ``api_id`` or ``initial_version`` is malformed.
            ConflictError: If the document already exists.
        """
        _ = validate_version_tag(initial_version)
        if self.api_exists(api_id):
            msg = f"API already exists: {api_id}"
            raise ConflictError(msg, api_id=api_id)

        metadata = ApiMetadata(
            api_id=api_id,
            name=name,
            owner=owner,
            versions=[initial_version],
            current_version=initial_version,
            latest_stable=initial_version,
            description=description,
            tags=tags,
        )
        self._save_api(metadata)
        self._logger.info(
            "api_metadata_created", api_id=api_id, version=initial_version
        )
        return metadata

    def update_api_metadata(self, api_id: str, /, **patch: Any) -> ApiMetadata:
        """Apply a partial update to a document's metadata.

        ``api_id`` and ``created_at`` are fixed at creation; attempts to
        change them are logged and dropped from the patch.

        Raises:
            NotFoundError: If the document does not exist.
            ValidationError: If the patch names an unknown field or would
                leave a pointer naming an unregistered version.
        """
        metadata = self._load_api(api_id)
        ignored = sorted(_IMMUTABLE_FIELDS & patch.keys())
        if ignored:
            self._logger.warning(
                "api_metadata_immutable_fields_ignored", api_id=api_id, fields=ignored
            )
        changes = {k: v for k, v in patch.items() if k not in _IMMUTABLE_FIELDS}
        unknown = sorted(changes.keys() - ApiMetadata.model_fields.keys())
        if unknown:
            msg = f"Unknown metadata fields for API {api_id}: {', '.join(unknown)}"
            raise ValidationError(msg, field=", ".join(unknown), value=patch)
        if not changes:
            return metadata

        updated = self._replace(metadata, **changes)
        self._save_api(updated)
        self._logger.info(
            "api_metadata_updated", api_id=api_id, fields=sorted(changes)
        )
        return updated

    # -------------------------------------------------------------------------
    # Version lineage
    # -------------------------------------------------------------------------

    def list_versions(self, api_id: str) -> list[str]:
        """Return a document's version tags, newest first.

        Raises:
            NotFoundError: If the document does not exist.
        """
        return list(self._load_api(api_id).versions)

    def add_version(
        self, api_id: str, version: str, *, make_current: bool = True
    ) -> ApiMetadata:
        """Register ``version`` as the newest version of a document.

        Args:
            api_id: The document identifier.
            version: The tag to register.
            make_current: Also point ``current_version`` at the new tag.

        Raises:
            ValidationError: If ``version`` is malformed.
            NotFoundError: If the document does not exist.
            ConflictError: If the tag is already registered.
        """
        _ = validate_version_tag(version)
        metadata = self._load_api(api_id)
        if version in metadata.versions:
            msg = f"Version {version} already exists for API {api_id}"
            raise ConflictError(msg, api_id=api_id, version=version)

        changes: dict[str, Any] = {"versions": [version, *metadata.versions]}
        if make_current:
            changes["current_version"] = version
        updated = self._replace(metadata, **changes)
        self._save_api(updated)
        self._logger.info(
            "version_added", api_id=api_id, version=version, current=make_current
        )
        return updated

    def _require_member(self, metadata: ApiMetadata, version: str) -> None:
        if version not in metadata.versions:
            msg = f"Version {version} not found for API {metadata.api_id}"
            raise NotFoundError(msg, api_id=metadata.api_id, version=version)

    def set_current_version(self, api_id: str, version: str) -> ApiMetadata:
        """Point ``current_version`` at a registered version.

        Raises:
            NotFoundError: If the document or the version does not exist.
        """
        metadata = self._load_api(api_id)
        self._require_member(metadata, version)
        updated = self._replace(metadata, current_version=version)
        self._save_api(updated)
        self._logger.info("current_version_set", api_id=api_id, version=version)
        return updated

    def set_latest_stable(self, api_id: str, version: str) -> ApiMetadata:
        """Point ``latest_stable`` at a registered version.

        Raises:
            NotFoundError: If the document or the version does not exist.
        """
        metadata = self._load_api(api_id)
        self._require_member(metadata, version)
        updated = self._replace(metadata, latest_stable=version)
        self._save_api(updated)
        self._logger.info("latest_stable_set", api_id=api_id, version=version)
        return updated

    def delete_version(self, api_id: str, version: str) -> ApiMetadata:
        """Unregister a version and delete its version metadata.

        Content is not touched; the caller deletes it through the spec
        store after this call succeeds.

        Raises:
            NotFoundError: If the document or the version does not exist.
            ConflictError: If the version is current or latest stable.
        """
        metadata = self._load_api(api_id)
        self._require_member(metadata, version)
        if version in (metadata.current_version, metadata.latest_stable):
            msg = (
                f"Cannot delete version {version} of API {api_id}: "
                "it is the current or latest stable version"
            )
            raise ConflictError(msg, api_id=api_id, version=version)

        updated = self._replace(
            metadata, versions=[v for v in metadata.versions if v != version]
        )
        self._save_api(updated)
        try:
            self._storage.delete(version_metadata_key(api_id, version))
        except StorageNotFoundError:
            self._logger.warning(
                "version_metadata_missing", api_id=api_id, version=version
            )
        self._logger.info("version_deleted", api_id=api_id, version=version)
        return updated

    # -------------------------------------------------------------------------
    # Version metadata
    # -------------------------------------------------------------------------

    def version_metadata_exists(self, api_id: str, version: str) -> bool:
        """Return whether metadata was recorded for a version."""
        key = version_metadata_key(
            validate_api_id(api_id), validate_version_tag(version)
        )
        return self._storage.exists(key)

    def create_version_metadata(self, api_id: str, metadata: VersionMetadata) -> None:
        """Record the metadata of a version. Version metadata is write-once.

        Raises:
            ConflictError: If metadata already exists for the version.
        """
        if self.version_metadata_exists(api_id, metadata.version):
            msg = f"Metadata already exists for {api_id} {metadata.version}"
            raise ConflictError(msg, api_id=api_id, version=metadata.version)
        self._write_model(version_metadata_key(api_id, metadata.version), metadata)
        self._logger.info(
            "version_metadata_created", api_id=api_id, version=metadata.version
        )

    def get_version_metadata(self, api_id: str, version: str) -> VersionMetadata:
        """Return the metadata of a version.

        Raises:
            ValidationError: If ``api_id`` or ``version`` is malformed.
            NotFoundError: If no metadata exists for the version.
            StorageError: If the metadata cannot be read or decoded.
        """
        key = version_metadata_key(
            validate_api_id(api_id), validate_version_tag(version)
        )
        try:
            data = self._read_json(key)
        except StorageNotFoundError as e:
            msg = f"Metadata not found for {api_id} {version}"
            raise NotFoundError(msg, api_id=api_id, version=version) from e
        try:
            return VersionMetadata.model_validate(data)
        except pydantic.ValidationError as e:
            msg = f"Invalid metadata for {api_id} {version}: {e}"
            raise StorageError(msg, operation="decode", key=key, cause=e) from e

    def discard_version_metadata(self, api_id: str, version: str) -> bool:
        """Delete metadata left behind for a version that was never registered.

        Returns:
            Whether orphaned metadata existed.

        Raises:
            ConflictError: If the version is registered; registered versions
                are removed through ``delete_version``.
        """
        if self.api_exists(api_id) and version in self.list_versions(api_id):
            msg = f"Version {version} of API {api_id} is registered"
            raise ConflictError(msg, api_id=api_id, version=version)
        _ = validate_version_tag(version)
        try:
            self._storage.delete(version_metadata_key(api_id, version))
        except StorageNotFoundError:
            return False
        self._logger.warning(
            "orphan_version_metadata_discarded", api_id=api_id, version=version
        )
        return True
