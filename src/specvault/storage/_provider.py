"""Key-to-bytes storage with atomic writes.

Keys are relative, forward-slash separated paths such as
``billing-api/v1.0.0/spec.yaml``. Every key is validated before any
filesystem access so that no key can address a file outside the storage
root.
"""

import os
import re
import tempfile
from pathlib import Path, PureWindowsPath
from typing import Protocol, runtime_checkable

from structlog.typing import FilteringBoundLogger

from specvault.exceptions import StorageError, StorageNotFoundError, ValidationError
from specvault.utils import null_logger

_SEPARATORS = re.compile(r"[\\/]")

# Suffix of in-flight temporary files; never reported by list().
TEMP_SUFFIX = ".tmp"


@runtime_checkable
class StorageProvider(Protocol):
    """Protocol for key-addressed byte storage.

    Implementations must make ``write`` atomic: a concurrent or subsequent
    ``read`` observes either the previous content or the new content in
    full, never a partial write.
    """

    def read(self, key: str) -> bytes:
        """Return the content stored under ``key``.

        Raises:
            StorageNotFoundError: If the key does not exist.
            StorageError: If the content cannot be read.
        """
        ...

    def write(self, key: str, content: bytes | str) -> None:
        """Atomically replace the content stored under ``key``."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key``.

        Raises:
            StorageNotFoundError: If the key does not exist.
        """
        ...

    def exists(self, key: str) -> bool:
        """Return whether ``key`` holds content."""
        ...

    def list(self, prefix: str = "") -> list[str]:
        """Return every key below ``prefix``, recursively and sorted."""
        ...

    def ensure_directory(self, path: str = "") -> None:
        """Create the directory ``path`` and any missing parents."""
        ...

    def resolve(self, key: str) -> Path:
        """Return the validated filesystem location of ``key``."""
        ...


def validate_key(key: str, *, allow_empty: bool = False) -> None:
    """Validate the shape of a storage key without touching the filesystem.

    Args:
        key: The key to validate.
        allow_empty: Accept ``""`` as a reference to the storage root.

    Raises:
        ValidationError: If the key is blank, absolute, or contains a
            ``..`` segment under either separator.
    """
    if not isinstance(key, str):  # pyright: ignore[reportUnnecessaryIsInstance]
        msg = f"Storage key must be a string, got {type(key).__name__}"
        raise ValidationError(msg, field="key", value=key, expected="str")

    if key == "" and allow_empty:
        return

    if not key.strip():
        msg = "Storage key must not be empty"
        raise ValidationError(msg, field="key", value=key, expected="non-empty path")

    if key.startswith(("/", "\\")) or PureWindowsPath(key).drive:
        msg = f"Storage key must be relative: {key!r}"
        raise ValidationError(msg, field="key", value=key, expected="relative path")

    if ".." in _SEPARATORS.split(key):
        msg = f"Storage key must not contain '..' segments: {key!r}"
        raise ValidationError(
            msg, field="key", value=key, expected="path without '..' segments"
        )


class FileSystemStorage:
    """Storage provider backed by a directory tree.

    Attributes:
        root: Resolved root directory all keys are relative to.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the provider.

        The root directory is created lazily by the first write.

        Args:
            root: Root directory for all keys.
            logger: Optional structured logger.
        """
        self.root: Path = Path(root).resolve()
        self._logger: FilteringBoundLogger = logger or null_logger()

    def resolve(self, key: str, *, allow_empty: bool = False) -> Path:
        """Validate ``key`` and return its filesystem location.

        Raises:
            ValidationError: If the key is malformed or resolves outside
                the root (for example through a symlink).
        """
        validate_key(key, allow_empty=allow_empty)
        if key == "":
            return self.root

        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root):
            msg = f"Storage key resolves outside the storage root: {key!r}"
            raise ValidationError(
                msg, field="key", value=key, expected="path within storage root"
            )
        return path

    def read(self, key: str) -> bytes:
        """Return the content stored under ``key``.

        Raises:
            ValidationError: If the key is malformed.
            StorageNotFoundError: If the key does not exist.
            StorageError: If the file cannot be read.
        """
        path = self.resolve(key)
        try:
            content = path.read_bytes()
        except FileNotFoundError as e:
            msg = f"Key not found: {key}"
            raise StorageNotFoundError(msg, operation="read", key=key, cause=e) from e
        except OSError as e:
            self._logger.warning("storage_read_failed", key=key, error=str(e))
            msg = f"Failed to read {key}: {e}"
            raise StorageError(msg, operation="read", key=key, cause=e) from e

        self._logger.debug("storage_read", key=key, size=len(content))
        return content

    def write(self, key: str, content: bytes | str) -> None:
        """Atomically replace the content stored under ``key``.

        The content is written to a temporary file in the destination
        directory which is then renamed over the destination, so readers
        see either the old or the new content in full. Parent directories
        are created as needed.

        Raises:
            ValidationError: If the key is malformed.
            StorageError: If the write or rename fails. The temporary file
                is removed and the previous content is left untouched.
        """
        path = self.resolve(key)
        data = content.encode("utf-8") if isinstance(content, str) else content

        temp_path: Path | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="wb",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=TEMP_SUFFIX,
                delete=False,
            ) as f:
                temp_path = Path(f.name)
                _ = f.write(data)
                f.flush()
                os.fsync(f.fileno())

            # Path.replace() is atomic on both POSIX and Windows
            _ = temp_path.replace(path)
        except OSError as e:
            if temp_path is not None:
                self._discard_temp(temp_path, key)
            self._logger.warning("storage_write_failed", key=key, error=str(e))
            msg = f"Failed to write {key}: {e}"
            raise StorageError(msg, operation="write", key=key, cause=e) from e

        self._logger.debug("storage_write", key=key, size=len(data))

    def _discard_temp(self, temp_path: Path, key: str) -> None:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as cleanup_error:
            self._logger.warning(
                "storage_temp_cleanup_failed",
                key=key,
                temp_path=str(temp_path),
                error=str(cleanup_error),
            )

    def delete(self, key: str) -> None:
        """Remove ``key``.

        Raises:
            ValidationError: If the key is malformed.
            StorageNotFoundError: If the key does not exist.
            StorageError: If the file cannot be removed.
        """
        path = self.resolve(key)
        try:
            path.unlink()
        except FileNotFoundError as e:
            msg = f"Key not found: {key}"
            raise StorageNotFoundError(
                msg, operation="delete", key=key, cause=e
            ) from e
        except OSError as e:
            self._logger.warning("storage_delete_failed", key=key, error=str(e))
            msg = f"Failed to delete {key}: {e}"
            raise StorageError(msg, operation="delete", key=key, cause=e) from e

        self._logger.debug("storage_delete", key=key)

    def exists(self, key: str) -> bool:
        """Return whether ``key`` holds content.

        Raises:
            ValidationError: If the key is malformed.
        """
        return self.resolve(key).is_file()

    def list(self, prefix: str = "") -> list[str]:
        """Return every key below ``prefix``.

        Args:
            prefix: Directory key to list; empty lists the whole store.

        Returns:
            Keys relative to the root with forward slashes, sorted. A
            missing prefix yields an empty list.

        Raises:
            ValidationError: If the prefix is malformed.
            StorageError: If the directory tree cannot be walked.
        """
        base = self.resolve(prefix, allow_empty=True)
        if not base.is_dir():
            return []

        keys: list[str] = []
        try:
            for path in base.rglob("*"):
                if path.name.endswith(TEMP_SUFFIX) or not path.is_file():
                    continue
                keys.append(path.relative_to(self.root).as_posix())
        except OSError as e:
            msg = f"Failed to list {prefix or '/'}: {e}"
            raise StorageError(msg, operation="list", key=prefix, cause=e) from e

        return sorted(keys)

    def ensure_directory(self, path: str = "") -> None:
        """Create the directory ``path`` and any missing parents.

        Raises:
            ValidationError: If the path is malformed.
            StorageError: If the directory cannot be created.
        """
        directory = self.resolve(path, allow_empty=True)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Failed to create directory {path or '/'}: {e}"
            raise StorageError(msg, operation="mkdir", key=path, cause=e) from e
