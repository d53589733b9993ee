"""specvault exceptions."""

from enum import StrEnum
from typing import Any


class SpecVaultError(Exception):
    """Base exception for specvault errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(SpecVaultError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: str | None = path
        self.line: int | None = line
        self.column: int | None = column


# =============================================================================
# Domain Exceptions
# =============================================================================


class ValidationError(SpecVaultError, ValueError):
    """Raised when a key, identifier, version tag or input is malformed.

    Attributes:
        field: The field that failed validation (if applicable).
        value: The invalid value.
        expected: Description of what was expected.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str | None = None,
    ) -> None:
        """Initialize with error message and validation context.

        Args:
            message: Human-readable error message.
            field: The field that failed validation.
            value: The invalid value.
            expected: Description of what was expected.
        """
        super().__init__(message)
        self.field: str | None = field
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str | None = expected


class NotFoundError(SpecVaultError, KeyError):
    """Raised when a document, version or component is absent.

    Attributes:
        api_id: The document identifier involved.
        version: The version tag involved (if applicable).
    """

    def __init__(
        self,
        message: str,
        *,
        api_id: str | None = None,
        version: str | None = None,
    ) -> None:
        """Initialize with error message and lookup context.

        Args:
            message: Human-readable error message.
            api_id: The document identifier involved.
            version: The version tag involved.
        """
        super().__init__(message)
        self.api_id: str | None = api_id
        self.version: str | None = version

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message.
        return str(self.args[0]) if self.args else ""


class ConflictError(SpecVaultError):
    """Raised when a state-machine precondition is violated.

    Examples are creating something that already exists, or deleting a
    version that is still current or latest stable.

    Attributes:
        api_id: The document identifier involved.
        version: The version tag involved (if applicable).
    """

    def __init__(
        self,
        message: str,
        *,
        api_id: str | None = None,
        version: str | None = None,
    ) -> None:
        """Initialize with error message and state context.

        Args:
            message: Human-readable error message.
            api_id: The document identifier involved.
            version: The version tag involved.
        """
        super().__init__(message)
        self.api_id: str | None = api_id
        self.version: str | None = version


class StorageError(SpecVaultError):
    """Raised when a storage operation fails.

    Attributes:
        operation: The operation that failed ("read", "write", "delete", ...).
        key: The storage key the operation was applied to.
        cause: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        key: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and I/O context.

        Args:
            message: Human-readable error message.
            operation: The operation that failed.
            key: The storage key the operation was applied to.
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.operation: str = operation
        self.key: str = key
        self.cause: Exception | None = cause


class StorageNotFoundError(StorageError):
    """Raised when a storage key does not exist."""


class LockTimeoutError(SpecVaultError):
    """Raised when a lock cannot be acquired within the retry budget.

    Attributes:
        resource: The resource that could not be locked.
        attempts: Number of acquisition attempts made.
    """

    def __init__(self, message: str, *, resource: str, attempts: int) -> None:
        """Initialize with error message and lock context.

        Args:
            message: Human-readable error message.
            resource: The resource that could not be locked.
            attempts: Number of acquisition attempts made.
        """
        super().__init__(message)
        self.resource: str = resource
        self.attempts: int = attempts


class DialectError(SpecVaultError):
    """Raised when a decoded tree is not a syntactically valid document.

    Attributes:
        path: Structural path of the offending node (if known).
    """

    def __init__(self, message: str, *, path: tuple[str, ...] = ()) -> None:
        """Initialize with error message and structural location."""
        super().__init__(message)
        self.path: tuple[str, ...] = path


class DocumentUnavailableError(SpecVaultError):
    """Raised when a document version cannot be loaded.

    Covers both a missing document and one that exists but cannot be
    decoded or parsed; the original failure is available as ``cause``.

    Attributes:
        api_id: The document identifier.
        version: The version tag.
        cause: The underlying exception.
    """

    def __init__(
        self,
        message: str,
        *,
        api_id: str,
        version: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and document context."""
        super().__init__(message)
        self.api_id: str = api_id
        self.version: str = version
        self.cause: Exception | None = cause

    @property
    def missing(self) -> bool:
        """Whether the document was absent rather than unparseable."""
        return isinstance(self.cause, (StorageNotFoundError, NotFoundError))


# =============================================================================
# External status mapping
# =============================================================================


class ErrorStatus(StrEnum):
    """Externally visible status for a failed operation."""

    MISSING = "missing"
    REJECTED = "rejected"
    UNAVAILABLE = "unavailable"


def error_status(error: BaseException) -> ErrorStatus:
    """Map an exception to the status callers should report.

    Args:
        error: The exception raised by a specvault operation.

    Returns:
        MISSING for absent documents or versions, REJECTED for invalid input
        and violated preconditions, UNAVAILABLE for everything else (storage,
        lock timeouts, unparseable documents); the caller may retry those.
    """
    if isinstance(error, DocumentUnavailableError):
        return ErrorStatus.MISSING if error.missing else ErrorStatus.UNAVAILABLE
    if isinstance(error, (NotFoundError, StorageNotFoundError)):
        return ErrorStatus.MISSING
    if isinstance(error, (ValidationError, ConflictError, DialectError)):
        return ErrorStatus.REJECTED
    return ErrorStatus.UNAVAILABLE
