import pytest

from specvault.exceptions import (
    ConfigLoadError,
    ConflictError,
    DialectError,
    DocumentUnavailableError,
    ErrorStatus,
    LockTimeoutError,
    NotFoundError,
    SpecVaultError,
    StorageError,
    StorageNotFoundError,
    ValidationError,
    error_status,
)


class TestHierarchy:
    def test_all_errors_share_base(self) -> None:
        for error in (
            ConfigLoadError("x"),
            ValidationError("x"),
            NotFoundError("x"),
            ConflictError("x"),
            StorageError("x", operation="read", key="k"),
            LockTimeoutError("x", resource="r", attempts=1),
            DialectError("x"),
            DocumentUnavailableError("x", api_id="a", version="v1.0.0"),
        ):
            assert isinstance(error, SpecVaultError)

    def test_builtin_compatibility(self) -> None:
        assert isinstance(ValidationError("x"), ValueError)
        assert isinstance(NotFoundError("x"), KeyError)

    def test_not_found_message_is_not_quoted(self) -> None:
        assert str(NotFoundError("API not found: billing-api")) == (
            "API not found: billing-api"
        )

    def test_context_attributes(self) -> None:
        error = StorageError("x", operation="write", key="a/b", cause=OSError("disk"))

        assert error.operation == "write"
        assert error.key == "a/b"
        assert isinstance(error.cause, OSError)


class TestErrorStatus:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (NotFoundError("x"), ErrorStatus.MISSING),
            (StorageNotFoundError("x", operation="read", key="k"), ErrorStatus.MISSING),
            (ValidationError("x"), ErrorStatus.REJECTED),
            (ConflictError("x"), ErrorStatus.REJECTED),
            (DialectError("x"), ErrorStatus.REJECTED),
            (StorageError("x", operation="write", key="k"), ErrorStatus.UNAVAILABLE),
            (
                LockTimeoutError("x", resource="r", attempts=3),
                ErrorStatus.UNAVAILABLE,
            ),
            (RuntimeError("x"), ErrorStatus.UNAVAILABLE),
        ],
    )
    def test_mapping(self, error: BaseException, expected: ErrorStatus) -> None:
        assert error_status(error) is expected

    def test_unavailable_document_depends_on_cause(self) -> None:
        missing = DocumentUnavailableError(
            "x",
            api_id="a",
            version="v1.0.0",
            cause=StorageNotFoundError("x", operation="read", key="k"),
        )
        corrupt = DocumentUnavailableError(
            "x", api_id="a", version="v1.0.0", cause=DialectError("bad")
        )

        assert error_status(missing) is ErrorStatus.MISSING
        assert error_status(corrupt) is ErrorStatus.UNAVAILABLE
