"""Shared test fixtures for specvault tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from specvault.config import LockConfiguration
from specvault.control import VersionControl
from specvault.spec import JsonObject
from specvault.storage import FileSystemStorage, LockManager

TreeFactory = Callable[..., JsonObject]


@pytest.fixture
def storage(tmp_path: Path) -> FileSystemStorage:
    """Create a storage provider rooted in a temporary directory."""
    return FileSystemStorage(tmp_path / "data")


@pytest.fixture
def fast_lock_config() -> LockConfiguration:
    """Lock settings with short waits so contention tests finish quickly."""
    return LockConfiguration(
        retries=50,
        retry_interval=0.005,
        max_interval=0.02,
        jitter=0.0,
        stale_after=30.0,
    )


@pytest.fixture
def locks(
    storage: FileSystemStorage, fast_lock_config: LockConfiguration
) -> LockManager:
    """Create a lock manager over the temporary storage."""
    return LockManager(storage, fast_lock_config)


@pytest.fixture
def control(storage: FileSystemStorage, locks: LockManager) -> VersionControl:
    """Create version control workflows over the temporary storage."""
    return VersionControl(storage, locks)


@pytest.fixture
def make_tree() -> TreeFactory:
    """Return a factory building OpenAPI 3.0 trees.

    ``paths`` maps a path to the methods it supports; ``schemas`` maps a
    schema name to its definition.
    """

    def _make(
        paths: dict[str, list[str]] | None = None,
        schemas: dict[str, Any] | None = None,
        **extra: Any,
    ) -> JsonObject:
        tree: JsonObject = {
            "openapi": "3.0.3",
            "info": {"title": "Test API", "version": "1.0.0"},
            "paths": {
                path: {
                    method: {
                        "summary": f"{method} {path}",
                        "responses": {"200": {"description": "OK"}},
                    }
                    for method in methods
                }
                for path, methods in (paths or {}).items()
            },
        }
        if schemas is not None:
            tree["components"] = {"schemas": schemas}
        tree.update(extra)
        return tree

    return _make
