"""Document storage.

Provides key-addressed byte storage with atomic writes
(:class:`FileSystemStorage`) and cross-process locks over the same keys
(:class:`LockManager`).
"""

from specvault.storage._lock import LOCK_SUFFIX, LockManager
from specvault.storage._provider import (
    TEMP_SUFFIX,
    FileSystemStorage,
    StorageProvider,
    validate_key,
)

__all__ = [
    "LOCK_SUFFIX",
    "TEMP_SUFFIX",
    "FileSystemStorage",
    "LockManager",
    "StorageProvider",
    "validate_key",
]
