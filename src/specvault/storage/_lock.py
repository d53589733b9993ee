"""Cross-process mutual exclusion over storage keys.

A lock is a directory created next to the locked resource
(``billing-api/v1.0.0`` is guarded by ``billing-api/v1.0.0.lock``).
Directory creation is atomic on every supported platform, so exactly one
contender wins. Locks are not reentrant: acquiring a lock already held by
the same thread waits for it like any other contender.

While a lock is held its modification time is refreshed every
``stale_after / 2`` seconds. A holder that dies without releasing stops
refreshing, and once the directory is older than ``stale_after`` seconds
the lock is treated as abandoned. The contender that takes it over first
renames the exact directory it judged stale to a tombstone, so a lock
recreated by a faster contender in the meantime is never removed.
"""

import os
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from uuid import uuid4

from structlog.typing import FilteringBoundLogger

from specvault.config import LockConfiguration
from specvault.exceptions import LockTimeoutError, SpecVaultError, StorageError
from specvault.storage._provider import StorageProvider
from specvault.utils import ExponentialBackoff, null_logger

LOCK_SUFFIX = ".lock"
TOMBSTONE_INFIX = ".stale-"


class _LeaseRefresher:
    """Keep a held lock fresh by touching it from a daemon thread."""

    def __init__(
        self,
        resource: str,
        lock_path: Path,
        interval: float,
        clock: Callable[[], float],
        logger: FilteringBoundLogger,
    ) -> None:
        self._resource: str = resource
        self._lock_path: Path = lock_path
        self._interval: float = interval
        self._clock: Callable[[], float] = clock
        self._logger: FilteringBoundLogger = logger
        self._stopped: threading.Event = threading.Event()
        self._thread: threading.Thread = threading.Thread(
            target=self._run, name=f"specvault-lease:{resource}", daemon=True
        )

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()
        self._thread.join()

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            now = self._clock()
            try:
                os.utime(self._lock_path, (now, now))
            except FileNotFoundError:
                # Briefly renamed by a contender checking staleness, or forced.
                self._logger.warning("lock_lease_missing", resource=self._resource)
            except OSError as e:
                self._logger.error(
                    "lock_refresh_failed", resource=self._resource, error=str(e)
                )


class LockManager:
    """Acquire and release exclusive locks keyed by storage path.

    Args:
        storage: Provider whose keys are being locked.
        config: Retry and staleness settings.
        logger: Optional structured logger.
        sleep: Function used to wait between attempts.
        clock: Function returning the current wall-clock time in seconds.
    """

    def __init__(
        self,
        storage: StorageProvider,
        config: LockConfiguration | None = None,
        *,
        logger: FilteringBoundLogger | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage: StorageProvider = storage
        self._config: LockConfiguration = config or LockConfiguration()
        self._logger: FilteringBoundLogger = logger or null_logger()
        self._sleep: Callable[[float], None] = sleep
        self._clock: Callable[[], float] = clock
        self._backoff: ExponentialBackoff = ExponentialBackoff(
            base=self._config.retry_interval,
            max_delay=self._config.max_interval,
            multiplier=self._config.multiplier,
            jitter=self._config.jitter,
        )
        self._leases: dict[str, _LeaseRefresher] = {}
        self._leases_guard: threading.Lock = threading.Lock()

    def _lock_path(self, resource: str) -> Path:
        path = self._storage.resolve(resource)
        return path.with_name(path.name + LOCK_SUFFIX)

    def _stale_stat(self, lock_path: Path) -> os.stat_result | None:
        """Return the lock's stat if it is stale, None if fresh or absent."""
        try:
            stat = lock_path.stat()
        except FileNotFoundError:
            return None
        if self._clock() - stat.st_mtime > self._config.stale_after:
            return stat
        return None

    def _is_stale(self, lock_path: Path) -> bool:
        return self._stale_stat(lock_path) is not None

    def _remove_stale(
        self, resource: str, lock_path: Path, judged: os.stat_result
    ) -> bool:
        """Remove the stale lock described by ``judged``.

        Returns:
            False if the directory at ``lock_path`` is no longer the one
            judged stale, in which case it is left in place.
        """
        tombstone = lock_path.with_name(
            f"{lock_path.name}{TOMBSTONE_INFIX}{uuid4().hex}"
        )
        try:
            lock_path.rename(tombstone)
        except FileNotFoundError:
            # Already removed by another contender; creation decides.
            return True
        except OSError as e:
            msg = f"Failed to remove stale lock for {resource}: {e}"
            raise StorageError(msg, operation="lock", key=resource, cause=e) from e

        try:
            current = tombstone.stat()
            if (current.st_ino, current.st_mtime_ns) != (
                judged.st_ino,
                judged.st_mtime_ns,
            ):
                # A live lock created after the staleness check.
                tombstone.rename(lock_path)
                return False
            tombstone.rmdir()
        except OSError as e:
            msg = f"Failed to remove stale lock for {resource}: {e}"
            raise StorageError(msg, operation="lock", key=resource, cause=e) from e

        self._logger.warning("lock_stale_removed", resource=resource)
        return True

    def _try_acquire(self, resource: str, lock_path: Path) -> bool:
        try:
            lock_path.mkdir()
        except FileExistsError:
            judged = self._stale_stat(lock_path)
            if judged is None or not self._remove_stale(resource, lock_path, judged):
                return False
            try:
                lock_path.mkdir()
            except FileExistsError:
                # Another contender took it over first.
                return False
        return True

    def _start_lease(self, resource: str, lock_path: Path) -> None:
        lease = _LeaseRefresher(
            resource,
            lock_path,
            self._config.stale_after / 2,
            self._clock,
            self._logger,
        )
        with self._leases_guard:
            self._leases[resource] = lease
        lease.start()

    def _stop_lease(self, resource: str) -> None:
        with self._leases_guard:
            lease = self._leases.pop(resource, None)
        if lease is not None:
            lease.stop()

    def acquire(self, resource: str) -> None:
        """Acquire the lock for ``resource``, waiting with backoff.

        The lock is refreshed in the background until :meth:`release`.

        Raises:
            ValidationError: If ``resource`` is not a valid storage key.
            LockTimeoutError: If the lock is still held after every retry.
            StorageError: If the lock directory cannot be created.
        """
        lock_path = self._lock_path(resource)
        attempts = self._config.retries + 1

        try:
            lock_path.parent.mkdir(parents=True, exist_ok=True)
            for attempt in range(attempts):
                if self._try_acquire(resource, lock_path):
                    self._logger.debug(
                        "lock_acquired", resource=resource, attempt=attempt + 1
                    )
                    self._start_lease(resource, lock_path)
                    return
                if attempt < attempts - 1:
                    self._sleep(self._backoff.delay(attempt))
        except OSError as e:
            msg = f"Failed to acquire lock for {resource}: {e}"
            raise StorageError(msg, operation="lock", key=resource, cause=e) from e

        self._logger.warning(
            "lock_timeout",
            resource=resource,
            attempts=attempts,
            max_wait=self._backoff.total_budget(self._config.retries),
        )
        msg = f"Timed out acquiring lock for {resource} after {attempts} attempts"
        raise LockTimeoutError(msg, resource=resource, attempts=attempts)

    def release(self, resource: str) -> None:
        """Release the lock for ``resource``.

        Failures are logged rather than raised so that they never mask an
        error from the locked operation.
        """
        self._stop_lease(resource)
        lock_path = self._lock_path(resource)
        try:
            lock_path.rmdir()
        except FileNotFoundError:
            self._logger.warning("lock_already_released", resource=resource)
        except OSError as e:
            self._logger.error("lock_release_failed", resource=resource, error=str(e))
        else:
            self._logger.debug("lock_released", resource=resource)

    @contextmanager
    def lock(self, resource: str) -> Iterator[None]:
        """Hold the lock for ``resource`` for the duration of a with block.

        Example:
            >>> with locks.lock("billing-api/v1.0.0"):
            ...     ...
        """
        self.acquire(resource)
        try:
            yield
        finally:
            self.release(resource)

    def with_lock[T](self, resource: str, operation: Callable[[], T]) -> T:
        """Run ``operation`` while holding the lock for ``resource``.

        The lock is released on every exit path, including when
        ``operation`` raises.

        Returns:
            Whatever ``operation`` returns.
        """
        with self.lock(resource):
            return operation()

    def is_locked(self, resource: str) -> bool:
        """Return whether a live lock is held on ``resource``.

        Best effort: a stale lock, an absent lock, an invalid key and any
        I/O error all report False.
        """
        try:
            lock_path = self._lock_path(resource)
            return lock_path.is_dir() and not self._is_stale(lock_path)
        except (OSError, SpecVaultError):
            return False

    def force_unlock(self, resource: str) -> None:
        """Remove the lock on ``resource`` regardless of who holds it.

        An absent lock is a no-op.

        Raises:
            StorageError: If the lock exists but cannot be removed.
        """
        self._stop_lease(resource)
        lock_path = self._lock_path(resource)
        try:
            lock_path.rmdir()
        except FileNotFoundError:
            return
        except OSError as e:
            msg = f"Failed to force unlock {resource}: {e}"
            raise StorageError(msg, operation="unlock", key=resource, cause=e) from e
        self._logger.warning("lock_forced_unlock", resource=resource)
