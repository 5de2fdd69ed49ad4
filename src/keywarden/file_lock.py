"""Cross-platform locking of a shared data file.

Locks the data file itself (not a sidecar lock file) so that other processes
using advisory locks on the same file, such as the gateway that owns the
credential store, are serialised with us. Uses msvcrt on Windows and fcntl on
Unix.
"""

import errno
import logging
import platform
from pathlib import Path
from typing import IO, Optional, Union

logger = logging.getLogger(__name__)

# msvcrt.locking errors that clear once the other holder lets go
_WINDOWS_CONTENTION_ERRNOS = (errno.EDEADLK, errno.EACCES)


class FileLock:
    """Blocking lock held on an open data file.

    The file is opened on acquire and stays open until release, so callers
    read (and, for exclusive locks, rewrite) it through ``handle`` while the
    lock is held. Shared locks are taken by readers: any number may hold one
    at once, but never alongside an exclusive holder. msvcrt has no shared
    locks, so on Windows a shared lock is exclusive too.

    Example:
        >>> with FileLock("/path/to/auth-profiles.json") as lock:
        ...     data = json.load(lock.handle)
        ...     lock.handle.seek(0)
        ...     json.dump(data, lock.handle, indent=2)
        ...     lock.handle.truncate()
    """

    def __init__(self, path: Union[str, Path], blocking: bool = True, shared: bool = False):
        """Initialize file lock.

        Args:
            path: Path to the data file to lock (must already exist)
            blocking: Wait for the lock instead of failing when it is held
            shared: Take a read-only shared lock instead of an exclusive one
        """
        self.path = Path(path)
        self.blocking = blocking
        self.shared = shared
        self._handle: Optional[IO[str]] = None

    @property
    def kind(self) -> str:
        return "shared" if self.shared else "exclusive"

    @property
    def handle(self) -> IO[str]:
        """Open text handle of the locked file."""
        if self._handle is None:
            raise RuntimeError(f"File lock not held: {self.path}")
        return self._handle

    def is_locked(self) -> bool:
        return self._handle is not None

    def acquire(self):
        """Acquire the lock.

        Raises:
            FileNotFoundError: If the file does not exist
            RuntimeError: If the lock cannot be taken (non-blocking mode, or OS failure)
        """
        handle = open(self.path, "r" if self.shared else "r+", encoding="utf-8")
        try:
            if platform.system() == "Windows":
                self._lock_windows(handle)
            else:  # Unix/Linux/Mac
                import fcntl

                flags = fcntl.LOCK_SH if self.shared else fcntl.LOCK_EX
                if not self.blocking:
                    flags |= fcntl.LOCK_NB
                fcntl.flock(handle.fileno(), flags)
        except OSError as e:
            handle.close()
            logger.error(f"Failed to acquire file lock {self.path}: {e}")
            raise RuntimeError(f"Failed to acquire file lock: {e}") from e

        self._handle = handle
        logger.debug(f"Acquired {self.kind} lock on {self.path}")

    def _lock_windows(self, handle: IO[str]):
        import msvcrt

        if self.shared:
            mode = msvcrt.LK_RLCK if self.blocking else msvcrt.LK_NBRLCK
        else:
            mode = msvcrt.LK_LOCK if self.blocking else msvcrt.LK_NBLCK
        while True:
            try:
                msvcrt.locking(handle.fileno(), mode, 1)
                return
            except OSError as e:
                # LK_LOCK gives up after ~10s of contention; keep waiting when blocking
                if not self.blocking or e.errno not in _WINDOWS_CONTENTION_ERRNOS:
                    raise
                logger.debug(f"Still waiting for {self.kind} lock on {self.path}")

    def release(self):
        """Release the lock and close the file.

        Safe to call even if the lock was never acquired.
        """
        if not self.is_locked():
            return

        handle, self._handle = self._handle, None
        try:
            handle.flush()
            if platform.system() == "Windows":
                import msvcrt

                handle.seek(0)
                try:
                    msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
                except OSError:
                    pass  # Closing the handle drops the lock anyway
            else:  # Unix
                import fcntl

                try:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
                except OSError:
                    pass  # Closing the handle drops the lock anyway
        finally:
            handle.close()
            logger.debug(f"Released {self.kind} lock on {self.path}")

    def __enter__(self):
        """Context manager entry - acquire lock."""
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - release lock."""
        self.release()
        return False  # Don't suppress exceptions
