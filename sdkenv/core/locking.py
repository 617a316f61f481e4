"""
Concurrent access control for sdkenv.

Install and uninstall of one sdk version are serialized across processes
with file locks, so two shells running ``sdkenv install 3.7`` at once do not
extract over each other. Readers (resolution, dispatch) never lock; they rely
on atomic replace of every file they read.

Usage:
    from sdkenv.core.locking import LockManager

    lock_manager = LockManager(directories.lock_dir)
    with lock_manager.version_lock("3.7.12", timeout=300):
        install_version("3.7.12")
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout as LockTimeout

logger = logging.getLogger(__name__)


class LockManager:
    """
    Manages locks for sdkenv resources.

    Uses file-based locking with the `filelock` library for cross-platform
    compatibility and automatic cleanup on process death.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Path):
        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def version_lock(self, identifier: str, timeout: int = 300):
        """
        Acquire the lock for installing or removing one sdk version.

        Args:
            identifier: Version directory name (e.g., '3.7.12', 'stable')
            timeout: Maximum wait time in seconds (default: 300 for long downloads)

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        safe_id = identifier.replace("/", "-").replace("\\", "-").replace(":", "-")
        lock_path = self.lock_dir / f"version-{safe_id}.lock"
        lock = FileLock(lock_path, timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired version lock: {lock_path}")
                yield
                logger.debug(f"Released version lock: {lock_path}")
        except LockTimeout as e:
            raise LockTimeout(
                f"Could not acquire lock for {identifier} after {timeout}s. "
                "Another sdkenv process may be installing this version."
            ) from e
