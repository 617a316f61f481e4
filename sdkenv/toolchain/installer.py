"""
Sdk installation.

The rest of the manager only talks to the ``Installer`` protocol:
``install(spec)`` returns the new ``InstalledVersion`` and ``uninstall``
removes one. ``ArchiveInstaller`` is the default implementation; it picks a
release from the remote catalog, downloads its archive (sha256 verified),
and extracts it into a staging directory that replaces the install only once
everything succeeded.

Install identifiers:
    - a numeric spec installs the best matching release as ``<version>/``
      (``3.7`` → ``3.7.12/``), a pinned install
    - a channel spec installs the channel's newest release as ``<channel>/``
      (``stable/``), a channel install that may be upgraded in place
"""

import logging
import shutil
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Optional, Protocol, Tuple

from sdkenv.core.download import ChecksumError, DownloadError, download_file
from sdkenv.core.exceptions import AlreadyInstalledError, InstallError, NoMatchError
from sdkenv.core.filesystem import ArchiveExtractionError, FilesystemError, extract_archive
from sdkenv.core.locking import LockManager, LockTimeout
from sdkenv.toolchain.catalog import CatalogEntry, RemoteCatalogCache
from sdkenv.toolchain.repository import (
    MANIFEST_FILE_NAME,
    InstalledVersion,
    LocalRepository,
)
from sdkenv.versions.matcher import select_best
from sdkenv.versions.spec import VersionSpec

logger = logging.getLogger(__name__)


class Installer(Protocol):
    """Installs and removes sdk versions."""

    def install(self, spec: VersionSpec, force: bool = False) -> InstalledVersion:
        """
        Raises:
            InstallError: kind "network", "extract" or "disk"
            NoMatchError: If no release satisfies spec
        """
        ...

    def uninstall(self, installed: InstalledVersion) -> None:
        ...


class ArchiveInstaller:
    """
    Installs sdk versions from published release archives.

    Example:
        >>> installer = ArchiveInstaller(repository, catalog, LockManager(dirs.lock_dir),
        ...                              dirs.downloads_dir)
        >>> installer.install(parse_version_spec("3.7")).identifier
        '3.7.12'
    """

    def __init__(
        self,
        repository: LocalRepository,
        catalog: RemoteCatalogCache,
        lock_manager: LockManager,
        downloads_dir: Path,
        lock_timeout: int = 300,
        download_timeout: int = 30,
        progress_callback: Optional[Callable] = None,
    ):
        self.repository = repository
        self.catalog = catalog
        self.lock_manager = lock_manager
        self.downloads_dir = Path(downloads_dir)
        self.lock_timeout = lock_timeout
        self.download_timeout = download_timeout
        self.progress_callback = progress_callback

    def resolve_target(self, spec: VersionSpec) -> Tuple[str, CatalogEntry]:
        """
        Pick the release to install for spec.

        Returns:
            (install identifier, catalog entry)

        Raises:
            NoMatchError: If the catalog has no matching release
            CatalogFetchError: If the catalog is unavailable
        """
        snapshot = self.catalog.get()
        entry = select_best(spec, snapshot.entries)
        if entry is None:
            raise NoMatchError(str(spec), remote=True)

        identifier = spec.channel if spec.is_channel else entry.identifier
        return identifier, entry

    def install(self, spec: VersionSpec, force: bool = False) -> InstalledVersion:
        """
        Install the best release for spec.

        Args:
            spec: What to install
            force: Reinstall even if the identifier is already installed

        Returns:
            The new install

        Raises:
            AlreadyInstalledError: If installed and force is False
            InstallError: On download, extraction or disk failure
        """
        identifier, entry = self.resolve_target(spec)

        with self._version_lock(identifier):
            if self.repository.get(identifier) is not None and not force:
                raise AlreadyInstalledError(identifier)

            if not entry.archive:
                raise InstallError(
                    f"No archive is published for {entry.identifier}",
                    kind=InstallError.NETWORK,
                )

            logger.info(f"Installing {identifier} ({entry.identifier}, {entry.channel})")
            start = time.time()
            archive_path = self._download(entry)

            try:
                with self.repository.installing(identifier, source=entry.archive) as staging:
                    extract_archive(archive_path, staging)
                    _hoist_single_root(staging)
            except ArchiveExtractionError as e:
                raise InstallError(
                    f"Failed to extract {archive_path.name}: {e}", kind=InstallError.EXTRACT
                ) from e
            except (FilesystemError, OSError) as e:
                raise InstallError(
                    f"Failed to install {identifier}: {e}", kind=InstallError.DISK
                ) from e

            archive_path.unlink(missing_ok=True)
            logger.info(f"Installed {identifier} in {time.time() - start:.1f}s")

        installed = self.repository.get(identifier)
        if installed is None:
            raise InstallError(f"{identifier} is missing after install", kind=InstallError.DISK)
        return installed

    def uninstall(self, installed: InstalledVersion) -> None:
        """
        Remove an install.

        Raises:
            InstallError: If the directory cannot be removed
        """
        with self._version_lock(installed.identifier):
            try:
                self.repository.remove(installed)
            except (FilesystemError, ValueError) as e:
                raise InstallError(
                    f"Failed to uninstall {installed.identifier}: {e}", kind=InstallError.DISK
                ) from e
        logger.info(f"Uninstalled {installed.identifier}")

    @contextmanager
    def _version_lock(self, identifier: str):
        try:
            with self.lock_manager.version_lock(identifier, timeout=self.lock_timeout):
                yield
        except LockTimeout as e:
            raise InstallError(
                f"Could not acquire the lock for {identifier} after {self.lock_timeout}s, "
                "another sdkenv process may be installing or removing it",
                kind=InstallError.DISK,
            ) from e

    def _download(self, entry: CatalogEntry) -> Path:
        archive_name = entry.archive.rsplit("/", 1)[-1]
        archive_path = self.downloads_dir / archive_name

        try:
            return download_file(
                url=entry.archive,
                destination=archive_path,
                expected_sha256=entry.sha256 or None,
                progress_callback=self.progress_callback,
                timeout=self.download_timeout,
            )
        except (DownloadError, ChecksumError) as e:
            raise InstallError(str(e), kind=InstallError.NETWORK) from e
        except OSError as e:
            raise InstallError(
                f"Failed to store {archive_name}: {e}", kind=InstallError.DISK
            ) from e


def _hoist_single_root(staging: Path) -> None:
    """
    Release archives wrap the sdk in one top-level directory (``flutter/``).
    Move its contents up so that ``staging/bin/flutter`` exists.
    """
    items = [p for p in staging.iterdir() if p.name != MANIFEST_FILE_NAME]
    if len(items) != 1 or not items[0].is_dir() or (staging / "bin").exists():
        return

    # Renamed first: the wrapper may contain an entry with its own name
    root = items[0].rename(staging / ".sdkenv-archive-root")
    for child in list(root.iterdir()):
        shutil.move(str(child), str(staging / child.name))
    root.rmdir()
