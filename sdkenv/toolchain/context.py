"""
Wiring of the manager's collaborators.

The CLI and the shim front-end both need the same set of objects built from
one manager root and its ``config.yaml``. ``SdkContext`` builds them lazily
so that commands which never touch the network (``version``, ``which``, the
shim itself) never construct a fetcher.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Callable, Mapping, Optional

from sdkenv.config.parser import SdkenvConfig, load_config
from sdkenv.core.directory import SdkDirectories
from sdkenv.core.locking import LockManager
from sdkenv.toolchain.catalog import RemoteCatalogCache
from sdkenv.toolchain.installer import ArchiveInstaller, Installer
from sdkenv.toolchain.releases import FlutterReleaseFetcher
from sdkenv.toolchain.repository import LocalRepository
from sdkenv.toolchain.resolver import VersionResolver

logger = logging.getLogger(__name__)


@dataclass
class SdkContext:
    """Directories, configuration and lazily built services."""

    directories: SdkDirectories
    config: SdkenvConfig = field(default_factory=SdkenvConfig)
    progress_callback: Optional[Callable] = None

    _repository: Optional[LocalRepository] = field(default=None, init=False, repr=False)
    _catalog: Optional[RemoteCatalogCache] = field(default=None, init=False, repr=False)
    _installer: Optional[Installer] = field(default=None, init=False, repr=False)

    @classmethod
    def load(
        cls,
        root: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "SdkContext":
        """
        Build a context for a manager root.

        Args:
            root: Manager root (default: ``SDKENV_ROOT`` or ``~/.sdkenv``)
            environ: Environment to read ``SDKENV_ROOT`` from

        Raises:
            ConfigError: If ``config.yaml`` is invalid
        """
        directories = SdkDirectories(Path(root)) if root else SdkDirectories.from_environment(environ)
        config = load_config(directories.config_file)
        logger.debug(f"sdkenv root: {directories.root}")
        return cls(directories=directories, config=config)

    @property
    def repository(self) -> LocalRepository:
        if self._repository is None:
            self._repository = LocalRepository(self.directories.versions_dir)
        return self._repository

    @property
    def resolver(self) -> VersionResolver:
        # Built per call; resolution state is never kept between calls
        return VersionResolver.from_config(self.directories, self.config, self.repository)

    @property
    def catalog(self) -> RemoteCatalogCache:
        if self._catalog is None:
            catalog_config = self.config.catalog
            self._catalog = RemoteCatalogCache(
                self.directories.catalog_file,
                FlutterReleaseFetcher(catalog_config.url, timeout=catalog_config.timeout),
                ttl=timedelta(hours=catalog_config.ttl_hours),
            )
        return self._catalog

    @property
    def installer(self) -> Installer:
        if self._installer is None:
            self._installer = ArchiveInstaller(
                self.repository,
                self.catalog,
                LockManager(self.directories.lock_dir),
                self.directories.downloads_dir,
                lock_timeout=self.config.install.lock_timeout,
                download_timeout=self.config.catalog.timeout,
                progress_callback=self.progress_callback,
            )
        return self._installer
