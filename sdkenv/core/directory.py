"""
Directory structure management for sdkenv.

This module resolves the manager root and the well-known paths below it.
Every path is derived from a single root so that tests and alternative
installations can relocate the whole tree with ``SDKENV_ROOT``.

Directory Structure:
    Manager root (~/.sdkenv/ or %USERPROFILE%\\.sdkenv\\):
        - versions/       : Installed sdk versions, one directory each
        - cache/          : Remote catalog snapshot (catalog.json)
        - downloads/      : Downloaded release archives
        - shims/          : Generated shim scripts
        - lock/           : Concurrent access control files
        - version         : Global version file
        - config.yaml     : Optional configuration
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from sdkenv.core.exceptions import SdkenvError

ROOT_ENV_VAR = "SDKENV_ROOT"
WORKDIR_ENV_VAR = "SDKENV_DIR"


class DirectoryError(SdkenvError):
    """Base exception for directory-related errors."""

    pass


def get_default_root(environ: Optional[Mapping[str, str]] = None) -> Path:
    """
    Get the manager root directory.

    ``SDKENV_ROOT`` wins when set and non-empty; otherwise the
    platform-specific default is used.

    Returns:
        Path: The manager root.
            - Windows: %USERPROFILE%\\.sdkenv
            - Linux/macOS: ~/.sdkenv

    Example:
        >>> get_default_root({"SDKENV_ROOT": "/opt/sdkenv"})
        PosixPath('/opt/sdkenv')
    """
    environ = os.environ if environ is None else environ

    override = environ.get(ROOT_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()

    if os.name == "nt":  # Windows
        user_profile = environ.get("USERPROFILE")
        if not user_profile:
            raise DirectoryError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine sdkenv root directory."
            )
        return Path(user_profile) / ".sdkenv"
    else:  # Linux/macOS
        return Path.home() / ".sdkenv"


def get_working_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Directory resolution starts from: ``SDKENV_DIR`` or the process cwd."""
    environ = os.environ if environ is None else environ

    override = environ.get(WORKDIR_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.cwd()


@dataclass(frozen=True)
class SdkDirectories:
    """Well-known locations below the manager root."""

    root: Path

    @classmethod
    def from_environment(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "SdkDirectories":
        return cls(get_default_root(environ))

    @property
    def versions_dir(self) -> Path:
        return self.root / "versions"

    @property
    def cache_dir(self) -> Path:
        return self.root / "cache"

    @property
    def catalog_file(self) -> Path:
        return self.cache_dir / "catalog.json"

    @property
    def downloads_dir(self) -> Path:
        return self.root / "downloads"

    @property
    def shims_dir(self) -> Path:
        return self.root / "shims"

    @property
    def lock_dir(self) -> Path:
        return self.root / "lock"

    @property
    def global_version_file(self) -> Path:
        return self.root / "version"

    @property
    def config_file(self) -> Path:
        return self.root / "config.yaml"

    def ensure(self) -> "SdkDirectories":
        """
        Create the directory structure if it doesn't exist.

        Raises:
            DirectoryError: If a directory cannot be created.
        """
        for path in (
            self.root,
            self.versions_dir,
            self.cache_dir,
            self.downloads_dir,
            self.shims_dir,
            self.lock_dir,
        ):
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DirectoryError(f"Failed to create directory {path}: {e}") from e
        return self
