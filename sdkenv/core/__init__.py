"""
Core functionality for sdkenv.

This package contains the foundational modules that other components depend on.
"""

from .directory import (
    SdkDirectories,
    get_default_root,
    get_working_dir,
    DirectoryError,
)

from .locking import (
    LockManager,
    LockTimeout,
)

from .exceptions import (
    SdkenvError,
    DispatchRefusedError,
    VersionSpecParseError,
    ResolutionError,
    NoVersionSelectedError,
    NoMatchError,
    PollutedInstallError,
    PolicyViolationError,
    ExecutableNotFoundError,
    CatalogError,
    CatalogFetchError,
    InstallError,
    AlreadyInstalledError,
    ConfigError,
)

__all__ = [
    # Directory management
    "SdkDirectories",
    "get_default_root",
    "get_working_dir",
    "DirectoryError",
    # Locking
    "LockManager",
    "LockTimeout",
    # Exceptions
    "SdkenvError",
    "DispatchRefusedError",
    "VersionSpecParseError",
    "ResolutionError",
    "NoVersionSelectedError",
    "NoMatchError",
    "PollutedInstallError",
    "PolicyViolationError",
    "ExecutableNotFoundError",
    "CatalogError",
    "CatalogFetchError",
    "InstallError",
    "AlreadyInstalledError",
    "ConfigError",
]
