"""
Sdk installs, the remote release catalog, and version resolution.
"""

from sdkenv.toolchain.repository import (
    InstalledVersion,
    InstallManifest,
    LocalRepository,
    PollutionReport,
    PollutionState,
)
from sdkenv.toolchain.catalog import (
    CatalogEntry,
    CatalogSnapshot,
    RemoteCatalogCache,
)
from sdkenv.toolchain.releases import FlutterReleaseFetcher
from sdkenv.toolchain.resolver import (
    Provenance,
    ResolutionResult,
    VersionResolver,
)
from sdkenv.toolchain.installer import ArchiveInstaller, Installer

__all__ = [
    "InstalledVersion",
    "InstallManifest",
    "LocalRepository",
    "PollutionReport",
    "PollutionState",
    "CatalogEntry",
    "CatalogSnapshot",
    "RemoteCatalogCache",
    "FlutterReleaseFetcher",
    "Provenance",
    "ResolutionResult",
    "VersionResolver",
    "ArchiveInstaller",
    "Installer",
]
