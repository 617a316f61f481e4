"""
Flutter release index.

The Flutter team publishes one JSON index per host platform:

    <base_url>/releases_linux.json
    {
      "base_url": "https://storage.googleapis.com/flutter_infra_release/releases",
      "current_release": {"stable": "<commit>", "beta": "<commit>"},
      "releases": [
        {"hash": "<commit>", "channel": "stable", "version": "3.19.6",
         "dart_sdk_arch": "x64", "release_date": "2024-04-17T19:13:08.588Z",
         "archive": "stable/linux/flutter_linux_3.19.6-stable.tar.xz",
         "sha256": "..."},
        ...
      ]
    }

This module downloads and parses that index into catalog entries.
"""

import logging
import platform
import sys
from typing import List, Optional

import requests

from sdkenv.config.parser import DEFAULT_CATALOG_URL
from sdkenv.core.exceptions import CatalogFetchError, VersionSpecParseError
from sdkenv.toolchain.catalog import CatalogEntry, parse_timestamp
from sdkenv.versions.spec import SpecKind, parse_version_spec

logger = logging.getLogger(__name__)


def host_platform() -> str:
    """Platform name used in release index file names."""
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "macos"
    return "linux"


def host_arch() -> str:
    """Dart sdk architecture name of this machine."""
    machine = platform.machine().lower()
    if machine in ("arm64", "aarch64"):
        return "arm64"
    return "x64"


def parse_release_index(data: dict, arch: Optional[str] = None) -> List[CatalogEntry]:
    """
    Convert a release index document into catalog entries.

    Releases built for another architecture are dropped, as are duplicates
    of an already seen (version, channel) pair and versions that do not
    parse as exact versions.

    Raises:
        CatalogFetchError: If the document does not have the expected shape
    """
    if not isinstance(data, dict) or not isinstance(data.get("releases"), list):
        raise CatalogFetchError("Release index has no 'releases' list")

    base_url = str(data.get("base_url") or "").rstrip("/")
    entries = []
    seen = set()

    for release in data["releases"]:
        if not isinstance(release, dict):
            continue

        release_arch = release.get("dart_sdk_arch")
        if arch and release_arch and release_arch != arch:
            continue

        try:
            version = parse_version_spec(str(release.get("version", "")))
        except VersionSpecParseError:
            logger.debug(f"Skipping release with unparsable version: {release.get('version')}")
            continue
        if version.kind is not SpecKind.EXACT:
            continue

        channel = release.get("channel")
        key = (str(version), channel)
        if key in seen:
            continue
        seen.add(key)

        try:
            published_at = parse_timestamp(release.get("release_date"))
        except ValueError:
            published_at = None

        archive = release.get("archive") or ""
        if archive and base_url and "://" not in archive:
            archive = f"{base_url}/{archive}"

        entries.append(
            CatalogEntry(
                version=version,
                channel=channel,
                published_at=published_at,
                archive=archive,
                sha256=release.get("sha256") or "",
                commit=release.get("hash") or "",
            )
        )

    return entries


class FlutterReleaseFetcher:
    """
    Fetches the Flutter release index for the host platform.

    Example:
        >>> fetcher = FlutterReleaseFetcher()
        >>> fetcher.source
        'https://storage.googleapis.com/flutter_infra_release/releases/releases_linux.json'
    """

    def __init__(
        self,
        base_url: str = DEFAULT_CATALOG_URL,
        platform_name: Optional[str] = None,
        arch: Optional[str] = None,
        timeout: int = 30,
    ):
        self.base_url = base_url.rstrip("/")
        self.platform_name = platform_name or host_platform()
        self.arch = arch or host_arch()
        self.timeout = timeout

    @property
    def source(self) -> str:
        return f"{self.base_url}/releases_{self.platform_name}.json"

    def fetch(self) -> List[CatalogEntry]:
        """
        Download and parse the release index.

        Raises:
            CatalogFetchError: On network errors, HTTP errors or invalid JSON
        """
        logger.debug(f"Fetching release index: {self.source}")
        try:
            response = requests.get(self.source, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise CatalogFetchError(f"Failed to fetch {self.source}: {e}") from e
        except ValueError as e:
            raise CatalogFetchError(f"Invalid JSON in {self.source}: {e}") from e

        return parse_release_index(data, self.arch)
