"""
Local repository of installed sdk versions.

Every install lives in its own directory below the versions root:

    <root>/versions/
        3.7.12/                     pinned release
            .sdkenv-manifest.json   written by the manager
            bin/flutter
        stable/                     channel install (moving branch)
        .install_3.10.0             marker: install of 3.10.0 in progress

The manifest records what the manager installed. Comparing it with what is
on disk (directory name, checked-out git branch) tells whether the install
was changed behind the manager's back ("pollution"). Pollution is computed on
demand and returned as a value; nothing is cached or mutated in place.
"""

import json
import logging
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional

from sdkenv.core.exceptions import SdkenvError, VersionSpecParseError
from sdkenv.core.filesystem import atomic_write, safe_rmtree
from sdkenv.versions.matcher import select_best
from sdkenv.versions.spec import CHANNELS, SpecKind, VersionSpec, parse_version_spec

logger = logging.getLogger(__name__)

MANIFEST_FILE_NAME = ".sdkenv-manifest.json"
INSTALL_MARKER_PREFIX = ".install_"
STAGING_PREFIX = ".staging_"


class PollutionState(Enum):
    """Integrity of one install."""

    CLEAN = "clean"
    POLLUTED = "polluted"


@dataclass(frozen=True)
class PollutionReport:
    """Result of a pollution check."""

    state: PollutionState
    reason: str = ""

    @classmethod
    def clean(cls) -> "PollutionReport":
        return cls(PollutionState.CLEAN)

    @classmethod
    def polluted(cls, reason: str) -> "PollutionReport":
        return cls(PollutionState.POLLUTED, reason)

    @property
    def is_polluted(self) -> bool:
        return self.state is PollutionState.POLLUTED


@dataclass
class InstallManifest:
    """Manager-written record of one install."""

    identifier: str
    channel: Optional[str]
    installed_at: str
    branch: Optional[str] = None
    commit: Optional[str] = None
    source: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "InstallManifest":
        """
        Build a manifest from its JSON form.

        Raises:
            ValueError: If required fields are missing or have the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError("manifest must be a JSON object")
        for key in ("identifier", "installed_at"):
            if not isinstance(data.get(key), str):
                raise ValueError(f"manifest field '{key}' is missing")
        for key in ("channel", "branch", "commit", "source"):
            if data.get(key) is not None and not isinstance(data[key], str):
                raise ValueError(f"manifest field '{key}' must be a string or null")
        if "channel" not in data:
            raise ValueError("manifest field 'channel' is missing")

        return cls(
            identifier=data["identifier"],
            channel=data["channel"],
            installed_at=data["installed_at"],
            branch=data.get("branch"),
            commit=data.get("commit"),
            source=data.get("source"),
        )


@dataclass(frozen=True)
class InstalledVersion:
    """One directory below the versions root."""

    identifier: str
    install_path: Path
    channel: Optional[str] = None

    @property
    def version(self) -> VersionSpec:
        return parse_version_spec(self.identifier)

    @property
    def is_pinned(self) -> bool:
        return self.channel is None

    @property
    def bin_dir(self) -> Path:
        return self.install_path / "bin"

    @property
    def manifest_path(self) -> Path:
        return self.install_path / MANIFEST_FILE_NAME

    def __str__(self) -> str:
        return self.identifier


def read_checked_out_branch(install_path: Path) -> Optional[str]:
    """
    Branch checked out in an install's git tree.

    Returns:
        The branch name, or None for a detached HEAD or an install without git
    """
    head_file = install_path / ".git" / "HEAD"
    try:
        head = head_file.read_text(encoding="utf-8").strip()
    except OSError:
        return None

    prefix = "ref: refs/heads/"
    if head.startswith(prefix):
        return head[len(prefix):]
    return None


def has_git_checkout(install_path: Path) -> bool:
    return (install_path / ".git" / "HEAD").is_file()


def read_head_commit(install_path: Path) -> Optional[str]:
    """Commit the install's HEAD points at, following one symbolic ref."""
    git_dir = install_path / ".git"
    try:
        head = (git_dir / "HEAD").read_text(encoding="utf-8").strip()
    except OSError:
        return None

    if not head.startswith("ref: "):
        return head or None

    ref = head[len("ref: "):]
    try:
        return (git_dir / ref).read_text(encoding="utf-8").strip() or None
    except OSError:
        pass

    try:
        packed = (git_dir / "packed-refs").read_text(encoding="utf-8")
    except OSError:
        return None
    for line in packed.splitlines():
        parts = line.split()
        if len(parts) == 2 and parts[1] == ref:
            return parts[0]
    return None


def _parse_identifier(name: str) -> Optional[VersionSpec]:
    """Directory names are exact versions or full channel names."""
    if name.startswith("."):
        return None
    try:
        spec = parse_version_spec(name)
    except VersionSpecParseError:
        return None
    if spec.kind is SpecKind.PREFIX:
        return None
    if spec.is_channel and spec.channel != name:
        return None
    return spec


def _sort_key(installed: InstalledVersion):
    version = installed.version
    if version.is_channel:
        return (1, CHANNELS.index(version.channel), ())
    return (0, tuple(-c for c in version.numeric_key), installed.identifier)


class LocalRepository:
    """
    Installed sdk versions below a versions root.

    Example:
        >>> repo = LocalRepository(Path("~/.sdkenv/versions").expanduser())
        >>> [str(v) for v in repo.list_installed()]
        ['3.7.12', '3.7.0', 'stable']
    """

    def __init__(self, versions_dir: Path):
        self.versions_dir = Path(versions_dir)

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def list_installed(self) -> List[InstalledVersion]:
        """
        Enumerate installed versions.

        Entries that are not directories, do not parse as a version
        identifier, or have an install in progress are skipped.
        """
        if not self.versions_dir.is_dir():
            return []

        installed = []
        for entry in self.versions_dir.iterdir():
            spec = _parse_identifier(entry.name)
            if spec is None or not entry.is_dir():
                continue
            if self.marker_path(entry.name).exists():
                logger.debug(f"Skipping incomplete install: {entry.name}")
                continue
            installed.append(
                InstalledVersion(
                    identifier=entry.name,
                    install_path=entry,
                    channel=spec.channel if spec.is_channel else None,
                )
            )

        return sorted(installed, key=_sort_key)

    def is_installed(self, spec: VersionSpec) -> Optional[InstalledVersion]:
        """Best installed match for spec, or None."""
        return select_best(spec, self.list_installed())

    def get(self, identifier: str) -> Optional[InstalledVersion]:
        """Installed version with exactly this directory name."""
        for installed in self.list_installed():
            if installed.identifier == identifier:
                return installed
        return None

    # ------------------------------------------------------------------
    # Manifest and pollution
    # ------------------------------------------------------------------

    def read_manifest(self, installed: InstalledVersion) -> Optional[InstallManifest]:
        """Load an install's manifest; None if missing or unreadable."""
        try:
            with open(installed.manifest_path, "r", encoding="utf-8") as f:
                return InstallManifest.from_dict(json.load(f))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError, ValueError) as e:
            logger.debug(f"Unreadable manifest {installed.manifest_path}: {e}")
            return None

    def write_manifest(self, install_path: Path, manifest: InstallManifest) -> None:
        atomic_write(
            install_path / MANIFEST_FILE_NAME,
            json.dumps(manifest.to_dict(), indent=2) + "\n",
        )

    def detect_pollution(self, installed: InstalledVersion) -> PollutionReport:
        """
        Compare the recorded manifest with what is on disk.

        Returns:
            POLLUTED when the manifest is missing or unreadable, names another
            version or channel, or git HEAD moved away from what was installed;
            CLEAN otherwise
        """
        manifest = self.read_manifest(installed)
        if manifest is None:
            return PollutionReport.polluted("install manifest is missing or unreadable")

        if manifest.identifier != installed.identifier:
            return PollutionReport.polluted(
                f"manifest records version {manifest.identifier}"
            )

        if manifest.channel != installed.channel:
            recorded = manifest.channel or "a pinned release"
            expected = installed.channel or "a pinned release"
            return PollutionReport.polluted(
                f"manifest records {recorded}, but the install is {expected}"
            )

        if has_git_checkout(installed.install_path):
            branch = read_checked_out_branch(installed.install_path)
            if installed.channel and branch and branch != installed.channel:
                return PollutionReport.polluted(
                    f"checked out {branch} instead of {installed.channel}"
                )
            if branch != manifest.branch:
                return PollutionReport.polluted(
                    f"checked out {branch or 'a detached HEAD'}, "
                    f"installed from {manifest.branch or 'a detached HEAD'}"
                )
            if installed.is_pinned and manifest.commit:
                commit = read_head_commit(installed.install_path)
                if commit and commit != manifest.commit:
                    return PollutionReport.polluted(
                        f"HEAD moved from {manifest.commit[:7]} to {commit[:7]}"
                    )

        return PollutionReport.clean()

    # ------------------------------------------------------------------
    # Install / uninstall primitives
    # ------------------------------------------------------------------

    def marker_path(self, identifier: str) -> Path:
        return self.versions_dir / f"{INSTALL_MARKER_PREFIX}{identifier}"

    def install_path(self, identifier: str) -> Path:
        return self.versions_dir / identifier

    @contextmanager
    def installing(self, identifier: str, source: Optional[str] = None) -> Iterator[Path]:
        """
        Stage a new install.

        Yields an empty staging directory for the installer to fill. On
        success the manifest is written into it and it replaces
        ``<versions>/<identifier>``; on failure the staging directory and the
        marker are removed and the previous install (if any) is untouched.

        Example:
            >>> with repo.installing("3.7.12") as staging:
            ...     extract_archive(archive, staging)
        """
        spec = _parse_identifier(identifier)
        if spec is None:
            raise SdkenvError(f"Not a valid install identifier: {identifier}")

        self.versions_dir.mkdir(parents=True, exist_ok=True)
        marker = self.marker_path(identifier)
        staging = self.versions_dir / f"{STAGING_PREFIX}{identifier}"

        if staging.exists():
            logger.info(f"Removing leftover staging directory: {staging}")
            safe_rmtree(staging, require_prefix=self.versions_dir)

        try:
            marker.touch()
            staging.mkdir()
            yield staging

            self.write_manifest(
                staging,
                InstallManifest(
                    identifier=identifier,
                    channel=spec.channel if spec.is_channel else None,
                    installed_at=datetime.now(timezone.utc).isoformat(),
                    branch=read_checked_out_branch(staging),
                    commit=read_head_commit(staging),
                    source=source,
                ),
            )

            target = self.install_path(identifier)
            if target.exists():
                logger.info(f"Replacing existing install: {target}")
                safe_rmtree(target, require_prefix=self.versions_dir)
            staging.rename(target)
            logger.debug(f"Installed {identifier} at {target}")
        except BaseException:
            if staging.exists():
                safe_rmtree(staging, require_prefix=self.versions_dir)
            raise
        finally:
            marker.unlink(missing_ok=True)

    def remove(self, installed: InstalledVersion) -> None:
        """Delete an install directory."""
        safe_rmtree(installed.install_path, require_prefix=self.versions_dir)
        self.marker_path(installed.identifier).unlink(missing_ok=True)
        logger.debug(f"Removed {installed.install_path}")
